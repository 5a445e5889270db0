import logging
from typing import List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from database import ORDERS, PRODUCTS, USERS
from errors import Forbidden, NotFound, ValidationError
from models.users import ProfileUpdate, Role, User, UserRegister
from utils import generate_user_id, get_current_datetime, page_bounds

logger = logging.getLogger(__name__)

# Password hashes never leave the store except through find_credentials
PUBLIC_FIELDS = {"password": 0}


class UserStore:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db[USERS]

    async def find_by_id(self, user_id: str) -> Optional[User]:
        document = await self.collection.find_one({"_id": user_id}, PUBLIC_FIELDS)
        return User.model_validate(document) if document else None

    async def get(self, user_id: str) -> User:
        user = await self.find_by_id(user_id)
        if not user:
            raise NotFound("User not found")
        return user

    async def find_credentials(self, email: str) -> Optional[dict]:
        """Raw user document including the password hash, for login."""
        return await self.collection.find_one({"email": email.lower()})

    async def create(self, data: UserRegister, password_hash: str, role: Optional[Role] = None) -> User:
        email = data.email.lower()
        if await self.collection.find_one({"email": email}):
            raise ValidationError("User with this email already exists")

        now = get_current_datetime()
        document = {
            "_id": generate_user_id(),
            "name": data.name,
            "email": email,
            "password": password_hash,
            "role": (role or data.role).value,
            "phone": data.phone,
            "address": data.address,
            "is_blocked": False,
            "created_at": now,
            "updated_at": now
        }
        try:
            await self.collection.insert_one(document)
        except DuplicateKeyError:
            raise ValidationError("User with this email already exists")

        document.pop("password")
        return User.model_validate(document)

    async def update_profile(self, user_id: str, changes: ProfileUpdate) -> User:
        update_data = changes.model_dump(exclude_unset=True, exclude_none=True)
        update_data["updated_at"] = get_current_datetime()
        result = await self.collection.update_one({"_id": user_id}, {"$set": update_data})
        if result.matched_count == 0:
            raise NotFound("User not found")
        return await self.get(user_id)

    async def list_users(self, role: Optional[str], page: int, limit: int) -> Tuple[List[User], int]:
        query = {}
        if role and role != "all":
            try:
                query["role"] = Role(role).value
            except ValueError:
                raise ValidationError(f"Invalid role: {role}")

        skip, limit = page_bounds(page, limit)
        total = await self.collection.count_documents(query)
        documents = await self.collection.find(query, PUBLIC_FIELDS) \
            .sort("created_at", -1) \
            .skip(skip) \
            .limit(limit) \
            .to_list(length=limit)
        return [User.model_validate(document) for document in documents], total

    async def recent(self, limit: int = 5) -> List[User]:
        documents = await self.collection.find({}, PUBLIC_FIELDS) \
            .sort("created_at", -1) \
            .limit(limit) \
            .to_list(length=limit)
        return [User.model_validate(document) for document in documents]

    async def count(self, query: Optional[dict] = None) -> int:
        return await self.collection.count_documents(query or {})

    async def set_blocked(self, user_id: str, is_blocked: bool) -> User:
        user = await self.get(user_id)
        if user.role == Role.ADMIN:
            raise Forbidden("Cannot block admin users")

        await self.collection.update_one(
            {"_id": user_id},
            {"$set": {"is_blocked": is_blocked, "updated_at": get_current_datetime()}}
        )
        logger.info(f"User {user_id} {'blocked' if is_blocked else 'unblocked'}")
        return user.model_copy(update={"is_blocked": is_blocked})

    async def delete(self, user_id: str):
        """Hard delete. A farmer's products and a buyer's orders go with them."""
        user = await self.get(user_id)
        if user.role == Role.ADMIN:
            raise Forbidden("Cannot delete admin users")

        if user.role == Role.FARMER:
            result = await self.db[PRODUCTS].delete_many({"farmer_id": user_id})
            logger.info(f"Deleted {result.deleted_count} products of farmer {user_id}")
        elif user.role == Role.BUYER:
            result = await self.db[ORDERS].delete_many({"buyer_id": user_id})
            logger.info(f"Deleted {result.deleted_count} orders of buyer {user_id}")

        await self.collection.delete_one({"_id": user_id})
        logger.info(f"User {user_id} deleted")
