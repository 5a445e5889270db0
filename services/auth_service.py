import logging
from typing import Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase

from config import ADMIN_EMAIL, ADMIN_NAME, ADMIN_PASSWORD
from dependencies import hash_password, verify_password
from errors import Forbidden, Unauthorized
from models.users import Role, User, UserRegister
from security import create_user_token
from services.users import UserStore

logger = logging.getLogger(__name__)

async def register_user(users: UserStore, data: UserRegister) -> Tuple[User, str]:
    user = await users.create(data, hash_password(data.password))
    logger.info(f"Registered {user.role.value} {user.id}")
    return user, create_user_token(user)

async def authenticate(users: UserStore, email: str, password: str) -> Tuple[User, str]:
    document = await users.find_credentials(email)
    if not document or not verify_password(password, document.get("password")):
        raise Unauthorized("Invalid credentials")

    user = User.model_validate(document)
    if user.is_blocked:
        raise Forbidden("Your account has been blocked")

    return user, create_user_token(user)

async def initialize_admin(db: AsyncIOMotorDatabase):
    """Create the configured admin account if no admin exists yet."""
    users = UserStore(db)
    if await users.count({"role": Role.ADMIN.value}):
        return

    if not ADMIN_EMAIL or not ADMIN_PASSWORD:
        logger.warning("No admin account exists and ADMIN_EMAIL/ADMIN_PASSWORD are not set")
        return

    admin = UserRegister(name=ADMIN_NAME, email=ADMIN_EMAIL, password=ADMIN_PASSWORD)
    await users.create(admin, hash_password(ADMIN_PASSWORD), role=Role.ADMIN)
    logger.info(f"Admin account {ADMIN_EMAIL} created")
