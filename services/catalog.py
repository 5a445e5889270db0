import logging
import re
from typing import List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase

from database import PRODUCTS
from errors import Forbidden, NotFound, ValidationError
from models.products import Category, Product, ProductCreate, ProductUpdate
from utils import generate_product_id, get_current_datetime, page_bounds

logger = logging.getLogger(__name__)

# Products buyers may see and order
VISIBLE = {"is_available": True, "is_blocked": False}


def listing_query(search: Optional[str] = None, category: Optional[str] = None, visible_only: bool = True) -> dict:
    query = dict(VISIBLE) if visible_only else {}

    if category and category != "all":
        try:
            query["category"] = Category(category).value
        except ValueError:
            raise ValidationError(f"Invalid category: {category}")

    if search:
        pattern = re.escape(search.strip())
        query["$or"] = [
            {"name": {"$regex": pattern, "$options": "i"}},
            {"description": {"$regex": pattern, "$options": "i"}},
            {"category": {"$regex": pattern, "$options": "i"}}
        ]
    return query


class CatalogStore:
    """Product records and their stock counts."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db[PRODUCTS]

    async def create(self, farmer_id: str, product: ProductCreate) -> Product:
        now = get_current_datetime()
        document = product.model_dump(mode="json")
        document.update({
            "_id": generate_product_id(),
            "farmer_id": farmer_id,
            "is_blocked": False,
            "created_at": now,
            "updated_at": now
        })
        await self.collection.insert_one(document)
        logger.info(f"Product {document['_id']} added by farmer {farmer_id}")
        return Product.model_validate(document)

    async def get(self, product_id: str) -> Optional[Product]:
        document = await self.collection.find_one({"_id": product_id})
        return Product.model_validate(document) if document else None

    async def get_or_404(self, product_id: str) -> Product:
        product = await self.get(product_id)
        if not product:
            raise NotFound("Product not found")
        return product

    async def get_visible(self, product_id: str) -> Product:
        product = await self.get_or_404(product_id)
        if not product.purchasable:
            raise NotFound("Product not available")
        return product

    async def _find(self, query: dict, page: int, limit: int) -> Tuple[List[Product], int]:
        skip, limit = page_bounds(page, limit)
        total = await self.collection.count_documents(query)
        documents = await self.collection.find(query) \
            .sort("created_at", -1) \
            .skip(skip) \
            .limit(limit) \
            .to_list(length=limit)
        return [Product.model_validate(document) for document in documents], total

    async def list_public(self, search: Optional[str], category: Optional[str], page: int, limit: int):
        return await self._find(listing_query(search, category), page, limit)

    async def list_all(self, category: Optional[str], page: int, limit: int):
        return await self._find(listing_query(category=category, visible_only=False), page, limit)

    async def list_by_farmer(self, farmer_id: str) -> List[Product]:
        documents = await self.collection.find({"farmer_id": farmer_id}) \
            .sort("created_at", -1) \
            .to_list(length=None)
        return [Product.model_validate(document) for document in documents]

    async def product_ids_for_farmer(self, farmer_id: str) -> List[str]:
        documents = await self.collection.find({"farmer_id": farmer_id}, {"_id": 1}).to_list(length=None)
        return [document["_id"] for document in documents]

    async def recent(self, limit: int = 5) -> List[Product]:
        documents = await self.collection.find({}) \
            .sort("created_at", -1) \
            .limit(limit) \
            .to_list(length=limit)
        return [Product.model_validate(document) for document in documents]

    async def count(self, query: Optional[dict] = None) -> int:
        return await self.collection.count_documents(query or {})

    async def _get_owned(self, product_id: str, farmer_id: str, action: str) -> Product:
        product = await self.get_or_404(product_id)
        if product.farmer_id != farmer_id:
            raise Forbidden(f"Not authorized to {action} this product")
        return product

    async def update(self, product_id: str, farmer_id: str, changes: ProductUpdate) -> Product:
        await self._get_owned(product_id, farmer_id, "update")

        update_data = changes.model_dump(mode="json", exclude_unset=True, exclude_none=True)
        update_data["updated_at"] = get_current_datetime()
        await self.collection.update_one({"_id": product_id}, {"$set": update_data})
        return await self.get_or_404(product_id)

    async def delete(self, product_id: str, farmer_id: Optional[str] = None):
        """Hard delete; when ``farmer_id`` is given the caller must own the product."""
        if farmer_id is None:
            await self.get_or_404(product_id)
        else:
            await self._get_owned(product_id, farmer_id, "delete")
        await self.collection.delete_one({"_id": product_id})
        logger.info(f"Product {product_id} deleted")

    async def set_blocked(self, product_id: str, is_blocked: bool) -> Product:
        product = await self.get_or_404(product_id)
        await self.collection.update_one(
            {"_id": product_id},
            {"$set": {"is_blocked": is_blocked, "updated_at": get_current_datetime()}}
        )
        logger.info(f"Product {product_id} {'blocked' if is_blocked else 'unblocked'}")
        return product.model_copy(update={"is_blocked": is_blocked})

    async def reserve(self, product_id: str, quantity: int) -> bool:
        """Atomically take ``quantity`` units if the product is still orderable
        and has enough stock. Returns False when nothing was taken."""
        result = await self.collection.update_one(
            {"_id": product_id, "quantity": {"$gte": quantity}, **VISIBLE},
            {"$inc": {"quantity": -quantity}, "$set": {"updated_at": get_current_datetime()}}
        )
        return result.modified_count == 1

    async def release(self, product_id: str, quantity: int):
        result = await self.collection.update_one(
            {"_id": product_id},
            {"$inc": {"quantity": quantity}, "$set": {"updated_at": get_current_datetime()}}
        )
        if result.matched_count == 0:
            logger.warning(f"Could not restore {quantity} units to missing product {product_id}")
