import logging
from typing import Iterable, List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from database import ORDERS
from errors import NotFound, ValidationError
from models.orders import (
    BuyerSummary, Order, OrderItem, OrderStatus, PaymentMethod, PaymentStatus, compute_total
)
from models.users import User
from utils import generate_order_id, get_current_datetime, page_bounds

logger = logging.getLogger(__name__)


class OrderLedger:
    """Order records. Only the status fields change after creation."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db[ORDERS]

    async def create(
        self,
        buyer: User,
        items: List[OrderItem],
        shipping_address: str,
        payment_method: PaymentMethod,
        notes: Optional[str] = None
    ) -> Order:
        now = get_current_datetime()
        document = {
            "_id": generate_order_id(),
            "buyer_id": buyer.id,
            "buyer": BuyerSummary(id=buyer.id, name=buyer.name, email=buyer.email).model_dump(),
            "items": [item.model_dump() for item in items],
            "total_amount": compute_total(items),
            "status": OrderStatus.PENDING.value,
            "shipping_address": shipping_address,
            "payment_method": payment_method.value,
            "payment_status": PaymentStatus.PENDING.value,
            "notes": notes,
            "created_at": now,
            "updated_at": now
        }
        await self.collection.insert_one(document)
        return Order.model_validate(document)

    async def get(self, order_id: str) -> Optional[Order]:
        document = await self.collection.find_one({"_id": order_id})
        return Order.model_validate(document) if document else None

    async def get_or_404(self, order_id: str) -> Order:
        order = await self.get(order_id)
        if not order:
            raise NotFound("Order not found")
        return order

    async def _find_all(self, query: dict) -> List[Order]:
        documents = await self.collection.find(query).sort("created_at", -1).to_list(length=None)
        return [Order.model_validate(document) for document in documents]

    async def list_for_buyer(self, buyer_id: str) -> List[Order]:
        return await self._find_all({"buyer_id": buyer_id})

    async def list_containing(self, product_ids: Iterable[str]) -> List[Order]:
        product_ids = list(product_ids)
        if not product_ids:
            return []
        return await self._find_all({"items.product_id": {"$in": product_ids}})

    async def list_all(self, status: Optional[str], page: int, limit: int) -> Tuple[List[Order], int]:
        query = {}
        if status and status != "all":
            try:
                query["status"] = OrderStatus(status).value
            except ValueError:
                raise ValidationError(f"Invalid status: {status}")

        skip, limit = page_bounds(page, limit)
        total = await self.collection.count_documents(query)
        documents = await self.collection.find(query) \
            .sort("created_at", -1) \
            .skip(skip) \
            .limit(limit) \
            .to_list(length=limit)
        return [Order.model_validate(document) for document in documents], total

    async def recent(self, limit: int = 5) -> List[Order]:
        documents = await self.collection.find({}) \
            .sort("created_at", -1) \
            .limit(limit) \
            .to_list(length=limit)
        return [Order.model_validate(document) for document in documents]

    async def count(self, query: Optional[dict] = None) -> int:
        return await self.collection.count_documents(query or {})

    async def transition(self, order_id: str, current: OrderStatus, target: OrderStatus) -> Optional[Order]:
        """Move the order to ``target`` only if it is still in ``current``.
        Returns the updated order, or None if the status had already changed."""
        document = await self.collection.find_one_and_update(
            {"_id": order_id, "status": current.value},
            {"$set": {"status": target.value, "updated_at": get_current_datetime()}},
            return_document=ReturnDocument.AFTER
        )
        return Order.model_validate(document) if document else None

    async def set_payment_status(self, order_id: str, payment_status: PaymentStatus) -> Order:
        document = await self.collection.find_one_and_update(
            {"_id": order_id},
            {"$set": {"payment_status": payment_status.value, "updated_at": get_current_datetime()}},
            return_document=ReturnDocument.AFTER
        )
        if not document:
            raise NotFound("Order not found")
        logger.info(f"Order {order_id} payment status set to {payment_status.value}")
        return Order.model_validate(document)

    async def revenue(self) -> float:
        """Sum of totals over delivered orders."""
        result = await self.collection.aggregate([
            {"$match": {"status": OrderStatus.DELIVERED.value}},
            {"$group": {"_id": None, "total": {"$sum": "$total_amount"}}}
        ]).to_list(length=1)
        return result[0]["total"] if result else 0

    async def delete(self, order_id: str):
        result = await self.collection.delete_one({"_id": order_id})
        if result.deleted_count == 0:
            raise NotFound("Order not found")
        logger.info(f"Order {order_id} deleted")
