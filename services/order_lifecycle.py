"""Order placement and status changes.

Placement reserves stock one line item at a time with a conditional
decrement, so two buyers racing for the last units cannot both get them.
If any line item fails, every reservation already made for the request is
released before the error propagates: an order is either recorded with all
of its stock taken, or not recorded and nothing taken.
"""
import logging
from typing import List, Optional, Tuple

from errors import Forbidden, InsufficientStock, InvalidTransition, NotFound, Unavailable
from models.orders import NEXT_STATUS, Order, OrderCreate, OrderItem, OrderStatus
from models.users import Role, User
from services.catalog import CatalogStore
from services.ledger import OrderLedger

logger = logging.getLogger(__name__)


class OrderLifecycle:
    def __init__(self, catalog: CatalogStore, ledger: OrderLedger):
        self.catalog = catalog
        self.ledger = ledger

    async def place_order(self, buyer: User, request: OrderCreate) -> Order:
        reserved: List[Tuple[str, int]] = []
        items: List[OrderItem] = []

        try:
            for requested in request.items:
                product = await self.catalog.get(requested.product_id)
                if not product:
                    raise NotFound(f"Product {requested.product_id} not found")
                if not product.purchasable:
                    raise Unavailable(f"Product {product.name} is not available")
                if product.quantity < requested.quantity:
                    raise InsufficientStock(f"Insufficient quantity for {product.name}")

                # Stock may have moved since the read above
                if not await self.catalog.reserve(product.id, requested.quantity):
                    raise InsufficientStock(f"Insufficient quantity for {product.name}")
                reserved.append((product.id, requested.quantity))

                items.append(OrderItem(
                    product_id=product.id,
                    name=product.name,
                    quantity=requested.quantity,
                    price=product.price,
                    image=product.image
                ))

            order = await self.ledger.create(
                buyer,
                items,
                request.shipping_address,
                request.payment_method,
                request.notes
            )
        except Exception as e:
            logger.warning(f"Order placement by {buyer.id} rejected: {e}")
            await self._release(reserved)
            raise

        logger.info(f"Order {order.id} placed by {buyer.id}: {len(items)} items, total {order.total_amount}")
        return order

    async def _release(self, reserved: List[Tuple[str, int]]):
        for product_id, quantity in reserved:
            await self.catalog.release(product_id, quantity)
        if reserved:
            logger.info(f"Released {len(reserved)} stock reservations")

    async def _farmer_owns_item(self, order: Order, farmer: User) -> bool:
        owned = set(await self.catalog.product_ids_for_farmer(farmer.id))
        return any(product_id in owned for product_id in order.product_ids())

    async def advance_status(self, order_id: str, farmer: User, target: OrderStatus) -> Order:
        order = await self.ledger.get_or_404(order_id)

        if not await self._farmer_owns_item(order, farmer):
            raise Forbidden("Not authorized to update this order")

        if NEXT_STATUS.get(order.status) != target:
            raise InvalidTransition(
                f"Cannot change order status from {order.status.value} to {target.value}"
            )

        updated = await self.ledger.transition(order.id, order.status, target)
        if not updated:
            raise InvalidTransition("Order status was changed by another request")

        logger.info(f"Order {order.id} moved {order.status.value} -> {target.value} by farmer {farmer.id}")
        return updated

    async def cancel_order(self, order_id: str, buyer: User) -> Order:
        order = await self.ledger.get_or_404(order_id)

        if order.buyer_id != buyer.id:
            raise Forbidden("Not authorized to cancel this order")

        if order.status != OrderStatus.PENDING:
            raise InvalidTransition("Order cannot be cancelled at this stage")

        cancelled = await self.ledger.transition(order.id, OrderStatus.PENDING, OrderStatus.CANCELLED)
        if not cancelled:
            raise InvalidTransition("Order cannot be cancelled at this stage")

        # The order is already cancelled here; a failed restock is logged for manual repair
        restored: List[str] = []
        for index, item in enumerate(cancelled.items):
            try:
                await self.catalog.release(item.product_id, item.quantity)
            except Exception:
                pending = [(i.product_id, i.quantity) for i in cancelled.items[index:]]
                logger.error(
                    f"Order {order.id} cancelled but stock restore failed at {item.product_id}; "
                    f"restored {restored}, not restored {pending}"
                )
                raise
            restored.append(item.product_id)

        logger.info(f"Order {order.id} cancelled by buyer {buyer.id}, stock restored")
        return cancelled

    async def get_order(self, order_id: str, user: User) -> Order:
        order = await self.ledger.get_or_404(order_id)

        if user.role == Role.BUYER and order.buyer_id != user.id:
            raise Forbidden("Not authorized to view this order")
        if user.role == Role.FARMER and not await self._farmer_owns_item(order, user):
            raise Forbidden("Not authorized to view this order")

        return order

    async def list_buyer_orders(self, buyer: User) -> List[Order]:
        return await self.ledger.list_for_buyer(buyer.id)

    async def list_farmer_orders(self, farmer: User) -> List[Order]:
        product_ids = await self.catalog.product_ids_for_farmer(farmer.id)
        return await self.ledger.list_containing(product_ids)

    async def list_all_orders(self, status: Optional[str], page: int, limit: int):
        return await self.ledger.list_all(status, page, limit)
