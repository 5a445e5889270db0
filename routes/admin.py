# routes/admin.py
import logging
from fastapi import APIRouter, Depends, Query
from typing import Optional

from dependencies import get_catalog, get_ledger, get_order_lifecycle, get_user_store
from models.admin import BlockRequest
from models.orders import OrderStatus
from models.users import Role, User
from security import get_current_admin
from services.catalog import VISIBLE, CatalogStore
from services.ledger import OrderLedger
from services.order_lifecycle import OrderLifecycle
from services.users import UserStore
from utils import page_count

logger = logging.getLogger(__name__)

# Every route here is admin only
router = APIRouter(dependencies=[Depends(get_current_admin)])

@router.get("/users")
async def get_users(
    role: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    users: UserStore = Depends(get_user_store)
):
    found, total = await users.list_users(role, page, limit)
    return {
        "users": [user.model_dump(mode="json") for user in found],
        "total": total,
        "page": page,
        "pages": page_count(total, limit)
    }

@router.get("/products")
async def get_products(
    category: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    catalog: CatalogStore = Depends(get_catalog)
):
    products, total = await catalog.list_all(category, page, limit)
    return {
        "products": [product.model_dump(mode="json") for product in products],
        "total": total,
        "page": page,
        "pages": page_count(total, limit)
    }

@router.get("/orders")
async def get_orders(
    status: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    lifecycle: OrderLifecycle = Depends(get_order_lifecycle)
):
    orders, total = await lifecycle.list_all_orders(status, page, limit)
    return {
        "orders": [order.model_dump(mode="json") for order in orders],
        "total": total,
        "page": page,
        "pages": page_count(total, limit)
    }

@router.patch("/users/{user_id}/block")
async def block_user(
    user_id: str,
    request: BlockRequest,
    admin: User = Depends(get_current_admin),
    users: UserStore = Depends(get_user_store)
):
    user = await users.set_blocked(user_id, request.is_blocked)
    logger.info(f"Admin {admin.id} set is_blocked={request.is_blocked} on user {user_id}")
    return {
        "message": f"User {'blocked' if request.is_blocked else 'unblocked'} successfully",
        "user": user.model_dump(mode="json")
    }

@router.patch("/products/{product_id}/block")
async def block_product(
    product_id: str,
    request: BlockRequest,
    admin: User = Depends(get_current_admin),
    catalog: CatalogStore = Depends(get_catalog)
):
    product = await catalog.set_blocked(product_id, request.is_blocked)
    logger.info(f"Admin {admin.id} set is_blocked={request.is_blocked} on product {product_id}")
    return {
        "message": f"Product {'blocked' if request.is_blocked else 'unblocked'} successfully",
        "product": {
            "id": product.id,
            "name": product.name,
            "is_blocked": product.is_blocked
        }
    }

@router.get("/dashboard")
async def get_dashboard(
    users: UserStore = Depends(get_user_store),
    catalog: CatalogStore = Depends(get_catalog),
    ledger: OrderLedger = Depends(get_ledger)
):
    statistics = {
        "users": {
            "total": await users.count(),
            "farmers": await users.count({"role": Role.FARMER.value}),
            "buyers": await users.count({"role": Role.BUYER.value}),
            "blocked": await users.count({"is_blocked": True})
        },
        "products": {
            "total": await catalog.count(),
            "available": await catalog.count(VISIBLE),
            "blocked": await catalog.count({"is_blocked": True})
        },
        "orders": {
            "total": await ledger.count(),
            "pending": await ledger.count({"status": OrderStatus.PENDING.value}),
            "completed": await ledger.count({"status": OrderStatus.DELIVERED.value})
        },
        "revenue": await ledger.revenue()
    }

    recent_activity = {
        "users": [user.model_dump(mode="json") for user in await users.recent()],
        "products": [product.model_dump(mode="json") for product in await catalog.recent()],
        "orders": [order.model_dump(mode="json") for order in await ledger.recent()]
    }

    return {"statistics": statistics, "recent_activity": recent_activity}

@router.delete("/users/{user_id}")
async def delete_user(
    user_id: str,
    users: UserStore = Depends(get_user_store)
):
    await users.delete(user_id)
    return {"message": "User deleted successfully"}

@router.delete("/products/{product_id}")
async def delete_product(
    product_id: str,
    catalog: CatalogStore = Depends(get_catalog)
):
    await catalog.delete(product_id)
    return {"message": "Product deleted successfully"}

@router.delete("/orders/{order_id}")
async def delete_order(
    order_id: str,
    ledger: OrderLedger = Depends(get_ledger)
):
    await ledger.delete(order_id)
    return {"message": "Order deleted successfully"}
