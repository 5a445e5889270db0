from fastapi import APIRouter, Depends

from dependencies import get_order_lifecycle
from models.orders import OrderCreate, StatusUpdate
from models.users import User
from security import get_current_buyer, get_current_farmer, get_current_user
from services.order_lifecycle import OrderLifecycle

router = APIRouter()

@router.post("", status_code=201)
async def place_order(
    order: OrderCreate,
    buyer: User = Depends(get_current_buyer),
    lifecycle: OrderLifecycle = Depends(get_order_lifecycle)
):
    placed = await lifecycle.place_order(buyer, order)
    return {
        "message": "Order placed successfully",
        "order": placed.model_dump(mode="json")
    }

@router.get("/buyer/my-orders")
async def get_buyer_orders(
    buyer: User = Depends(get_current_buyer),
    lifecycle: OrderLifecycle = Depends(get_order_lifecycle)
):
    orders = await lifecycle.list_buyer_orders(buyer)
    return [order.model_dump(mode="json") for order in orders]

@router.get("/farmer/my-orders")
async def get_farmer_orders(
    farmer: User = Depends(get_current_farmer),
    lifecycle: OrderLifecycle = Depends(get_order_lifecycle)
):
    """Orders containing at least one of the farmer's products"""
    orders = await lifecycle.list_farmer_orders(farmer)
    return [order.model_dump(mode="json") for order in orders]

@router.get("/{order_id}")
async def get_order(
    order_id: str,
    user: User = Depends(get_current_user),
    lifecycle: OrderLifecycle = Depends(get_order_lifecycle)
):
    order = await lifecycle.get_order(order_id, user)
    return order.model_dump(mode="json")

@router.patch("/{order_id}/status")
async def update_order_status(
    order_id: str,
    update: StatusUpdate,
    farmer: User = Depends(get_current_farmer),
    lifecycle: OrderLifecycle = Depends(get_order_lifecycle)
):
    order = await lifecycle.advance_status(order_id, farmer, update.status)
    return {
        "message": "Order status updated successfully",
        "order": order.model_dump(mode="json")
    }

@router.patch("/{order_id}/cancel")
async def cancel_order(
    order_id: str,
    buyer: User = Depends(get_current_buyer),
    lifecycle: OrderLifecycle = Depends(get_order_lifecycle)
):
    order = await lifecycle.cancel_order(order_id, buyer)
    return {
        "message": "Order cancelled successfully",
        "order": order.model_dump(mode="json")
    }
