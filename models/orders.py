from enum import Enum
from pydantic import BaseModel, Field, field_validator
from typing import Iterable, List, Optional
from models.base import DocumentModel

class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    ONLINE = "online"

class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"

# The only status a farmer may move an order to from its current one
NEXT_STATUS = {
    OrderStatus.PENDING: OrderStatus.CONFIRMED,
    OrderStatus.CONFIRMED: OrderStatus.SHIPPED,
    OrderStatus.SHIPPED: OrderStatus.DELIVERED,
}

class OrderItemRequest(BaseModel):
    product_id: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)  # minimum 1 item

class OrderCreate(BaseModel):
    items: List[OrderItemRequest] = Field(..., min_length=1)
    shipping_address: str
    payment_method: PaymentMethod
    notes: Optional[str] = None

    @field_validator("shipping_address")
    @classmethod
    def validate_shipping_address(cls, v):
        v = v.strip()
        if len(v) < 10:
            raise ValueError("Shipping address must be at least 10 characters long")
        return v

    @field_validator("notes")
    @classmethod
    def strip_notes(cls, v):
        if v is None:
            return v
        return v.strip() or None

class OrderItem(BaseModel):
    """Line item snapshot taken when the order is placed."""
    product_id: str
    name: str
    quantity: int = Field(..., ge=1)
    price: float = Field(..., ge=0)
    image: Optional[str] = None

    @property
    def line_total(self) -> float:
        return self.price * self.quantity

def compute_total(items: Iterable[OrderItem]) -> float:
    return sum(item.line_total for item in items)

class BuyerSummary(BaseModel):
    """Who placed the order, as they were at placement."""
    id: str
    name: str
    email: str

class Order(DocumentModel):
    buyer_id: str
    buyer: Optional[BuyerSummary] = None
    items: List[OrderItem]
    total_amount: float
    status: OrderStatus = OrderStatus.PENDING
    shipping_address: str
    payment_method: PaymentMethod = PaymentMethod.CASH
    payment_status: PaymentStatus = PaymentStatus.PENDING
    notes: Optional[str] = None

    def product_ids(self) -> List[str]:
        return [item.product_id for item in self.items]

class StatusUpdate(BaseModel):
    status: OrderStatus
