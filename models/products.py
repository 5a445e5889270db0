# models/products.py
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from models.base import DocumentModel

class Category(str, Enum):
    VEGETABLES = "vegetables"
    FRUITS = "fruits"
    GRAINS = "grains"
    DAIRY = "dairy"
    MEAT = "meat"
    OTHER = "other"

class Unit(str, Enum):
    KG = "kg"
    G = "g"
    PIECES = "pieces"
    LITERS = "liters"
    DOZEN = "dozen"

class ProductCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=2, max_length=100)
    description: str = Field(..., min_length=10)
    price: float = Field(..., ge=0)   # price can't be negative
    quantity: int = Field(..., ge=1)  # new listings start with stock
    category: Category
    unit: Unit
    image: Optional[str] = None
    is_available: bool = True

class ProductUpdate(BaseModel):
    """Partial update by the owning farmer. Blocking is reserved to admins."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = Field(None, min_length=10)
    price: Optional[float] = Field(None, ge=0)
    quantity: Optional[int] = Field(None, ge=0)
    category: Optional[Category] = None
    unit: Optional[Unit] = None
    image: Optional[str] = None
    is_available: Optional[bool] = None

class Product(DocumentModel):
    name: str
    description: str
    price: float
    quantity: int = Field(ge=0)  # quantity can't be negative
    category: Category
    unit: Unit
    image: Optional[str] = None
    farmer_id: str
    is_available: bool = True
    is_blocked: bool = False

    @property
    def purchasable(self) -> bool:
        return self.is_available and not self.is_blocked
