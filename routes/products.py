# routes/products.py
from fastapi import APIRouter, Depends, Query
from typing import Optional

from dependencies import get_catalog
from models.products import ProductCreate, ProductUpdate
from models.users import User
from security import get_current_farmer
from services.catalog import CatalogStore
from utils import page_count

router = APIRouter()

@router.get("")
async def list_products(
    search: Optional[str] = None,
    category: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    catalog: CatalogStore = Depends(get_catalog)
):
    """Public catalog: available, unblocked products only."""
    products, total = await catalog.list_public(search, category, page, limit)
    return {
        "products": [product.model_dump(mode="json") for product in products],
        "total": total,
        "page": page,
        "pages": page_count(total, limit)
    }

@router.get("/farmer/my-products")
async def list_my_products(
    farmer: User = Depends(get_current_farmer),
    catalog: CatalogStore = Depends(get_catalog)
):
    products = await catalog.list_by_farmer(farmer.id)
    return [product.model_dump(mode="json") for product in products]

@router.get("/{product_id}")
async def get_product(
    product_id: str,
    catalog: CatalogStore = Depends(get_catalog)
):
    product = await catalog.get_visible(product_id)
    return product.model_dump(mode="json")

@router.post("", status_code=201)
async def add_product(
    product: ProductCreate,
    farmer: User = Depends(get_current_farmer),
    catalog: CatalogStore = Depends(get_catalog)
):
    created = await catalog.create(farmer.id, product)
    return {
        "message": "Product added successfully",
        "product": created.model_dump(mode="json")
    }

@router.put("/{product_id}")
async def update_product(
    product_id: str,
    changes: ProductUpdate,
    farmer: User = Depends(get_current_farmer),
    catalog: CatalogStore = Depends(get_catalog)
):
    updated = await catalog.update(product_id, farmer.id, changes)
    return {
        "message": "Product updated successfully",
        "product": updated.model_dump(mode="json")
    }

@router.delete("/{product_id}")
async def delete_product(
    product_id: str,
    farmer: User = Depends(get_current_farmer),
    catalog: CatalogStore = Depends(get_catalog)
):
    await catalog.delete(product_id, farmer_id=farmer.id)
    return {"message": "Product deleted successfully"}
