# seed.py
"""Reset the database and load demo users, products and orders.

    python seed.py
"""
import asyncio
import logging

from motor.motor_asyncio import AsyncIOMotorClient

from config import DATABASE_NAME, MONGO_URI
from database import ORDERS, PRODUCTS, USERS, ensure_indexes
from dependencies import hash_password
from models.orders import OrderCreate, OrderItemRequest, OrderStatus, PaymentMethod, PaymentStatus
from models.products import Category, ProductCreate, Unit
from models.users import Role, UserRegister
from services.catalog import CatalogStore
from services.ledger import OrderLedger
from services.order_lifecycle import OrderLifecycle
from services.users import UserStore

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)

USERS_DATA = [
    ("Admin User", "admin@farmersportal.com", "admin123", Role.ADMIN, "+1234567890", "123 Admin Street, Admin City"),
    ("John Farmer", "john@farmer.com", "farmer123", Role.FARMER, "+1234567891", "456 Farm Road, Farmville"),
    ("Sarah Grower", "sarah@grower.com", "farmer123", Role.FARMER, "+1234567892", "789 Garden Lane, Greenfield"),
    ("Mike Consumer", "mike@consumer.com", "buyer123", Role.BUYER, "+1234567893", "321 Market Street, City Center"),
    ("Lisa Shopper", "lisa@shopper.com", "buyer123", Role.BUYER, "+1234567894", "654 Shopping Ave, Retail Town"),
]

# (farmer email, product)
PRODUCTS_DATA = [
    ("john@farmer.com", ProductCreate(
        name="Fresh Organic Tomatoes",
        description="Sweet and juicy organic tomatoes, perfect for salads and cooking",
        price=2.99, quantity=50, category=Category.VEGETABLES, unit=Unit.KG,
        image="https://images.unsplash.com/photo-1546094096-0df4bcaaa337?w=400")),
    ("john@farmer.com", ProductCreate(
        name="Golden Apples",
        description="Crisp and sweet golden apples, great for eating fresh or baking",
        price=1.99, quantity=100, category=Category.FRUITS, unit=Unit.KG,
        image="https://images.unsplash.com/photo-1560806887-1e4cd0b6cbd6?w=400")),
    ("sarah@grower.com", ProductCreate(
        name="Whole Grain Wheat",
        description="Premium quality whole grain wheat, perfect for bread making",
        price=3.49, quantity=200, category=Category.GRAINS, unit=Unit.KG,
        image="https://images.unsplash.com/photo-1574323347407-f5e1ad6d020b?w=400")),
    ("sarah@grower.com", ProductCreate(
        name="Fresh Milk",
        description="Pure and fresh milk from grass-fed cows, delivered daily",
        price=4.99, quantity=30, category=Category.DAIRY, unit=Unit.LITERS,
        image="https://images.unsplash.com/photo-1550583724-b2692b85b150?w=400")),
    ("john@farmer.com", ProductCreate(
        name="Organic Carrots",
        description="Sweet and crunchy organic carrots, rich in vitamins",
        price=1.79, quantity=75, category=Category.VEGETABLES, unit=Unit.KG,
        image="https://images.unsplash.com/photo-1447175008436-170170e0a221?w=400")),
    ("sarah@grower.com", ProductCreate(
        name="Fresh Strawberries",
        description="Sweet and juicy strawberries, perfect for desserts",
        price=5.99, quantity=40, category=Category.FRUITS, unit=Unit.KG,
        image="https://images.unsplash.com/photo-1464965911861-746a04b4bca6?w=400")),
]

async def seed(db):
    for name in (USERS, PRODUCTS, ORDERS):
        await db[name].delete_many({})
    logger.info("Cleared existing data")
    await ensure_indexes(db)

    users = UserStore(db)
    catalog = CatalogStore(db)
    ledger = OrderLedger(db)
    lifecycle = OrderLifecycle(catalog, ledger)

    created = {}
    for name, email, password, role, phone, address in USERS_DATA:
        data = UserRegister(name=name, email=email, password=password, phone=phone, address=address)
        created[email] = await users.create(data, hash_password(password), role=role)
    logger.info(f"Created {len(created)} users")

    products = [
        await catalog.create(created[farmer_email].id, product)
        for farmer_email, product in PRODUCTS_DATA
    ]
    logger.info(f"Created {len(products)} products")

    mike, lisa = created["mike@consumer.com"], created["lisa@shopper.com"]
    first = await lifecycle.place_order(mike, OrderCreate(
        items=[
            OrderItemRequest(product_id=products[0].id, quantity=2),
            OrderItemRequest(product_id=products[1].id, quantity=1),
        ],
        shipping_address=mike.address,
        payment_method=PaymentMethod.CARD,
    ))
    await lifecycle.advance_status(first.id, created["john@farmer.com"], OrderStatus.CONFIRMED)
    await ledger.set_payment_status(first.id, PaymentStatus.PAID)

    await lifecycle.place_order(lisa, OrderCreate(
        items=[OrderItemRequest(product_id=products[2].id, quantity=3)],
        shipping_address=lisa.address,
        payment_method=PaymentMethod.CASH,
    ))
    logger.info("Created orders")

    logger.info("Seed data created successfully!")
    logger.info("Admin: admin@farmersportal.com / admin123")
    logger.info("Farmer: john@farmer.com / farmer123")
    logger.info("Buyer: mike@consumer.com / buyer123")

async def main():
    client = AsyncIOMotorClient(MONGO_URI)
    try:
        await seed(client[DATABASE_NAME])
    finally:
        client.close()

if __name__ == "__main__":
    asyncio.run(main())
