"""
Shared fixtures: an in-memory Motor database per test, the stores built
on it, a few users and products, and an HTTP client bound to the app.
"""

import uuid

import pytest
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from database import get_database
from dependencies import hash_password
from main import app
from models.products import Category, ProductCreate, Unit
from models.users import Role, UserRegister
from security import create_user_token
from services.catalog import CatalogStore
from services.ledger import OrderLedger
from services.order_lifecycle import OrderLifecycle
from services.users import UserStore

PASSWORD = "secret123"
PASSWORD_HASH = hash_password(PASSWORD)


def auth_headers(user):
    return {"Authorization": f"Bearer {create_user_token(user)}"}


def tomatoes(**overrides):
    data = {
        "name": "Fresh Organic Tomatoes",
        "description": "Sweet and juicy organic tomatoes, perfect for salads",
        "price": 2.99,
        "quantity": 50,
        "category": Category.VEGETABLES,
        "unit": Unit.KG,
    }
    data.update(overrides)
    return ProductCreate(**data)


@pytest.fixture
def db():
    client = AsyncMongoMockClient()
    return client[f"marketplace_{uuid.uuid4().hex}"]


@pytest.fixture
def users(db):
    return UserStore(db)


@pytest.fixture
def catalog(db):
    return CatalogStore(db)


@pytest.fixture
def ledger(db):
    return OrderLedger(db)


@pytest.fixture
def lifecycle(catalog, ledger):
    return OrderLifecycle(catalog, ledger)


@pytest.fixture
def make_user(users):
    async def _make(role=Role.BUYER, name=None, email=None):
        name = name or f"Test {role.value.title()}"
        email = email or f"{role.value}-{uuid.uuid4().hex[:8]}@market.io"
        data = UserRegister(name=name, email=email, password=PASSWORD)
        return await users.create(data, PASSWORD_HASH, role=role)
    return _make


@pytest.fixture
async def farmer(make_user):
    return await make_user(Role.FARMER, name="John Farmer")


@pytest.fixture
async def other_farmer(make_user):
    return await make_user(Role.FARMER, name="Sarah Grower")


@pytest.fixture
async def buyer(make_user):
    return await make_user(Role.BUYER, name="Mike Consumer")


@pytest.fixture
async def other_buyer(make_user):
    return await make_user(Role.BUYER, name="Lisa Shopper")


@pytest.fixture
async def admin(make_user):
    return await make_user(Role.ADMIN, name="Admin User")


@pytest.fixture
async def product(catalog, farmer):
    return await catalog.create(farmer.id, tomatoes())


@pytest.fixture
async def apples(catalog, farmer):
    return await catalog.create(farmer.id, tomatoes(
        name="Golden Apples",
        description="Crisp and sweet golden apples, great for baking",
        price=1.99,
        quantity=100,
        category=Category.FRUITS,
    ))


@pytest.fixture
async def milk(catalog, other_farmer):
    return await catalog.create(other_farmer.id, tomatoes(
        name="Fresh Milk",
        description="Pure and fresh milk from grass-fed cows",
        price=4.99,
        quantity=30,
        category=Category.DAIRY,
        unit=Unit.LITERS,
    ))


@pytest.fixture
async def client(db):
    app.dependency_overrides[get_database] = lambda: db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
