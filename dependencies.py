from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from passlib.context import CryptContext

from database import get_database
from services.catalog import CatalogStore
from services.ledger import OrderLedger
from services.order_lifecycle import OrderLifecycle
from services.users import UserStore

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

def hash_password(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(plain_password, hashed_password):
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def get_user_store(db: AsyncIOMotorDatabase = Depends(get_database)) -> UserStore:
    return UserStore(db)

def get_catalog(db: AsyncIOMotorDatabase = Depends(get_database)) -> CatalogStore:
    return CatalogStore(db)

def get_ledger(db: AsyncIOMotorDatabase = Depends(get_database)) -> OrderLedger:
    return OrderLedger(db)

def get_order_lifecycle(
    catalog: CatalogStore = Depends(get_catalog),
    ledger: OrderLedger = Depends(get_ledger)
) -> OrderLifecycle:
    return OrderLifecycle(catalog, ledger)
