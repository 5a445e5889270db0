# database.py
import logging
from fastapi import FastAPI, Request
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from config import MONGO_URI, DATABASE_NAME

logger = logging.getLogger(__name__)

USERS = "users"
PRODUCTS = "products"
ORDERS = "orders"


def get_database(request: Request) -> AsyncIOMotorDatabase:
    """Database handle opened for this application at startup."""
    return request.app.state.db


async def connect_to_mongo(app: FastAPI, uri: str = MONGO_URI, database_name: str = DATABASE_NAME):
    """Open the Motor client, ping it and attach it to the application."""
    client = AsyncIOMotorClient(uri)
    db = client[database_name]
    await db.command("ping")
    app.state.mongo_client = client
    app.state.db = db
    logger.info(f"Connected to MongoDB database '{database_name}'")
    return db


async def close_mongo_connection(app: FastAPI):
    client = getattr(app.state, "mongo_client", None)
    if client is not None:
        client.close()
        logger.info("MongoDB connection closed")


async def ensure_indexes(db: AsyncIOMotorDatabase):
    await db[USERS].create_index("email", unique=True)
    await db[PRODUCTS].create_index([("farmer_id", ASCENDING)])
    await db[PRODUCTS].create_index([("created_at", DESCENDING)])
    await db[ORDERS].create_index([("buyer_id", ASCENDING)])
    await db[ORDERS].create_index([("items.product_id", ASCENDING)])
