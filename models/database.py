"""MongoDB connection setup for chat history."""

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection
from pymongo import ASCENDING
from typing import Optional
from config.settings import settings
from utils.logger import setup_logger

logger = setup_logger(__name__)


class Database:
    """Database connection manager."""

    client: Optional[AsyncIOMotorClient] = None


db = Database()


async def connect_to_mongo():
    """Create database connection."""
    db.client = AsyncIOMotorClient(settings.mongodb_url)
    logger.info("Connected to MongoDB")


async def close_mongo_connection():
    """Close database connection."""
    if db.client:
        db.client.close()
        db.client = None
        logger.info("Disconnected from MongoDB")


async def init_mongo():
    """Connect and create indexes; a no-op without MONGODB_URL."""
    if not settings.mongodb_url:
        logger.warning("MONGODB_URL not set; chat history will not be persisted")
        return

    await connect_to_mongo()

    chat_history = get_chat_history_collection()
    await chat_history.create_index([("user_id", ASCENDING)], unique=True)

    logger.info("MongoDB initialized: chat history collection ready")


def get_database():
    """Get database instance."""
    return db.client.get_default_database("diet_coach")


def get_chat_history_collection() -> Optional[AsyncIOMotorCollection]:
    """Get chat history collection, or None when MongoDB is not connected."""
    if db.client is None:
        return None
    return get_database().chat_history
