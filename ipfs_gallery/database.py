"""
MongoDB database connection
Using motor (async MongoDB driver)
"""
import logging
from motor.motor_asyncio import AsyncIOMotorClient
from typing import Optional

from ipfs_gallery.config import Settings

logger = logging.getLogger(__name__)

# Global database client
mongodb_client: Optional[AsyncIOMotorClient] = None

async def connect_db(settings: Settings):
    """Connect to MongoDB and return the configured database"""
    global mongodb_client

    if not settings.MONGODB_URL:
        raise ValueError("MONGODB_URL is required for the mongodb metadata backend")

    try:
        mongodb_client = AsyncIOMotorClient(settings.MONGODB_URL)
        database = mongodb_client[settings.DATABASE_NAME]

        # Test connection
        await mongodb_client.admin.command('ping')
        logger.info(f"Connected to MongoDB: {settings.DATABASE_NAME}")

    except Exception as e:
        logger.error(f"MongoDB connection failed: {e}")
        raise

    return database

async def close_db():
    """Close MongoDB connection"""
    global mongodb_client

    if mongodb_client:
        mongodb_client.close()
        mongodb_client = None
        logger.info("MongoDB connection closed")
