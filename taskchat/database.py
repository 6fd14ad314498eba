"""
TASKCHAT - Database Module

MongoDB connection management using Motor (async driver).
The task list collection is the only collection this service owns.
"""

import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from taskchat.config import settings
from taskchat.constants import LIST_COLLECTION

logger = logging.getLogger(__name__)


class Database:
    """Holds the Motor client for the lifetime of the app."""

    client: AsyncIOMotorClient | None = None
    db: AsyncIOMotorDatabase | None = None

    async def connect(self) -> None:
        self.client = AsyncIOMotorClient(settings.MONGODB_URI)
        self.db = self.client[settings.MONGODB_DATABASE]
        logger.info(f"Connected to MongoDB database '{settings.MONGODB_DATABASE}'")

    async def ensure_indexes(self) -> None:
        """Index list documents by owner so full reloads stay cheap."""
        db = self.get_database()
        await db[LIST_COLLECTION].create_index([("owner_id", 1), ("created_at", 1)])

    async def disconnect(self) -> None:
        if self.client:
            self.client.close()
            self.client = None
            self.db = None

    def get_database(self) -> AsyncIOMotorDatabase:
        if self.db is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self.db


database = Database()


async def get_database() -> AsyncIOMotorDatabase:
    """Dependency to get the database instance."""
    return database.get_database()
