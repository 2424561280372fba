"""
MongoDB database connection and utilities.

Uses Motor for async MongoDB operations.
"""
import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import ServerSelectionTimeoutError

from oracle.core.config import get_settings

logger = logging.getLogger(__name__)


class MongoDBClient:
    """
    Async MongoDB client wrapper with connection management.
    """

    def __init__(self, uri: Optional[str] = None, db_name: Optional[str] = None):
        self._uri = uri
        self._db_name = db_name
        self._client: Optional[AsyncIOMotorClient] = None
        self._db: Optional[AsyncIOMotorDatabase] = None

    @property
    def is_connected(self) -> bool:
        return self._db is not None

    @property
    def client(self) -> AsyncIOMotorClient:
        """Get the MongoDB client instance."""
        if self._client is None:
            raise RuntimeError("MongoDB client not initialized. Call connect() first.")
        return self._client

    @property
    def db(self) -> AsyncIOMotorDatabase:
        """Get the database instance."""
        if self._db is None:
            raise RuntimeError("MongoDB database not initialized. Call connect() first.")
        return self._db

    async def connect(self) -> None:
        """
        Establish connection to MongoDB.
        """
        settings = get_settings()
        uri = self._uri or settings.mongodb_uri
        db_name = self._db_name or settings.mongodb_db_name
        try:
            self._client = AsyncIOMotorClient(
                uri,
                serverSelectionTimeoutMS=5000,
                tz_aware=True,
            )
            # Verify connection
            await self._client.admin.command("ping")
            self._db = self._client[db_name]
            logger.info(f"Connected to MongoDB: {db_name}")
        except ServerSelectionTimeoutError as e:
            logger.error(f"Failed to connect to MongoDB: {e}")
            raise

    async def disconnect(self) -> None:
        """Close MongoDB connection."""
        if self._client:
            self._client.close()
            self._client = None
            self._db = None
            logger.info("MongoDB connection closed")

    async def health_check(self) -> bool:
        """Check if MongoDB connection is healthy."""
        if self._client is None:
            return False
        try:
            await self._client.admin.command("ping")
            return True
        except Exception:
            return False

    # Collection accessors
    @property
    def sessions(self):
        """Access the step-based interview sessions collection."""
        return self.db["sessions"]

    @property
    def interviews(self):
        """Access the adaptive interview snapshots collection."""
        return self.db["interviews"]


# Global client instance
mongodb_client = MongoDBClient()
