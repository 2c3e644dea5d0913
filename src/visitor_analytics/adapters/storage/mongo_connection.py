"""Process-scoped MongoDB connection."""

from __future__ import annotations

import logging

from pymongo import ASCENDING, DESCENDING, AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)

VISITORS_COLLECTION = "visitors"


class MongoConnection:
    """Lazily connects to MongoDB on first use and caches the database handle.

    A failed attempt is not cached: the next caller tries again, so the
    service recovers once the store comes back. Two concurrent cold starts
    may both open a client; the later one wins and the extra client is
    closed.
    """

    def __init__(
        self,
        uri: str,
        database_name: str,
        server_selection_timeout_ms: int = 5000,
    ) -> None:
        self.uri = uri
        self.database_name = database_name
        self.server_selection_timeout_ms = server_selection_timeout_ms
        self._client: AsyncMongoClient | None = None
        self._database: AsyncDatabase | None = None

    @property
    def is_connected(self) -> bool:
        return self._database is not None

    def _create_client(self) -> AsyncMongoClient:
        return AsyncMongoClient(
            self.uri,
            maxPoolSize=10,
            serverSelectionTimeoutMS=self.server_selection_timeout_ms,
            socketTimeoutMS=45000,
            connectTimeoutMS=10000,
            maxIdleTimeMS=30000,
            tz_aware=True,
        )

    async def _ensure_indexes(self, database: AsyncDatabase) -> None:
        visitors = database[VISITORS_COLLECTION]
        await visitors.create_index([("timestamp", DESCENDING)])
        await visitors.create_index([("ipv4", ASCENDING)])
        await visitors.create_index([("location.country", ASCENDING)])

    async def get_database(self) -> AsyncDatabase | None:
        """Return the cached database, connecting first if needed.

        Returns None when the server cannot be reached.
        """
        if self._database is not None:
            return self._database

        client = self._create_client()
        try:
            await client.admin.command("ping")
            database = client[self.database_name]
            await self._ensure_indexes(database)
        except PyMongoError as e:
            logger.warning(f"MongoDB connection failed: {e}")
            await client.close()
            return None

        if self._database is not None:
            await client.close()
            return self._database

        self._client = client
        self._database = database
        logger.info(f"Connected to MongoDB database '{self.database_name}'")
        return database

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            logger.info("MongoDB connection closed")
        self._client = None
        self._database = None
