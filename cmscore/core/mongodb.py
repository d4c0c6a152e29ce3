"""
MongoDB connection and database client.
"""
import logging
from typing import Iterable

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING, DESCENDING

from cmscore.core.config import settings

logger = logging.getLogger(__name__)


class MongoDB:
    """MongoDB connection manager."""

    def __init__(self):
        self.client: AsyncIOMotorClient | None = None
        self.database = None

    async def connect(self, client: AsyncIOMotorClient | None = None):
        """
        Connect to MongoDB.

        A pre-built client can be passed in (tests hand over an in-memory one).
        """
        self.client = client or AsyncIOMotorClient(settings.mongodb_url)
        self.database = self.client[settings.mongodb_database]
        logger.info("Connected to MongoDB database %s", settings.mongodb_database)

    async def disconnect(self):
        """Disconnect from MongoDB."""
        if self.client:
            self.client.close()
            self.client = None
            self.database = None
            logger.info("Disconnected from MongoDB")

    def get_collection(self, collection_name: str):
        """Get a collection from the database."""
        if self.database is None:
            raise RuntimeError("MongoDB is not connected")
        return self.database[collection_name]

    async def create_indexes(
        self, content_collections: Iterable[str], version_collections: Iterable[str]
    ):
        """Create the indexes the hierarchy and version lookups rely on."""
        for name in content_collections:
            collection = self.get_collection(name)
            await collection.create_index([("parentId", ASCENDING), ("isDeleted", ASCENDING)])
            await collection.create_index([("parentPath", ASCENDING)])
            await collection.create_index([("contentLanguages.language", ASCENDING)])
        for name in version_collections:
            collection = self.get_collection(name)
            await collection.create_index(
                [("contentId", ASCENDING), ("language", ASCENDING), ("isPrimary", DESCENDING)]
            )
            await collection.create_index([("contentId", ASCENDING), ("createdAt", DESCENDING)])


# Global MongoDB instance
mongodb = MongoDB()


# Collections
def get_site_definition_collection():
    """Get the site definition collection."""
    return mongodb.get_collection("cms_SiteDefinition")


def get_language_collection():
    """Get the language branch collection."""
    return mongodb.get_collection("cms_LanguageBranch")
