"""
Database operations - Generic insert/lookup functions for submission collections
"""
import logging
from typing import List, Dict, Optional, Any
from datetime import datetime

from nursery_app.config.database import db_config, INDEXES

logger = logging.getLogger(__name__)


class DBOperations:
    """Generic database operations for MongoDB collections.

    Bound to one database handle so tests can pass in a fake one.
    """

    def __init__(self, database):
        self.database = database

    def get_collection(self, collection_name: str):
        """Get a specific collection"""
        return self.database[collection_name]

    async def get_one(self, collection_name: str, filter_query: Dict) -> Optional[Dict]:
        """Get a single document by filter query"""
        collection = self.get_collection(collection_name)
        return await collection.find_one(filter_query)

    async def create(self, collection_name: str, document: Dict) -> Dict:
        """Insert a new document with server-side createdAt/updatedAt"""
        collection = self.get_collection(collection_name)
        now = datetime.utcnow()
        document["createdAt"] = now
        document["updatedAt"] = now
        result = await collection.insert_one(document)
        document["_id"] = result.inserted_id
        return document

    async def count(self, collection_name: str, filter_query: Dict = None) -> int:
        """Count documents in a collection"""
        collection = self.get_collection(collection_name)
        filter_query = filter_query or {}
        return await collection.count_documents(filter_query)

    async def ping(self) -> Dict[str, Any]:
        """Run the ping command against the database"""
        return await self.database.command("ping")

    async def ensure_indexes(self) -> List[str]:
        """Create the unique indexes declared in ``INDEXES``"""
        created = []
        for collection_name, specs in INDEXES.items():
            collection = self.get_collection(collection_name)
            for spec in specs:
                name = await collection.create_index(
                    spec["keys"], name=spec["name"], unique=spec.get("unique", False)
                )
                created.append(name)
        logger.info("Ensured indexes: %s", ", ".join(created))
        return created


async def get_db_ops() -> DBOperations:
    """FastAPI dependency returning operations bound to the shared database"""
    database = await db_config.get_database()
    return DBOperations(database)
