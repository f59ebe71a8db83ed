"""
MongoDB connection lifecycle and small document helpers.

One MongoClient is held per process. It is opened by the application lifespan,
closed on shutdown, and re-opened lazily if a request arrives while no client is
held. Routes receive the database through the ``get_db`` dependency.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from bson import ObjectId
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database as MongoDatabase
from pymongo.errors import PyMongoError

from config import settings
from errors import InvalidInput

logger = logging.getLogger(__name__)


class Database:
    def __init__(self, url: str, name: str):
        self.url = url
        self.name = name
        self.client: Optional[MongoClient] = None

    def open(self) -> MongoDatabase:
        if self.client is None:
            self.client = MongoClient(self.url, tz_aware=True, serverSelectionTimeoutMS=5000)
            logger.info("Opened MongoDB client for database %s", self.name)
        return self.client[self.name]

    def close(self) -> None:
        if self.client is not None:
            self.client.close()
            self.client = None
            logger.info("Closed MongoDB client")

    def get(self) -> MongoDatabase:
        if self.client is None:
            logger.warning("No MongoDB client held, reconnecting")
        return self.open()

    def ping(self) -> bool:
        try:
            self.get().command("ping")
            return True
        except PyMongoError as e:
            logger.error("MongoDB ping failed: %s", e)
            return False


database = Database(settings.database_url, settings.database_name)


def get_db() -> MongoDatabase:
    return database.get()


def ensure_indexes(db: MongoDatabase) -> None:
    db["user"].create_index([("email", ASCENDING)], unique=True)
    db["room"].create_index([("host.email", ASCENDING)])
    db["booking"].create_index([("transaction_id", ASCENDING)], unique=True)
    db["booking"].create_index([("guest.email", ASCENDING)])
    db["booking"].create_index([("host.email", ASCENDING)])


# ------------------------
# Document helpers
# ------------------------
def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_object_id(value: str) -> ObjectId:
    if not ObjectId.is_valid(value):
        raise InvalidInput(f"Invalid id: {value}")
    return ObjectId(value)


def serialize(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Replace Mongo's ``_id`` with a string ``id`` so the document is JSON friendly."""
    if doc is None:
        return None
    doc = dict(doc)
    if "_id" in doc:
        doc["id"] = str(doc.pop("_id"))
    return doc

