"""
Key-value storage for the finance tracker

Entities are kept in a single MongoDB collection as ``{_id: key, value: {...}}``
documents. Keys follow the convention in ``keyspace``; listing a user's data is
a prefix scan on ``_id``.

Multi-key helpers apply one key at a time. A failure midway leaves the keys
already written (or deleted) in place.
"""

import re
import logging
from typing import Iterable, List, Optional

from pymongo import MongoClient
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """The underlying store is unavailable or rejected an operation."""


class KeyValueStore:
    def __init__(self, collection):
        self.collection = collection

    @classmethod
    def from_url(cls, url: str, database_name: str, collection_name: str = "kv_store"):
        client = MongoClient(url, serverSelectionTimeoutMS=5000)
        return cls(client[database_name][collection_name])

    def get(self, key: str) -> Optional[dict]:
        try:
            doc = self.collection.find_one({"_id": key})
        except PyMongoError as e:
            raise StorageError(f"get {key!r} failed: {e}") from e
        return doc["value"] if doc else None

    def set(self, key: str, value: dict) -> None:
        try:
            self.collection.replace_one({"_id": key}, {"_id": key, "value": value}, upsert=True)
        except PyMongoError as e:
            raise StorageError(f"set {key!r} failed: {e}") from e

    def delete(self, key: str) -> None:
        try:
            self.collection.delete_one({"_id": key})
        except PyMongoError as e:
            raise StorageError(f"delete {key!r} failed: {e}") from e

    def get_by_prefix(self, prefix: str) -> List[dict]:
        query = {"_id": {"$regex": "^" + re.escape(prefix)}}
        try:
            return [doc["value"] for doc in self.collection.find(query)]
        except PyMongoError as e:
            raise StorageError(f"scan {prefix!r} failed: {e}") from e

    def mset(self, items: Iterable[tuple]) -> int:
        written = 0
        for key, value in items:
            self.set(key, value)
            written += 1
        return written

    def mdel(self, keys: Iterable[str]) -> int:
        deleted = 0
        for key in keys:
            self.delete(key)
            deleted += 1
        return deleted

    def ping(self) -> bool:
        try:
            self.collection.database.client.admin.command("ping")
            return True
        except PyMongoError as e:
            logger.warning("Storage ping failed: %s", e)
            return False
