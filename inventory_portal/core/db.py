"""
inventory_portal/core/db.py - MongoDB Document Store

Thin wrapper over a pymongo Database. Records are schemaless dicts keyed by
BSON ObjectId. The store is constructed once at app startup and handed to
every consumer explicitly (no module-level client).

COLLECTIONS:
  products       - catalog rows (productId code, name, quantity, price, group, subGroup)
  quotations     - customer quotations with line items
  users          - manager / rider accounts (hashed passwords)
  activity_logs  - who did what, when
"""

import logging
from datetime import datetime, date
from typing import Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, MongoClient

log = logging.getLogger("portal.store")

PRODUCTS = "products"
QUOTATIONS = "quotations"
USERS = "users"
ACTIVITY_LOGS = "activity_logs"

COLLECTIONS = (PRODUCTS, QUOTATIONS, USERS, ACTIVITY_LOGS)


def is_valid_id(value) -> bool:
    """True when value is (or parses as) a BSON ObjectId."""
    if isinstance(value, ObjectId):
        return True
    if not isinstance(value, str):
        return False
    return ObjectId.is_valid(value)


def to_object_id(value) -> ObjectId:
    """Coerce to ObjectId. Raises bson InvalidId for malformed input."""
    if isinstance(value, ObjectId):
        return value
    if not isinstance(value, str):
        raise InvalidId(f"{value!r} is not a valid ObjectId")
    return ObjectId(value)


def to_json(value):
    """Recursively convert a record into JSON-safe primitives.

    ObjectId → hex string, datetime/date → ISO-8601.
    """
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {("id" if k == "_id" else k): to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json(v) for v in value]
    return value


class DocumentStore:
    """find/insert/update/delete over named collections."""

    def __init__(self, database):
        self.db = database

    @classmethod
    def from_uri(cls, uri: str, db_name: str, **client_kwargs) -> "DocumentStore":
        client_kwargs.setdefault("serverSelectionTimeoutMS", 5000)
        client = MongoClient(uri, **client_kwargs)
        log.info("Connected store client for db=%s", db_name)
        return cls(client[db_name])

    # ── Reads ─────────────────────────────────────────────────────────────────
    def find_one(self, collection: str, record_id, projection: dict = None) -> Optional[dict]:
        """Record by id, or None. Malformed ids resolve to None."""
        if not is_valid_id(record_id):
            return None
        return self.db[collection].find_one({"_id": to_object_id(record_id)}, projection)

    def find_one_by(self, collection: str, filter: dict, projection: dict = None) -> Optional[dict]:
        return self.db[collection].find_one(filter, projection)

    def find(self, collection: str, filter: dict = None, sort: list = None,
             limit: int = None, projection: dict = None) -> list:
        cursor = self.db[collection].find(filter or {}, projection)
        if sort:
            cursor = cursor.sort(sort)
        if limit:
            cursor = cursor.limit(int(limit))
        return list(cursor)

    # ── Writes ────────────────────────────────────────────────────────────────
    def insert(self, collection: str, record: dict) -> str:
        result = self.db[collection].insert_one(record)
        return str(result.inserted_id)

    def update(self, collection: str, record_id, fields: dict) -> bool:
        """$set fields on a record. Returns False when nothing matched."""
        if not is_valid_id(record_id):
            return False
        result = self.db[collection].update_one(
            {"_id": to_object_id(record_id)}, {"$set": fields})
        return result.matched_count > 0

    def delete(self, collection: str, record_id) -> bool:
        if not is_valid_id(record_id):
            return False
        result = self.db[collection].delete_one({"_id": to_object_id(record_id)})
        return result.deleted_count > 0

    # ── Maintenance ───────────────────────────────────────────────────────────
    def ping(self) -> bool:
        try:
            self.db.command("ping")
            return True
        except Exception as e:
            log.warning("Store ping failed: %s", e)
            return False

    def ensure_indexes(self):
        """Create the indexes the routes rely on. Safe to call repeatedly."""
        self.db[PRODUCTS].create_index([("productId", ASCENDING)], unique=True)
        self.db[USERS].create_index([("email", ASCENDING)], unique=True)
        self.db[QUOTATIONS].create_index([("createdAt", DESCENDING)])
        self.db[QUOTATIONS].create_index([("riderId", ASCENDING)])
        self.db[ACTIVITY_LOGS].create_index([("timestamp", DESCENDING)])
        log.info("Store indexes ensured on %s", ", ".join(COLLECTIONS))

    def stats(self) -> dict:
        return {name: self.db[name].count_documents({}) for name in COLLECTIONS}
