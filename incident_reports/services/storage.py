"""Persistence layer: one MongoDB collection per relational table.

Rows are stored as flat documents. Integer identities (``incident_id``,
``src_id``, ``type_of_force_id``) are handed out by a ``counters`` collection
so rows keep the relational shape the aggregator expects. Mongo's own ``_id``
never leaves this module.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from ..clients.mongodb_client import get_database
from ..models import (
    INCIDENTS_TABLE,
    SOURCES_TABLE,
    TAGS_TABLE,
    TAG_LINKS_TABLE,
    Row,
    TagDefinition,
)

logger = logging.getLogger(__name__)

COUNTERS_COLLECTION: str = "counters"

# Identity column per table; link rows have none
IDENTITY_KEYS: Dict[str, Optional[str]] = {
    INCIDENTS_TABLE: "incident_id",
    SOURCES_TABLE: "src_id",
    TAGS_TABLE: "type_of_force_id",
    TAG_LINKS_TABLE: None,
}

_NO_ID = {"_id": 0}


class StorageError(RuntimeError):
    """Raised when the record store rejects a read or write."""


class IncidentStore:
    """Record store exposing ``fetch_all`` / ``insert`` over MongoDB."""

    def __init__(self, database: Database) -> None:
        self._db = database

    def _identity(self, table: str) -> Optional[str]:
        if table not in IDENTITY_KEYS:
            raise ValueError(f"Unknown table: {table}")
        return IDENTITY_KEYS[table]

    def _next_id(self, table: str) -> int:
        counter = self._db[COUNTERS_COLLECTION].find_one_and_update(
            {"_id": table},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return int(counter["seq"])

    def fetch_all(self, table: str) -> List[Row]:
        """Return every row of *table* in insertion order."""
        key = self._identity(table)
        try:
            cursor = self._db[table].find({}, _NO_ID)
            if key is not None:
                cursor = cursor.sort(key, 1)
            rows = list(cursor)
        except PyMongoError as exc:
            logger.error("Failed to read table %s: %s", table, exc)
            raise StorageError(f"Failed to read table {table}") from exc
        logger.debug("Fetched %d rows from %s", len(rows), table)
        return rows

    def insert(self, table: str, row: Mapping[str, Any]) -> int:
        """Insert *row* into *table* and return its new identity (0 for links)."""
        key = self._identity(table)
        document = dict(row)
        try:
            identity = 0
            if key is not None:
                identity = self._next_id(table)
                document[key] = identity
            self._db[table].insert_one(document)
        except PyMongoError as exc:
            logger.error("Failed to insert into %s: %s", table, exc)
            raise StorageError(f"Failed to insert into {table}") from exc
        logger.debug("Inserted row into %s with identity=%s", table, identity)
        return identity

    def get_sources_by_incident(self, incident_id: int) -> List[Row]:
        """Return the sources attached to one incident."""
        try:
            return list(
                self._db[SOURCES_TABLE]
                .find({"incident_id": incident_id}, _NO_ID)
                .sort("src_id", 1)
            )
        except PyMongoError as exc:
            raise StorageError(f"Failed to read sources for incident {incident_id}") from exc

    def find_tag(self, label: str) -> Optional[Row]:
        """Return the ``type_of_force`` row carrying *label*, if any."""
        try:
            return self._db[TAGS_TABLE].find_one({"type_of_force": label}, _NO_ID)
        except PyMongoError as exc:
            raise StorageError(f"Failed to look up tag {label!r}") from exc

    def get_or_create_tag(self, label: str) -> int:
        """Return the id of the tag carrying *label*, creating it if needed.

        Creation is a single upsert on the label, so concurrent writers of the
        same new label all end up with one row and one id. A candidate id that
        loses the race is simply never used.
        """
        existing = self.find_tag(label)
        if existing is not None:
            return existing["type_of_force_id"]
        try:
            candidate = self._next_id(TAGS_TABLE)
            tag = self._db[TAGS_TABLE].find_one_and_update(
                {"type_of_force": label},
                {"$setOnInsert": TagDefinition(type_of_force_id=candidate, type_of_force=label).to_dict()},
                projection=_NO_ID,
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError:
            # Another upsert inserted the label between our match and insert
            tag = self.find_tag(label)
        except PyMongoError as exc:
            logger.error("Failed to create tag %r: %s", label, exc)
            raise StorageError(f"Failed to create tag {label!r}") from exc
        if tag is None:
            raise StorageError(f"Tag {label!r} vanished while being created")
        return tag["type_of_force_id"]

    def ensure_indexes(self) -> None:
        """Create the unique index that keeps tag labels distinct."""
        try:
            self._db[TAGS_TABLE].create_index("type_of_force", unique=True)
        except PyMongoError as exc:
            raise StorageError("Failed to create indexes") from exc

    def clear(self) -> None:
        """Drop every table along with the identity counters."""
        try:
            for table in (*IDENTITY_KEYS, COUNTERS_COLLECTION):
                self._db.drop_collection(table)
        except PyMongoError as exc:
            raise StorageError("Failed to clear the database") from exc
        logger.info("Dropped all incident tables")


def get_store() -> IncidentStore:
    """Return a store bound to the configured MongoDB database."""
    store = IncidentStore(get_database())
    store.ensure_indexes()
    return store


__all__ = ["COUNTERS_COLLECTION", "IDENTITY_KEYS", "StorageError", "IncidentStore", "get_store"]
