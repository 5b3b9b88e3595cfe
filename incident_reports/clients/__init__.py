"""Convenience re-exports for singleton SDK accessors."""

from .mongodb_client import get_database, get_mongo_client  # noqa: F401
from .feed_client import get_feed_session  # noqa: F401

__all__ = [
    "get_mongo_client",
    "get_database",
    "get_feed_session",
]
