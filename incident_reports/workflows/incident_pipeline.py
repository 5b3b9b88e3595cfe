"""Read path, write path and bulk import around the record store."""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Optional

from ..logging_config import logging as _  # noqa: F401  # ensure config applied early
from ..clients.feed_client import get_feed_session
from ..config import DS_API_URL, FEED_TIMEOUT
from ..models import (
    INCIDENTS_TABLE,
    SOURCES_TABLE,
    TAGS_TABLE,
    TAG_LINKS_TABLE,
    Incident,
    Row,
    Source,
    SourceType,
    TagLink,
)
from ..services.aggregation import aggregate
from ..services.classification import classify, process_sources
from ..services.storage import IncidentStore, StorageError, get_store
from ..services.validation import filter_valid_incidents

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Read path
# ---------------------------------------------------------------------------

def list_all_incidents(store: Optional[IncidentStore] = None) -> List[Row]:
    """Return every incident with its ``categories`` and ``src`` attached."""
    store = store or get_store()
    incidents = store.fetch_all(INCIDENTS_TABLE)
    sources = store.fetch_all(SOURCES_TABLE)
    tags = store.fetch_all(TAGS_TABLE)
    tag_links = store.fetch_all(TAG_LINKS_TABLE)
    logger.info(
        "Aggregating %d incidents, %d sources, %d tags, %d tag links",
        len(incidents),
        len(sources),
        len(tags),
        len(tag_links),
    )
    return aggregate(incidents, tags, tag_links, sources)


def list_sources(store: Optional[IncidentStore] = None) -> List[Row]:
    return (store or get_store()).fetch_all(SOURCES_TABLE)


def list_sources_for_incident(incident_id: int, store: Optional[IncidentStore] = None) -> List[Row]:
    return (store or get_store()).get_sources_by_incident(incident_id)


def list_tags(store: Optional[IncidentStore] = None) -> List[Row]:
    return (store or get_store()).fetch_all(TAGS_TABLE)


def list_tag_links(store: Optional[IncidentStore] = None) -> List[Row]:
    return (store or get_store()).fetch_all(TAG_LINKS_TABLE)


# ---------------------------------------------------------------------------
# Write path
# ---------------------------------------------------------------------------

def create_incident(payload: Mapping[str, Any], store: Optional[IncidentStore] = None) -> int:
    """Persist one validated submission with its sources and tags.

    Citations in ``src`` are classified before insertion; labels in ``tags``
    reuse an existing ``type_of_force`` row or create one. Rows are written
    one by one, so a storage failure after the incident row leaves it with
    only part of its sources or tags; that incident id is logged.
    """
    store = store or get_store()
    incident = Incident(
        id=payload.get("id", ""),
        city=payload["city"],
        state=payload["state"],
        lat=payload["lat"],
        long=payload["long"],
        title=payload["title"],
        desc=payload["desc"],
        date=payload["date"],
    )
    incident_id = store.insert(INCIDENTS_TABLE, incident.to_dict())

    try:
        for citation in process_sources(payload["src"]):
            source = Source(incident_id=incident_id, **citation)
            store.insert(SOURCES_TABLE, source.to_dict())

        for label in payload["tags"]:
            link = TagLink(type_of_force_id=store.get_or_create_tag(label), incident_id=incident_id)
            store.insert(TAG_LINKS_TABLE, link.to_dict())
    except StorageError:
        logger.error("Incident %s (%s) was only partially stored", incident_id, incident.id)
        raise

    logger.info(
        "Created incident %s (%s) with %d sources and %d tags",
        incident_id,
        incident.id,
        len(payload["src"]),
        len(payload["tags"]),
    )
    return incident_id


def create_incidents(
    payloads: Iterable[Mapping[str, Any]], store: Optional[IncidentStore] = None
) -> List[int]:
    """Validate a batch of submissions and create every valid one."""
    valid = filter_valid_incidents(payloads)
    if not valid:
        raise ValueError("Error creating Record: no valid incidents in request")
    store = store or get_store()
    return [create_incident(payload, store) for payload in valid]


def create_source(row: Mapping[str, Any], store: Optional[IncidentStore] = None) -> int:
    """Insert a single source row, classifying its URL when no type is given."""
    row = dict(row)
    if row.get("src_url") is not None and not row.get("src_type"):
        row.update(classify(row["src_url"]))
    elif row.get("src_type") not in SourceType.ALL:
        logger.warning("Storing source with unknown src_type %r", row.get("src_type"))
    return (store or get_store()).insert(SOURCES_TABLE, row)


def clear_database(store: Optional[IncidentStore] = None) -> None:
    (store or get_store()).clear()


# ---------------------------------------------------------------------------
# Bulk import
# ---------------------------------------------------------------------------

def import_from_feed(store: Optional[IncidentStore] = None) -> int:
    """Pull incidents from the third-party feed and store the valid ones."""
    if not DS_API_URL:
        raise EnvironmentError("DS_API_URL is not set in environment variables")

    logger.info("Fetching incidents from feed %s", DS_API_URL)
    response = get_feed_session().get(DS_API_URL, timeout=FEED_TIMEOUT)
    if response.status_code != 200:
        logger.error("Error from incident feed: %s - %s", response.status_code, response.text)
        raise RuntimeError(f"Incident feed error: {response.status_code}")

    received = response.json()
    valid = filter_valid_incidents(received)
    store = store or get_store()
    created = [create_incident(payload, store) for payload in valid]

    _log_stats(len(received), len(received) - len(valid), len(created))
    return len(created)


def _log_stats(total: int, rejected: int, stored: int) -> None:
    logger.info("=== Incident Import Statistics ===")
    logger.info("Incidents received: %d", total)
    logger.info("Incidents rejected: %d", rejected)
    logger.info("Incidents stored in database: %d", stored)
    logger.info("==================================")


__all__ = [
    "list_all_incidents",
    "list_sources",
    "list_sources_for_incident",
    "list_tags",
    "list_tag_links",
    "create_incident",
    "create_incidents",
    "create_source",
    "clear_database",
    "import_from_feed",
]
