"""Row shapes shared by the storage layer, the write path and the aggregator.

The core functions work on plain mappings (one dict per row) so they stay
agnostic of how the record store represents documents. The dataclasses below
document those shapes and are used to build rows before insertion.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

# Type alias for a single flat row as handed over by the record store
Row = Dict[str, Any]

# ---------------------------------------------------------------------------
# Table names
# ---------------------------------------------------------------------------
INCIDENTS_TABLE: str = "incidents"
SOURCES_TABLE: str = "sources"
TAGS_TABLE: str = "type_of_force"
TAG_LINKS_TABLE: str = "incident_type_of_force"


class SourceType:
    """Closed set of citation categories assigned by the classifier."""

    VIDEO = "video"
    POST = "post"
    COURT_DOCUMENT = "court_document"
    IMAGE = "image"
    POLICE_REPORT = "police_report"
    ARTICLE = "article"

    ALL = frozenset({VIDEO, POST, COURT_DOCUMENT, IMAGE, POLICE_REPORT, ARTICLE})


def _row(obj: Any, identity: str) -> Row:
    row = asdict(obj)
    if row.get(identity) is None:
        row.pop(identity, None)
    return row


@dataclass(slots=True)
class Incident:
    """A reported incident as persisted in the ``incidents`` table."""

    incident_id: Optional[int] = None
    id: str = ""
    city: str = ""
    state: str = ""
    lat: Optional[float] = None
    long: Optional[float] = None
    title: str = ""
    desc: str = ""
    date: str = ""

    def to_dict(self) -> Row:
        return _row(self, "incident_id")


@dataclass(slots=True)
class Source:
    """A single citation attached to an incident."""

    src_id: Optional[int] = None
    incident_id: Optional[int] = None
    src_url: str = ""
    src_type: str = SourceType.ARTICLE

    def to_dict(self) -> Row:
        return _row(self, "src_id")


@dataclass(slots=True)
class TagDefinition:
    """A "type of force" label."""

    type_of_force_id: Optional[int] = None
    type_of_force: str = ""

    def to_dict(self) -> Row:
        return _row(self, "type_of_force_id")


@dataclass(slots=True)
class TagLink:
    """Many-to-many link between an incident and a type of force."""

    type_of_force_id: int
    incident_id: int

    def to_dict(self) -> Row:
        return asdict(self)


__all__ = [
    "Row",
    "SourceType",
    "Incident",
    "Source",
    "TagDefinition",
    "TagLink",
    "INCIDENTS_TABLE",
    "SOURCES_TABLE",
    "TAGS_TABLE",
    "TAG_LINKS_TABLE",
]
