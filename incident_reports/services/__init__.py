"""Service layer modules grouping business logic by concern.

Re-exports let callers do for example
`from incident_reports.services import aggregate` without having to know
which underlying module provides the symbol.
"""

from .classification import classify, extract_host_token, process_sources  # noqa: F401
from .aggregation import AggregationStats, aggregate, aggregate_with_stats  # noqa: F401
from .validation import filter_valid_incidents, validate_incident  # noqa: F401
from .storage import IncidentStore, StorageError, get_store  # noqa: F401

__all__ = [
    "classify",
    "extract_host_token",
    "process_sources",
    "AggregationStats",
    "aggregate",
    "aggregate_with_stats",
    "filter_valid_incidents",
    "validate_incident",
    "IncidentStore",
    "StorageError",
    "get_store",
]
