"""Shape validation for incoming incident submissions."""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping

logger = logging.getLogger(__name__)

REQUIRED_INCIDENT_KEYS = (
    "title",
    "desc",
    "city",
    "state",
    "lat",
    "long",
    "date",
    "tags",
    "src",
)


def validate_incident(incident: Any) -> bool:
    """Return ``True`` if every required key is present and non-empty.

    Only presence is checked: coordinates and dates are accepted as given.
    """
    if not isinstance(incident, Mapping):
        return False
    for key in REQUIRED_INCIDENT_KEYS:
        value = incident.get(key)
        if value is None or value == "":
            return False
    return True


def filter_valid_incidents(incidents: Iterable[Any]) -> List[Mapping]:
    """Keep only the submissions that pass :func:`validate_incident`."""
    incidents = list(incidents)
    valid = [incident for incident in incidents if validate_incident(incident)]
    rejected = len(incidents) - len(valid)
    if rejected:
        logger.warning("Rejected %d of %d incident submissions", rejected, len(incidents))
    return valid


__all__ = ["REQUIRED_INCIDENT_KEYS", "validate_incident", "filter_valid_incidents"]
