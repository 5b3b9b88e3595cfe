"""Top-level package for the incident_reports project.

Exposes the citation classifier, the incident aggregator and the workflow
helpers built on top of them, so callers can do
`from incident_reports import list_all_incidents` or run
`python -m incident_reports`.
"""

from importlib import metadata as _metadata

try:
    __version__: str = _metadata.version("incident-reports")
except _metadata.PackageNotFoundError:  # pragma: no cover – running from source
    __version__ = "0.0.0"

from .services.classification import classify  # convenience re-exports
from .services.aggregation import aggregate
from .workflows.incident_pipeline import (
    create_incidents,
    import_from_feed,
    list_all_incidents,
)

__all__ = [
    "classify",
    "aggregate",
    "create_incidents",
    "import_from_feed",
    "list_all_incidents",
    "__version__",
]
