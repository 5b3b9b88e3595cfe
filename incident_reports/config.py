"""Centralised configuration for incident_reports.

Environment variables are loaded once and grouped by the collaborator that
consumes them (record store, third-party feed, logging).
"""

from __future__ import annotations

import os
from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Load environment variables from `.env` (if present)
# ---------------------------------------------------------------------------
load_dotenv()

# ---------------------------------------------------------------------------
# Record store (MongoDB)
# ---------------------------------------------------------------------------
MONGODB_URI: str = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
MONGODB_DATABASE: str = os.getenv("MONGODB_DATABASE", "incidents")

# ---------------------------------------------------------------------------
# Third-party incident feed used by the bulk import
# ---------------------------------------------------------------------------
DS_API_URL: str | None = os.getenv("DS_API_URL")
FEED_TIMEOUT: float = float(os.getenv("FEED_TIMEOUT", "30"))

# ---------------------------------------------------------------------------
# Miscellaneous
# ---------------------------------------------------------------------------
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# ---------------------------------------------------------------------------
# Re-exported names
# ---------------------------------------------------------------------------
__all__ = [
    # storage
    "MONGODB_URI",
    "MONGODB_DATABASE",
    # feed
    "DS_API_URL",
    "FEED_TIMEOUT",
    # misc
    "LOG_LEVEL",
]
