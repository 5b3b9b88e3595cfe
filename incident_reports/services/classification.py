"""Citation classification: map a raw source URL to a source type."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from ..models import SourceType

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Host token -> source type. Lookups are case-sensitive; anything missing is
# an article.
# ---------------------------------------------------------------------------
HOST_TYPES: Dict[str, str] = {
    # video
    "youtube": SourceType.VIDEO,
    "whyy": SourceType.VIDEO,
    "youtu": SourceType.VIDEO,
    "clips": SourceType.VIDEO,
    "tuckbot": SourceType.VIDEO,
    "peertube": SourceType.VIDEO,
    "drive": SourceType.VIDEO,
    "m": SourceType.VIDEO,
    "getway": SourceType.VIDEO,
    # post
    "instagram": SourceType.POST,
    "twitter": SourceType.POST,
    "reddit": SourceType.POST,
    "papost": SourceType.POST,
    "mobile": SourceType.POST,
    "nyc": SourceType.POST,
    "v": SourceType.POST,
    # court_document
    "nlg-la": SourceType.COURT_DOCUMENT,
    "ewscripps": SourceType.COURT_DOCUMENT,
    # image
    "i": SourceType.IMAGE,
    "ibb": SourceType.IMAGE,
    "photos": SourceType.IMAGE,
    # police_report
    "doverpolice": SourceType.POLICE_REPORT,
    "dsp": SourceType.POLICE_REPORT,
}

# Hosts longer than these get progressively shortened
_COM_HOST_LIMIT: int = 11
_ORG_HOST_LIMIT: int = 10


def _after(text: str, marker: str) -> Optional[str]:
    """Return the text between the first and second *marker*, or ``None``."""
    parts = text.split(marker)
    return parts[1] if len(parts) > 1 else None


def _utf16_length(text: str) -> int:
    """Length in UTF-16 code units, so astral characters count twice."""
    return len(text.encode("utf-16-le", "surrogatepass")) // 2


def extract_host_token(url: str) -> str:
    """Reduce *url* to the short host token used as the lookup key.

    ``https://www.<host>.com`` yields ``<host>``. Otherwise the part after
    ``https://`` is cut at ``.com``; when that is still long it is cut at
    ``.org`` and, failing that, at the first dot. Short hosts such as
    ``i.ibb`` are returned untouched. Unrecognised input yields ``""``.
    """
    www_host = _after(url, "https://www.")
    if www_host:
        return www_host.split(".com")[0]

    host = _after(url, "https://")
    if host is None:
        return ""

    host = host.split(".com")[0]
    if _utf16_length(host) <= _COM_HOST_LIMIT:
        return host

    host = host.split(".org")[0]
    if _utf16_length(host) <= _ORG_HOST_LIMIT:
        return host
    return host.split(".")[0]


def classify(url: str) -> Dict[str, str]:
    """Return ``{"src_url": url, "src_type": <type>}`` for a citation URL.

    The URL itself is passed through unchanged.
    """
    src_type = HOST_TYPES.get(extract_host_token(url), SourceType.ARTICLE)
    return {"src_url": url, "src_type": src_type}


def process_sources(urls: Iterable[str]) -> List[Dict[str, str]]:
    """Classify every citation of an incoming incident, preserving order."""
    classified = [classify(url) for url in urls]
    logger.debug("Classified %d citations", len(classified))
    return classified


__all__ = ["HOST_TYPES", "extract_host_token", "classify", "process_sources"]
