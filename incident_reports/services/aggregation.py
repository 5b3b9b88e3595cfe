"""Reconstruct nested incident views from flat relational rows.

The record store hands over four independent collections (incidents, tag
definitions, tag links and sources). :func:`aggregate` joins them in memory
into one client-ready record per incident, carrying its ``categories`` (tag
labels) and ``src`` (source rows).

Ordering rules
--------------
* Output records follow the order of the ``incidents`` collection.
* ``categories`` follow the order in which tag links are scanned. When several
  definitions share one ``type_of_force_id`` each contributes its label, in
  definition order.
* ``src`` follows the order of the ``sources`` collection.

Rows that reference nothing (a tag link with an unknown ``type_of_force_id``,
a link or source whose ``incident_id`` matches no incident) are skipped. They
are counted in :class:`AggregationStats` and summarised in a single warning.
Input collections are never mutated.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

from ..models import Row

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AggregationStats:
    """Counters describing rows that contributed nothing to the output."""

    incidents: int = 0
    skipped_tag_links: int = 0
    orphan_tag_links: int = 0
    orphan_sources: int = 0

    @property
    def skipped(self) -> int:
        return self.skipped_tag_links + self.orphan_tag_links + self.orphan_sources


def _index_labels(tag_definitions: Iterable[Mapping]) -> Dict[object, List[str]]:
    labels: Dict[object, List[str]] = defaultdict(list)
    for tag in tag_definitions:
        labels[tag["type_of_force_id"]].append(tag["type_of_force"])
    return labels


def aggregate_with_stats(
    incidents: Sequence[Mapping],
    tag_definitions: Iterable[Mapping],
    tag_links: Iterable[Mapping],
    sources: Iterable[Mapping],
) -> Tuple[List[Row], AggregationStats]:
    """Like :func:`aggregate` but also return the :class:`AggregationStats`."""
    stats = AggregationStats(incidents=len(incidents))
    known_incidents = {incident["incident_id"] for incident in incidents}
    labels = _index_labels(tag_definitions)

    categories: Dict[object, List[str]] = defaultdict(list)
    for link in tag_links:
        link_labels = labels.get(link["type_of_force_id"])
        if not link_labels:
            stats.skipped_tag_links += 1
            continue
        if link["incident_id"] not in known_incidents:
            stats.orphan_tag_links += 1
            continue
        categories[link["incident_id"]].extend(link_labels)

    src: Dict[object, List[Row]] = defaultdict(list)
    for source in sources:
        if source["incident_id"] not in known_incidents:
            stats.orphan_sources += 1
            continue
        src[source["incident_id"]].append(dict(source))

    records: List[Row] = []
    for incident in incidents:
        record = dict(incident)
        # Duplicate incident ids each get their own copies
        record["categories"] = list(categories.get(incident["incident_id"], ()))
        record["src"] = [dict(s) for s in src.get(incident["incident_id"], ())]
        records.append(record)

    return records, stats


def aggregate(
    incidents: Sequence[Mapping],
    tag_definitions: Iterable[Mapping],
    tag_links: Iterable[Mapping],
    sources: Iterable[Mapping],
) -> List[Row]:
    """Join the four flat collections into one enriched record per incident."""
    records, stats = aggregate_with_stats(incidents, tag_definitions, tag_links, sources)
    if stats.skipped:
        logger.warning(
            "Skipped %d dangling rows while aggregating %d incidents "
            "(unknown tag: %d, orphan tag links: %d, orphan sources: %d)",
            stats.skipped,
            stats.incidents,
            stats.skipped_tag_links,
            stats.orphan_tag_links,
            stats.orphan_sources,
        )
    return records


__all__ = ["AggregationStats", "aggregate", "aggregate_with_stats"]
