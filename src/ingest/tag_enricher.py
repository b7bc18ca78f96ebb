"""Region tag classification.

This module applies governorless, password, and frontier tags to
parsed regions. Tags describe present-day state, so historical
snapshots are never classified.
"""

from __future__ import annotations

from typing import Iterable

from core.types import EnrichedRegion, RegionRecord, RegionTags


def enrich_regions(
    records: Iterable[RegionRecord],
    tags: RegionTags | None,
) -> list[EnrichedRegion]:
    """Classify regions with tag sets.

    Args:
        records: Parsed regions in dump order.
        tags: Current tag sets, or None for a historical snapshot.

    Returns:
        Enriched regions in the same order; all flags False when ``tags`` is None.
    """
    if tags is None:
        return [EnrichedRegion(record=record) for record in records]
    governorless = _canonical_set(tags.governorless)
    password = _canonical_set(tags.password)
    frontier = _canonical_set(tags.frontier)
    enriched: list[EnrichedRegion] = []
    for record in records:
        key = canonical_region_name(record.name)
        enriched.append(
            EnrichedRegion(
                record=record,
                has_governor=key not in governorless,
                has_password=key in password,
                is_frontier=key in frontier,
            )
        )
    return enriched


def classify_regions(
    records: Iterable[RegionRecord],
    is_current: bool,
    tags: RegionTags | None,
) -> list[EnrichedRegion]:
    """Classify regions, ignoring tag data for non-current snapshots."""
    return enrich_regions(records, tags if is_current else None)


def canonical_region_name(name: str) -> str:
    """Return the API canonical form of a region name."""
    return name.strip().lower().replace(" ", "_")


def _canonical_set(names: Iterable[str]) -> frozenset[str]:
    return frozenset(canonical_region_name(name) for name in names)
