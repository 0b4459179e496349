"""
Aggregation + ranking of per-reference-point scan results.

An entity near two reference points keeps the smaller distance, never a sum or an
average. Ranking is deterministic: distance, then creation order, then id.
"""

from __future__ import annotations

from typing import Iterable

from irlnearby.domain.models import ProximityResult
from irlnearby.proximity.scanner import ScanHit


def aggregate(per_reference_results: Iterable[Iterable[ScanHit]]) -> dict[int, ScanHit]:
    """Merge scan outputs into one hit per entity id, keeping the minimum distance."""
    merged: dict[int, ScanHit] = {}
    for hits in per_reference_results:
        for hit in hits:
            existing = merged.get(hit.entity_id)
            if existing is None or hit.distance_miles < existing.distance_miles:
                merged[hit.entity_id] = hit
    return merged


def _rank_key(hit: ScanHit) -> tuple:
    return (hit.distance_miles, hit.entity.created_at, hit.entity_id)


def _to_result(hit: ScanHit) -> ProximityResult:
    public = hit.entity.public()
    return ProximityResult[type(public)](entity=public, distance_miles=hit.distance_miles)


def rank(hits: Iterable[ScanHit], *, limit: int | None = None) -> list[ProximityResult]:
    """Sort ascending by distance and project each entity to its public shape."""
    ordered = sorted(hits, key=_rank_key)
    if limit is not None:
        ordered = ordered[: max(0, int(limit))]
    return [_to_result(h) for h in ordered]
