"""
Candidate scanner.

One scan answers: which persons (or groups) have at least one visible, geocoded address
within `radius_miles` of a single reference point, and how close is the closest one?

Reads are best-effort. A record that cannot be read is logged and skipped; if the
candidate list itself cannot be read the whole scan comes back empty.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol, Union

from irlnearby.core.geo import Coordinate, bounding_box, haversine_miles
from irlnearby.directory.store import AddressContactLookup, CandidateSource, GroupMembership
from irlnearby.domain.models import EntityKind, Group, Person
from irlnearby.proximity.reference import usable_coordinate

logger = logging.getLogger(__name__)

Entity = Union[Person, Group]

# Keeps boundary points (distance == radius) clear of rounding in the box pre-filter.
_BOX_PAD_MILES = 0.01


class ScanDirectory(AddressContactLookup, CandidateSource, GroupMembership, Protocol):
    pass


@dataclass(frozen=True)
class ScanHit:
    """An entity and its minimum distance to one reference point (or, after aggregation, to all)."""

    entity: Entity
    distance_miles: float

    @property
    def entity_id(self) -> int:
        return self.entity.id


def _candidates(kind: EntityKind, directory: CandidateSource) -> list[Entity]:
    if kind == "person":
        return [p for p in directory.list_persons() if not p.deleted]
    return [g for g in directory.list_groups() if not g.deleted]


def min_distance_to(
    kind: EntityKind,
    entity_id: int,
    ref_point: Coordinate,
    *,
    radius_miles: float,
    viewer_is_admin: bool,
    contacts: AddressContactLookup,
) -> float | None:
    """Smallest distance from `ref_point` to any qualifying address within the radius, else None."""
    box = bounding_box(ref_point, radius_miles + _BOX_PAD_MILES)
    best: float | None = None
    for contact in contacts.address_contacts(kind, entity_id):
        coord = usable_coordinate(contact, viewer_is_admin=viewer_is_admin)
        if coord is None or not box.contains(coord):
            continue
        d = haversine_miles(ref_point, coord)
        if d <= radius_miles and (best is None or d < best):
            best = d
    return best


def scan(
    kind: EntityKind,
    ref_point: Coordinate,
    radius_miles: float,
    *,
    exclude_person_id: int | None,
    viewer_is_admin: bool,
    directory: ScanDirectory,
) -> list[ScanHit]:
    """Return every eligible entity of `kind` near `ref_point` (boundary inclusive)."""
    if kind not in ("person", "group"):
        raise ValueError(f"Unknown entity kind: {kind!r}")
    try:
        candidates = _candidates(kind, directory)
        excluded_groups: set[int] = set()
        if kind == "group" and exclude_person_id is not None:
            excluded_groups = set(directory.group_ids_for_person(exclude_person_id))
    except Exception as e:
        logger.warning(
            "Candidate scan for %s near (%.5f, %.5f) failed; treating as empty: %s",
            kind,
            ref_point.latitude,
            ref_point.longitude,
            str(e),
        )
        return []

    hits: list[ScanHit] = []
    for entity in candidates:
        if kind == "person" and exclude_person_id is not None and entity.id == exclude_person_id:
            continue
        if kind == "group" and entity.id in excluded_groups:
            continue
        try:
            d = min_distance_to(
                kind,
                entity.id,
                ref_point,
                radius_miles=radius_miles,
                viewer_is_admin=viewer_is_admin,
                contacts=directory,
            )
        except Exception as e:
            logger.warning("Skipping %s %s: contact read failed: %s", kind, entity.id, str(e))
            continue
        if d is not None:
            hits.append(ScanHit(entity=entity, distance_miles=d))
    return hits
