"""
Reference set builder.

A caller's reference points are the coordinates proximity search measures from:
their own geocoded addresses, then the addresses of every group they belong to.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from irlnearby.core.geo import Coordinate
from irlnearby.directory.store import AddressContactLookup, GroupMembership
from irlnearby.domain.models import CurrentActor, EntityKind, GeoContact

logger = logging.getLogger(__name__)

ReferenceSource = Literal["own", "group"]


@dataclass(frozen=True)
class ReferenceLocation:
    """A reference coordinate plus where it came from (never returned to clients)."""

    coordinate: Coordinate
    source: ReferenceSource
    group_id: int | None = None


def usable_coordinate(contact: GeoContact, *, viewer_is_admin: bool) -> Coordinate | None:
    """Return the contact's coordinate if it may be used as a location source."""
    if contact.deleted or contact.type != "ADDRESS":
        return None
    if not contact.visible_to(viewer_is_admin=viewer_is_admin):
        return None
    return contact.coordinate


def _owner_coordinates(
    contacts: AddressContactLookup,
    owner_kind: EntityKind,
    owner_id: int,
    *,
    viewer_is_admin: bool,
) -> list[Coordinate]:
    try:
        records = contacts.address_contacts(owner_kind, owner_id)
    except Exception as e:
        logger.warning("Address lookup failed for %s %s: %s", owner_kind, owner_id, str(e))
        return []
    out: list[Coordinate] = []
    for c in records:
        coord = usable_coordinate(c, viewer_is_admin=viewer_is_admin)
        if coord is not None:
            out.append(coord)
    return out


def build_reference_set(
    actor: CurrentActor,
    *,
    contacts: AddressContactLookup,
    memberships: GroupMembership,
) -> list[ReferenceLocation]:
    """Collect the caller's distinct reference locations, own addresses first.

    An actor without a selected person simply has no reference points.
    """
    if actor.person_id is None:
        return []

    admin = actor.is_system_admin
    seen: set[Coordinate] = set()
    refs: list[ReferenceLocation] = []

    def _add(coord: Coordinate, source: ReferenceSource, group_id: int | None = None) -> None:
        if coord in seen:
            return
        seen.add(coord)
        refs.append(ReferenceLocation(coordinate=coord, source=source, group_id=group_id))

    for coord in _owner_coordinates(contacts, "person", actor.person_id, viewer_is_admin=admin):
        _add(coord, "own")

    try:
        group_ids = memberships.group_ids_for_person(actor.person_id)
    except Exception as e:
        logger.warning("Membership lookup failed for person %s: %s", actor.person_id, str(e))
        group_ids = []

    for group_id in group_ids:
        for coord in _owner_coordinates(contacts, "group", group_id, viewer_is_admin=admin):
            _add(coord, "group", group_id)

    return refs


def reference_coordinates(refs: list[ReferenceLocation]) -> list[Coordinate]:
    return [r.coordinate for r in refs]
