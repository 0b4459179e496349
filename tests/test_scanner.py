import pytest
from factories import address, directory, group, miles_north, person

from irlnearby.core.geo import Coordinate, haversine_miles
from irlnearby.errors import UpstreamUnavailable
from irlnearby.proximity.scanner import scan

ORIGIN = Coordinate(40.0, -74.0)


def _ids(hits):
    return sorted(h.entity_id for h in hits)


def test_persons_within_radius_are_returned_with_distance():
    d = directory(
        persons=[person(1), person(2), person(3)],
        contacts=[
            address("person", 2, 40.005, -74.0),
            address("person", 3, 41.0, -74.0),
        ],
    )
    hits = scan("person", ORIGIN, 1.0, exclude_person_id=1, viewer_is_admin=False, directory=d)
    assert _ids(hits) == [2]
    assert hits[0].distance_miles == pytest.approx(0.3455, abs=1e-3)


def test_entity_distance_is_minimum_over_its_addresses():
    d = directory(
        persons=[person(2)],
        contacts=[
            address("person", 2, miles_north(40.0, 0.8), -74.0),
            address("person", 2, miles_north(40.0, 0.2), -74.0),
            address("person", 2, 45.0, -74.0),
        ],
    )
    hits = scan("person", ORIGIN, 1.0, exclude_person_id=None, viewer_is_admin=False, directory=d)
    assert len(hits) == 1
    assert hits[0].distance_miles == pytest.approx(0.2, abs=1e-9)


def test_boundary_is_inclusive_and_coincident_address_has_zero_distance():
    edge = Coordinate(miles_north(40.0, 1.0), -74.0)
    d = directory(
        persons=[person(2), person(3)],
        contacts=[
            address("person", 2, edge.latitude, edge.longitude),
            address("person", 3, 40.0, -74.0),
        ],
    )
    radius = haversine_miles(ORIGIN, edge)
    hits = {h.entity_id: h.distance_miles for h in scan(
        "person", ORIGIN, radius, exclude_person_id=None, viewer_is_admin=False, directory=d
    )}
    assert hits == {2: radius, 3: 0.0}


def test_caller_is_never_a_person_candidate():
    d = directory(persons=[person(1)], contacts=[address("person", 1, 40.0, -74.0)])
    assert scan("person", ORIGIN, 5.0, exclude_person_id=1, viewer_is_admin=True, directory=d) == []


def test_groups_the_caller_belongs_to_are_excluded():
    d = directory(
        persons=[person(1)],
        groups=[group(50), group(51)],
        contacts=[address("group", 50, 40.0, -74.0), address("group", 51, 40.0, -74.0)],
        memberships=[(1, 50)],
    )
    hits = scan("group", ORIGIN, 1.0, exclude_person_id=1, viewer_is_admin=False, directory=d)
    assert _ids(hits) == [51]


def test_deleted_entities_are_ignored():
    d = directory(
        persons=[person(2, deleted=True)],
        groups=[group(50, deleted=True)],
        contacts=[address("person", 2, 40.0, -74.0), address("group", 50, 40.0, -74.0)],
    )
    assert scan("person", ORIGIN, 1.0, exclude_person_id=None, viewer_is_admin=True, directory=d) == []
    assert scan("group", ORIGIN, 1.0, exclude_person_id=None, viewer_is_admin=True, directory=d) == []


def test_private_addresses_require_admin():
    d = directory(
        persons=[person(2)],
        contacts=[address("person", 2, 40.001, -74.0, privacy="PRIVATE")],
    )
    assert scan("person", ORIGIN, 1.0, exclude_person_id=None, viewer_is_admin=False, directory=d) == []
    assert _ids(scan("person", ORIGIN, 1.0, exclude_person_id=None, viewer_is_admin=True, directory=d)) == [2]


def test_private_near_address_does_not_leak_through_public_far_one():
    d = directory(
        persons=[person(2)],
        contacts=[
            address("person", 2, 40.001, -74.0, privacy="PRIVATE"),
            address("person", 2, miles_north(40.0, 3.0), -74.0),
        ],
    )
    assert scan("person", ORIGIN, 1.0, exclude_person_id=None, viewer_is_admin=False, directory=d) == []
    hits = scan("person", ORIGIN, 5.0, exclude_person_id=None, viewer_is_admin=False, directory=d)
    assert hits[0].distance_miles == pytest.approx(3.0, abs=1e-9)


def test_contact_read_failure_skips_only_that_entity():
    base = directory(
        persons=[person(2), person(3)],
        contacts=[address("person", 2, 40.0, -74.0), address("person", 3, 40.0, -74.0)],
    )

    class FlakyDirectory:
        def list_persons(self):
            return base.list_persons()

        def list_groups(self):
            return base.list_groups()

        def group_ids_for_person(self, person_id):
            return base.group_ids_for_person(person_id)

        def address_contacts(self, owner_kind, owner_id):
            if owner_id == 2:
                raise TimeoutError("contact store timed out")
            return base.address_contacts(owner_kind, owner_id)

    hits = scan("person", ORIGIN, 1.0, exclude_person_id=None, viewer_is_admin=False, directory=FlakyDirectory())
    assert _ids(hits) == [3]


def test_unreachable_candidate_list_yields_empty_scan():
    class DownDirectory:
        def list_persons(self):
            raise UpstreamUnavailable("store unreachable")

        def list_groups(self):
            raise UpstreamUnavailable("store unreachable")

        def group_ids_for_person(self, person_id):
            return []

        def address_contacts(self, owner_kind, owner_id):
            return []

    assert scan("person", ORIGIN, 1.0, exclude_person_id=1, viewer_is_admin=False, directory=DownDirectory()) == []
    assert scan("group", ORIGIN, 1.0, exclude_person_id=1, viewer_is_admin=False, directory=DownDirectory()) == []


def test_unknown_kind_is_a_programming_error():
    with pytest.raises(ValueError):
        scan("system", ORIGIN, 1.0, exclude_person_id=None, viewer_is_admin=False, directory=directory())
