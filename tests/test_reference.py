from factories import address, directory, group, person

from irlnearby.core.geo import Coordinate
from irlnearby.domain.models import CurrentActor
from irlnearby.proximity.reference import build_reference_set, reference_coordinates


def _refs(d, actor):
    return build_reference_set(actor, contacts=d, memberships=d)


def test_no_active_profile_yields_no_reference_points():
    d = directory(persons=[person(1)], contacts=[address("person", 1, 40.0, -74.0)])
    assert _refs(d, CurrentActor(person_id=None, is_system_admin=True)) == []


def test_own_addresses_come_before_group_addresses():
    d = directory(
        persons=[person(1)],
        groups=[group(50)],
        contacts=[
            address("group", 50, 41.0, -73.0),
            address("person", 1, 40.0, -74.0),
        ],
        memberships=[(1, 50)],
    )
    refs = _refs(d, CurrentActor(person_id=1))
    assert reference_coordinates(refs) == [Coordinate(40.0, -74.0), Coordinate(41.0, -73.0)]
    assert [r.source for r in refs] == ["own", "group"]
    assert refs[1].group_id == 50


def test_duplicate_coordinates_are_collapsed():
    d = directory(
        persons=[person(1)],
        groups=[group(50)],
        contacts=[
            address("person", 1, 40.0, -74.0),
            address("person", 1, 40.0, -74.0),
            address("group", 50, 40.0, -74.0),
        ],
        memberships=[(1, 50)],
    )
    refs = _refs(d, CurrentActor(person_id=1))
    assert len(refs) == 1
    assert refs[0].source == "own"


def test_ungeocoded_deleted_and_non_address_records_are_skipped():
    d = directory(
        persons=[person(1)],
        contacts=[
            address("person", 1, None, None),
            address("person", 1, 40.0, None),
            address("person", 1, 40.1, -74.1, deleted=True),
            address("person", 1, 40.2, -74.2, type="EMAIL"),
        ],
    )
    assert _refs(d, CurrentActor(person_id=1)) == []


def test_private_addresses_only_count_for_admins():
    d = directory(
        persons=[person(1)],
        groups=[group(50)],
        contacts=[
            address("person", 1, 40.0, -74.0, privacy="PRIVATE"),
            address("group", 50, 41.0, -73.0, privacy="PRIVATE"),
        ],
        memberships=[(1, 50)],
    )
    assert _refs(d, CurrentActor(person_id=1, is_system_admin=False)) == []
    assert len(_refs(d, CurrentActor(person_id=1, is_system_admin=True))) == 2


def test_only_groups_the_caller_belongs_to_contribute():
    d = directory(
        persons=[person(1), person(2)],
        groups=[group(50), group(51)],
        contacts=[address("group", 50, 41.0, -73.0), address("group", 51, 42.0, -72.0)],
        memberships=[(1, 50), (2, 51)],
    )
    assert reference_coordinates(_refs(d, CurrentActor(person_id=1))) == [Coordinate(41.0, -73.0)]


def test_lookup_failure_for_one_owner_is_absorbed():
    class FlakyContacts:
        def address_contacts(self, owner_kind, owner_id):
            if owner_kind == "person":
                raise ConnectionError("contact store down")
            return [address("group", owner_id, 41.0, -73.0)]

    class Memberships:
        def group_ids_for_person(self, person_id):
            return [50]

    refs = build_reference_set(CurrentActor(person_id=1), contacts=FlakyContacts(), memberships=Memberships())
    assert reference_coordinates(refs) == [Coordinate(41.0, -73.0)]
