"""
Directory store.

The proximity engine never talks to a database directly. It reads through a handful
of narrow collaborator interfaces (protocols below), which keeps it testable with
plain stub classes.

`InMemoryDirectory` implements all of them over a `DirectorySnapshot`: a JSON export
of users, persons, groups, contact records and group memberships, validated into
typed Pydantic models on load.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, Field

from irlnearby.core.env import resolve_project_path
from irlnearby.domain.models import EntityKind, GeoContact, Group, Membership, Person, User
from irlnearby.errors import UpstreamUnavailable


class AddressContactLookup(Protocol):
    def address_contacts(self, owner_kind: EntityKind, owner_id: int) -> list[GeoContact]:
        """Return the non-deleted ADDRESS records of one owner (coordinates may be null)."""
        ...


class GroupMembership(Protocol):
    def group_ids_for_person(self, person_id: int) -> list[int]:
        ...


class CandidateSource(Protocol):
    def list_persons(self) -> list[Person]:
        """Return every non-deleted person."""
        ...

    def list_groups(self) -> list[Group]:
        """Return every non-deleted group."""
        ...


class SessionDirectory(Protocol):
    def get_user(self, user_id: int) -> User | None:
        ...

    def get_person(self, person_id: int) -> Person | None:
        ...


class Directory(AddressContactLookup, GroupMembership, CandidateSource, SessionDirectory, Protocol):
    """Everything the proximity service and the API session layer read."""


class DirectorySnapshot(BaseModel):
    users: list[User] = Field(default_factory=list)
    persons: list[Person] = Field(default_factory=list)
    groups: list[Group] = Field(default_factory=list)
    contacts: list[GeoContact] = Field(default_factory=list)
    memberships: list[Membership] = Field(default_factory=list)


def load_snapshot(path: str | Path) -> DirectorySnapshot:
    """Load and validate a directory snapshot JSON file."""
    resolved = resolve_project_path(path)
    payload = json.loads(resolved.read_text(encoding="utf-8"))
    return DirectorySnapshot.model_validate(payload)


def save_snapshot(snapshot: DirectorySnapshot, path: str | Path) -> Path:
    """Write a snapshot atomically (temp file + rename); returns the resolved path."""
    resolved = resolve_project_path(path)
    resolved.parent.mkdir(parents=True, exist_ok=True)
    tmp = resolved.with_suffix(resolved.suffix + ".tmp")
    tmp.write_text(
        json.dumps(snapshot.model_dump(mode="json", by_alias=True), ensure_ascii=False, indent=2),
        encoding="utf-8",
    )
    tmp.replace(resolved)
    return resolved


class InMemoryDirectory:
    """Read-only, indexed view over a snapshot. Safe for concurrent reads."""

    def __init__(self, snapshot: DirectorySnapshot):
        self._snapshot = snapshot
        self._users = {u.id: u for u in snapshot.users}
        self._persons = {p.id: p for p in snapshot.persons}
        self._groups = {g.id: g for g in snapshot.groups}

        self._addresses: dict[tuple[str, int], list[GeoContact]] = {}
        for c in snapshot.contacts:
            if c.deleted or c.type != "ADDRESS":
                continue
            self._addresses.setdefault((c.owner_kind, c.owner_id), []).append(c)

        self._groups_by_person: dict[int, list[int]] = {}
        for m in snapshot.memberships:
            groups = self._groups_by_person.setdefault(m.person_id, [])
            if m.group_id not in groups:
                groups.append(m.group_id)

    @classmethod
    def from_path(cls, path: str | Path) -> "InMemoryDirectory":
        """Load a snapshot file; a missing or invalid file raises UpstreamUnavailable."""
        try:
            snapshot = load_snapshot(path)
        except (OSError, ValueError) as e:
            raise UpstreamUnavailable(f"Directory snapshot could not be read: {path}") from e
        return cls(snapshot)

    @property
    def snapshot(self) -> DirectorySnapshot:
        return self._snapshot

    def address_contacts(self, owner_kind: EntityKind, owner_id: int) -> list[GeoContact]:
        return list(self._addresses.get((owner_kind, int(owner_id)), []))

    def group_ids_for_person(self, person_id: int) -> list[int]:
        return list(self._groups_by_person.get(int(person_id), []))

    def list_persons(self) -> list[Person]:
        return [p for p in self._persons.values() if not p.deleted]

    def list_groups(self) -> list[Group]:
        return [g for g in self._groups.values() if not g.deleted]

    def get_user(self, user_id: int) -> User | None:
        return self._users.get(int(user_id))

    def get_person(self, person_id: int) -> Person | None:
        return self._persons.get(int(person_id))
