"""
Domain models (Pydantic).

These types are the contract between the directory store, the proximity engine and
the HTTP layer:
- directory records (`Person`, `Group`, `GeoContact`, `User`, `Membership`)
- public projections returned to clients (`PersonPublic`, `GroupPublic`)
- proximity output (`ProximityResult`, `ProximityResponse`) and the API envelope

Wire format is camelCase (`distanceMiles`, `referencePointCount`) to match the front
end; Python code uses snake_case names. Both spellings are accepted on input.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, Generic, Literal, TypeVar

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from irlnearby.core.geo import Coordinate

ContactType = Literal["EMAIL", "PHONE", "ADDRESS", "URL"]
PrivacyLevel = Literal["PUBLIC", "PRIVATE"]
EntityKind = Literal["person", "group"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _as_utc(value: datetime) -> datetime:
    # Exports mix "2025-01-01T00:00:00" and "...Z"; naive timestamps are UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]


class GeoContact(CamelModel):
    """A contact record owned by exactly one person or group.

    Only `ADDRESS` records take part in proximity search, and only once the geocoder
    has filled in both coordinates.
    """

    id: int
    owner_kind: EntityKind
    owner_id: int
    type: ContactType = "ADDRESS"
    label: str = ""
    value: str = ""
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    privacy: PrivacyLevel = "PRIVATE"
    deleted: bool = False

    @property
    def coordinate(self) -> Coordinate | None:
        if self.latitude is None or self.longitude is None:
            return None
        return Coordinate(latitude=self.latitude, longitude=self.longitude)

    def visible_to(self, *, viewer_is_admin: bool) -> bool:
        return viewer_is_admin or self.privacy == "PUBLIC"


class PersonPublic(CamelModel):
    id: int
    first_name: str
    last_name: str
    display_id: str
    pronouns: str | None = None
    image_url: str | None = Field(default=None, alias="imageURL")
    user_id: int
    created_at: UtcDatetime
    updated_at: UtcDatetime


class Person(PersonPublic):
    deleted: bool = False

    def public(self) -> PersonPublic:
        return PersonPublic.model_validate(self.model_dump(exclude={"deleted"}))


class GroupPublic(CamelModel):
    id: int
    display_id: str
    name: str
    description: str | None = None
    parent_group_id: int | None = None
    allows_any_user_to_create_subgroup: bool = False
    publicly_visible: bool = True
    created_at: UtcDatetime
    updated_at: UtcDatetime


class Group(GroupPublic):
    deleted: bool = False

    def public(self) -> GroupPublic:
        return GroupPublic.model_validate(self.model_dump(exclude={"deleted"}))


class User(CamelModel):
    id: int
    email: str
    is_system_admin: bool = False


class Membership(CamelModel):
    person_id: int
    group_id: int
    role: str = "MEMBER"


class CurrentActor(CamelModel):
    """Who is asking: the selected person (if any) and whether the user is a system admin."""

    model_config = ConfigDict(frozen=True)

    person_id: int | None = None
    is_system_admin: bool = False


T = TypeVar("T")


class ProximityResult(CamelModel, Generic[T]):
    entity: T
    distance_miles: float = Field(..., ge=0)


class ProximityResponse(CamelModel):
    """Nearby persons and groups, plus how many reference points drove the search.

    `reference_point_count == 0` means the caller has no usable location at all, which
    the UI shows differently from "nothing within the radius".
    """

    persons: list[ProximityResult[PersonPublic]] = Field(default_factory=list)
    groups: list[ProximityResult[GroupPublic]] = Field(default_factory=list)
    reference_point_count: int = Field(0, ge=0)


class ApiEnvelope(CamelModel):
    success: bool
    data: Any | None = None
    error: str | None = None

    def to_payload(self) -> dict[str, Any]:
        keep = {"success", "data"} if self.success else {"success", "error"}
        return self.model_dump(mode="json", by_alias=True, include=keep)
