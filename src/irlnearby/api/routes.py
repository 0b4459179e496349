"""
API routes.

Endpoints:
- GET `/api/nearby?radius=<miles>`: persons and groups near the caller's addresses.
- GET `/api/health`: liveness check.

Every response uses the `{success, data | error}` envelope the front end expects.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse

from irlnearby.config.settings import get_settings
from irlnearby.directory.store import Directory, InMemoryDirectory
from irlnearby.domain.models import ApiEnvelope, CurrentActor
from irlnearby.errors import AuthenticationRequired, ProximityCancelled
from irlnearby.proximity.service import ProximityService, parse_radius

logger = logging.getLogger(__name__)

router = APIRouter()


@lru_cache
def _directory() -> Directory:
    settings = get_settings()
    return InMemoryDirectory.from_path(settings.directory.snapshot_path)


def _service() -> ProximityService:
    return ProximityService(_directory(), settings=get_settings().proximity)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ApiEnvelope(success=False, error=message).to_payload())


def _parse_id(raw: str | None) -> int | None:
    if raw is None or not raw.strip():
        return None
    return int(raw.strip())


def get_current_actor(
    x_user_id: str | None = Header(default=None),
    x_current_person_id: str | None = Header(default=None),
) -> CurrentActor:
    """Resolve the session headers into a `CurrentActor`.

    A missing or unknown user is an authentication failure. A missing, unknown, deleted
    or foreign current person is not: the actor just has no active profile.
    """
    try:
        user_id = _parse_id(x_user_id)
    except ValueError as e:
        raise AuthenticationRequired("Malformed session") from e
    if user_id is None:
        raise AuthenticationRequired("Authentication required")

    directory = _directory()
    user = directory.get_user(user_id)
    if user is None:
        raise AuthenticationRequired("Authentication required")

    try:
        person_id = _parse_id(x_current_person_id)
    except ValueError:
        person_id = None
    if person_id is not None:
        person = directory.get_person(person_id)
        if person is None or person.deleted or (person.user_id != user.id and not user.is_system_admin):
            person_id = None

    return CurrentActor(person_id=person_id, is_system_admin=user.is_system_admin)


@router.get("/api/health")
def get_health() -> dict:
    return ApiEnvelope(success=True, data={"status": "ok"}).to_payload()


@router.get("/api/nearby")
def get_nearby(radius: str | None = None, actor: CurrentActor = Depends(get_current_actor)):
    """Find persons and groups within `radius` miles (default 1) of the caller."""
    service = _service()
    radius_miles = parse_radius(radius, service.settings.default_radius_miles)
    try:
        result = service.find_nearby(actor, radius_miles)
    except ProximityCancelled as e:
        return _error(503, str(e))
    except Exception:
        logger.exception("Nearby search failed for person=%s", actor.person_id)
        return _error(500, "Internal server error")
    return ApiEnvelope(success=True, data=result.model_dump(mode="json", by_alias=True)).to_payload()
