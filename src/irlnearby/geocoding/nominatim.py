"""
Geocoding client (Nominatim / OpenStreetMap).

Address contact records are geocoded when they are created or edited; proximity search
only ever reads the stored coordinates. This module provides:
- `NominatimGeocoder.geocode()`: free-text address -> `Coordinate`
- `backfill_coordinates()`: fill in missing coordinates across a directory snapshot

Requests are paced to the Nominatim usage policy (one request per second by default).
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any

import httpx

from irlnearby.config.settings import GeocodingSettings, get_settings
from irlnearby.core.geo import Coordinate
from irlnearby.core.http import get_json
from irlnearby.core.rate_limit import MinIntervalRateLimiter
from irlnearby.directory.store import DirectorySnapshot
from irlnearby.errors import GeocodingError, GeocodingUnavailable

logger = logging.getLogger(__name__)

EMPTY_ADDRESS_MESSAGE = "Address cannot be empty"
NOT_FOUND_MESSAGE = "Could not geocode address - please verify the address is valid and complete"
INVALID_COORDINATES_MESSAGE = "Invalid coordinates returned from geocoding service"
UNAVAILABLE_MESSAGE = "Geocoding service temporarily unavailable - please try again later"


class NominatimGeocoder:
    """Turns address strings into coordinates via the Nominatim search API."""

    def __init__(self, settings: GeocodingSettings | None = None, *, limiter: MinIntervalRateLimiter | None = None):
        self._settings = settings or get_settings().geocoding
        self._limiter = limiter or MinIntervalRateLimiter(self._settings.min_interval_seconds)

    def _search(self, query: str) -> Any:
        params = {"q": query, "format": "json", "limit": 1, "addressdetails": 0}
        headers = {"User-Agent": self._settings.user_agent, "Referer": self._settings.referer}
        self._limiter.acquire()
        logger.info("Geocoding address (%d chars)", len(query))
        return get_json(
            self._settings.base_url,
            params=params,
            headers=headers,
            timeout_seconds=self._settings.timeout_seconds,
        )

    def geocode(self, address: str) -> Coordinate:
        """Geocode one address.

        Raises:
            GeocodingError: Empty address, no match, or a malformed answer.
            GeocodingUnavailable: The service could not be reached.
        """
        query = (address or "").strip()
        if not query:
            raise GeocodingError(EMPTY_ADDRESS_MESSAGE)

        try:
            results = self._search(query)
        except httpx.TransportError as e:
            raise GeocodingUnavailable(UNAVAILABLE_MESSAGE) from e
        except httpx.HTTPStatusError as e:
            if e.response.status_code in (429, 502, 503, 504):
                raise GeocodingUnavailable(UNAVAILABLE_MESSAGE) from e
            raise GeocodingError(f"Geocoding failed: {e}") from e
        except ValueError as e:
            raise GeocodingError(f"Geocoding failed: {e}") from e

        if not isinstance(results, list) or not results:
            raise GeocodingError(NOT_FOUND_MESSAGE)

        first = results[0] if isinstance(results[0], dict) else {}
        try:
            lat = float(first.get("lat"))
            lon = float(first.get("lon"))
        except (TypeError, ValueError) as e:
            raise GeocodingError(INVALID_COORDINATES_MESSAGE) from e
        if not (math.isfinite(lat) and math.isfinite(lon)):
            raise GeocodingError(INVALID_COORDINATES_MESSAGE)

        try:
            return Coordinate(latitude=lat, longitude=lon)
        except ValueError as e:
            raise GeocodingError(INVALID_COORDINATES_MESSAGE) from e


@dataclass
class BackfillReport:
    geocoded: int = 0
    skipped: int = 0
    failed: dict[int, str] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {"geocoded": self.geocoded, "skipped": self.skipped, "failed": dict(self.failed)}


def backfill_coordinates(
    snapshot: DirectorySnapshot,
    geocoder: NominatimGeocoder,
    *,
    force: bool = False,
) -> tuple[DirectorySnapshot, BackfillReport]:
    """Geocode ADDRESS records missing coordinates (all of them when `force`).

    Returns a new snapshot; the input is not mutated. Per-record failures are logged
    and reported, never raised, so one bad address does not stop the run.
    """
    report = BackfillReport()
    contacts = []
    for c in snapshot.contacts:
        if c.deleted or c.type != "ADDRESS" or (c.coordinate is not None and not force):
            if c.type == "ADDRESS" and not c.deleted:
                report.skipped += 1
            contacts.append(c)
            continue
        try:
            coord = geocoder.geocode(c.value)
        except GeocodingError as e:
            logger.warning("Geocoding failed for contact %s: %s", c.id, str(e))
            report.failed[c.id] = str(e)
            contacts.append(c)
            continue
        report.geocoded += 1
        contacts.append(c.model_copy(update={"latitude": coord.latitude, "longitude": coord.longitude}))

    return snapshot.model_copy(update={"contacts": contacts}), report
