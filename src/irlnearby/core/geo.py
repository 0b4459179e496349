from __future__ import annotations
from dataclasses import dataclass
from math import asin, cos, degrees, radians, sin, sqrt

"""
Geospatial helpers.

Everything proximity search needs from geometry lives here: a coordinate value type,
great-circle distance in statute miles, and a degree bounding box used to skip
addresses that cannot possibly fall inside a search radius.
"""

EARTH_RADIUS_MILES = 3959.0


@dataclass(frozen=True)
class Coordinate:
    """A latitude/longitude pair in decimal degrees."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not -90.0 <= float(self.latitude) <= 90.0:
            raise ValueError(f"latitude out of range: {self.latitude}")
        if not -180.0 <= float(self.longitude) <= 180.0:
            raise ValueError(f"longitude out of range: {self.longitude}")


def haversine_miles(a: Coordinate, b: Coordinate) -> float:
    """Compute great-circle distance in miles between two points."""
    lat1 = radians(a.latitude)
    lon1 = radians(a.longitude)
    lat2 = radians(b.latitude)
    lon2 = radians(b.longitude)

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    # Floating-point overshoot near antipodes can push h slightly past 1.
    h = min(1.0, max(0.0, h))
    return 2 * EARTH_RADIUS_MILES * asin(min(1.0, sqrt(h)))


@dataclass(frozen=True)
class BoundingBox:
    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    def contains(self, point: Coordinate) -> bool:
        if not self.min_lat <= point.latitude <= self.max_lat:
            return False
        return self.min_lon <= point.longitude <= self.max_lon


def bounding_box(center: Coordinate, radius_miles: float) -> BoundingBox:
    """Return a lat/lon box containing every point within `radius_miles` of `center`.

    The box is conservative: it may include points outside the radius, never exclude
    points inside it. Callers still need the exact haversine check.
    """
    r = max(0.0, float(radius_miles))
    dlat = degrees(r / EARTH_RADIUS_MILES)
    min_lat = center.latitude - dlat
    max_lat = center.latitude + dlat

    # Box touches a pole or spans half the globe: every longitude qualifies.
    if min_lat <= -90.0 or max_lat >= 90.0 or r >= EARTH_RADIUS_MILES:
        return BoundingBox(max(-90.0, min_lat), min(90.0, max_lat), -180.0, 180.0)

    # Widest longitude span happens at the box edge closest to a pole.
    ratio = sin(r / EARTH_RADIUS_MILES) / cos(radians(center.latitude))
    if ratio >= 1.0:
        return BoundingBox(min_lat, max_lat, -180.0, 180.0)
    dlon = degrees(asin(ratio))
    min_lon = center.longitude - dlon
    max_lon = center.longitude + dlon

    # Antimeridian wrap: fall back to a full longitude band rather than split the box.
    if min_lon < -180.0 or max_lon > 180.0:
        return BoundingBox(min_lat, max_lat, -180.0, 180.0)
    return BoundingBox(min_lat, max_lat, min_lon, max_lon)
