"""
Exception types shared across layers.

Only states the caller must react to are exceptions. "No active profile" and
"one record could not be read" are expressed through normal return values.
"""

from __future__ import annotations


class ProximityError(Exception):
    """Base class for proximity search failures that reach the HTTP layer."""


class ProximityCancelled(ProximityError):
    """The fan-out was cancelled or timed out before every reference point was scanned."""


class UpstreamUnavailable(ProximityError):
    """The directory store could not serve a read."""


class AuthenticationRequired(Exception):
    """No usable session was presented with the request."""


class GeocodingError(Exception):
    """An address could not be turned into coordinates."""


class GeocodingUnavailable(GeocodingError):
    """The geocoding service could not be reached."""
