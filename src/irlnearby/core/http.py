"""
Outbound HTTP.

The geocoder is the only outbound caller. Tests stub `get_json` at its import site.
"""

from __future__ import annotations

from typing import Any

import httpx

DEFAULT_USER_AGENT = "irlnearby/0.1.0"


def get_json(
    url: str,
    *,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    timeout_seconds: float = 15,
) -> Any:
    """GET `url` and decode the JSON body.

    Caller headers override the defaults. Raises `httpx.HTTPStatusError` on non-2xx,
    `httpx.TransportError` when the service cannot be reached and `ValueError` when the
    body is not JSON.
    """
    merged = {"User-Agent": DEFAULT_USER_AGENT, "Accept": "application/json", **(headers or {})}
    resp = httpx.get(url, params=params, headers=merged, timeout=timeout_seconds, follow_redirects=True)
    resp.raise_for_status()
    try:
        return resp.json()
    except ValueError as e:
        raise ValueError(f"Non-JSON response from {resp.url}") from e
