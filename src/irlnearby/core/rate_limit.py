"""
In-process request pacing.

Public geocoders (Nominatim in particular) allow one request per second per client.
The limiter is shared by every caller in the process, so it is guarded by a lock.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field


@dataclass
class MinIntervalRateLimiter:
    """Block until at least `min_interval_seconds` passed since the previous acquire."""

    min_interval_seconds: float
    _last: float | None = field(default=None, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def __post_init__(self) -> None:
        if float(self.min_interval_seconds) < 0:
            raise ValueError("min_interval_seconds must be >= 0")

    def acquire(self) -> float:
        """Wait for the next slot; returns the seconds spent sleeping."""
        with self._lock:
            now = time.monotonic()
            waited = 0.0
            if self._last is not None:
                remaining = float(self.min_interval_seconds) - (now - self._last)
                if remaining > 0:
                    time.sleep(remaining)
                    waited = remaining
            self._last = time.monotonic()
            return waited
