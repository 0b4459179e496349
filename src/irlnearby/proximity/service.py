from __future__ import annotations

# This module is the orchestrator for proximity search.
# It wires together:
# - the reference set builder (where is the caller?)
# - the candidate scanner (who is near one reference point?)
# - aggregation + ranking (one row per entity, minimum distance, sorted)
#
# Scans for different reference points are independent, so they run on a bounded
# thread pool and are only merged once every one of them has finished. A cancelled or
# timed-out fan-out raises instead of returning partial results: a missing reference
# point would silently overstate distances.

import logging
import math
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Any, Callable

from irlnearby.config.settings import ProximitySettings, get_settings
from irlnearby.core.geo import Coordinate
from irlnearby.domain.models import CurrentActor, EntityKind, ProximityResponse
from irlnearby.errors import ProximityCancelled
from irlnearby.proximity.aggregate import aggregate, rank
from irlnearby.proximity.reference import build_reference_set, reference_coordinates
from irlnearby.proximity.scanner import ScanDirectory, ScanHit, scan

logger = logging.getLogger(__name__)

ENTITY_KINDS: tuple[EntityKind, ...] = ("person", "group")

# How often the fan-out loop wakes up to check the cancel event.
_POLL_SECONDS = 0.05

Scanner = Callable[..., list[ScanHit]]


def parse_radius(raw: Any, default: float = 1.0) -> float:
    """Parse a radius permissively: anything unusable falls back to `default`."""
    if raw is None or isinstance(raw, bool):
        return default
    try:
        value = float(str(raw).strip()) if isinstance(raw, str) else float(raw)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(value) or value <= 0:
        return default
    return value


class ProximityService:
    """Find persons and groups near the caller's reference locations."""

    def __init__(
        self,
        directory: ScanDirectory,
        *,
        settings: ProximitySettings | None = None,
        scanner: Scanner = scan,
    ):
        self._directory = directory
        self._settings = settings or get_settings().proximity
        self._scanner = scanner

    @property
    def settings(self) -> ProximitySettings:
        return self._settings

    def find_nearby(
        self,
        actor: CurrentActor,
        radius_miles: float | None = None,
        *,
        cancel_event: threading.Event | None = None,
        timeout_seconds: float | None = None,
    ) -> ProximityResponse:
        radius = parse_radius(radius_miles, self._settings.default_radius_miles)

        refs = build_reference_set(actor, contacts=self._directory, memberships=self._directory)
        if not refs:
            logger.debug("No reference locations for person=%s; skipping scan", actor.person_id)
            return ProximityResponse(persons=[], groups=[], reference_point_count=0)

        t0 = time.monotonic()
        per_kind = self._fan_out(
            actor,
            reference_coordinates(refs),
            radius,
            cancel_event=cancel_event,
            timeout_seconds=timeout_seconds if timeout_seconds is not None else self._settings.timeout_seconds,
        )

        limit = self._settings.max_results_per_kind
        persons = rank(aggregate(per_kind["person"]).values(), limit=limit)
        groups = rank(aggregate(per_kind["group"]).values(), limit=limit)

        logger.info(
            "Nearby search person=%s refs=%d radius=%.3f -> persons=%d groups=%d in %dms",
            actor.person_id,
            len(refs),
            radius,
            len(persons),
            len(groups),
            int((time.monotonic() - t0) * 1000),
        )
        return ProximityResponse(persons=persons, groups=groups, reference_point_count=len(refs))

    def _scan_one(
        self, kind: EntityKind, ref_point: Coordinate, radius: float, actor: CurrentActor
    ) -> list[ScanHit]:
        return self._scanner(
            kind,
            ref_point,
            radius,
            exclude_person_id=actor.person_id,
            viewer_is_admin=actor.is_system_admin,
            directory=self._directory,
        )

    def _fan_out(
        self,
        actor: CurrentActor,
        ref_points: list[Coordinate],
        radius: float,
        *,
        cancel_event: threading.Event | None,
        timeout_seconds: float,
    ) -> dict[EntityKind, list[list[ScanHit]]]:
        """Run one scan per (reference point, kind); raise ProximityCancelled on cancel/timeout."""
        if cancel_event is not None and cancel_event.is_set():
            raise ProximityCancelled("Nearby search was cancelled")

        tasks = [(kind, p) for p in ref_points for kind in ENTITY_KINDS]
        workers = max(1, min(int(self._settings.max_concurrent_scans), len(tasks)))
        deadline = time.monotonic() + float(timeout_seconds)
        results: dict[EntityKind, list[list[ScanHit]]] = {kind: [] for kind in ENTITY_KINDS}

        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="proximity-scan")
        try:
            futures: dict[Future, tuple[EntityKind, Coordinate]] = {
                executor.submit(self._scan_one, kind, p, radius, actor): (kind, p) for kind, p in tasks
            }
            pending = set(futures)
            while pending:
                if cancel_event is not None and cancel_event.is_set():
                    raise ProximityCancelled("Nearby search was cancelled")
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise ProximityCancelled(f"Nearby search timed out after {timeout_seconds:g}s")
                done, pending = wait(pending, timeout=min(remaining, _POLL_SECONDS), return_when=FIRST_COMPLETED)
                for f in done:
                    kind, point = futures[f]
                    try:
                        hits = f.result()
                    except Exception:
                        logger.exception(
                            "%s scan failed for person=%s at (%.5f, %.5f)",
                            kind,
                            actor.person_id,
                            point.latitude,
                            point.longitude,
                        )
                        raise
                    results[kind].append(hits)
        except ProximityCancelled:
            logger.warning("Nearby search for person=%s abandoned mid fan-out", actor.person_id)
            raise
        finally:
            # Abandon outstanding scans; running ones finish in the background and are discarded.
            executor.shutdown(wait=False, cancel_futures=True)
        return results
