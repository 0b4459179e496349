from __future__ import annotations

import pytest

from irlnearby.config.settings import ProximitySettings


@pytest.fixture
def proximity_settings() -> ProximitySettings:
    return ProximitySettings(
        default_radius_miles=1.0,
        max_results_per_kind=200,
        max_concurrent_scans=8,
        timeout_seconds=5.0,
    )
