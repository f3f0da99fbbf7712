from __future__ import annotations

from datetime import UTC, datetime

import pytest

from jyotishengine.config import AstrologyConfig
from jyotishengine.ephemeris.analytic import AnalyticPositionSource

from .stubs import FixedRiseSet, LinearSky

J2000_NOON = datetime(2000, 1, 1, 12, 0, tzinfo=UTC)
DELHI = (28.6139, 77.2090)


@pytest.fixture
def analytic() -> AnalyticPositionSource:
    return AnalyticPositionSource()


@pytest.fixture
def linear_sky() -> LinearSky:
    return LinearSky()


@pytest.fixture
def fixed_rise_set() -> FixedRiseSet:
    return FixedRiseSet()


@pytest.fixture
def fallback_config() -> AstrologyConfig:
    """Configuration that never touches a native ephemeris."""

    return AstrologyConfig(precision="fallback", native_source_enabled=False)
