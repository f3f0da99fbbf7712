from __future__ import annotations

import pytest

from jyotishengine.core.time import J2000
from jyotishengine.ephemeris.earth import (
    apparent_sidereal_time,
    mean_obliquity,
    mean_sidereal_time,
    nutation,
    true_obliquity,
)

# 1987 April 10.0 TD
APRIL_1987 = (2446895.5 - J2000) / 36525.0


def test_nutation_and_obliquity_reference_values() -> None:
    dpsi, deps = nutation(APRIL_1987)
    assert dpsi * 3600.0 == pytest.approx(-3.788, abs=0.01)
    assert deps * 3600.0 == pytest.approx(9.443, abs=0.01)
    assert mean_obliquity(APRIL_1987) == pytest.approx(23.0 + 26 / 60 + 27.407 / 3600, abs=1e-5)
    assert true_obliquity(APRIL_1987) == pytest.approx(23.0 + 26 / 60 + 36.850 / 3600, abs=1e-5)


def test_sidereal_time_reference_values() -> None:
    # 1987 April 10, 0h UT
    assert mean_sidereal_time(2446895.5) == pytest.approx(197.693195, abs=1e-5)
    apparent = apparent_sidereal_time(2446895.5, 2446895.5)
    assert (apparent - mean_sidereal_time(2446895.5)) * 240.0 == pytest.approx(-0.2317, abs=0.001)
    assert apparent_sidereal_time(2446895.5, 2446895.5, 90.0) == pytest.approx(apparent + 90.0)
