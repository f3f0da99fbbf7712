"""Earth orientation: obliquity, nutation and sidereal time.

Obliquity and nutation come from ``pymeeus.Coordinates`` (IAU 1980
nutation series); arguments stay in Julian centuries of TT from J2000.
"""

from __future__ import annotations

from pymeeus.Coordinates import (
    mean_obliquity as _mean_obliquity,
    nutation_longitude,
    nutation_obliquity,
    true_obliquity as _true_obliquity,
)
from pymeeus.Epoch import Epoch

from ..core.angles import cos_d, normalize_degrees
from ..core.time import J2000

__all__ = [
    "apparent_sidereal_time",
    "mean_obliquity",
    "mean_sidereal_time",
    "nutation",
    "true_obliquity",
]


def _epoch(t: float) -> Epoch:
    return Epoch(J2000 + t * 36525.0)


def mean_obliquity(t: float) -> float:
    """Mean obliquity of the ecliptic in degrees for Julian centuries ``t`` (TT)."""

    return float(_mean_obliquity(_epoch(t)))


def nutation(t: float) -> tuple[float, float]:
    """Return ``(Δψ, Δε)`` in degrees."""

    epoch = _epoch(t)
    return float(nutation_longitude(epoch)), float(nutation_obliquity(epoch))


def true_obliquity(t: float) -> float:
    return float(_true_obliquity(_epoch(t)))


def mean_sidereal_time(jd_ut: float) -> float:
    """Greenwich mean sidereal time in degrees."""

    t = (jd_ut - J2000) / 36525.0
    gmst = (
        280.46061837
        + 360.98564736629 * (jd_ut - J2000)
        + 0.000387933 * t * t
        - t * t * t / 38710000.0
    )
    return normalize_degrees(gmst)


def apparent_sidereal_time(jd_ut: float, jd_tt: float, east_longitude: float = 0.0) -> float:
    """Local apparent sidereal time (ARMC) in degrees."""

    t = (jd_tt - J2000) / 36525.0
    dpsi, _ = nutation(t)
    equation_of_equinoxes = dpsi * cos_d(true_obliquity(t))
    return normalize_degrees(mean_sidereal_time(jd_ut) + equation_of_equinoxes + east_longitude)
