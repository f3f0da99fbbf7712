"""Rashi, nakshatra and pada classification of sidereal longitudes.

Segments are closed-open intervals: a longitude lying exactly on a
boundary belongs to the higher-index segment.  Boundaries are computed as
``k * arc`` with ``arc = 360 / n``, so a tolerance of 1e-9 of a segment
(about 3e-8 degrees for a rashi) absorbs the rounding of that product.  Inputs must already be
normalised to ``[0, 360)``; anything else is a validation error rather
than being wrapped silently.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from ..core.bodies import Body
from ..errors import ValidationError
from .data import (
    NAKSHATRA_ARC_DEGREES,
    NAKSHATRA_DATA,
    NAKSHATRA_LORD_SEQUENCE,
    PADA_ARC_DEGREES,
    RASHI_DATA,
    SIGN_ARC_DEGREES,
    SIGN_LORDS,
)

__all__ = [
    "Classification",
    "NakshatraClass",
    "PadaClass",
    "RashiClass",
    "classify",
    "nakshatra_class",
    "rashi_class",
    "segment_index",
]

# Absorbs float noise from boundaries built as k * (360 / 27).
_BOUNDARY_EPSILON = 1e-9


def segment_index(value: float, arc: float, count: int) -> int:
    """Zero-based index of the closed-open segment of width ``arc`` holding ``value``."""

    return min(int(math.floor(value / arc + _BOUNDARY_EPSILON)), count - 1)


@dataclass(frozen=True)
class RashiClass:
    number: int
    name: str
    sanskrit: str
    symbol: str
    element: str
    quality: str
    lord: Body

    @property
    def start(self) -> float:
        return SIGN_ARC_DEGREES * (self.number - 1)


@dataclass(frozen=True)
class NakshatraClass:
    number: int
    name: str
    symbol: str
    deity: str
    lord: Body

    @property
    def start(self) -> float:
        return NAKSHATRA_ARC_DEGREES * (self.number - 1)


@dataclass(frozen=True)
class PadaClass:
    number: int
    nakshatra: int
    degree_in_pada: float


@dataclass(frozen=True)
class Classification:
    """Result of :func:`classify` for one sidereal longitude."""

    longitude: float
    rashi: RashiClass
    nakshatra: NakshatraClass
    pada: PadaClass

    @property
    def nakshatra_fraction(self) -> float:
        """Fraction of the nakshatra already traversed, in ``[0, 1)``."""

        offset = self.longitude - self.nakshatra.start
        return min(max(offset / NAKSHATRA_ARC_DEGREES, 0.0), math.nextafter(1.0, 0.0))


_RASHIS = tuple(
    RashiClass(idx + 1, name, sanskrit, symbol, element, quality, SIGN_LORDS[idx])
    for idx, (name, sanskrit, symbol, element, quality) in enumerate(RASHI_DATA)
)

_NAKSHATRAS = tuple(
    NakshatraClass(idx + 1, name, symbol, deity, NAKSHATRA_LORD_SEQUENCE[idx % 9])
    for idx, (name, symbol, deity) in enumerate(NAKSHATRA_DATA)
)


def rashi_class(number: int) -> RashiClass:
    if not 1 <= number <= 12:
        raise ValidationError("rashi number must be 1-12", context={"rashi": number})
    return _RASHIS[number - 1]


def nakshatra_class(number: int) -> NakshatraClass:
    if not 1 <= number <= 27:
        raise ValidationError("nakshatra number must be 1-27", context={"nakshatra": number})
    return _NAKSHATRAS[number - 1]


def _validate(longitude: float) -> float:
    try:
        value = float(longitude)
    except (TypeError, ValueError) as exc:
        raise ValidationError(
            "longitude must be numeric", context={"longitude": repr(longitude)}
        ) from exc
    if not math.isfinite(value) or not 0.0 <= value < 360.0:
        raise ValidationError(
            "sidereal longitude must lie in [0, 360)", context={"longitude": value}
        )
    return value


def classify(sidereal_longitude: float) -> Classification:
    """Return the rashi, nakshatra and pada containing ``sidereal_longitude``."""

    lon = _validate(sidereal_longitude)
    sign_idx = segment_index(lon, SIGN_ARC_DEGREES, 12)
    quarter_idx = segment_index(lon, PADA_ARC_DEGREES, 108)
    nak_idx, pada_idx = divmod(quarter_idx, 4)
    degree_in_pada = max(lon - quarter_idx * PADA_ARC_DEGREES, 0.0)
    return Classification(
        longitude=lon,
        rashi=_RASHIS[sign_idx],
        nakshatra=_NAKSHATRAS[nak_idx],
        pada=PadaClass(number=pada_idx + 1, nakshatra=nak_idx + 1, degree_in_pada=degree_in_pada),
    )
