"""Rise and set times of the Sun and Moon by altitude scan and bisection."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from typing import Protocol, runtime_checkable

from ..core.angles import asin_d, atan2_d, cos_d, sin_d, tan_d
from ..core.bodies import Body
from ..core.time import Instant
from ..ephemeris.earth import apparent_sidereal_time, true_obliquity
from ..ephemeris.models import GeoLocation
from ..ephemeris.sources import PositionSource

__all__ = [
    "MOON_STANDARD_ALTITUDE",
    "SUN_STANDARD_ALTITUDE",
    "AltitudeRiseSetCalculator",
    "RiseSet",
    "RiseSetCalculator",
    "local_midnight",
]

SUN_STANDARD_ALTITUDE = -0.8333
"""Refraction plus semi-diameter for the solar upper limb."""

MOON_STANDARD_ALTITUDE = 0.125
"""Mean horizontal parallax less refraction and semi-diameter for the Moon."""

_MAX_BISECTIONS = 40

_STANDARD_ALTITUDES = {
    Body.SUN: SUN_STANDARD_ALTITUDE,
    Body.MOON: MOON_STANDARD_ALTITUDE,
}


@dataclass(frozen=True)
class RiseSet:
    """Rise and set instants (UTC) inside one civil day; ``None`` when absent."""

    rise: datetime | None
    set: datetime | None


@runtime_checkable
class RiseSetCalculator(Protocol):
    """Resolves the rise and set of ``body`` during the local civil ``day``."""

    def rise_set(
        self,
        body: Body,
        day: date,
        location: GeoLocation,
        utc_offset: timedelta,
    ) -> RiseSet: ...


def local_midnight(day: date, utc_offset: timedelta) -> datetime:
    """UTC instant of the local midnight that opens ``day``."""

    return datetime.combine(day, time(0, 0), tzinfo=UTC) - utc_offset


@dataclass(frozen=True)
class _Crossing:
    """A scan step over which the height above the standard altitude changes sign."""

    rising: bool
    before: datetime
    after: datetime


def _horizon_crossings(
    height: Callable[[datetime], float],
    start: datetime,
    end: datetime,
    step: timedelta,
) -> Iterator[_Crossing]:
    """Walk ``[start, end)`` in ``step`` increments, yielding each crossing once.

    A sample exactly on the altitude counts as above it, so a body that
    touches the horizon at a sample yields a single crossing.
    """

    moment = start
    above = height(moment) >= 0.0
    while moment < end:
        following = min(moment + step, end)
        now_above = height(following) >= 0.0
        if now_above != above:
            yield _Crossing(rising=now_above, before=moment, after=following)
        moment, above = following, now_above


def _bisect_crossing(
    height: Callable[[datetime], float],
    crossing: _Crossing,
    tolerance_seconds: float,
) -> datetime:
    if crossing.rising:
        below, above = crossing.before, crossing.after
    else:
        below, above = crossing.after, crossing.before
    for _ in range(_MAX_BISECTIONS):
        if abs((above - below).total_seconds()) <= tolerance_seconds:
            break
        middle = below + (above - below) / 2
        if height(middle) >= 0.0:
            above = middle
        else:
            below = middle
    return below + (above - below) / 2


class AltitudeRiseSetCalculator:
    """Default :class:`RiseSetCalculator` built on any position source.

    Altitudes are geocentric; the standard altitudes absorb refraction,
    semi-diameter and (for the Moon) mean parallax.
    """

    def __init__(
        self,
        source: PositionSource,
        *,
        step: timedelta = timedelta(minutes=30),
        tolerance_seconds: float = 1.0,
    ) -> None:
        self.source = source
        self.step = step
        self.tolerance_seconds = tolerance_seconds

    def altitude(self, body: Body, moment: datetime, location: GeoLocation) -> float:
        instant = Instant.from_datetime(moment)
        position = self.source.position(body, instant)
        eps = true_obliquity(instant.centuries_tt)
        lon, lat = position.longitude, position.latitude
        ra = atan2_d(sin_d(lon) * cos_d(eps) - tan_d(lat) * sin_d(eps), cos_d(lon))
        dec = asin_d(sin_d(lat) * cos_d(eps) + cos_d(lat) * sin_d(eps) * sin_d(lon))
        lst = apparent_sidereal_time(instant.jd_ut, instant.jd_tt, location.longitude)
        hour_angle = lst - ra
        phi = location.latitude
        return asin_d(sin_d(phi) * sin_d(dec) + cos_d(phi) * cos_d(dec) * cos_d(hour_angle))

    def rise_set(
        self,
        body: Body,
        day: date,
        location: GeoLocation,
        utc_offset: timedelta,
    ) -> RiseSet:
        target = _STANDARD_ALTITUDES.get(body, 0.0)
        start = local_midnight(day, utc_offset)
        end = start + timedelta(days=1)

        def height(moment: datetime) -> float:
            return self.altitude(body, moment, location) - target

        found: dict[bool, datetime] = {}
        for crossing in _horizon_crossings(height, start, end, self.step):
            if crossing.rising not in found:
                found[crossing.rising] = _bisect_crossing(
                    height, crossing, self.tolerance_seconds
                )
            if len(found) == 2:
                break
        return RiseSet(rise=found.get(True), set=found.get(False))
