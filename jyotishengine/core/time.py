"""Time conversion helpers used across jyotishengine.

Every calculation keys off an :class:`Instant`, a UTC timestamp whose
Julian day numbers (UT and TT) are derived exactly once at construction
and then reused by the position, house and calendar layers.  ΔT comes
from a polynomial approximation which is well within a few seconds for
the 1900–2100 interval; analytic positions are far less sensitive than
that.
"""

from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass, field
from typing import Final

from ..errors import ValidationError

__all__ = [
    "J2000",
    "SECONDS_PER_DAY",
    "Instant",
    "delta_t_seconds",
    "ensure_utc",
    "from_julian_day",
    "julian_centuries",
    "julian_day",
]


SECONDS_PER_DAY: Final[float] = 86_400.0
J2000: Final[float] = 2_451_545.0
_JD_UNIX_EPOCH: Final[float] = 2_440_587.5


def ensure_utc(moment: _dt.datetime) -> _dt.datetime:
    """Return ``moment`` converted to UTC (naive values are taken as UTC)."""

    tzinfo = moment.tzinfo
    if tzinfo is None:
        return moment.replace(tzinfo=_dt.UTC)
    return moment.astimezone(_dt.UTC)


def julian_day(moment: _dt.datetime) -> float:
    """Return the Julian day for a UTC ``moment``."""

    moment = ensure_utc(moment)
    year = moment.year
    month = moment.month
    day = moment.day
    frac = (
        moment.hour + moment.minute / 60.0 + (moment.second + moment.microsecond / 1e6) / 3600.0
    ) / 24.0

    if month <= 2:
        year -= 1
        month += 12

    a = year // 100
    b = 2 - a + (a // 4)
    jd = int(365.25 * (year + 4716)) + int(30.6001 * (month + 1)) + day + b - 1524.5
    return jd + frac


def from_julian_day(jd_ut: float) -> _dt.datetime:
    """Return the UTC ``datetime`` for a Julian day (microsecond resolution)."""

    seconds = (jd_ut - _JD_UNIX_EPOCH) * SECONDS_PER_DAY
    epoch = _dt.datetime(1970, 1, 1, tzinfo=_dt.UTC)
    return epoch + _dt.timedelta(microseconds=round(seconds * 1e6))


def delta_t_seconds(year: float) -> float:
    """Polynomial approximation of ΔT (TT − UT) in seconds."""

    if 2005 <= year <= 2050:
        t = year - 2000.0
        return 62.92 + 0.32217 * t + 0.005589 * t * t
    if 1986 <= year < 2005:
        t = year - 2000.0
        return (
            63.86
            + 0.3345 * t
            - 0.060374 * t**2
            + 0.0017275 * t**3
            + 0.000651814 * t**4
            + 0.00002373599 * t**5
        )
    if 1961 <= year < 1986:
        t = year - 1975.0
        return 45.45 + 1.067 * t - t**2 / 260.0 - t**3 / 718.0
    if 1941 <= year < 1961:
        t = year - 1950.0
        return 29.07 + 0.407 * t - t**2 / 233.0 + t**3 / 2547.0
    if 1920 <= year < 1941:
        t = year - 1920.0
        return 21.20 + 0.84493 * t - 0.076100 * t**2 + 0.0020936 * t**3
    if 1900 <= year < 1920:
        t = year - 1900.0
        return -2.79 + 1.494119 * t - 0.0598939 * t**2 + 0.0061966 * t**3 - 0.000197 * t**4

    t = (year - 1820.0) / 100.0
    return 32.0 * (t * t) - 20.0


def julian_centuries(jd: float) -> float:
    """Return Julian centuries elapsed since J2000.0 for ``jd``."""

    return (jd - J2000) / 36525.0


@dataclass(frozen=True)
class Instant:
    """UTC timestamp with its Julian day numbers computed once.

    Construct via :meth:`from_datetime` or :meth:`from_jd`; the derived
    ``jd_ut`` / ``jd_tt`` fields are hashable and drive memoisation keys.
    """

    utc: _dt.datetime
    jd_ut: float = field(compare=False)
    jd_tt: float = field(compare=False)
    delta_t: float = field(compare=False, repr=False)

    @classmethod
    def from_datetime(cls, moment: _dt.datetime) -> Instant:
        if not isinstance(moment, _dt.datetime):
            raise ValidationError(
                "instant must be a datetime", context={"value": repr(moment)}
            )
        utc = ensure_utc(moment)
        jd_ut = julian_day(utc)
        year = utc.year + (utc.timetuple().tm_yday - 0.5) / 365.25
        dt_seconds = delta_t_seconds(year)
        return cls(
            utc=utc,
            jd_ut=jd_ut,
            jd_tt=jd_ut + dt_seconds / SECONDS_PER_DAY,
            delta_t=dt_seconds,
        )

    @classmethod
    def from_jd(cls, jd_ut: float) -> Instant:
        return cls.from_datetime(from_julian_day(jd_ut))

    @classmethod
    def coerce(cls, value: Instant | _dt.datetime) -> Instant:
        if isinstance(value, Instant):
            return value
        return cls.from_datetime(value)

    @property
    def centuries_tt(self) -> float:
        return julian_centuries(self.jd_tt)

    def shifted(self, days: float) -> Instant:
        """Return a new instant offset by ``days`` (may be negative)."""

        return Instant.from_datetime(self.utc + _dt.timedelta(days=days))
