"""Deterministic stand-ins for sky geometry used across the test-suite."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, date, datetime, timedelta
import threading

from jyotishengine.core.angles import normalize_degrees
from jyotishengine.core.bodies import Body, normalize_body
from jyotishengine.core.time import Instant, julian_day
from jyotishengine.ephemeris.models import BodyPosition, GeoLocation, Source
from jyotishengine.errors import ValidationError
from jyotishengine.vedic.riseset import RiseSet, local_midnight

NEW_MOON = datetime(2024, 4, 8, 12, 0, tzinfo=UTC)


class LinearSky:
    """Sun and Moon moving uniformly away from a reference new moon.

    With the defaults the elongation grows by exactly 12° a day, so tithi
    ``k`` of a lunation spans ``[new_moon + (k - 1) days, new_moon + k days)``.
    """

    def __init__(
        self,
        new_moon: datetime = NEW_MOON,
        *,
        sun_longitude: float = 350.0,
        sun_rate: float = 1.0,
        moon_rate: float = 13.0,
    ) -> None:
        self.reference_jd = julian_day(new_moon)
        self.sun_longitude = sun_longitude
        self.sun_rate = sun_rate
        self.moon_rate = moon_rate
        self.calls = 0

    def position(
        self,
        body: Body | str,
        instant: Instant,
        location: GeoLocation | None = None,
    ) -> BodyPosition:
        resolved = normalize_body(body)
        self.calls += 1
        days = instant.jd_ut - self.reference_jd
        if resolved is Body.SUN:
            rate = self.sun_rate
        elif resolved is Body.MOON:
            rate = self.moon_rate
        else:
            raise ValidationError(f"LinearSky has no {resolved.value}")
        longitude = normalize_degrees(self.sun_longitude + rate * days)
        return BodyPosition.build(resolved, longitude, 0.0, 1.0, rate, Source.FALLBACK)


class FixedRiseSet:
    """Every body rises at 06:00 and sets at 18:00 local time."""

    def __init__(self, rise_hour: float = 6.0, set_hour: float = 18.0) -> None:
        self.rise_hour = rise_hour
        self.set_hour = set_hour

    def rise_set(
        self,
        body: Body,
        day: date,
        location: GeoLocation,
        utc_offset: timedelta,
    ) -> RiseSet:
        base = local_midnight(day, utc_offset)
        return RiseSet(
            rise=base + timedelta(hours=self.rise_hour),
            set=base + timedelta(hours=self.set_hour),
        )


class ScriptedCapability:
    """Precise provider replaying scripted responses per call.

    Each entry is either a vector to return, an exception to raise or a
    :class:`threading.Event` to block on (to exercise timeouts).
    """

    def __init__(self, script: Sequence[object] | None = None, default: object = None) -> None:
        self.script = list(script or [])
        self.default = default
        self.calls: list[tuple[float, int, int]] = []
        self._lock = threading.Lock()

    def calc_ut(self, jd_ut: float, body_code: int, flags: int) -> Sequence[float]:
        with self._lock:
            self.calls.append((jd_ut, body_code, flags))
            step = self.script.pop(0) if self.script else self.default
        if isinstance(step, threading.Event):
            step.wait(5.0)
            return (10.0, 0.0, 1.0, 1.0)
        if isinstance(step, BaseException):
            raise step
        if step is None:
            return (10.0, 0.0, 1.0, 1.0, 0.0, 0.0)
        return step  # type: ignore[return-value]
