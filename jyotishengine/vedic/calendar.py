"""Lunisolar calendar days and festival occurrences for a location."""

from __future__ import annotations

import logging
from collections.abc import Hashable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from ..core.angles import normalize_degrees, signed_delta
from ..core.bodies import Body
from ..core.cache import Memoizer
from ..core.time import Instant
from ..ephemeris.ayanamsha import Ayanamsha, UserAyanamsha, to_sidereal
from ..ephemeris.models import GeoLocation
from ..ephemeris.sources import PositionSource
from ..errors import ValidationError
from .classification import classify
from .festivals import (
    DEFAULT_FESTIVAL_RULES,
    DEFAULT_VARIANTS,
    FestivalOccurrence,
    FestivalRule,
    MonthScheme,
    Observance,
    RegionalCalendarVariant,
    resolve_variant,
    select_observance_day,
)
from .panchang import (
    TITHI_ARC_DEGREES,
    Paksha,
    Panchang,
    Vaar,
    masa_name,
    panchang_from_longitudes,
    vaar_for_date,
)
from .riseset import AltitudeRiseSetCalculator, RiseSet, RiseSetCalculator, local_midnight

__all__ = [
    "SYNODIC_MONTH_DAYS",
    "CalendarDay",
    "CalendarRuleEngine",
    "LunarMonth",
    "TimeWindow",
    "inauspicious_windows",
]

LOG = logging.getLogger(__name__)

SYNODIC_MONTH_DAYS = 29.530588853
_MEAN_ELONGATION_RATE = 360.0 / SYNODIC_MONTH_DAYS
_MAX_ITERATIONS = 30
_CONVERGENCE_SECONDS = 1.0

# Daylight is split into eight parts; keyed by ``date.weekday()`` (Monday = 0).
_RAHU_KALAM_PART = {0: 2, 1: 7, 2: 5, 3: 6, 4: 4, 5: 3, 6: 8}
_YAMAGANDA_PART = {0: 4, 1: 3, 2: 2, 3: 1, 4: 7, 5: 6, 6: 5}
_GULIKA_PART = {0: 6, 1: 5, 2: 4, 3: 3, 4: 2, 5: 1, 6: 7}

# Local clock times used when the Sun does not rise or set on a day.
_NOMINAL_SUNRISE = timedelta(hours=6)
_NOMINAL_SUNSET = timedelta(hours=18)


@dataclass(frozen=True)
class TimeWindow:
    name: str
    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment < self.end


@dataclass(frozen=True)
class LunarMonth:
    """One lunation between consecutive new moons, named the amanta way."""

    index: int
    name: str
    adhika: bool
    start: datetime
    end: datetime
    sun_sign: int

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment < self.end


@dataclass(frozen=True)
class CalendarDay:
    """Pañchānga, sky events and observances for one civil day."""

    date: date
    location: GeoLocation
    variant: str
    vaar: Vaar
    observed_at: datetime
    panchang: Panchang
    lunar_month: str
    adhika: bool
    sunrise: datetime | None
    sunset: datetime | None
    moonrise: datetime | None
    moonset: datetime | None
    inauspicious: tuple[TimeWindow, ...] = ()
    festivals: tuple[str, ...] = field(default_factory=tuple)

    @property
    def tithi(self) -> str:
        return self.panchang.tithi.name

    @property
    def paksha(self) -> Paksha:
        return self.panchang.tithi.paksha

    @property
    def nakshatra(self) -> str:
        return self.panchang.nakshatra.name

    @property
    def yoga(self) -> str:
        return self.panchang.yoga.name

    @property
    def karana(self) -> str:
        return self.panchang.karana.name

    def window(self, name: str) -> TimeWindow | None:
        for window in self.inauspicious:
            if window.name == name:
                return window
        return None

    def to_dict(self) -> dict[str, object]:
        def iso(value: datetime | None) -> str | None:
            return value.isoformat() if value is not None else None

        return {
            "date": self.date.isoformat(),
            "variant": self.variant,
            "vaar": self.vaar.name,
            "tithi": self.tithi,
            "paksha": self.paksha.value,
            "nakshatra": self.nakshatra,
            "yoga": self.yoga,
            "karana": self.karana,
            "lunar_month": self.lunar_month,
            "adhika": self.adhika,
            "sunrise": iso(self.sunrise),
            "sunset": iso(self.sunset),
            "moonrise": iso(self.moonrise),
            "moonset": iso(self.moonset),
            "inauspicious": {
                w.name: [w.start.isoformat(), w.end.isoformat()] for w in self.inauspicious
            },
            "festivals": list(self.festivals),
        }


def inauspicious_windows(
    day: date, sunrise: datetime, sunset: datetime
) -> tuple[TimeWindow, ...]:
    """Return Rahu Kalam, Yamaganda and Gulika Kalam for one day."""

    if sunset <= sunrise:
        raise ValidationError(
            "sunset must follow sunrise",
            context={"sunrise": sunrise.isoformat(), "sunset": sunset.isoformat()},
        )
    part = (sunset - sunrise) / 8
    weekday = day.weekday()

    def window(name: str, number: int) -> TimeWindow:
        start = sunrise + part * (number - 1)
        return TimeWindow(name=name, start=start, end=start + part)

    return (
        window("rahu_kalam", _RAHU_KALAM_PART[weekday]),
        window("yamaganda", _YAMAGANDA_PART[weekday]),
        window("gulika_kalam", _GULIKA_PART[weekday]),
    )


class _DayClock:
    """Per-call cache of solar rise/set and observance instants."""

    def __init__(
        self, calculator: RiseSetCalculator, location: GeoLocation, utc_offset: timedelta
    ) -> None:
        self.calculator = calculator
        self.location = location
        self.utc_offset = utc_offset
        self._sun: dict[date, RiseSet] = {}

    def civil_date(self, moment: datetime) -> date:
        return (moment + self.utc_offset).date()

    def sun(self, day: date) -> RiseSet:
        if day not in self._sun:
            self._sun[day] = self.calculator.rise_set(Body.SUN, day, self.location, self.utc_offset)
        return self._sun[day]

    def sunrise(self, day: date) -> datetime:
        rise = self.sun(day).rise
        return rise if rise is not None else local_midnight(day, self.utc_offset) + _NOMINAL_SUNRISE

    def sunset(self, day: date) -> datetime:
        set_ = self.sun(day).set
        return set_ if set_ is not None else local_midnight(day, self.utc_offset) + _NOMINAL_SUNSET

    def observance(self, day: date, observance: Observance) -> datetime:
        if observance is Observance.SUNRISE:
            return self.sunrise(day)
        if observance is Observance.SUNSET:
            return self.sunset(day)
        if observance is Observance.MIDDAY:
            rise = self.sunrise(day)
            return rise + (self.sunset(day) - rise) / 2
        dusk = self.sunset(day)
        return dusk + (self.sunrise(day + timedelta(days=1)) - dusk) / 2


class CalendarRuleEngine:
    """Derive pañchānga days and festival dates from Sun-Moon geometry.

    Positions come from any :class:`PositionSource` (tropical, ecliptic
    of date); the ayanamsha converts them to sidereal where signs or
    nakshatras are needed.  Civil days default to local mean time at the
    requested longitude unless an explicit ``utc_offset`` is given.
    """

    def __init__(
        self,
        source: PositionSource,
        *,
        ayanamsha: Ayanamsha | str = Ayanamsha.LAHIRI,
        user_ayanamsha: UserAyanamsha | None = None,
        rise_set: RiseSetCalculator | None = None,
        rules: Sequence[FestivalRule] = DEFAULT_FESTIVAL_RULES,
        variants: Mapping[str, RegionalCalendarVariant] = DEFAULT_VARIANTS,
        default_variant: str = "north_indian",
        memo: Memoizer | None = None,
    ) -> None:
        self.source = source
        self.ayanamsha = ayanamsha
        self.user_ayanamsha = user_ayanamsha
        self.rise_set = rise_set or AltitudeRiseSetCalculator(source)
        self.rules = tuple(rules)
        self.variants = variants
        self.default_variant = default_variant
        self._memo = memo or Memoizer(maxsize=32)

    # -- geometry -------------------------------------------------------

    def _sidereal(self, longitude: float, instant: Instant) -> float:
        return to_sidereal(longitude, self.ayanamsha, instant.jd_tt, user=self.user_ayanamsha)

    def sidereal_longitudes(self, moment: datetime) -> tuple[float, float]:
        """Return sidereal ``(sun, moon)`` longitudes at ``moment``."""

        instant = Instant.from_datetime(moment)
        sun = self.source.position(Body.SUN, instant)
        moon = self.source.position(Body.MOON, instant)
        return self._sidereal(sun.longitude, instant), self._sidereal(moon.longitude, instant)

    def elongation(self, moment: datetime) -> float:
        instant = Instant.from_datetime(moment)
        sun = self.source.position(Body.SUN, instant)
        moon = self.source.position(Body.MOON, instant)
        return normalize_degrees(moon.longitude - sun.longitude)

    def _solve_elongation(self, target: float, guess: datetime) -> datetime:
        moment = guess
        for _ in range(_MAX_ITERATIONS):
            instant = Instant.from_datetime(moment)
            sun = self.source.position(Body.SUN, instant)
            moon = self.source.position(Body.MOON, instant)
            error = signed_delta(moon.longitude - sun.longitude - target)
            rate = moon.speed - sun.speed
            if rate <= 0.0:
                rate = _MEAN_ELONGATION_RATE
            step_days = error / rate
            moment = moment - timedelta(days=step_days)
            if abs(step_days) * 86400.0 < _CONVERGENCE_SECONDS:
                return moment
        LOG.debug(
            "elongation search stopped before converging",
            extra={"target": target, "guess": guess.isoformat()},
        )
        return moment

    def new_moon_before(self, moment: datetime) -> datetime:
        """Latest new moon at or before ``moment``."""

        elongation = self.elongation(moment)
        guess = moment - timedelta(days=elongation / _MEAN_ELONGATION_RATE)
        found = self._solve_elongation(0.0, guess)
        if found > moment + timedelta(seconds=_CONVERGENCE_SECONDS):
            found = self._solve_elongation(0.0, found - timedelta(days=SYNODIC_MONTH_DAYS))
        return found

    def new_moon_after(self, moment: datetime) -> datetime:
        """First new moon strictly after ``moment``."""

        remaining = 360.0 - self.elongation(moment)
        guess = moment + timedelta(days=remaining / _MEAN_ELONGATION_RATE)
        found = self._solve_elongation(0.0, guess)
        if found <= moment + timedelta(minutes=1):
            found = self._solve_elongation(0.0, found + timedelta(days=SYNODIC_MONTH_DAYS))
        return found

    def _sun_sign(self, moment: datetime) -> int:
        sun, _ = self.sidereal_longitudes(moment)
        return int(sun // 30.0) % 12

    def _month(self, start: datetime, end: datetime) -> LunarMonth:
        sign = self._sun_sign(start)
        index = (sign + 1) % 12
        return LunarMonth(
            index=index,
            name=masa_name(index),
            adhika=sign == self._sun_sign(end),
            start=start,
            end=end,
            sun_sign=sign,
        )

    def lunar_month(self, moment: datetime) -> LunarMonth:
        start = self.new_moon_before(moment)
        return self._month(start, self.new_moon_after(start))

    def lunations(self, start: datetime, end: datetime) -> list[LunarMonth]:
        """Lunar months overlapping ``[start, end)``."""

        months: list[LunarMonth] = []
        current = self.new_moon_before(start)
        while current < end:
            following = self.new_moon_after(current)
            months.append(self._month(current, following))
            current = following
        return months

    def tithi_window(self, month: LunarMonth, tithi_index: int) -> tuple[datetime, datetime]:
        """Start and end of tithi ``tithi_index`` (1-30) within ``month``."""

        if not 1 <= tithi_index <= 30:
            raise ValidationError("tithi index must be 1-30", context={"tithi": tithi_index})

        def boundary(k: int) -> datetime:
            if k == 0:
                return month.start
            if k == 30:
                return month.end
            target = k * TITHI_ARC_DEGREES
            guess = month.start + timedelta(days=target / _MEAN_ELONGATION_RATE)
            return self._solve_elongation(target, guess)

        return boundary(tithi_index - 1), boundary(tithi_index)

    # -- festivals ------------------------------------------------------

    @staticmethod
    def _offset(longitude: float, utc_offset: timedelta | None) -> timedelta:
        if utc_offset is not None:
            return utc_offset
        return timedelta(seconds=round(longitude * 240.0))

    def _month_label(self, month: LunarMonth, paksha: Paksha, scheme: MonthScheme) -> str:
        if scheme is MonthScheme.PURNIMANTA and paksha is Paksha.KRISHNA:
            return masa_name(month.index + 1)
        return month.name

    def _nakshatra_at(self, moment: datetime) -> str:
        _, moon = self.sidereal_longitudes(moment)
        return classify(moon).nakshatra.name

    def _occurrence(
        self,
        rule: FestivalRule,
        month: LunarMonth,
        variant: RegionalCalendarVariant,
        clock: _DayClock,
    ) -> FestivalOccurrence:
        start, end = self.tithi_window(month, rule.tithi_index)
        observance = variant.observance_for(rule)
        first = clock.civil_date(start) - timedelta(days=1)
        last = clock.civil_date(end) + timedelta(days=1)
        candidates: list[tuple[date, datetime]] = []
        day = first
        while day <= last:
            candidates.append((day, clock.observance(day, observance)))
            day += timedelta(days=1)
        chosen, instant, kshaya = select_observance_day(start, end, candidates)
        if rule.nakshatra is not None:
            for candidate, moment in candidates:
                if start <= moment < end and self._nakshatra_at(moment) == rule.nakshatra:
                    chosen, instant, kshaya = candidate, moment, False
                    break
        return FestivalOccurrence(
            name=rule.name,
            regional_name=variant.regional_name(rule.name),
            date=chosen,
            month=rule.month,
            paksha=rule.paksha,
            tithi=rule.tithi,
            observance=observance,
            observed_at=instant,
            tithi_start=start,
            tithi_end=end,
            kshaya=kshaya,
        )

    def festivals(
        self,
        year: int,
        latitude: float,
        longitude: float,
        variant: RegionalCalendarVariant | str | None = None,
        *,
        utc_offset: timedelta | None = None,
    ) -> list[FestivalOccurrence]:
        """Festival occurrences whose civil date falls in ``year``.

        Rules apply to nija (regular) months only; an adhika month carries
        no festivals.
        """

        resolved = resolve_variant(variant or self.default_variant, self.variants)
        location = GeoLocation(latitude, longitude)
        offset = self._offset(longitude, utc_offset)
        clock = _DayClock(self.rise_set, location, offset)
        window_start = local_midnight(date(year, 1, 1), offset) - timedelta(days=45)
        window_end = local_midnight(date(year + 1, 1, 1), offset) + timedelta(days=45)
        rules = resolved.rules(self.rules)
        occurrences: list[FestivalOccurrence] = []
        for month in self.lunations(window_start, window_end):
            if month.adhika:
                continue
            for rule in rules:
                if rule.month_index != month.index:
                    continue
                occurrence = self._occurrence(rule, month, resolved, clock)
                if occurrence.date.year == year:
                    occurrences.append(occurrence)
        occurrences.sort(key=lambda item: (item.date, item.name))
        return occurrences

    def _festival_names(
        self,
        day: date,
        location: GeoLocation,
        variant: RegionalCalendarVariant,
        offset: timedelta,
    ) -> tuple[str, ...]:
        key: Hashable = (
            "calendar_festivals",
            day.year,
            location.latitude,
            location.longitude,
            variant.name,
            offset,
        )
        occurrences = self._memo.get_or_compute(
            key,
            lambda: self.festivals(
                day.year, location.latitude, location.longitude, variant, utc_offset=offset
            ),
        )
        return tuple(item.regional_name for item in occurrences if item.date == day)

    # -- days -----------------------------------------------------------

    def day(
        self,
        day: date,
        latitude: float,
        longitude: float,
        variant: RegionalCalendarVariant | str | None = None,
        *,
        utc_offset: timedelta | None = None,
        include_festivals: bool = True,
    ) -> CalendarDay:
        """Return the pañchānga for ``day``, evaluated at local sunrise."""

        if isinstance(day, datetime) or not isinstance(day, date):
            raise ValidationError("day must be a calendar date", context={"day": repr(day)})
        resolved = resolve_variant(variant or self.default_variant, self.variants)
        location = GeoLocation(latitude, longitude)
        offset = self._offset(longitude, utc_offset)
        clock = _DayClock(self.rise_set, location, offset)
        sun = clock.sun(day)
        moon = self.rise_set.rise_set(Body.MOON, day, location, offset)
        observed_at = clock.sunrise(day)
        sun_sid, moon_sid = self.sidereal_longitudes(observed_at)
        panchang = panchang_from_longitudes(moon_sid, sun_sid)
        month = self.lunar_month(observed_at)
        windows: tuple[TimeWindow, ...] = ()
        if sun.rise is not None and sun.set is not None and sun.set > sun.rise:
            windows = inauspicious_windows(day, sun.rise, sun.set)
        festivals: tuple[str, ...] = ()
        if include_festivals:
            festivals = self._festival_names(day, location, resolved, offset)
        return CalendarDay(
            date=day,
            location=location,
            variant=resolved.name,
            vaar=vaar_for_date(day),
            observed_at=observed_at,
            panchang=panchang,
            lunar_month=self._month_label(month, panchang.paksha, resolved.month_scheme),
            adhika=month.adhika,
            sunrise=sun.rise,
            sunset=sun.set,
            moonrise=moon.rise,
            moonset=moon.set,
            inauspicious=windows,
            festivals=festivals,
        )
