from __future__ import annotations

from datetime import UTC, date, datetime, timedelta

import pytest

from jyotishengine.ephemeris.ayanamsha import Ayanamsha
from jyotishengine.errors import ValidationError
from jyotishengine.vedic.calendar import CalendarRuleEngine, inauspicious_windows
from jyotishengine.vedic.festivals import FestivalRule, Observance, RegionalCalendarVariant
from jyotishengine.vedic.panchang import Paksha

from ..stubs import NEW_MOON, FixedRiseSet, LinearSky

UTC_ZERO = timedelta(0)
DUSK = RegionalCalendarVariant(name="dusk", default_observance=Observance.SUNSET)


def _engine(sky: LinearSky | None = None, **kwargs: object) -> CalendarRuleEngine:
    return CalendarRuleEngine(
        sky or LinearSky(),
        ayanamsha=Ayanamsha.ZERO,
        rise_set=FixedRiseSet(),
        **kwargs,  # type: ignore[arg-type]
    )


def _utc(month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    return datetime(2024, month, day, hour, minute, tzinfo=UTC)


def _close(actual: datetime, expected: datetime, seconds: float = 2.0) -> bool:
    return abs((actual - expected).total_seconds()) <= seconds


def _named(occurrences: list, name: str) -> list:  # type: ignore[type-arg]
    return [item for item in occurrences if item.name == name]


def test_new_moons_are_solved_from_elongation() -> None:
    engine = _engine()
    assert _close(engine.new_moon_before(NEW_MOON + timedelta(days=5)), NEW_MOON)
    assert _close(engine.new_moon_after(NEW_MOON), NEW_MOON + timedelta(days=30))
    assert _close(engine.new_moon_after(NEW_MOON - timedelta(days=3)), NEW_MOON)


def test_month_is_named_from_the_opening_sun_sign() -> None:
    month = _engine().lunar_month(NEW_MOON + timedelta(days=1))
    assert month.name == "Chaitra"
    assert month.sun_sign == 11
    assert not month.adhika
    assert _close(month.end, NEW_MOON + timedelta(days=30))


def test_tithi_window_boundaries() -> None:
    engine = _engine()
    month = engine.lunar_month(NEW_MOON + timedelta(days=1))
    start, end = engine.tithi_window(month, 9)
    assert _close(start, _utc(4, 16, 12))
    assert _close(end, _utc(4, 17, 12))
    with pytest.raises(ValidationError):
        engine.tithi_window(month, 31)


def test_observance_point_decides_the_civil_day() -> None:
    engine = _engine()
    at_sunrise = _named(engine.festivals(2024, 0.0, 0.0, "south_indian"), "Ram Navami")
    at_sunset = _named(engine.festivals(2024, 0.0, 0.0, DUSK), "Ram Navami")
    assert [item.date for item in at_sunrise] == [date(2024, 4, 17)]
    assert [item.date for item in at_sunset] == [date(2024, 4, 16)]
    assert at_sunrise[0].observance is Observance.SUNRISE
    assert at_sunset[0].observed_at == _utc(4, 16, 18)
    assert not at_sunrise[0].kshaya


def test_festivals_are_sorted_and_inside_the_year() -> None:
    occurrences = _engine().festivals(2024, 0.0, 0.0, "south_indian", utc_offset=UTC_ZERO)
    dates = [item.date for item in occurrences]
    assert dates == sorted(dates)
    assert all(day.year == 2024 for day in dates)
    assert _named(occurrences, "Ugadi")[0].date == date(2024, 4, 9)


def test_adhika_months_carry_no_festivals() -> None:
    # the Sun crawls, so the lunation opening at NEW_MOON stays in Pisces
    engine = _engine(LinearSky(sun_longitude=335.0, sun_rate=0.5))
    leap = engine.lunar_month(NEW_MOON + timedelta(days=1))
    assert leap.name == "Chaitra"
    assert leap.adhika
    regular = engine.lunar_month(NEW_MOON + timedelta(days=30))
    assert regular.name == "Chaitra"
    assert not regular.adhika
    ram_navami = _named(engine.festivals(2024, 0.0, 0.0, "south_indian"), "Ram Navami")
    assert [item.date for item in ram_navami] == [date(2024, 5, 15)]


def test_nakshatra_rules_prefer_the_matching_day() -> None:
    # a slower Moon stretches tithi 9 across two sunrises
    sky = LinearSky(moon_rate=8.0)
    plain = FestivalRule("Plain", "Chaitra", Paksha.SHUKLA, 9)
    starred = FestivalRule("Starred", "Chaitra", Paksha.SHUKLA, 9, nakshatra="Ashlesha")
    engine = _engine(sky, rules=(plain, starred))
    occurrences = engine.festivals(2024, 0.0, 0.0, "south_indian")
    assert _named(occurrences, "Plain")[0].date == date(2024, 4, 22)
    assert _named(occurrences, "Starred")[0].date == date(2024, 4, 23)


def test_calendar_day_on_the_new_moon() -> None:
    engine = _engine()
    south = engine.day(date(2024, 4, 8), 0.0, 0.0, "south_indian")
    assert south.vaar.name == "Somavara"
    assert south.tithi == "Amavasya"
    assert south.paksha is Paksha.KRISHNA
    assert south.lunar_month == "Phalguna"
    assert south.sunrise == _utc(4, 8, 6)
    assert south.moonrise == _utc(4, 8, 6)
    # purnimanta months turn at the full moon
    north = engine.day(date(2024, 4, 8), 0.0, 0.0, "north_indian", include_festivals=False)
    assert north.lunar_month == "Chaitra"
    assert north.festivals == ()


def test_calendar_day_inauspicious_windows() -> None:
    day = _engine().day(date(2024, 4, 8), 0.0, 0.0, "south_indian")
    rahu = day.window("rahu_kalam")
    assert rahu is not None
    assert (rahu.start, rahu.end) == (_utc(4, 8, 7, 30), _utc(4, 8, 9))
    yamaganda = day.window("yamaganda")
    assert yamaganda is not None
    assert yamaganda.start == _utc(4, 8, 10, 30)
    gulika = day.window("gulika_kalam")
    assert gulika is not None
    assert gulika.start == _utc(4, 8, 13, 30)
    assert day.window("abhijit") is None


def test_calendar_day_lists_regional_festival_names() -> None:
    engine = _engine()
    south = engine.day(date(2024, 4, 9), 0.0, 0.0, "south_indian")
    north = engine.day(date(2024, 4, 9), 0.0, 0.0, "north_indian")
    assert south.tithi == "Pratipada"
    assert south.lunar_month == "Chaitra"
    assert "Ugadi" in south.festivals
    assert "Chaitra Navratri Pratipada" in north.festivals
    payload = south.to_dict()
    assert payload["festivals"] == list(south.festivals)
    assert payload["vaar"] == "Mangalavara"


def test_day_rejects_datetimes() -> None:
    with pytest.raises(ValidationError):
        _engine().day(datetime(2024, 4, 8, tzinfo=UTC), 0.0, 0.0)  # type: ignore[arg-type]


def test_unknown_variant_is_rejected() -> None:
    with pytest.raises(ValidationError):
        _engine().day(date(2024, 4, 8), 0.0, 0.0, "atlantean")


def test_inauspicious_windows_need_daylight() -> None:
    with pytest.raises(ValidationError):
        inauspicious_windows(date(2024, 4, 8), _utc(4, 8, 18), _utc(4, 8, 6))
    sunday = inauspicious_windows(date(2024, 4, 7), _utc(4, 7, 6), _utc(4, 7, 18))
    assert sunday[0].start == _utc(4, 7, 16, 30)
