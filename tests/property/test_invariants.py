from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from jyotishengine.core.angles import normalize_degrees, signed_delta
from jyotishengine.core.time import from_julian_day, julian_day
from jyotishengine.ephemeris.ayanamsha import AYANAMSHA_MODELS, to_sidereal, to_tropical
from jyotishengine.vedic.classification import classify
from jyotishengine.vedic.dasha import TOTAL_YEARS, VIMSHOTTARI_YEAR_DAYS, vimshottari_dasha
from jyotishengine.vedic.data import NAKSHATRA_ARC_DEGREES, PADA_ARC_DEGREES
from jyotishengine.vedic.matching import KOOTA_MAXIMA, match_charts
from jyotishengine.vedic.panchang import karana_from_longitudes, tithi_from_longitudes

hypothesis = pytest.importorskip("hypothesis")
given = hypothesis.given
st = hypothesis.strategies
settings = hypothesis.settings

FLOATS = st.floats(min_value=-1e6, max_value=1e6, allow_nan=False, allow_infinity=False)
LONGITUDES = st.floats(
    min_value=0.0,
    max_value=360.0,
    exclude_max=True,
    allow_nan=False,
    allow_infinity=False,
)
MODELS = st.sampled_from(sorted(AYANAMSHA_MODELS))
MOMENTS = st.datetimes(
    min_value=datetime(1800, 1, 1),
    max_value=datetime(2200, 1, 1),
    timezones=st.just(UTC),
)
SLACK = 1e-7


@settings(deadline=None)
@given(angle=FLOATS)
def test_normalised_angles_stay_in_range(angle: float) -> None:
    assert 0.0 <= normalize_degrees(angle) < 360.0
    assert -180.0 <= signed_delta(angle) < 180.0


@settings(deadline=None)
@given(longitude=LONGITUDES)
def test_classification_segments_contain_the_longitude(longitude: float) -> None:
    result = classify(longitude)
    assert result.rashi.start - SLACK <= longitude < result.rashi.start + 30.0 + SLACK
    nak_start = result.nakshatra.start
    assert nak_start - SLACK <= longitude < nak_start + NAKSHATRA_ARC_DEGREES + SLACK
    pada_start = nak_start + PADA_ARC_DEGREES * (result.pada.number - 1)
    assert pada_start - SLACK <= longitude < pada_start + PADA_ARC_DEGREES + SLACK
    assert result.pada.nakshatra == result.nakshatra.number


@settings(deadline=None)
@given(longitude=LONGITUDES, model=MODELS, days=st.floats(min_value=-73000, max_value=73000))
def test_sidereal_round_trip(longitude: float, model: object, days: float) -> None:
    jd = 2451545.0 + days
    sidereal = to_sidereal(longitude, model, jd)  # type: ignore[arg-type]
    assert 0.0 <= sidereal < 360.0
    back = to_tropical(sidereal, model, jd)  # type: ignore[arg-type]
    assert abs(signed_delta(back - longitude)) < 1e-8


@settings(deadline=None)
@given(moon=LONGITUDES, sun=LONGITUDES)
def test_karana_is_half_a_tithi(moon: float, sun: float) -> None:
    tithi = tithi_from_longitudes(moon, sun)
    karana = karana_from_longitudes(moon, sun)
    assert karana.index in (2 * tithi.index - 1, 2 * tithi.index)
    assert 1 <= tithi.number <= 15


@settings(deadline=None)
@given(bride=LONGITUDES, groom=LONGITUDES)
def test_match_scores_are_bounded(bride: float, groom: float) -> None:
    result = match_charts(bride, groom)
    assert 0 <= result.total <= 36
    assert result.total == sum(k.score for k in result.kootas)
    for koota in result.kootas:
        assert 0 <= koota.score <= KOOTA_MAXIMA[koota.name]


@settings(deadline=None, max_examples=30)
@given(moment=MOMENTS, moon=LONGITUDES)
def test_dasha_cycle_is_gap_free(moment: datetime, moon: float) -> None:
    timeline = vimshottari_dasha(moment, moon, levels=2)
    for level in (1, 2):
        periods = timeline.levels[level]
        assert periods[0].start == timeline.birth
        assert all(a.end == b.start for a, b in zip(periods, periods[1:]))
    span = (timeline.end - timeline.start).total_seconds()
    expected = timedelta(days=TOTAL_YEARS * VIMSHOTTARI_YEAR_DAYS).total_seconds()
    assert span == pytest.approx(expected, abs=1.0)


@settings(deadline=None)
@given(moment=MOMENTS)
def test_julian_day_round_trip(moment: datetime) -> None:
    back = from_julian_day(julian_day(moment))
    assert abs((back - moment).total_seconds()) < 1e-3
