from __future__ import annotations

from datetime import timedelta

import pytest

from jyotishengine.core.bodies import Body
from jyotishengine.errors import ValidationError
from jyotishengine.vedic.dasha import (
    TOTAL_YEARS,
    VIMSHOTTARI_SEQUENCE,
    VIMSHOTTARI_YEAR_DAYS,
    vimshottari_dasha,
)
from jyotishengine.vedic.data import NAKSHATRA_ARC_DEGREES

from ..conftest import J2000_NOON

BIRTH = J2000_NOON


def _years(value: float) -> timedelta:
    return timedelta(days=value * VIMSHOTTARI_YEAR_DAYS)


def test_cycle_totals_one_hundred_twenty_years() -> None:
    assert TOTAL_YEARS == 120.0
    assert [ruler for ruler, _ in VIMSHOTTARI_SEQUENCE][:3] == [Body.KETU, Body.VENUS, Body.SUN]


def test_start_of_a_nakshatra_runs_the_full_sequence() -> None:
    timeline = vimshottari_dasha(BIRTH, 0.0)
    rulers = [period.ruler for period in timeline.periods]
    assert rulers == [ruler for ruler, _ in VIMSHOTTARI_SEQUENCE]
    assert timeline.balance_years == pytest.approx(7.0)
    assert timeline.nakshatra == "Ashwini"
    assert timeline.periods[0].duration_years == pytest.approx(7.0)


def test_balance_is_the_unexpired_share_of_the_birth_lord() -> None:
    # halfway through Bharani (Venus)
    timeline = vimshottari_dasha(BIRTH, NAKSHATRA_ARC_DEGREES * 1.5)
    first, last = timeline.periods[0], timeline.periods[-1]
    assert first.ruler is Body.VENUS
    assert first.start == BIRTH
    assert first.duration_years == pytest.approx(10.0)
    assert first.metadata["nakshatra"] == "Bharani"
    lord, years = timeline.balance_at_birth
    assert lord is Body.VENUS
    assert years == pytest.approx(10.0)
    # the elapsed half closes the cycle
    assert last.ruler is Body.VENUS
    assert last.duration_years == pytest.approx(10.0)
    total = (timeline.end - timeline.start).total_seconds()
    assert total == pytest.approx(_years(120.0).total_seconds(), abs=1.0)


def test_periods_are_contiguous_at_every_level() -> None:
    timeline = vimshottari_dasha(BIRTH, 77.7, levels=3)
    for level, periods in timeline.levels.items():
        assert periods[0].start == BIRTH
        for previous, current in zip(periods, periods[1:]):
            assert previous.end == current.start, level
        assert periods[-1].end == timeline.end


def test_antardashas_follow_the_proportional_rule() -> None:
    timeline = vimshottari_dasha(BIRTH, 0.0, levels=2)
    antars = [period for period in timeline.levels[2] if period.parent is Body.KETU]
    assert [period.ruler for period in antars] == [ruler for ruler, _ in VIMSHOTTARI_SEQUENCE]
    assert antars[0].duration_years == pytest.approx(7.0 * 7.0 / 120.0)
    assert antars[1].duration_years == pytest.approx(7.0 * 20.0 / 120.0)
    assert len(timeline.levels[2]) == 81


def test_antardashas_before_birth_are_dropped() -> None:
    timeline = vimshottari_dasha(BIRTH, NAKSHATRA_ARC_DEGREES * 0.5, levels=2)
    first_antars = [p for p in timeline.levels[2] if p.start < timeline.periods[0].end]
    assert len(first_antars) < 9
    assert first_antars[0].start == BIRTH
    assert all(p.parent is Body.KETU for p in first_antars)


def test_current_period_and_active_stack() -> None:
    timeline = vimshottari_dasha(BIRTH, 0.0, levels=2)
    moment = BIRTH + _years(10.0)
    assert timeline.current_period(moment).ruler is Body.VENUS
    maha, antar = timeline.active_stack(moment)
    assert maha.ruler is Body.VENUS
    assert antar.ruler is Body.VENUS
    assert antar.level_name == "antar"


def test_as_of_beyond_one_cycle_extends_the_timeline() -> None:
    as_of = BIRTH + _years(130.0)
    timeline = vimshottari_dasha(BIRTH, 0.0, as_of)
    span = (timeline.end - timeline.start).total_seconds()
    assert span == pytest.approx(_years(240.0).total_seconds(), abs=1.0)
    assert timeline.current_period(as_of).ruler is Body.VENUS


def test_invalid_requests() -> None:
    with pytest.raises(ValidationError):
        vimshottari_dasha(BIRTH, 0.0, levels=0)
    with pytest.raises(ValidationError):
        vimshottari_dasha(BIRTH, 0.0, levels=6)
    with pytest.raises(ValidationError):
        vimshottari_dasha(BIRTH, 0.0, BIRTH - timedelta(days=1))
    timeline = vimshottari_dasha(BIRTH, 0.0)
    with pytest.raises(ValidationError):
        timeline.current_period(BIRTH, level=2)
    with pytest.raises(ValidationError):
        timeline.current_period(BIRTH - timedelta(seconds=1))


def test_period_serialisation() -> None:
    period = vimshottari_dasha(BIRTH, 0.0).periods[0]
    payload = period.to_dict()
    assert payload["ruler"] == "ketu"
    assert payload["level"] == "maha"
    assert str(payload["start"]).endswith("Z")
