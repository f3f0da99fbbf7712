"""Vimśottarī Daśā timelines from maha down to praan level.

The cycle is anchored on the Moon's birth nakshatra: its lord opens the
sequence with the unexpired balance of its period, and each 120-year
cycle counted from birth ends with the elapsed share of that same lord,
so every cycle sums to exactly 120 years.  Sub-periods follow the
proportional rule on the nominal (unclipped) parent period and are then
clipped to the visible window, which drops the antardashas that had
already run out before birth.
"""

from __future__ import annotations

import bisect
import itertools
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Final

from ..core.bodies import Body
from ..core.time import Instant, ensure_utc
from ..errors import ValidationError
from .classification import classify
from .data import NAKSHATRA_LORD_SEQUENCE

__all__ = [
    "TOTAL_YEARS",
    "VIMSHOTTARI_SEQUENCE",
    "VIMSHOTTARI_YEAR_DAYS",
    "DashaPeriod",
    "DashaTimeline",
    "vimshottari_dasha",
]

_LEVEL_BY_DEPTH: Final[dict[int, str]] = {
    1: "maha",
    2: "antar",
    3: "pratyantar",
    4: "sookshma",
    5: "praan",
}

VIMSHOTTARI_SEQUENCE: Final[tuple[tuple[Body, float], ...]] = (
    (Body.KETU, 7.0),
    (Body.VENUS, 20.0),
    (Body.SUN, 6.0),
    (Body.MOON, 10.0),
    (Body.MARS, 7.0),
    (Body.RAHU, 18.0),
    (Body.JUPITER, 16.0),
    (Body.SATURN, 19.0),
    (Body.MERCURY, 17.0),
)

TOTAL_YEARS: Final[float] = sum(duration for _, duration in VIMSHOTTARI_SEQUENCE)
VIMSHOTTARI_YEAR_DAYS: Final[float] = 365.25

_SEQUENCE_INDEX = {ruler: idx for idx, (ruler, _) in enumerate(VIMSHOTTARI_SEQUENCE)}


@dataclass(frozen=True)
class DashaPeriod:
    """A single bounded daśā period."""

    ruler: Body
    level: int
    start: datetime
    end: datetime
    parent: Body | None = None
    metadata: dict[str, object] = field(default_factory=dict, compare=False, hash=False)

    @property
    def level_name(self) -> str:
        return _LEVEL_BY_DEPTH.get(self.level, f"level{self.level}")

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def duration_years(self) -> float:
        return self.duration.total_seconds() / 86400.0 / VIMSHOTTARI_YEAR_DAYS

    def contains(self, moment: datetime) -> bool:
        """Return ``True`` when ``moment`` lies within the period bounds."""

        reference = ensure_utc(moment)
        return self.start <= reference < self.end

    def to_dict(self) -> dict[str, object]:
        return {
            "ruler": self.ruler.value,
            "level": self.level_name,
            "start": self.start.isoformat().replace("+00:00", "Z"),
            "end": self.end.isoformat().replace("+00:00", "Z"),
            "parent": self.parent.value if self.parent else None,
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class DashaTimeline:
    """Ordered, gap-free daśā periods grouped by level."""

    birth: datetime
    nakshatra: str
    balance_years: float
    levels: dict[int, tuple[DashaPeriod, ...]]

    @property
    def periods(self) -> tuple[DashaPeriod, ...]:
        """Top-level (mahadasha) periods."""

        return self.levels[1]

    @property
    def start(self) -> datetime:
        return self.periods[0].start

    @property
    def end(self) -> datetime:
        return self.periods[-1].end

    @property
    def balance_at_birth(self) -> tuple[Body, float]:
        """Lord of the birth nakshatra and the years of its period left at birth."""

        return self.periods[0].ruler, self.balance_years

    def current_period(self, moment: datetime | Instant, level: int = 1) -> DashaPeriod:
        """Binary-search the period of ``level`` active at ``moment``."""

        if level not in self.levels:
            raise ValidationError(
                f"timeline was built without level {level}",
                context={"level": level, "available": sorted(self.levels)},
            )
        reference = moment.utc if isinstance(moment, Instant) else ensure_utc(moment)
        periods = self.levels[level]
        if not periods[0].start <= reference < periods[-1].end:
            raise ValidationError(
                "moment lies outside the daśā timeline",
                context={"moment": reference.isoformat(), "level": level},
            )
        starts = [period.start for period in periods]
        idx = bisect.bisect_right(starts, reference) - 1
        return periods[idx]

    def active_stack(self, moment: datetime | Instant) -> tuple[DashaPeriod, ...]:
        """Return the chain of active periods from maha down to the deepest level."""

        return tuple(self.current_period(moment, level) for level in sorted(self.levels))


@dataclass(frozen=True)
class _PeriodSeed:
    ruler: Body
    duration_years: float


def _cycle(start_ruler: Body) -> Iterable[_PeriodSeed]:
    idx = _SEQUENCE_INDEX[start_ruler]
    while True:
        ruler, duration = VIMSHOTTARI_SEQUENCE[idx % len(VIMSHOTTARI_SEQUENCE)]
        yield _PeriodSeed(ruler=ruler, duration_years=duration)
        idx += 1


def _offset(origin: datetime, years: float) -> datetime:
    return origin + timedelta(days=years * VIMSHOTTARI_YEAR_DAYS)


def _subdivide(
    out: dict[int, list[DashaPeriod]],
    nominal_start: datetime,
    nominal_end: datetime,
    window_start: datetime,
    window_end: datetime,
    ruler: Body,
    level: int,
    max_level: int,
) -> None:
    total_days = (nominal_end - nominal_start).total_seconds() / 86400.0
    cursor = nominal_start
    accumulator = 0.0
    seq = list(itertools.islice(_cycle(ruler), len(VIMSHOTTARI_SEQUENCE)))
    for idx, seed in enumerate(seq):
        accumulator += seed.duration_years
        if idx == len(seq) - 1:
            sub_end = nominal_end
        else:
            sub_end = nominal_start + timedelta(days=total_days * accumulator / TOTAL_YEARS)
        start = max(cursor, window_start)
        end = min(sub_end, window_end)
        if start < end:
            out[level].append(
                DashaPeriod(ruler=seed.ruler, level=level, start=start, end=end, parent=ruler)
            )
            if level < max_level:
                _subdivide(out, cursor, sub_end, start, end, seed.ruler, level + 1, max_level)
        cursor = sub_end


def vimshottari_dasha(
    birth: datetime | Instant,
    moon_sidereal_longitude: float,
    as_of: datetime | Instant | None = None,
    *,
    levels: int = 1,
) -> DashaTimeline:
    """Return the Vimśottarī timeline for a birth Moon longitude.

    The timeline spans whole 120-year cycles from birth, enough to cover
    ``as_of`` when given (one cycle otherwise).
    """

    if levels < 1:
        raise ValidationError("levels must be >= 1", context={"levels": levels})
    if levels > len(_LEVEL_BY_DEPTH):
        raise ValidationError(
            f"levels must be <= {len(_LEVEL_BY_DEPTH)} for Vimśottarī calculations",
            context={"levels": levels},
        )
    birth_utc = birth.utc if isinstance(birth, Instant) else ensure_utc(birth)
    placement = classify(moon_sidereal_longitude)
    ruler = NAKSHATRA_LORD_SEQUENCE[(placement.nakshatra.number - 1) % 9]
    fraction = placement.nakshatra_fraction
    first_years = dict(VIMSHOTTARI_SEQUENCE)[ruler]

    cycles = 1
    if as_of is not None:
        as_of_utc = as_of.utc if isinstance(as_of, Instant) else ensure_utc(as_of)
        if as_of_utc < birth_utc:
            raise ValidationError(
                "as_of precedes birth",
                context={"birth": birth_utc.isoformat(), "as_of": as_of_utc.isoformat()},
            )
        elapsed_years = (as_of_utc - birth_utc).total_seconds() / 86400.0 / VIMSHOTTARI_YEAR_DAYS
        cycles = int(elapsed_years // TOTAL_YEARS) + 1

    # the birth lord's period started before birth; boundaries are offsets from it
    virtual_years = -fraction * first_years
    out: dict[int, list[DashaPeriod]] = {level: [] for level in range(1, levels + 1)}
    cycle_ends = [TOTAL_YEARS * (k + 1) for k in range(cycles)]
    horizon = cycle_ends[-1]
    for seed in _cycle(ruler):
        if virtual_years >= horizon:
            break
        nominal_start_years = virtual_years
        nominal_end_years = virtual_years + seed.duration_years
        nominal_start = _offset(birth_utc, nominal_start_years)
        nominal_end = _offset(birth_utc, nominal_end_years)
        # split at cycle boundaries so each cycle sums to exactly 120 years
        inner = [edge for edge in cycle_ends if nominal_start_years < edge < nominal_end_years]
        cuts = [max(nominal_start_years, 0.0), *inner, min(nominal_end_years, horizon)]
        for lo, hi in zip(cuts, cuts[1:]):
            if hi <= lo:
                continue
            start = _offset(birth_utc, lo)
            end = _offset(birth_utc, hi)
            metadata: dict[str, object] = {}
            if not out[1]:
                metadata["nakshatra"] = placement.nakshatra.name
            out[1].append(
                DashaPeriod(ruler=seed.ruler, level=1, start=start, end=end, metadata=metadata)
            )
            if levels >= 2:
                _subdivide(out, nominal_start, nominal_end, start, end, seed.ruler, 2, levels)
        virtual_years = nominal_end_years

    return DashaTimeline(
        birth=birth_utc,
        nakshatra=placement.nakshatra.name,
        balance_years=(1.0 - fraction) * first_years,
        levels={level: tuple(periods) for level, periods in out.items()},
    )
