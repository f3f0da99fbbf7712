"""Jyotish calculations layered on sidereal longitudes."""

from __future__ import annotations

from .calendar import CalendarDay, CalendarRuleEngine, LunarMonth, TimeWindow
from .classification import Classification, classify
from .dasha import DashaPeriod, DashaTimeline, vimshottari_dasha
from .festivals import (
    DEFAULT_FESTIVAL_RULES,
    DEFAULT_VARIANTS,
    FestivalOccurrence,
    FestivalRule,
    MonthScheme,
    Observance,
    RegionalCalendarVariant,
)
from .matching import CompatibilityResult, KootaScore, match_charts
from .panchang import Panchang, panchang_from_longitudes
from .riseset import AltitudeRiseSetCalculator, RiseSet, RiseSetCalculator
from .transits import Transit, TransitAspect, compare_transit

__all__ = [
    "DEFAULT_FESTIVAL_RULES",
    "DEFAULT_VARIANTS",
    "AltitudeRiseSetCalculator",
    "CalendarDay",
    "CalendarRuleEngine",
    "Classification",
    "CompatibilityResult",
    "DashaPeriod",
    "DashaTimeline",
    "FestivalOccurrence",
    "FestivalRule",
    "KootaScore",
    "LunarMonth",
    "MonthScheme",
    "Observance",
    "Panchang",
    "RegionalCalendarVariant",
    "RiseSet",
    "RiseSetCalculator",
    "TimeWindow",
    "Transit",
    "TransitAspect",
    "classify",
    "compare_transit",
    "match_charts",
    "panchang_from_longitudes",
    "vimshottari_dasha",
]
