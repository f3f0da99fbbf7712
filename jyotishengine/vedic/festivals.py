"""Declarative festival rules, regional calendar variants and the
observance-day tie-break.

A rule names a lunar month (amanta reckoning), a paksha and a tithi
number, optionally a nakshatra.  Which civil day receives the festival is
decided by the variant's observance point: the first day whose
observance instant falls inside the tithi wins.  A tithi that never
prevails at any observance instant (kshaya) goes to the day whose
observance-to-next-observance interval contains the tithi start.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import StrEnum

from ..errors import ValidationError
from .panchang import MASA_SEQUENCE, Paksha

__all__ = [
    "DEFAULT_FESTIVAL_RULES",
    "DEFAULT_VARIANTS",
    "FestivalOccurrence",
    "FestivalRule",
    "MonthScheme",
    "Observance",
    "RegionalCalendarVariant",
    "resolve_variant",
    "select_observance_day",
]


class Observance(StrEnum):
    SUNRISE = "sunrise"
    SUNSET = "sunset"
    MIDDAY = "midday"
    MIDNIGHT = "midnight"


class MonthScheme(StrEnum):
    AMANTA = "amanta"
    PURNIMANTA = "purnimanta"


@dataclass(frozen=True)
class FestivalRule:
    """Lunar-date predicate for one festival."""

    name: str
    month: str
    paksha: Paksha
    tithi: int
    nakshatra: str | None = None
    observance: Observance | None = None

    def __post_init__(self) -> None:
        if self.month not in MASA_SEQUENCE:
            raise ValidationError(
                f"unknown lunar month '{self.month}'", context={"festival": self.name}
            )
        if not 1 <= self.tithi <= 15:
            raise ValidationError(
                "festival tithi must be 1-15 within its paksha",
                context={"festival": self.name, "tithi": self.tithi},
            )

    @property
    def tithi_index(self) -> int:
        """Tithi index 1-30 across the lunar month."""

        return self.tithi + (15 if self.paksha is Paksha.KRISHNA else 0)

    @property
    def month_index(self) -> int:
        return MASA_SEQUENCE.index(self.month)


@dataclass(frozen=True)
class RegionalCalendarVariant:
    """Regional tradition: month naming, observance points and festival names."""

    name: str
    month_scheme: MonthScheme = MonthScheme.AMANTA
    default_observance: Observance = Observance.SUNRISE
    observance_overrides: Mapping[str, Observance] = field(default_factory=dict)
    regional_names: Mapping[str, str] = field(default_factory=dict)
    extra_rules: tuple[FestivalRule, ...] = ()

    def observance_for(self, rule: FestivalRule) -> Observance:
        if rule.name in self.observance_overrides:
            return self.observance_overrides[rule.name]
        if rule.observance is not None:
            return rule.observance
        return self.default_observance

    def regional_name(self, name: str) -> str:
        return self.regional_names.get(name, name)

    def rules(self, base: Sequence[FestivalRule]) -> tuple[FestivalRule, ...]:
        return (*base, *self.extra_rules)


@dataclass(frozen=True)
class FestivalOccurrence:
    name: str
    regional_name: str
    date: date
    month: str
    paksha: Paksha
    tithi: int
    observance: Observance
    observed_at: datetime
    tithi_start: datetime
    tithi_end: datetime
    kshaya: bool = False

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "regional_name": self.regional_name,
            "date": self.date.isoformat(),
            "month": self.month,
            "paksha": self.paksha.value,
            "tithi": self.tithi,
            "observance": self.observance.value,
            "observed_at": self.observed_at.isoformat(),
            "kshaya": self.kshaya,
        }


def select_observance_day(
    tithi_start: datetime,
    tithi_end: datetime,
    candidates: Sequence[tuple[date, datetime]],
) -> tuple[date, datetime, bool]:
    """Pick the civil day that observes a tithi.

    ``candidates`` are consecutive civil days paired with their
    observance instants, in order.  Returns ``(day, instant, kshaya)``.
    """

    if not candidates:
        raise ValidationError("no candidate days to select from")
    for day, instant in candidates:
        if tithi_start <= instant < tithi_end:
            return day, instant, False
    for (day, instant), (_, following) in zip(candidates, candidates[1:]):
        if instant <= tithi_start < following:
            return day, instant, True
    raise ValidationError(
        "candidate days do not cover the tithi",
        context={"tithi_start": tithi_start.isoformat(), "tithi_end": tithi_end.isoformat()},
    )


def _rule(
    name: str,
    month: str,
    paksha: Paksha,
    tithi: int,
    observance: Observance | None = None,
    nakshatra: str | None = None,
) -> FestivalRule:
    return FestivalRule(
        name=name,
        month=month,
        paksha=paksha,
        tithi=tithi,
        nakshatra=nakshatra,
        observance=observance,
    )


_S, _K = Paksha.SHUKLA, Paksha.KRISHNA

DEFAULT_FESTIVAL_RULES: tuple[FestivalRule, ...] = (
    _rule("Ugadi", "Chaitra", _S, 1),
    _rule("Ram Navami", "Chaitra", _S, 9),
    _rule("Hanuman Jayanti", "Chaitra", _S, 15),
    _rule("Akshaya Tritiya", "Vaishakha", _S, 3),
    _rule("Buddha Purnima", "Vaishakha", _S, 15),
    _rule("Guru Purnima", "Ashadha", _S, 15),
    _rule("Raksha Bandhan", "Shravana", _S, 15),
    _rule("Krishna Janmashtami", "Shravana", _K, 8, Observance.MIDNIGHT),
    _rule("Ganesh Chaturthi", "Bhadrapada", _S, 4, Observance.MIDDAY),
    _rule("Navaratri", "Ashvin", _S, 1),
    _rule("Dussehra", "Ashvin", _S, 10),
    _rule("Dhanteras", "Ashvin", _K, 13, Observance.SUNSET),
    _rule("Diwali", "Ashvin", _K, 15, Observance.SUNSET),
    _rule("Govardhan Puja", "Kartika", _S, 1),
    _rule("Bhai Dooj", "Kartika", _S, 2),
    _rule("Kartika Purnima", "Kartika", _S, 15),
    _rule("Vasant Panchami", "Magha", _S, 5),
    _rule("Maha Shivaratri", "Magha", _K, 14, Observance.MIDNIGHT),
    _rule("Holika Dahan", "Phalguna", _S, 15, Observance.SUNSET),
    _rule("Holi", "Phalguna", _K, 1),
)

DEFAULT_VARIANTS: Mapping[str, RegionalCalendarVariant] = {
    "north_indian": RegionalCalendarVariant(
        name="north_indian",
        month_scheme=MonthScheme.PURNIMANTA,
        default_observance=Observance.SUNRISE,
        regional_names={"Ugadi": "Chaitra Navratri Pratipada"},
    ),
    "south_indian": RegionalCalendarVariant(
        name="south_indian",
        month_scheme=MonthScheme.AMANTA,
        default_observance=Observance.SUNRISE,
    ),
    "tamil": RegionalCalendarVariant(
        name="tamil",
        month_scheme=MonthScheme.AMANTA,
        default_observance=Observance.SUNRISE,
        regional_names={
            "Ganesh Chaturthi": "Vinayaka Chaturthi",
            "Krishna Janmashtami": "Gokulashtami",
            "Dussehra": "Vijayadashami",
            "Diwali": "Deepavali",
        },
        extra_rules=(_rule("Arudra Darshan", "Margashirsha", _S, 15, nakshatra="Ardra"),),
    ),
    "bengali": RegionalCalendarVariant(
        name="bengali",
        month_scheme=MonthScheme.AMANTA,
        default_observance=Observance.SUNRISE,
        observance_overrides={"Diwali": Observance.MIDNIGHT},
        regional_names={
            "Diwali": "Kali Puja",
            "Dussehra": "Bijoya Dashami",
            "Holi": "Dol Jatra",
        },
    ),
}


def resolve_variant(
    value: RegionalCalendarVariant | str | None,
    variants: Mapping[str, RegionalCalendarVariant] = DEFAULT_VARIANTS,
) -> RegionalCalendarVariant:
    if isinstance(value, RegionalCalendarVariant):
        return value
    key = (value or "north_indian").strip().lower().replace("-", "_")
    try:
        return variants[key]
    except KeyError as exc:
        raise ValidationError(
            f"unknown calendar variant '{value}'",
            context={"variant": value, "known": sorted(variants)},
        ) from exc
