"""Pañchānga elements derived from Sun and Moon longitudes."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from enum import StrEnum

from ..core.angles import normalize_degrees
from .classification import Classification, classify, segment_index

__all__ = [
    "KARANA_ARC_DEGREES",
    "MASA_SEQUENCE",
    "TITHI_ARC_DEGREES",
    "YOGA_ARC_DEGREES",
    "Karana",
    "NakshatraStatus",
    "Paksha",
    "Panchang",
    "Tithi",
    "Vaar",
    "Yoga",
    "karana_from_longitudes",
    "masa_name",
    "nakshatra_from_longitude",
    "panchang_from_longitudes",
    "tithi_from_longitudes",
    "vaar_for_date",
    "yoga_from_longitudes",
]


TITHI_ARC_DEGREES: float = 360.0 / 30.0
"""Angular span of a single tithi in degrees."""

YOGA_ARC_DEGREES: float = 360.0 / 27.0
"""Angular span of a single yoga in degrees."""

KARANA_ARC_DEGREES: float = TITHI_ARC_DEGREES / 2.0
"""Angular span of a single karana (half tithi) in degrees."""

# Amanta month names; a month takes the name following the Sun's sidereal
# sign at the new moon that opens it (Sun in Pisces opens Chaitra).
MASA_SEQUENCE: Sequence[str] = (
    "Chaitra",
    "Vaishakha",
    "Jyeshtha",
    "Ashadha",
    "Shravana",
    "Bhadrapada",
    "Ashvin",
    "Kartika",
    "Margashirsha",
    "Pausha",
    "Magha",
    "Phalguna",
)


class Paksha(StrEnum):
    SHUKLA = "shukla"
    KRISHNA = "krishna"


@dataclass(frozen=True)
class Tithi:
    """Lunar day: ``index`` runs 1-30, ``number`` 1-15 within the paksha."""

    index: int
    number: int
    name: str
    paksha: Paksha
    elongation: float
    progress: float


@dataclass(frozen=True)
class NakshatraStatus:
    placement: Classification
    progress: float

    @property
    def name(self) -> str:
        return self.placement.nakshatra.name


@dataclass(frozen=True)
class Yoga:
    index: int
    name: str
    longitude_sum: float
    progress: float


@dataclass(frozen=True)
class Karana:
    index: int
    name: str
    elongation: float
    progress: float


@dataclass(frozen=True)
class Vaar:
    """Weekday; ``index`` is 1 for Sunday."""

    index: int
    weekday: int
    name: str
    english: str


@dataclass(frozen=True)
class Panchang:
    tithi: Tithi
    nakshatra: NakshatraStatus
    yoga: Yoga
    karana: Karana

    @property
    def paksha(self) -> Paksha:
        return self.tithi.paksha


_TITHI_NAMES: Sequence[str] = (
    "Pratipada",
    "Dvitiya",
    "Tritiya",
    "Chaturthi",
    "Panchami",
    "Shashthi",
    "Saptami",
    "Ashtami",
    "Navami",
    "Dashami",
    "Ekadashi",
    "Dvadashi",
    "Trayodashi",
    "Chaturdashi",
)

_YOGA_NAMES: Sequence[str] = (
    "Vishkambha",
    "Priti",
    "Ayushman",
    "Saubhagya",
    "Shobhana",
    "Atiganda",
    "Sukarma",
    "Dhriti",
    "Shoola",
    "Ganda",
    "Vriddhi",
    "Dhruva",
    "Vyaghata",
    "Harshana",
    "Vajra",
    "Siddhi",
    "Vyatipata",
    "Variyana",
    "Parigha",
    "Shiva",
    "Siddha",
    "Sadhya",
    "Shubha",
    "Shukla",
    "Brahma",
    "Indra",
    "Vaidhriti",
)

_CHARA_KARANAS: Sequence[str] = (
    "Bava",
    "Balava",
    "Kaulava",
    "Taitila",
    "Gara",
    "Vanija",
    "Vishti",
)

_STHIRA_KARANAS: Sequence[str] = ("Shakuni", "Chatushpada", "Naga")

_karana_names: list[str] = ["Kimstughna"]
_karana_names.extend(name for _ in range(8) for name in _CHARA_KARANAS)
_karana_names.extend(_STHIRA_KARANAS)
_KARANA_NAMES: Sequence[str] = tuple(_karana_names)

_VAAR_NAMES: Sequence[tuple[str, str]] = (
    ("Ravivara", "Sunday"),
    ("Somavara", "Monday"),
    ("Mangalavara", "Tuesday"),
    ("Budhavara", "Wednesday"),
    ("Guruvara", "Thursday"),
    ("Shukravara", "Friday"),
    ("Shanivara", "Saturday"),
)


def _tithi_name(index_zero: int) -> str:
    if index_zero == 14:
        return "Purnima"
    if index_zero == 29:
        return "Amavasya"
    return _TITHI_NAMES[index_zero % 15]


def masa_name(index_zero: int) -> str:
    return MASA_SEQUENCE[index_zero % len(MASA_SEQUENCE)]


def tithi_from_longitudes(moon_longitude: float, sun_longitude: float) -> Tithi:
    """Return the tithi for the Moon-Sun elongation.

    The elongation is the same in either zodiac, so tropical and sidereal
    inputs give identical results as long as both use the same one.
    """

    delta = normalize_degrees(moon_longitude - sun_longitude)
    index_zero = segment_index(delta, TITHI_ARC_DEGREES, 30)
    progress = max(delta - index_zero * TITHI_ARC_DEGREES, 0.0) / TITHI_ARC_DEGREES
    return Tithi(
        index=index_zero + 1,
        number=index_zero % 15 + 1,
        name=_tithi_name(index_zero),
        paksha=Paksha.SHUKLA if index_zero < 15 else Paksha.KRISHNA,
        elongation=delta,
        progress=progress,
    )


def nakshatra_from_longitude(moon_sidereal_longitude: float) -> NakshatraStatus:
    placement = classify(normalize_degrees(moon_sidereal_longitude))
    return NakshatraStatus(placement=placement, progress=placement.nakshatra_fraction)


def yoga_from_longitudes(moon_sidereal_longitude: float, sun_sidereal_longitude: float) -> Yoga:
    """Return the yoga for the sum of the sidereal luminary longitudes."""

    total = normalize_degrees(moon_sidereal_longitude + sun_sidereal_longitude)
    index_zero = segment_index(total, YOGA_ARC_DEGREES, 27)
    progress = max(total - index_zero * YOGA_ARC_DEGREES, 0.0) / YOGA_ARC_DEGREES
    return Yoga(
        index=index_zero + 1,
        name=_YOGA_NAMES[index_zero],
        longitude_sum=total,
        progress=progress,
    )


def karana_from_longitudes(moon_longitude: float, sun_longitude: float) -> Karana:
    delta = normalize_degrees(moon_longitude - sun_longitude)
    index_zero = segment_index(delta, KARANA_ARC_DEGREES, 60)
    progress = max(delta - index_zero * KARANA_ARC_DEGREES, 0.0) / KARANA_ARC_DEGREES
    return Karana(
        index=index_zero + 1,
        name=_KARANA_NAMES[index_zero],
        elongation=delta,
        progress=progress,
    )


def vaar_for_date(day: date) -> Vaar:
    """Return the weekday of the civil day (reckoned from its sunrise)."""

    weekday = day.weekday()
    index_zero = (weekday + 1) % 7
    name, english = _VAAR_NAMES[index_zero]
    return Vaar(index=index_zero + 1, weekday=weekday, name=name, english=english)


def panchang_from_longitudes(
    moon_sidereal_longitude: float, sun_sidereal_longitude: float
) -> Panchang:
    return Panchang(
        tithi=tithi_from_longitudes(moon_sidereal_longitude, sun_sidereal_longitude),
        nakshatra=nakshatra_from_longitude(moon_sidereal_longitude),
        yoga=yoga_from_longitudes(moon_sidereal_longitude, sun_sidereal_longitude),
        karana=karana_from_longitudes(moon_sidereal_longitude, sun_sidereal_longitude),
    )
