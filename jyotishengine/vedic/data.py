"""Reference tables for signs, nakshatras and planetary relationships.

* Sign rulership, element and quality follow the classical Parasara scheme.
* Nakshatra symbols and deities follow the lists reproduced in most
  Panchanga almanacs; the Vimshottari lord repeats every nine mansions.
* Friendship and enmity between grahas mirror *Brihat Parashara Hora
  Shastra*, Chapter 3.  Rahu behaves like Saturn and Venus, Ketu mirrors
  Mars and Jupiter.

The tables are written in Python so they can be indexed efficiently without
loading external files at runtime.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Final

from ..core.bodies import Body

__all__ = [
    "NAKSHATRA_ARC_DEGREES",
    "NAKSHATRA_DATA",
    "NAKSHATRA_LORD_SEQUENCE",
    "PADA_ARC_DEGREES",
    "PLANET_ENEMIES",
    "PLANET_FRIENDS",
    "RASHI_DATA",
    "SIGN_ARC_DEGREES",
    "SIGN_LORDS",
    "relationship",
]

SIGN_ARC_DEGREES: Final[float] = 30.0
NAKSHATRA_ARC_DEGREES: Final[float] = 360.0 / 27.0
PADA_ARC_DEGREES: Final[float] = NAKSHATRA_ARC_DEGREES / 4.0

# (name, sanskrit name, symbol, element, quality)
RASHI_DATA: Final[Sequence[tuple[str, str, str, str, str]]] = (
    ("Aries", "Mesha", "♈", "fire", "movable"),
    ("Taurus", "Vrishabha", "♉", "earth", "fixed"),
    ("Gemini", "Mithuna", "♊", "air", "dual"),
    ("Cancer", "Karka", "♋", "water", "movable"),
    ("Leo", "Simha", "♌", "fire", "fixed"),
    ("Virgo", "Kanya", "♍", "earth", "dual"),
    ("Libra", "Tula", "♎", "air", "movable"),
    ("Scorpio", "Vrishchika", "♏", "water", "fixed"),
    ("Sagittarius", "Dhanu", "♐", "fire", "dual"),
    ("Capricorn", "Makara", "♑", "earth", "movable"),
    ("Aquarius", "Kumbha", "♒", "air", "fixed"),
    ("Pisces", "Meena", "♓", "water", "dual"),
)

SIGN_LORDS: Final[Sequence[Body]] = (
    Body.MARS,
    Body.VENUS,
    Body.MERCURY,
    Body.MOON,
    Body.SUN,
    Body.MERCURY,
    Body.VENUS,
    Body.MARS,
    Body.JUPITER,
    Body.SATURN,
    Body.SATURN,
    Body.JUPITER,
)

NAKSHATRA_LORD_SEQUENCE: Final[Sequence[Body]] = (
    Body.KETU,
    Body.VENUS,
    Body.SUN,
    Body.MOON,
    Body.MARS,
    Body.RAHU,
    Body.JUPITER,
    Body.SATURN,
    Body.MERCURY,
)

# (name, symbol, deity)
NAKSHATRA_DATA: Final[Sequence[tuple[str, str, str]]] = (
    ("Ashwini", "Horse's head", "Ashvini Kumaras"),
    ("Bharani", "Yoni", "Yama"),
    ("Krittika", "Flame", "Agni"),
    ("Rohini", "Chariot", "Brahma"),
    ("Mrigashira", "Deer's head", "Soma"),
    ("Ardra", "Teardrop", "Rudra"),
    ("Punarvasu", "Quiver", "Aditi"),
    ("Pushya", "Cow's udder", "Brihaspati"),
    ("Ashlesha", "Coiled serpent", "Nagas"),
    ("Magha", "Throne", "Pitrs"),
    ("Purva Phalguni", "Front legs of bed", "Bhaga"),
    ("Uttara Phalguni", "Back legs of bed", "Aryaman"),
    ("Hasta", "Hand", "Savitar"),
    ("Chitra", "Bright jewel", "Tvashtar"),
    ("Swati", "Coral", "Vayu"),
    ("Vishakha", "Triumphal arch", "Indra-Agni"),
    ("Anuradha", "Lotus", "Mitra"),
    ("Jyeshtha", "Earring", "Indra"),
    ("Mula", "Roots", "Nirriti"),
    ("Purva Ashadha", "Fan", "Apah"),
    ("Uttara Ashadha", "Plank", "Vishva Devas"),
    ("Shravana", "Ear", "Vishnu"),
    ("Dhanishta", "Drum", "Vasus"),
    ("Shatabhisha", "Veiling circle", "Varuna"),
    ("Purva Bhadrapada", "Front legs of funeral cot", "Aja Ekapada"),
    ("Uttara Bhadrapada", "Back legs of funeral cot", "Ahirbudhnya"),
    ("Revati", "Fish", "Pushan"),
)

PLANET_FRIENDS: Final[Mapping[Body, frozenset[Body]]] = {
    Body.SUN: frozenset({Body.MOON, Body.MARS, Body.JUPITER}),
    Body.MOON: frozenset({Body.SUN, Body.MERCURY}),
    Body.MARS: frozenset({Body.SUN, Body.MOON, Body.JUPITER}),
    Body.MERCURY: frozenset({Body.SUN, Body.VENUS}),
    Body.JUPITER: frozenset({Body.SUN, Body.MOON, Body.MARS}),
    Body.VENUS: frozenset({Body.MERCURY, Body.SATURN}),
    Body.SATURN: frozenset({Body.MERCURY, Body.VENUS}),
    Body.RAHU: frozenset({Body.VENUS, Body.SATURN}),
    Body.KETU: frozenset({Body.MARS, Body.JUPITER}),
}

PLANET_ENEMIES: Final[Mapping[Body, frozenset[Body]]] = {
    Body.SUN: frozenset({Body.VENUS, Body.SATURN}),
    Body.MOON: frozenset(),
    Body.MARS: frozenset({Body.MERCURY}),
    Body.MERCURY: frozenset({Body.MOON}),
    Body.JUPITER: frozenset({Body.VENUS, Body.MERCURY}),
    Body.VENUS: frozenset({Body.SUN, Body.MOON}),
    Body.SATURN: frozenset({Body.SUN, Body.MOON, Body.MARS}),
    Body.RAHU: frozenset({Body.SUN, Body.MOON}),
    Body.KETU: frozenset({Body.SUN, Body.MOON}),
}


def relationship(planet: Body, other: Body) -> str:
    """Return ``"friend"``, ``"enemy"`` or ``"neutral"`` as seen from ``planet``."""

    if other in PLANET_FRIENDS[planet]:
        return "friend"
    if other in PLANET_ENEMIES[planet]:
        return "enemy"
    return "neutral"
