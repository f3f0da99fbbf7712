"""Gochara: current sidereal positions compared against a natal chart.

Each body's transit is read three ways: the rashi it occupies now versus
at birth, the natal house it now passes through, and the angular aspect
it makes to its own natal longitude.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Final

from ..core.angles import normalize_degrees, signed_delta
from ..core.bodies import Body
from ..ephemeris.houses import HouseSet
from ..ephemeris.models import BodyPosition
from ..errors import ValidationError
from .classification import Classification, classify

__all__ = [
    "ASPECT_ORB_DEGREES",
    "Transit",
    "TransitAspect",
    "compare_transit",
    "transit_aspect",
]

ASPECT_ORB_DEGREES: Final[float] = 5.0


class TransitAspect(StrEnum):
    """Aspect a transiting body makes to its own natal longitude."""

    CONJUNCTION = "conjunction"
    OPPOSITION = "opposition"
    TRINE = "trine"
    SQUARE = "square"
    SEXTILE = "sextile"
    NONE = "none"


# checked in order; the first angle within the orb wins
_ASPECT_ANGLES: Final[tuple[tuple[float, TransitAspect], ...]] = (
    (0.0, TransitAspect.CONJUNCTION),
    (180.0, TransitAspect.OPPOSITION),
    (120.0, TransitAspect.TRINE),
    (90.0, TransitAspect.SQUARE),
    (60.0, TransitAspect.SEXTILE),
)


def transit_aspect(separation: float, orb: float = ASPECT_ORB_DEGREES) -> TransitAspect:
    """Classify an angular separation (either direction) into an aspect."""

    distance = abs(signed_delta(separation))
    for angle, aspect in _ASPECT_ANGLES:
        if abs(distance - angle) < orb:
            return aspect
    return TransitAspect.NONE


@dataclass(frozen=True)
class Transit:
    body: Body
    natal: BodyPosition
    current: BodyPosition
    natal_placement: Classification
    current_placement: Classification
    natal_house: int
    current_house: int
    aspect: TransitAspect

    @property
    def separation(self) -> float:
        """Forward arc from the natal to the current longitude."""

        return normalize_degrees(self.current.longitude - self.natal.longitude)

    @property
    def house_from_natal(self) -> int:
        """Whole-sign count of the current rashi from the natal rashi (1-12)."""

        return (self.current_placement.rashi.number - self.natal_placement.rashi.number) % 12 + 1

    @property
    def sign_changed(self) -> bool:
        return self.current_placement.rashi != self.natal_placement.rashi

    @property
    def house_changed(self) -> bool:
        return self.current_house != self.natal_house

    @property
    def retrograde(self) -> bool:
        return self.current.retrograde

    def to_dict(self) -> dict[str, Any]:
        return {
            "body": self.body.value,
            "natal_longitude": self.natal.longitude,
            "current_longitude": self.current.longitude,
            "natal_rashi": self.natal_placement.rashi.name,
            "current_rashi": self.current_placement.rashi.name,
            "natal_house": self.natal_house,
            "current_house": self.current_house,
            "house_from_natal": self.house_from_natal,
            "separation": self.separation,
            "aspect": self.aspect.value,
            "sign_changed": self.sign_changed,
            "house_changed": self.house_changed,
            "retrograde": self.retrograde,
        }


def compare_transit(natal: BodyPosition, current: BodyPosition, houses: HouseSet) -> Transit:
    """Compare one body's natal and current sidereal positions in a natal house frame."""

    if natal.body is not current.body:
        raise ValidationError(
            "natal and current positions belong to different bodies",
            context={"natal": natal.body.value, "current": current.body.value},
        )
    return Transit(
        body=natal.body,
        natal=natal,
        current=current,
        natal_placement=classify(natal.longitude),
        current_placement=classify(current.longitude),
        natal_house=houses.house_of(natal.longitude),
        current_house=houses.house_of(current.longitude),
        aspect=transit_aspect(current.longitude - natal.longitude),
    )
