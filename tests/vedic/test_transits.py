from __future__ import annotations

import pytest

from jyotishengine.core.bodies import Body
from jyotishengine.ephemeris.houses import HouseSet, HouseSystem
from jyotishengine.ephemeris.models import BodyPosition, Source
from jyotishengine.errors import ValidationError
from jyotishengine.vedic.transits import TransitAspect, compare_transit, transit_aspect

# whole-sign frame with Aries rising
ARIES_FRAME = HouseSet(
    system=HouseSystem.WHOLE_SIGN,
    cusps=tuple(30.0 * idx for idx in range(12)),
    ascendant=12.0,
    mc=282.0,
    armc=280.0,
    vertex=190.0,
)


def _at(body: Body, longitude: float, speed: float = 0.1) -> BodyPosition:
    return BodyPosition.build(body, longitude, 0.0, 1.0, speed, Source.FALLBACK)


@pytest.mark.parametrize(
    ("separation", "aspect"),
    [
        (0.0, TransitAspect.CONJUNCTION),
        (357.0, TransitAspect.CONJUNCTION),
        (183.0, TransitAspect.OPPOSITION),
        (-121.0, TransitAspect.TRINE),
        (238.0, TransitAspect.TRINE),
        (92.0, TransitAspect.SQUARE),
        (300.0, TransitAspect.SEXTILE),
        (45.0, TransitAspect.NONE),
        (150.0, TransitAspect.NONE),
    ],
)
def test_transit_aspect(separation: float, aspect: TransitAspect) -> None:
    assert transit_aspect(separation) is aspect


def test_orb_is_exclusive() -> None:
    assert transit_aspect(5.0) is TransitAspect.NONE
    assert transit_aspect(4.99) is TransitAspect.CONJUNCTION
    assert transit_aspect(8.0, orb=10.0) is TransitAspect.CONJUNCTION


def test_saturn_moving_into_the_fourth_sign() -> None:
    transit = compare_transit(
        _at(Body.SATURN, 10.0), _at(Body.SATURN, 100.0, speed=-0.05), ARIES_FRAME
    )
    assert transit.body is Body.SATURN
    assert transit.natal_placement.rashi.name == "Aries"
    assert transit.current_placement.rashi.name == "Cancer"
    assert transit.natal_house == 1
    assert transit.current_house == 4
    assert transit.house_from_natal == 4
    assert transit.separation == pytest.approx(90.0)
    assert transit.aspect is TransitAspect.SQUARE
    assert transit.sign_changed
    assert transit.house_changed
    assert transit.retrograde


def test_house_from_natal_wraps_past_pisces() -> None:
    transit = compare_transit(_at(Body.JUPITER, 350.0), _at(Body.JUPITER, 5.0), ARIES_FRAME)
    assert transit.house_from_natal == 2
    assert transit.separation == pytest.approx(15.0)
    assert transit.natal_house == 12
    assert transit.current_house == 1


def test_unchanged_sign_and_serialisation() -> None:
    transit = compare_transit(_at(Body.MARS, 31.0), _at(Body.MARS, 33.0), ARIES_FRAME)
    assert not transit.sign_changed
    assert not transit.house_changed
    payload = transit.to_dict()
    assert payload["body"] == "mars"
    assert payload["natal_rashi"] == payload["current_rashi"] == "Taurus"
    assert payload["aspect"] == "conjunction"
    assert payload["retrograde"] is False


def test_mismatched_bodies_are_rejected() -> None:
    with pytest.raises(ValidationError) as excinfo:
        compare_transit(_at(Body.SUN, 1.0), _at(Body.MOON, 2.0), ARIES_FRAME)
    assert excinfo.value.context == {"natal": "sun", "current": "moon"}
