"""Pure-python analytic ephemeris used when no precise capability answers.

Positions come from PyMeeus, which implements the Meeus algorithms:

* Sun: VSOP87 Earth series with nutation and aberration applied.
* Moon: the ELP-2000/82 based periodic series, plus nutation in longitude.
* Mercury to Neptune: apparent geocentric VSOP87 positions, converted
  from equatorial to ecliptic coordinates with the true obliquity.
* Pluto: the Meeus periodic theory (J2000), precessed to date.  PyMeeus
  only covers 1885-2099 for Pluto.
* Rahu: mean or true ascending node of the lunar orbit.

All longitudes are geocentric and referred to the true equinox of date.
Speeds come from a symmetric numeric derivative.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from typing import Final, Literal

from pymeeus.Angle import Angle
from pymeeus.Coordinates import (
    equatorial2ecliptical,
    mean_obliquity as _mean_obliquity,
    nutation_longitude,
    precession_ecliptical,
    true_obliquity as _true_obliquity,
)
from pymeeus.Earth import Earth
from pymeeus.Epoch import Epoch
from pymeeus.Jupiter import Jupiter
from pymeeus.Mars import Mars
from pymeeus.Mercury import Mercury
from pymeeus.Moon import Moon
from pymeeus.Neptune import Neptune
from pymeeus.Pluto import Pluto
from pymeeus.Saturn import Saturn
from pymeeus.Sun import Sun
from pymeeus.Uranus import Uranus
from pymeeus.Venus import Venus

from ..core.angles import normalize_degrees, signed_delta
from ..core.bodies import Body, normalize_body
from ..core.time import J2000, Instant
from ..errors import CalculationFailureError
from .models import BodyPosition, GeoLocation, Source

__all__ = [
    "AnalyticPositionSource",
    "NodeType",
    "lunar_node_longitude",
    "moon_ecliptic",
    "planet_ecliptic",
    "sun_ecliptic",
]

NodeType = Literal["mean", "true"]

AU_KM: Final[float] = 149_597_870.7
_MEAN_LUNAR_DISTANCE_AU: Final[float] = 384_400.0 / AU_KM

_PLANETS: Final[dict[Body, type]] = {
    Body.MERCURY: Mercury,
    Body.VENUS: Venus,
    Body.MARS: Mars,
    Body.JUPITER: Jupiter,
    Body.SATURN: Saturn,
    Body.URANUS: Uranus,
    Body.NEPTUNE: Neptune,
}

_J2000_EPOCH: Final[Epoch] = Epoch(J2000)


def _epoch(jd_tt: float) -> Epoch:
    return Epoch(jd_tt)


def _deg(angle: Angle) -> float:
    return float(angle)


def _lon(angle: Angle) -> float:
    return normalize_degrees(float(angle))


def sun_ecliptic(jd_tt: float) -> tuple[float, float, float]:
    """Apparent geocentric ``(longitude, latitude, radius_au)`` of the Sun."""

    lon, lat, radius = Sun.apparent_geocentric_position(_epoch(jd_tt))
    return _lon(lon), _deg(lat), float(radius)


def moon_ecliptic(jd_tt: float) -> tuple[float, float, float]:
    """Apparent geocentric ``(longitude, latitude, distance_au)`` of the Moon."""

    epoch = _epoch(jd_tt)
    lon, lat, distance_km, _parallax = Moon.geocentric_ecliptical_pos(epoch)
    longitude = _lon(lon) + _deg(nutation_longitude(epoch))
    return normalize_degrees(longitude), _deg(lat), float(distance_km) / AU_KM


def lunar_node_longitude(jd_tt: float, node_type: NodeType = "mean") -> float:
    """Longitude of the Moon's ascending node (Rahu)."""

    epoch = _epoch(jd_tt)
    if node_type == "true":
        return _lon(Moon.longitude_true_ascending_node(epoch))
    return _lon(Moon.longitude_mean_ascending_node(epoch))


def _heliocentric_distance(
    heliocentric: Callable[[Epoch], tuple[Angle, Angle, float]], epoch: Epoch
) -> float:
    """Earth-body distance in AU from geometric heliocentric coordinates."""

    def rectangular(lon: Angle, lat: Angle, r: float) -> tuple[float, float, float]:
        lam, beta = math.radians(float(lon)), math.radians(float(lat))
        return (
            r * math.cos(beta) * math.cos(lam),
            r * math.cos(beta) * math.sin(lam),
            r * math.sin(beta),
        )

    px, py, pz = rectangular(*heliocentric(epoch))
    ex, ey, ez = rectangular(*Earth.geometric_heliocentric_position(epoch))
    return math.sqrt((px - ex) ** 2 + (py - ey) ** 2 + (pz - ez) ** 2)


def _pluto_ecliptic(jd_tt: float) -> tuple[float, float, float]:
    epoch = _epoch(jd_tt)
    try:
        ra, dec = Pluto.geocentric_position(epoch)
        distance = _heliocentric_distance(Pluto.geometric_heliocentric_position, epoch)
    except ValueError as exc:
        raise CalculationFailureError(
            "analytic Pluto theory only covers 1885-2099",
            context={"body": Body.PLUTO.value, "jd_tt": jd_tt},
        ) from exc
    lon_j2000, lat_j2000 = equatorial2ecliptical(ra, dec, _mean_obliquity(_J2000_EPOCH))
    lon, lat = precession_ecliptical(_J2000_EPOCH, epoch, lon_j2000, lat_j2000)
    longitude = _lon(lon) + _deg(nutation_longitude(epoch))
    return normalize_degrees(longitude), _deg(lat), distance


def planet_ecliptic(body: Body, jd_tt: float) -> tuple[float, float, float]:
    """Apparent geocentric ``(longitude, latitude, distance_au)`` of a planet."""

    if body is Body.PLUTO:
        return _pluto_ecliptic(jd_tt)
    epoch = _epoch(jd_tt)
    planet = _PLANETS.get(body)
    if planet is None:
        raise CalculationFailureError(
            f"no analytic theory for {body.value}", context={"body": body.value}
        )
    ra, dec, _elongation = planet.geocentric_position(epoch)
    lon, lat = equatorial2ecliptical(ra, dec, _true_obliquity(epoch))
    distance = _heliocentric_distance(planet.geometric_heliocentric_position, epoch)
    return _lon(lon), _deg(lat), distance


class AnalyticPositionSource:
    """Position source backed by the PyMeeus series above."""

    source = Source.FALLBACK

    def __init__(self, node_type: NodeType = "mean") -> None:
        self.node_type = node_type

    def _components(self, body: Body, jd_tt: float) -> tuple[float, float, float]:
        if body is Body.SUN:
            return sun_ecliptic(jd_tt)
        if body is Body.MOON:
            return moon_ecliptic(jd_tt)
        if body.is_node:
            rahu = lunar_node_longitude(jd_tt, self.node_type)
            lon = rahu if body is Body.RAHU else rahu + 180.0
            # mean lunar distance keeps the record well-formed
            return normalize_degrees(lon), 0.0, _MEAN_LUNAR_DISTANCE_AU
        return planet_ecliptic(body, jd_tt)

    def longitude(self, body: Body, jd_tt: float) -> float:
        return self._components(body, jd_tt)[0]

    def _speed(self, body: Body, jd_tt: float) -> float:
        step = 1.0 / 24.0 if body is Body.MOON else 0.5
        before = self._components(body, jd_tt - step)[0]
        after = self._components(body, jd_tt + step)[0]
        return signed_delta(after - before) / (2.0 * step)

    def position(
        self,
        body: Body | str,
        instant: Instant,
        location: GeoLocation | None = None,
    ) -> BodyPosition:
        resolved = normalize_body(body)
        lon, lat, distance = self._components(resolved, instant.jd_tt)
        speed = self._speed(resolved, instant.jd_tt)
        return BodyPosition.build(resolved, lon, lat, distance, speed, Source.FALLBACK)

    def positions(
        self,
        bodies: Sequence[Body | str],
        instant: Instant,
        location: GeoLocation | None = None,
    ) -> dict[Body, BodyPosition]:
        return {
            normalize_body(body): self.position(body, instant, location) for body in bodies
        }
