"""House cusp calculation for thirteen division algorithms.

Every system shares one set of angles derived from the local apparent
sidereal time (ARMC), the true obliquity and the geographic latitude.
Equal and Whole Sign are plain arithmetic; the quadrant systems use the
classical semi-arc and pole-height formulas; Horizontal reuses the Campanus
formulas in a frame turned onto the north point, and Krusinski projects a
great circle through the ascendant and the zenith.  Cusps that do not run
forward once around the zodiac raise :class:`PolarUndefinedError`.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Final

from ..core.angles import (
    asin_d,
    atan2_d,
    cos_d,
    forward_arc,
    normalize_degrees,
    signed_delta,
    sin_d,
    tan_d,
)
from ..core.time import Instant
from ..errors import PolarUndefinedError, ValidationError
from .earth import apparent_sidereal_time, true_obliquity

__all__ = [
    "HOUSE_ALIASES",
    "HouseAngles",
    "HouseSet",
    "HouseSystem",
    "POLAR_EPSILON_DEG",
    "compute_houses",
    "houses",
    "resolve_house_system",
]


POLAR_EPSILON_DEG: Final[float] = 1e-4
_PLACIDUS_TOLERANCE: Final[float] = 1e-9
_PLACIDUS_MAX_ITER: Final[int] = 100
_SWEEP_TOLERANCE: Final[float] = 1e-6


class HouseSystem(StrEnum):
    """Supported house systems; Polich/Page is another name for Topocentric."""

    PLACIDUS = "placidus"
    KOCH = "koch"
    EQUAL = "equal"
    WHOLE_SIGN = "whole_sign"
    PORPHYRY = "porphyry"
    REGIOMONTANUS = "regiomontanus"
    CAMPANUS = "campanus"
    ALCABITIUS = "alcabitius"
    TOPOCENTRIC = "topocentric"
    KRUSINSKI = "krusinski"
    AXIAL = "axial"
    HORIZONTAL = "horizontal"
    POLICH_PAGE = "topocentric"
    MORINUS = "morinus"


HOUSE_ALIASES: Mapping[str, HouseSystem] = {
    "ws": HouseSystem.WHOLE_SIGN,
    "wholesign": HouseSystem.WHOLE_SIGN,
    "whole": HouseSystem.WHOLE_SIGN,
    "polich_page": HouseSystem.POLICH_PAGE,
    "polichpage": HouseSystem.POLICH_PAGE,
    "topo": HouseSystem.TOPOCENTRIC,
    "meridian": HouseSystem.AXIAL,
    "axial_rotation": HouseSystem.AXIAL,
    "azimuthal": HouseSystem.HORIZONTAL,
    "alcabitus": HouseSystem.ALCABITIUS,
    "krusinski_pisa": HouseSystem.KRUSINSKI,
}


def resolve_house_system(value: HouseSystem | str) -> HouseSystem:
    """Return the :class:`HouseSystem` for ``value`` or one of its aliases."""

    if isinstance(value, HouseSystem):
        return value
    token = str(value).strip().lower().replace("-", "_").replace("/", "_").replace(" ", "_")
    if token in HOUSE_ALIASES:
        return HOUSE_ALIASES[token]
    try:
        return HouseSystem(token)
    except ValueError as exc:
        raise ValidationError(
            f"Unsupported house system '{value}'. Valid options: "
            f"{sorted(member.value for member in HouseSystem)}",
            context={"house_system": str(value)},
        ) from exc


@dataclass(frozen=True)
class HouseAngles:
    """Angles shared by every system, tropical longitudes in degrees."""

    armc: float
    obliquity: float
    latitude: float
    ascendant: float
    mc: float
    vertex: float


@dataclass(frozen=True)
class HouseSet:
    """Twelve cusps plus the chart angles for one house system."""

    system: HouseSystem
    cusps: tuple[float, ...]
    ascendant: float
    mc: float
    armc: float
    vertex: float

    def cusp(self, number: int) -> float:
        if not 1 <= number <= 12:
            raise ValidationError("house number must be 1-12", context={"house": number})
        return self.cusps[number - 1]

    def house_of(self, longitude: float) -> int:
        """Return the house (1–12) containing ``longitude``."""

        lon = normalize_degrees(longitude)
        for idx in range(12):
            start = self.cusps[idx]
            end = self.cusps[(idx + 1) % 12]
            if forward_arc(start, lon) < forward_arc(start, end):
                return idx + 1
        return 12

    def to_dict(self) -> dict[str, object]:
        return {
            "system": self.system.value,
            "cusps": list(self.cusps),
            "ascendant": self.ascendant,
            "mc": self.mc,
            "armc": self.armc,
            "vertex": self.vertex,
        }


def _asc_of(x1: float, pole_height: float, obliquity: float) -> float:
    """Ecliptic point rising on a circle of position with ``pole_height``."""

    return normalize_degrees(
        atan2_d(
            sin_d(x1),
            cos_d(x1) * cos_d(obliquity) - tan_d(pole_height) * sin_d(obliquity),
        )
    )


def _ecliptic_from_ra(right_ascension: float, obliquity: float) -> float:
    """Ecliptic longitude of the ecliptic point with the given right ascension."""

    return normalize_degrees(
        atan2_d(sin_d(right_ascension), cos_d(right_ascension) * cos_d(obliquity))
    )


def _ascensional_difference(latitude: float, declination: float, system: HouseSystem) -> float:
    value = tan_d(latitude) * tan_d(declination)
    if abs(value) > 1.0:
        raise PolarUndefinedError(
            f"{system.value} houses are undefined at latitude {latitude:.4f}",
            context={"system": system.value, "latitude": latitude},
        )
    return asin_d(value)


def _angles(armc: float, latitude: float, obliquity: float) -> HouseAngles:
    ascendant = _asc_of(armc + 90.0, latitude, obliquity)
    mc = _ecliptic_from_ra(armc, obliquity)
    if abs(latitude) > 90.0 - obliquity and signed_delta(ascendant - mc) < 0.0:
        # inside the polar circle the formula can return the descendant
        ascendant = normalize_degrees(ascendant + 180.0)
    colatitude = 90.0 - latitude if latitude >= 0.0 else -90.0 - latitude
    # keep tan() finite on the equator
    colatitude = max(-90.0 + 1e-9, min(90.0 - 1e-9, colatitude))
    vertex = _asc_of(armc - 90.0, colatitude, obliquity)
    return HouseAngles(armc, obliquity, latitude, ascendant, mc, vertex)


def _sweeps_forward(cusps: list[float]) -> bool:
    total = sum(forward_arc(cusps[k], cusps[(k + 1) % 12]) for k in range(12))
    return abs(total - 360.0) < _SWEEP_TOLERANCE


def _full_circle(
    first: float, second: float, third: float, tenth: float, eleventh: float, twelfth: float
) -> list[float]:
    eastern = [normalize_degrees(v) for v in (first, second, third)]
    upper = [normalize_degrees(v) for v in (tenth, eleventh, twelfth)]
    western = [normalize_degrees(v + 180.0) for v in eastern]
    lower = [normalize_degrees(v + 180.0) for v in upper]
    return [*eastern, *lower, *western, *upper]


def _from_intermediates(
    a: HouseAngles, c11: float, c12: float, c2: float, c3: float
) -> list[float]:
    return _full_circle(a.ascendant, c2, c3, a.mc, c11, c12)


def _equal(a: HouseAngles) -> list[float]:
    return [normalize_degrees(a.ascendant + 30.0 * k) for k in range(12)]


def _porphyry(a: HouseAngles) -> list[float]:
    upper = forward_arc(a.mc, a.ascendant) / 3.0
    lower = forward_arc(a.ascendant, a.mc + 180.0) / 3.0
    return _from_intermediates(
        a,
        a.mc + upper,
        a.mc + 2.0 * upper,
        a.ascendant + lower,
        a.ascendant + 2.0 * lower,
    )


def _pole_height_system(a: HouseAngles, near: float, far: float) -> list[float]:
    th, eps = a.armc, a.obliquity
    return _from_intermediates(
        a,
        _asc_of(th + 30.0, near, eps),
        _asc_of(th + 60.0, far, eps),
        _asc_of(th + 120.0, far, eps),
        _asc_of(th + 150.0, near, eps),
    )


def _regiomontanus(a: HouseAngles) -> list[float]:
    tan_phi = tan_d(a.latitude)
    near = math.degrees(math.atan(tan_phi * 0.5))
    far = math.degrees(math.atan(tan_phi * cos_d(30.0)))
    return _pole_height_system(a, near, far)


def _topocentric(a: HouseAngles) -> list[float]:
    tan_phi = tan_d(a.latitude)
    near = math.degrees(math.atan(tan_phi / 3.0))
    far = math.degrees(math.atan(tan_phi * 2.0 / 3.0))
    return _pole_height_system(a, near, far)


def _campanus(a: HouseAngles) -> list[float]:
    th, eps, phi = a.armc, a.obliquity, a.latitude
    near = asin_d(sin_d(phi) / 2.0)
    far = asin_d(math.sqrt(3.0) / 2.0 * sin_d(phi))
    cos_phi = cos_d(phi)
    xh1 = math.degrees(math.atan(math.sqrt(3.0) / cos_phi))
    xh2 = math.degrees(math.atan(1.0 / math.sqrt(3.0) / cos_phi))
    return _from_intermediates(
        a,
        _asc_of(th + 90.0 - xh1, near, eps),
        _asc_of(th + 90.0 - xh2, far, eps),
        _asc_of(th + 90.0 + xh2, far, eps),
        _asc_of(th + 90.0 + xh1, near, eps),
    )


def _morinus(a: HouseAngles) -> list[float]:
    cusps = []
    for number in range(1, 13):
        ra = a.armc + 30.0 * (number - 10)
        cusps.append(normalize_degrees(atan2_d(sin_d(ra) * cos_d(a.obliquity), cos_d(ra))))
    return cusps


def _axial(a: HouseAngles) -> list[float]:
    return [
        _ecliptic_from_ra(a.armc + 30.0 * (number - 10), a.obliquity)
        for number in range(1, 13)
    ]


def _alcabitius(a: HouseAngles) -> list[float]:
    declination = asin_d(sin_d(a.ascendant) * sin_d(a.obliquity))
    diurnal = 90.0 + _ascensional_difference(a.latitude, declination, HouseSystem.ALCABITIUS)
    nocturnal = 180.0 - diurnal
    th, eps = a.armc, a.obliquity
    return _from_intermediates(
        a,
        _ecliptic_from_ra(th + diurnal / 3.0, eps),
        _ecliptic_from_ra(th + 2.0 * diurnal / 3.0, eps),
        _ecliptic_from_ra(th + 180.0 - 2.0 * nocturnal / 3.0, eps),
        _ecliptic_from_ra(th + 180.0 - nocturnal / 3.0, eps),
    )


def _koch(a: HouseAngles) -> list[float]:
    mc_declination = asin_d(sin_d(a.mc) * sin_d(a.obliquity))
    ad = _ascensional_difference(a.latitude, mc_declination, HouseSystem.KOCH)
    th, eps, phi = a.armc, a.obliquity, a.latitude
    return _from_intermediates(
        a,
        _asc_of(th + 30.0 - 2.0 * ad / 3.0, phi, eps),
        _asc_of(th + 60.0 - ad / 3.0, phi, eps),
        _asc_of(th + 120.0 + ad / 3.0, phi, eps),
        _asc_of(th + 150.0 + 2.0 * ad / 3.0, phi, eps),
    )


def _placidus_cusp(a: HouseAngles, offset: float, fraction: float, diurnal: bool) -> float:
    """Solve one Placidus cusp by fixed-point iteration on its right ascension."""

    th, eps = a.armc, a.obliquity
    ra = th + offset
    longitude = _ecliptic_from_ra(ra, eps)
    for _ in range(_PLACIDUS_MAX_ITER):
        declination = asin_d(sin_d(eps) * sin_d(longitude))
        ad = _ascensional_difference(a.latitude, declination, HouseSystem.PLACIDUS)
        if diurnal:
            ra = th + fraction * (90.0 + ad)
        else:
            ra = th + 180.0 - fraction * (90.0 - ad)
        updated = _ecliptic_from_ra(ra, eps)
        converged = abs(signed_delta(updated - longitude)) < _PLACIDUS_TOLERANCE
        longitude = updated
        if converged:
            break
    return longitude


def _placidus(a: HouseAngles) -> list[float]:
    return _from_intermediates(
        a,
        _placidus_cusp(a, 30.0, 1.0 / 3.0, diurnal=True),
        _placidus_cusp(a, 60.0, 2.0 / 3.0, diurnal=True),
        _placidus_cusp(a, 120.0, 2.0 / 3.0, diurnal=False),
        _placidus_cusp(a, 150.0, 1.0 / 3.0, diurnal=False),
    )


def _zenith(a: HouseAngles) -> tuple[float, float, float]:
    """Zenith unit vector in equatorial coordinates."""

    th, phi = a.armc, a.latitude
    return (cos_d(phi) * cos_d(th), cos_d(phi) * sin_d(th), sin_d(phi))


def _horizontal(a: HouseAngles) -> list[float]:
    """Azimuthal division: Campanus worked in the frame whose zenith is the north point.

    The frame uses the colatitude and ARMC + 180, and the eastern cusps are
    taken on the opposite side of their house circles.  Where that numbering
    runs clockwise (low latitudes), cusps 1 and 7 stay put and the rest are
    renumbered forward.
    """

    if a.latitude > 0.0:
        colatitude = 90.0 - a.latitude
    else:
        colatitude = -90.0 - a.latitude
    # the equator puts the frame's pole on the horizon
    colatitude = max(-90.0 + 1e-9, min(90.0 - 1e-9, colatitude))
    th, eps = a.armc + 180.0, a.obliquity
    near = asin_d(sin_d(colatitude) / 2.0)
    far = asin_d(math.sqrt(3.0) / 2.0 * sin_d(colatitude))
    cos_c = cos_d(colatitude)
    xh1 = math.degrees(math.atan(math.sqrt(3.0) / cos_c))
    xh2 = math.degrees(math.atan(1.0 / math.sqrt(3.0) / cos_c))
    cusps = _full_circle(
        _asc_of(th + 90.0, colatitude, eps) + 180.0,
        _asc_of(th + 90.0 + xh2, far, eps) + 180.0,
        _asc_of(th + 90.0 + xh1, near, eps) + 180.0,
        a.mc,
        _asc_of(th + 90.0 - xh1, near, eps) + 180.0,
        _asc_of(th + 90.0 - xh2, far, eps) + 180.0,
    )
    if _sweeps_forward(cusps):
        return cusps
    return [cusps[-k % 12] for k in range(12)]


def _krusinski(a: HouseAngles) -> list[float]:
    zenith = _zenith(a)
    eps = a.obliquity
    asc_vec = (
        cos_d(a.ascendant),
        sin_d(a.ascendant) * cos_d(eps),
        sin_d(a.ascendant) * sin_d(eps),
    )
    # the ascendant lies on the horizon, so zenith is orthogonal to it
    cusps = []
    for number in range(1, 13):
        angle = 30.0 * ((1 - number) % 12)
        point = tuple(cos_d(angle) * u + sin_d(angle) * z for u, z in zip(asc_vec, zenith))
        right_ascension = atan2_d(point[1], point[0])
        cusps.append(_ecliptic_from_ra(right_ascension, eps))
    return cusps


def _whole_sign(a: HouseAngles) -> list[float]:
    # resolved against the zodiac frame in compute_houses
    return _equal(a)


_SYSTEMS: Mapping[HouseSystem, Callable[[HouseAngles], list[float]]] = {
    HouseSystem.PLACIDUS: _placidus,
    HouseSystem.KOCH: _koch,
    HouseSystem.EQUAL: _equal,
    HouseSystem.WHOLE_SIGN: _whole_sign,
    HouseSystem.PORPHYRY: _porphyry,
    HouseSystem.REGIOMONTANUS: _regiomontanus,
    HouseSystem.CAMPANUS: _campanus,
    HouseSystem.ALCABITIUS: _alcabitius,
    HouseSystem.TOPOCENTRIC: _topocentric,
    HouseSystem.KRUSINSKI: _krusinski,
    HouseSystem.AXIAL: _axial,
    HouseSystem.HORIZONTAL: _horizontal,
    HouseSystem.MORINUS: _morinus,
}


def compute_houses(
    armc: float,
    latitude: float,
    obliquity: float,
    system: HouseSystem | str = HouseSystem.PLACIDUS,
    *,
    ayanamsha_offset: float = 0.0,
) -> HouseSet:
    """Return the :class:`HouseSet` for an ARMC/latitude/obliquity triple.

    ``ayanamsha_offset`` is subtracted from every ecliptic longitude so the
    result can be expressed in a sidereal zodiac; whole-sign cusps snap to
    sign boundaries of that zodiac.
    """

    resolved = resolve_house_system(system)
    if not math.isfinite(latitude) or not -90.0 <= latitude <= 90.0:
        raise ValidationError("latitude must lie in [-90, 90]", context={"latitude": latitude})
    if abs(latitude) >= 90.0 - POLAR_EPSILON_DEG:
        raise PolarUndefinedError(
            f"houses are undefined at latitude {latitude}",
            context={"system": resolved.value, "latitude": latitude},
        )
    angles = _angles(normalize_degrees(armc), latitude, obliquity)
    tropical = _SYSTEMS[resolved](angles)
    if not _sweeps_forward(tropical):
        raise PolarUndefinedError(
            f"{resolved.value} cusps do not run forward around the zodiac"
            f" at latitude {latitude:.4f}",
            context={"system": resolved.value, "latitude": latitude, "armc": angles.armc},
        )

    def shift(value: float) -> float:
        return normalize_degrees(value - ayanamsha_offset)

    ascendant = shift(angles.ascendant)
    if resolved is HouseSystem.WHOLE_SIGN:
        first = math.floor(ascendant / 30.0) * 30.0
        cusps = tuple(normalize_degrees(first + 30.0 * k) for k in range(12))
    else:
        cusps = tuple(shift(value) for value in tropical)
    return HouseSet(
        system=resolved,
        cusps=cusps,
        ascendant=ascendant,
        mc=shift(angles.mc),
        armc=angles.armc,
        vertex=shift(angles.vertex),
    )


def houses(
    instant: Instant,
    latitude: float,
    longitude: float,
    system: HouseSystem | str = HouseSystem.PLACIDUS,
    *,
    ayanamsha_offset: float = 0.0,
) -> HouseSet:
    """Compute houses for ``instant`` at a geographic location."""

    if not math.isfinite(longitude) or not -180.0 <= longitude <= 360.0:
        raise ValidationError("longitude must lie in [-180, 360]", context={"longitude": longitude})
    armc = apparent_sidereal_time(instant.jd_ut, instant.jd_tt, longitude)
    obliquity = true_obliquity(instant.centuries_tt)
    return compute_houses(
        armc, latitude, obliquity, system, ayanamsha_offset=ayanamsha_offset
    )
