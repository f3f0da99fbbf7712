"""Ayanamsha models converting between tropical and sidereal longitudes.

Each model is pinned to a reference epoch and the ayanamsha value at that
epoch, then carried forward with the IAU 1976 general precession in
longitude.  The result is a deterministic function of time per model so
every conversion can be inverted exactly.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Final

from ..core.angles import normalize_degrees
from ..core.time import J2000
from ..errors import ValidationError

__all__ = [
    "AYANAMSHA_MODELS",
    "Ayanamsha",
    "AyanamshaModel",
    "UserAyanamsha",
    "ayanamsha_value",
    "general_precession",
    "normalize_ayanamsha_name",
    "resolve_ayanamsha",
    "to_sidereal",
    "to_tropical",
]


class Ayanamsha(StrEnum):
    """The sixteen supported ayanamsha models."""

    LAHIRI = "lahiri"
    RAMAN = "raman"
    KRISHNAMURTI = "krishnamurti"
    FAGAN_BRADLEY = "fagan_bradley"
    YUKTESHWAR = "yukteshwar"
    JN_BHASIN = "jn_bhasin"
    BABYLONIAN = "babylonian"
    SASSANIAN = "sassanian"
    ALDEBARAN_15_TAU = "aldebaran_15_tau"
    GALACTIC_CENTER = "galactic_center"
    GALACTIC_EQUATOR = "galactic_equator"
    GALACTIC_EQUATOR_IAU1958 = "galactic_equator_iau1958"
    GALACTIC_EQUATOR_TRUE = "galactic_equator_true"
    GALACTIC_EQUATOR_MULA = "galactic_equator_mula"
    ZERO = "zero"
    USER = "user"


@dataclass(frozen=True)
class AyanamshaModel:
    """Reference-epoch definition of a single ayanamsha."""

    ayanamsha: Ayanamsha
    label: str
    epoch_jd: float
    value_deg: float


@dataclass(frozen=True)
class UserAyanamsha:
    """User supplied reference value for :attr:`Ayanamsha.USER`."""

    epoch_jd: float
    value_deg: float


def _model(ayanamsha: Ayanamsha, label: str, value_deg: float) -> AyanamshaModel:
    return AyanamshaModel(ayanamsha, label, J2000, value_deg)


# Values at J2000.0 (TT).
AYANAMSHA_MODELS: Final[dict[Ayanamsha, AyanamshaModel]] = {
    model.ayanamsha: model
    for model in (
        _model(Ayanamsha.LAHIRI, "Lahiri (Chitrapaksha)", 23.857092),
        _model(Ayanamsha.RAMAN, "B. V. Raman", 22.410791),
        _model(Ayanamsha.KRISHNAMURTI, "Krishnamurti (KP)", 23.760240),
        _model(Ayanamsha.FAGAN_BRADLEY, "Fagan/Bradley", 24.740300),
        _model(Ayanamsha.YUKTESHWAR, "Sri Yukteshwar", 22.478803),
        _model(Ayanamsha.JN_BHASIN, "J. N. Bhasin", 22.762086),
        _model(Ayanamsha.BABYLONIAN, "Babylonian (Huber)", 24.733653),
        _model(Ayanamsha.SASSANIAN, "Sassanian", 19.992959),
        _model(Ayanamsha.ALDEBARAN_15_TAU, "Aldebaran at 15 Taurus", 24.758600),
        _model(Ayanamsha.GALACTIC_CENTER, "Galactic Centre at 0 Sagittarius", 26.846050),
        _model(Ayanamsha.GALACTIC_EQUATOR, "Galactic Equator (Fiorenza)", 25.000019),
        _model(Ayanamsha.GALACTIC_EQUATOR_IAU1958, "Galactic Equator (IAU 1958)", 30.105700),
        _model(Ayanamsha.GALACTIC_EQUATOR_TRUE, "Galactic Equator (true)", 30.100750),
        _model(Ayanamsha.GALACTIC_EQUATOR_MULA, "Galactic Equator mid-Mula", 23.374036),
        _model(Ayanamsha.ZERO, "Tropical (zero offset)", 0.0),
    )
}

_ALIASES: Final[dict[str, Ayanamsha]] = {
    "chitrapaksha": Ayanamsha.LAHIRI,
    "kp": Ayanamsha.KRISHNAMURTI,
    "fagan": Ayanamsha.FAGAN_BRADLEY,
    "sri_yukteshwar": Ayanamsha.YUKTESHWAR,
    "bhasin": Ayanamsha.JN_BHASIN,
    "huber": Ayanamsha.BABYLONIAN,
    "aldebaran": Ayanamsha.ALDEBARAN_15_TAU,
    "galactic_center_0_sag": Ayanamsha.GALACTIC_CENTER,
    "galactic_centre": Ayanamsha.GALACTIC_CENTER,
    "tropical": Ayanamsha.ZERO,
    "none": Ayanamsha.ZERO,
    "custom": Ayanamsha.USER,
}


def normalize_ayanamsha_name(value: str) -> str:
    """Return a canonical key for the provided ayanamsha name."""

    token = value.strip().lower().replace("-", "_").replace("/", "_").replace(" ", "_")
    return token.replace(".", "")


def resolve_ayanamsha(value: Ayanamsha | str) -> Ayanamsha:
    """Return the :class:`Ayanamsha` member for ``value`` or its alias."""

    if isinstance(value, Ayanamsha):
        return value
    key = normalize_ayanamsha_name(str(value))
    if key in _ALIASES:
        return _ALIASES[key]
    try:
        return Ayanamsha(key)
    except ValueError as exc:
        raise ValidationError(
            f"Unknown ayanamsha '{value}'", context={"ayanamsha": str(value)}
        ) from exc


def general_precession(jd_tt: float) -> float:
    """Accumulated general precession in longitude since J2000, in degrees."""

    t = (jd_tt - J2000) / 36525.0
    return (5028.796195 * t + 1.1054348 * t * t) / 3600.0


def ayanamsha_value(
    ayanamsha: Ayanamsha | str,
    jd_tt: float,
    *,
    user: UserAyanamsha | None = None,
) -> float:
    """Return the ayanamsha in degrees at ``jd_tt``."""

    key = resolve_ayanamsha(ayanamsha)
    if key is Ayanamsha.ZERO:
        return 0.0
    if key is Ayanamsha.USER:
        if user is None:
            raise ValidationError(
                "user ayanamsha requires an epoch and reference value",
                context={"ayanamsha": key.value},
            )
        epoch_jd, value_deg = user.epoch_jd, user.value_deg
    else:
        model = AYANAMSHA_MODELS[key]
        epoch_jd, value_deg = model.epoch_jd, model.value_deg
    return value_deg + general_precession(jd_tt) - general_precession(epoch_jd)


def to_sidereal(
    tropical_longitude: float,
    ayanamsha: Ayanamsha | str,
    jd_tt: float,
    *,
    user: UserAyanamsha | None = None,
) -> float:
    """Return ``(tropical - ayanamsha) mod 360``."""

    return normalize_degrees(tropical_longitude - ayanamsha_value(ayanamsha, jd_tt, user=user))


def to_tropical(
    sidereal_longitude: float,
    ayanamsha: Ayanamsha | str,
    jd_tt: float,
    *,
    user: UserAyanamsha | None = None,
) -> float:
    """Inverse of :func:`to_sidereal`."""

    return normalize_degrees(sidereal_longitude + ayanamsha_value(ayanamsha, jd_tt, user=user))
