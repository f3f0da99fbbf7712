"""Position sources, ayanamsha corrections and house division."""

from __future__ import annotations

from .analytic import AnalyticPositionSource
from .ayanamsha import (
    AYANAMSHA_MODELS,
    Ayanamsha,
    UserAyanamsha,
    ayanamsha_value,
    resolve_ayanamsha,
    to_sidereal,
    to_tropical,
)
from .houses import HouseSet, HouseSystem, compute_houses, houses, resolve_house_system
from .models import BodyPosition, GeoLocation, Source
from .precise import PrecisePositionProvider, PrecisePositionSource, SwissEphemerisCapability
from .sources import DegradingPositionSource, PositionSource

__all__ = [
    "AYANAMSHA_MODELS",
    "AnalyticPositionSource",
    "Ayanamsha",
    "BodyPosition",
    "DegradingPositionSource",
    "GeoLocation",
    "HouseSet",
    "HouseSystem",
    "PositionSource",
    "PrecisePositionProvider",
    "PrecisePositionSource",
    "Source",
    "SwissEphemerisCapability",
    "UserAyanamsha",
    "ayanamsha_value",
    "compute_houses",
    "houses",
    "resolve_ayanamsha",
    "resolve_house_system",
    "to_sidereal",
    "to_tropical",
]
