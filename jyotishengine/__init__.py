"""jyotishengine: Vedic astrology core computations and public API surface."""

from __future__ import annotations

import logging
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _get_version

from .config import AstrologyConfig, load_config
from .core.bodies import Body
from .core.cache import Memoizer
from .core.time import Instant
from .engine import ChartResult, EngineFacade
from .ephemeris.ayanamsha import Ayanamsha
from .ephemeris.houses import HouseSystem
from .ephemeris.models import BodyPosition, GeoLocation, Source
from .errors import (
    AstrologyError,
    CalculationFailureError,
    ErrorKind,
    PolarUndefinedError,
    SourceTimeoutError,
    SourceUnavailableError,
    ValidationError,
)

LOG = logging.getLogger(__name__)

try:
    __version__ = _get_version("jyotish-engine")
except PackageNotFoundError:  # pragma: no cover - running from a source checkout
    __version__ = "0.0.0"


def get_version() -> str:
    """Return the resolved package version."""

    return __version__


__all__ = [
    "AstrologyConfig",
    "AstrologyError",
    "Ayanamsha",
    "Body",
    "BodyPosition",
    "CalculationFailureError",
    "ChartResult",
    "EngineFacade",
    "ErrorKind",
    "GeoLocation",
    "HouseSystem",
    "Instant",
    "Memoizer",
    "PolarUndefinedError",
    "Source",
    "SourceTimeoutError",
    "SourceUnavailableError",
    "ValidationError",
    "__version__",
    "get_version",
    "load_config",
]
