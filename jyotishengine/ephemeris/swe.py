"""Lazy access to the optional ``pyswisseph`` binding."""

from __future__ import annotations

import importlib
import importlib.util
from typing import Any

from ..errors import SourceUnavailableError

__all__ = ["has_swe", "load_swe", "reset_swe"]

_swe_mod: Any | None = None


def load_swe() -> Any:
    """Import ``swisseph`` on first use and cache the module."""

    global _swe_mod
    if _swe_mod is None:
        try:
            _swe_mod = importlib.import_module("swisseph")
        except ImportError as exc:  # pragma: no cover - depends on environment
            raise SourceUnavailableError(
                "Swiss Ephemeris not available. Install the 'ephem' extra (pyswisseph) "
                "and set SE_EPHE_PATH to your ephemeris data directory.",
                context={"module": "swisseph"},
            ) from exc
    return _swe_mod


def reset_swe() -> None:
    """For tests: force a reload of swisseph on next use."""

    global _swe_mod
    _swe_mod = None


def has_swe() -> bool:
    """Return ``True`` if pyswisseph is importable."""

    if _swe_mod is not None:
        return True
    return importlib.util.find_spec("swisseph") is not None
