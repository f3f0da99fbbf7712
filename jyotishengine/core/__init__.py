"""Angles, time scales, body identifiers and memoisation shared by every layer."""

from __future__ import annotations

from .angles import forward_arc, normalize_degrees, signed_delta
from .bodies import CLASSICAL_GRAHAS, Body, normalize_body
from .cache import Memoizer
from .time import Instant, ensure_utc, julian_day

__all__ = [
    "CLASSICAL_GRAHAS",
    "Body",
    "Instant",
    "Memoizer",
    "ensure_utc",
    "forward_arc",
    "julian_day",
    "normalize_body",
    "normalize_degrees",
    "signed_delta",
]
