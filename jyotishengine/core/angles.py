"""Angular utilities shared across position, house and calendar code.

Comparing longitudes with raw modulo arithmetic invites subtle bugs around
the 0°/360° boundary.  The helpers here centralise degree normalisation and
the small trigonometric wrappers the spherical-astronomy code leans on.
"""

from __future__ import annotations

import math
from typing import Final

__all__ = [
    "EPSILON_DEG",
    "acos_d",
    "asin_d",
    "atan2_d",
    "cos_d",
    "forward_arc",
    "normalize_degrees",
    "signed_delta",
    "sin_d",
    "tan_d",
]


EPSILON_DEG: Final[float] = 1e-9


def normalize_degrees(angle: float) -> float:
    """Return ``angle`` normalised to the ``[0, 360)`` interval.

    Parameters
    ----------
    angle:
        Value in **degrees**. Inputs outside the canonical range are
        wrapped by multiples of 360°.

    Returns
    -------
    float
        A degree value in ``[0, 360)``. Values within ``1e-9`` of ``360``
        are coerced to ``0`` so callers can rely on a consistent
        wrap-around contract at the sign and nakshatra boundaries.
    """

    wrapped = float(angle) % 360.0
    if wrapped >= 360.0 - EPSILON_DEG:
        wrapped = 0.0
    return wrapped if wrapped >= 0.0 else wrapped + 360.0


def signed_delta(angle: float) -> float:
    """Return ``angle`` wrapped to the ``[-180, 180)`` interval."""

    wrapped = normalize_degrees(angle)
    if wrapped >= 180.0:
        return wrapped - 360.0
    return wrapped


def forward_arc(start: float, end: float) -> float:
    """Return the counter-clockwise arc from ``start`` to ``end`` in ``[0, 360)``."""

    return normalize_degrees(end - start)


def sin_d(angle: float) -> float:
    return math.sin(math.radians(angle))


def cos_d(angle: float) -> float:
    return math.cos(math.radians(angle))


def tan_d(angle: float) -> float:
    return math.tan(math.radians(angle))


def asin_d(value: float) -> float:
    return math.degrees(math.asin(max(-1.0, min(1.0, value))))


def acos_d(value: float) -> float:
    return math.degrees(math.acos(max(-1.0, min(1.0, value))))


def atan2_d(y: float, x: float) -> float:
    return math.degrees(math.atan2(y, x))
