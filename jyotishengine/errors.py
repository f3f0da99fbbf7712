"""Typed error hierarchy shared by every jyotishengine component.

Each exception carries an :class:`ErrorKind` so callers can branch on the
failure category without string matching.  Only the degrading position
source recovers from errors internally; everything else propagates.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

__all__ = [
    "AstrologyError",
    "CalculationFailureError",
    "ErrorKind",
    "PolarUndefinedError",
    "SourceUnavailableError",
    "SourceTimeoutError",
    "ValidationError",
]


class ErrorKind(str, Enum):
    """Failure categories surfaced by the engine."""

    VALIDATION = "validation"
    CALCULATION_FAILURE = "calculation_failure"
    POLAR_UNDEFINED = "polar_undefined"
    SOURCE_UNAVAILABLE = "source_unavailable"
    TIMEOUT = "timeout"


class AstrologyError(RuntimeError):
    """Structured error raised when a calculation cannot be satisfied."""

    kind: ErrorKind = ErrorKind.CALCULATION_FAILURE

    def __init__(
        self,
        message: str,
        *,
        retriable: bool = False,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.retriable = retriable
        self.context = dict(context or {})

    @property
    def error_code(self) -> str:
        return self.kind.value.upper()


class ValidationError(AstrologyError, ValueError):
    """Malformed instant, location, body, longitude or configuration."""

    kind = ErrorKind.VALIDATION


class CalculationFailureError(AstrologyError):
    """A source errored or produced non-finite / out-of-range output."""

    kind = ErrorKind.CALCULATION_FAILURE


class PolarUndefinedError(AstrologyError):
    """House division is undefined at the requested latitude."""

    kind = ErrorKind.POLAR_UNDEFINED


class SourceUnavailableError(AstrologyError):
    """The precise ephemeris capability is missing or disabled."""

    kind = ErrorKind.SOURCE_UNAVAILABLE


class SourceTimeoutError(AstrologyError):
    """A bounded call into the precise capability did not complete in time."""

    kind = ErrorKind.TIMEOUT

    def __init__(
        self,
        message: str,
        *,
        retriable: bool = True,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message, retriable=retriable, context=context)
