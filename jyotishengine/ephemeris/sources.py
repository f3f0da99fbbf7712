"""Position source contract and the precise→fallback degradation policy."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from ..core.bodies import Body, normalize_body
from ..core.time import Instant
from ..errors import AstrologyError, ErrorKind
from ..observability.metrics import FALLBACK_ACTIVATIONS, POSITION_QUERIES
from .analytic import AnalyticPositionSource
from .models import BodyPosition, GeoLocation
from .precise import PrecisePositionSource

__all__ = ["DegradingPositionSource", "PositionSource"]

LOG = logging.getLogger(__name__)

_RECOVERABLE = frozenset(
    {
        ErrorKind.SOURCE_UNAVAILABLE,
        ErrorKind.TIMEOUT,
        ErrorKind.CALCULATION_FAILURE,
    }
)

_ERR_CODES = {
    ErrorKind.SOURCE_UNAVAILABLE: "PRECISE_UNAVAILABLE",
    ErrorKind.TIMEOUT: "PRECISE_TIMEOUT",
    ErrorKind.CALCULATION_FAILURE: "PRECISE_FAILURE",
}


@runtime_checkable
class PositionSource(Protocol):
    """Anything able to return a geocentric :class:`BodyPosition`."""

    def position(
        self,
        body: Body | str,
        instant: Instant,
        location: GeoLocation | None = None,
    ) -> BodyPosition: ...


class DegradingPositionSource:
    """Try the precise source first and fall back to the analytic model.

    Unavailable, timed out (after the precise source's own retries) and
    failed/malformed precise results are recovered by answering from the
    analytic model; the returned position carries ``Source.FALLBACK``.
    Validation errors propagate untouched, as do failures of the fallback
    itself.
    """

    def __init__(
        self,
        precise: PrecisePositionSource | None,
        fallback: AnalyticPositionSource | None = None,
        *,
        prefer_precise: bool = True,
    ) -> None:
        self.precise = precise
        self.fallback = fallback or AnalyticPositionSource()
        self.prefer_precise = prefer_precise
        if self._active_precise() is None:
            LOG.info(
                "precise ephemeris not in use; answering from the analytic model",
                extra={"err_code": "FALLBACK_ACTIVE", "prefer_precise": prefer_precise},
            )

    def _active_precise(self) -> PrecisePositionSource | None:
        if self.prefer_precise and self.precise is not None and self.precise.available:
            return self.precise
        return None

    def position(
        self,
        body: Body | str,
        instant: Instant,
        location: GeoLocation | None = None,
    ) -> BodyPosition:
        resolved = normalize_body(body)
        precise = self._active_precise()
        if precise is not None:
            try:
                result = precise.position(resolved, instant, location)
            except AstrologyError as exc:
                if exc.kind not in _RECOVERABLE:
                    raise
                LOG.warning(
                    "precise source failed for %s; using analytic fallback",
                    resolved.value,
                    extra={
                        "err_code": _ERR_CODES[exc.kind],
                        "body": resolved.value,
                        "jd_ut": instant.jd_ut,
                    },
                )
                FALLBACK_ACTIVATIONS.labels(body=resolved.value).inc()
            else:
                POSITION_QUERIES.labels(source=result.source.value).inc()
                return result
        result = self.fallback.position(resolved, instant, location)
        POSITION_QUERIES.labels(source=result.source.value).inc()
        return result

    def positions(
        self,
        bodies: Sequence[Body | str],
        instant: Instant,
        location: GeoLocation | None = None,
    ) -> dict[Body, BodyPosition]:
        return {
            normalize_body(body): self.position(body, instant, location) for body in bodies
        }
