"""Precise position source wrapping an injected native ephemeris capability.

The capability is any object with ``calc_ut(jd_ut, body_code, flags)``
returning a 4–6 element vector ``(lon, lat, dist, lon_speed, ...)``.  Calls
are treated as a slow, failable boundary: each one runs on a worker thread
and is bounded by a timeout, timeouts are retried a bounded number of
times, and every result is validated before it becomes a
:class:`BodyPosition`.
"""

from __future__ import annotations

import logging
import math
import threading
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Final, Literal, Protocol, runtime_checkable

from ..core.bodies import SWE_MEAN_NODE, SWE_TRUE_NODE, Body, normalize_body
from ..core.time import Instant
from ..errors import (
    AstrologyError,
    CalculationFailureError,
    SourceTimeoutError,
    SourceUnavailableError,
    ValidationError,
)
from ..observability.metrics import PRECISE_FAILURES
from .models import BodyPosition, GeoLocation, Source
from .swe import has_swe, load_swe

__all__ = [
    "FLG_SPEED",
    "FLG_SWIEPH",
    "PrecisePositionProvider",
    "PrecisePositionSource",
    "SwissEphemerisCapability",
]

LOG = logging.getLogger(__name__)

FLG_SWIEPH: Final[int] = 2
FLG_SPEED: Final[int] = 256


@runtime_checkable
class PrecisePositionProvider(Protocol):
    """Native capability returning raw geocentric ecliptic vectors."""

    def calc_ut(self, jd_ut: float, body_code: int, flags: int) -> Sequence[float]:
        """Return ``(lon, lat, dist_au, lon_speed[, lat_speed, dist_speed])``."""


class SwissEphemerisCapability:
    """:class:`PrecisePositionProvider` backed by ``pyswisseph``."""

    def __init__(self, ephemeris_path: str | None = None) -> None:
        self._swe = load_swe()
        # the C library keeps global state; serialise calls
        self._lock = threading.Lock()
        if ephemeris_path:
            self._swe.set_ephe_path(ephemeris_path)

    @staticmethod
    def available() -> bool:
        return has_swe()

    def calc_ut(self, jd_ut: float, body_code: int, flags: int) -> Sequence[float]:
        with self._lock:
            values, _retflags = self._swe.calc_ut(jd_ut, body_code, flags)
        return tuple(values)


def _record_failure(error: AstrologyError) -> None:
    PRECISE_FAILURES.labels(kind=error.kind.value).inc()


class PrecisePositionSource:
    """Position source delegating to a :class:`PrecisePositionProvider`."""

    source = Source.PRECISE

    def __init__(
        self,
        capability: PrecisePositionProvider | None,
        *,
        timeout_s: float = 2.0,
        retries: int = 2,
        node_type: Literal["mean", "true"] = "mean",
        flags: int = FLG_SWIEPH | FLG_SPEED,
        max_workers: int = 4,
    ) -> None:
        if retries < 0:
            raise ValueError("retries must be >= 0")
        self.capability = capability
        self.timeout_s = timeout_s
        self.retries = retries
        self.node_type = node_type
        self.flags = flags
        self._max_workers = max_workers
        self._executor: ThreadPoolExecutor | None = None
        self._executor_lock = threading.Lock()

    @property
    def available(self) -> bool:
        return self.capability is not None

    def _pool(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_workers, thread_name_prefix="precise-ephemeris"
                )
            return self._executor

    def close(self) -> None:
        """Release worker threads; pending calls are cancelled."""

        with self._executor_lock:
            if self._executor is not None:
                self._executor.shutdown(wait=False, cancel_futures=True)
                self._executor = None

    def _body_code(self, body: Body) -> int:
        if body.is_node:
            return SWE_TRUE_NODE if self.node_type == "true" else SWE_MEAN_NODE
        code = body.swe_code
        if code is None:
            raise ValidationError(
                f"{body.value} has no precise ephemeris code", context={"body": body.value}
            )
        return code

    def _call_once(
        self, capability: PrecisePositionProvider, jd_ut: float, code: int
    ) -> Sequence[float]:
        future = self._pool().submit(capability.calc_ut, jd_ut, code, self.flags)
        try:
            return future.result(timeout=self.timeout_s)
        except FutureTimeoutError as exc:
            # A running native call cannot be interrupted; the worker is abandoned.
            future.cancel()
            raise SourceTimeoutError(
                f"precise ephemeris call exceeded {self.timeout_s}s",
                context={"jd_ut": jd_ut, "body_code": code},
            ) from exc
        except AstrologyError:
            raise
        except Exception as exc:
            raise CalculationFailureError(
                f"precise ephemeris call failed: {exc}",
                context={"jd_ut": jd_ut, "body_code": code},
            ) from exc

    def _call(
        self, capability: PrecisePositionProvider, jd_ut: float, code: int
    ) -> Sequence[float]:
        attempts = self.retries + 1
        attempt = 1
        while True:
            try:
                return self._call_once(capability, jd_ut, code)
            except SourceTimeoutError as exc:
                _record_failure(exc)
                LOG.warning(
                    "precise ephemeris timeout (attempt %d/%d)",
                    attempt,
                    attempts,
                    extra={"err_code": "PRECISE_TIMEOUT", "body_code": code},
                )
                if attempt >= attempts:
                    raise
                attempt += 1

    @staticmethod
    def _validate(body: Body, raw: Sequence[float]) -> tuple[float, float, float, float]:
        try:
            values = [float(v) for v in raw]
        except (TypeError, ValueError) as exc:
            raise CalculationFailureError(
                "malformed precise position vector",
                context={"body": body.value, "raw": repr(raw)},
            ) from exc
        if not 4 <= len(values) <= 6:
            raise CalculationFailureError(
                f"precise position vector has {len(values)} elements, expected 4-6",
                context={"body": body.value, "raw": values},
            )
        lon, lat, dist, speed = values[:4]
        if not all(math.isfinite(v) for v in values):
            raise CalculationFailureError(
                "precise position vector contains non-finite values",
                context={"body": body.value, "raw": values},
            )
        if not (-360.0 <= lon <= 720.0) or not (-90.0 <= lat <= 90.0) or dist < 0.0:
            raise CalculationFailureError(
                "precise position vector out of range",
                context={"body": body.value, "raw": values},
            )
        return lon, lat, dist, speed

    def position(
        self,
        body: Body | str,
        instant: Instant,
        location: GeoLocation | None = None,
    ) -> BodyPosition:
        resolved = normalize_body(body)
        capability = self.capability
        if capability is None:
            raise SourceUnavailableError(
                "no precise ephemeris capability configured",
                context={"body": resolved.value},
            )
        try:
            raw = self._call(capability, instant.jd_ut, self._body_code(resolved))
        except SourceTimeoutError:
            raise
        except AstrologyError as exc:
            _record_failure(exc)
            raise
        try:
            lon, lat, dist, speed = self._validate(resolved, raw)
        except CalculationFailureError as exc:
            _record_failure(exc)
            LOG.debug(
                "rejected precise vector for %s",
                resolved.value,
                extra={"err_code": "PRECISE_MALFORMED", "body": resolved.value},
            )
            raise
        position = BodyPosition.build(
            Body.RAHU if resolved.is_node else resolved, lon, lat, dist, speed, Source.PRECISE
        )
        if resolved is Body.KETU:
            return position.opposite(Body.KETU)
        return position
