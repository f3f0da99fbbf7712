"""Single-flight memoisation with bounded LRU/TTL eviction.

Concurrent callers asking for the same key share one computation: the
first caller computes while the others wait on the same
:class:`concurrent.futures.Future`.  Completed values live in an LRU
ordered mapping bounded by ``maxsize`` with an optional time-to-live.
Failures are never cached; every waiter receives the original exception.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable, Hashable
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from ..observability.metrics import MEMO_HITS, MEMO_MISSES

__all__ = ["Memoizer"]

LOG = logging.getLogger(__name__)

V = TypeVar("V")


@dataclass(slots=True)
class _Entry(Generic[V]):
    value: V
    expires_at: float | None


def _operation_label(key: Hashable) -> str:
    if isinstance(key, tuple) and key:
        return str(key[0])
    return "unknown"


class Memoizer:
    """Process-local cache guaranteeing at most one in-flight call per key."""

    def __init__(
        self,
        maxsize: int = 1024,
        ttl_seconds: float | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if maxsize < 1:
            raise ValueError("maxsize must be >= 1")
        self.maxsize = maxsize
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._data: OrderedDict[Hashable, _Entry[Any]] = OrderedDict()
        self._inflight: dict[Hashable, Future[Any]] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return self._lookup(key) is not None

    def _lookup(self, key: Hashable) -> _Entry[Any] | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        if entry.expires_at is not None and entry.expires_at <= self._clock():
            # expired
            del self._data[key]
            return None
        self._data.move_to_end(key)
        return entry

    def _store(self, key: Hashable, value: Any) -> None:
        expires_at = None
        if self.ttl_seconds is not None:
            expires_at = self._clock() + float(self.ttl_seconds)
        self._data[key] = _Entry(value=value, expires_at=expires_at)
        self._data.move_to_end(key)
        while len(self._data) > self.maxsize:
            self._data.popitem(last=False)

    def get_or_compute(self, key: Hashable, compute: Callable[[], V]) -> V:
        """Return the cached value for ``key`` or compute it exactly once."""

        label = _operation_label(key)
        with self._lock:
            entry = self._lookup(key)
            if entry is not None:
                MEMO_HITS.labels(operation=label).inc()
                return entry.value
            pending = self._inflight.get(key)
            owner = pending is None
            if owner:
                pending = Future()
                self._inflight[key] = pending
                MEMO_MISSES.labels(operation=label).inc()
            else:
                MEMO_HITS.labels(operation=label).inc()

        if not owner:
            return pending.result()

        try:
            value = compute()
        except BaseException as exc:
            with self._lock:
                self._inflight.pop(key, None)
            LOG.debug(
                "memoised computation failed",
                extra={"err_code": "MEMO_COMPUTE_FAILED", "operation": label},
            )
            pending.set_exception(exc)
            raise

        with self._lock:
            self._store(key, value)
            self._inflight.pop(key, None)
        pending.set_result(value)
        return value

    def invalidate(self, key: Hashable) -> None:
        with self._lock:
            self._data.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
