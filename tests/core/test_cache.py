from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from jyotishengine.core.cache import Memoizer
from jyotishengine.errors import CalculationFailureError


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def test_concurrent_callers_share_one_computation() -> None:
    memo = Memoizer(maxsize=8)
    started = threading.Event()
    release = threading.Event()
    calls: list[int] = []

    def compute() -> str:
        calls.append(1)
        started.set()
        release.wait(5.0)
        return "value"

    with ThreadPoolExecutor(max_workers=8) as pool:
        first = pool.submit(memo.get_or_compute, ("position", "moon"), compute)
        assert started.wait(5.0)
        others = [
            pool.submit(memo.get_or_compute, ("position", "moon"), compute) for _ in range(7)
        ]
        time.sleep(0.1)
        release.set()
        results = [first.result(5.0), *(f.result(5.0) for f in others)]

    assert results == ["value"] * 8
    assert len(calls) == 1


def test_failures_reach_every_waiter_and_are_not_cached() -> None:
    memo = Memoizer(maxsize=8)
    started = threading.Event()
    release = threading.Event()

    def failing() -> str:
        started.set()
        release.wait(5.0)
        raise CalculationFailureError("boom")

    with ThreadPoolExecutor(max_workers=4) as pool:
        first = pool.submit(memo.get_or_compute, ("houses", 1), failing)
        assert started.wait(5.0)
        waiter = pool.submit(memo.get_or_compute, ("houses", 1), failing)
        time.sleep(0.1)
        release.set()
        for future in (first, waiter):
            with pytest.raises(CalculationFailureError):
                future.result(5.0)

    assert ("houses", 1) not in memo
    assert memo.get_or_compute(("houses", 1), lambda: "recovered") == "recovered"


def test_lru_eviction_keeps_recently_used_entries() -> None:
    memo = Memoizer(maxsize=2)
    memo.get_or_compute(("op", "a"), lambda: 1)
    memo.get_or_compute(("op", "b"), lambda: 2)
    # touch "a" so "b" becomes least recently used
    assert memo.get_or_compute(("op", "a"), lambda: -1) == 1
    memo.get_or_compute(("op", "c"), lambda: 3)

    assert ("op", "a") in memo
    assert ("op", "b") not in memo
    assert ("op", "c") in memo
    assert len(memo) == 2


def test_ttl_expiry_recomputes() -> None:
    clock = FakeClock()
    memo = Memoizer(maxsize=4, ttl_seconds=10.0, clock=clock)
    assert memo.get_or_compute(("op", 1), lambda: "first") == "first"
    clock.now = 5.0
    assert memo.get_or_compute(("op", 1), lambda: "second") == "first"
    clock.now = 10.5
    assert memo.get_or_compute(("op", 1), lambda: "third") == "third"


def test_invalidate_and_clear() -> None:
    memo = Memoizer()
    memo.get_or_compute(("op", 1), lambda: 1)
    memo.get_or_compute(("op", 2), lambda: 2)
    memo.invalidate(("op", 1))
    assert ("op", 1) not in memo
    memo.clear()
    assert len(memo) == 0


def test_rejects_non_positive_size() -> None:
    with pytest.raises(ValueError):
        Memoizer(maxsize=0)
