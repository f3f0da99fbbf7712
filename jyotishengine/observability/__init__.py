"""Runtime observability primitives for jyotishengine modules."""

from __future__ import annotations

from .metrics import (
    COMPUTE_ERRORS,
    FALLBACK_ACTIVATIONS,
    MEMO_HITS,
    MEMO_MISSES,
    POSITION_QUERIES,
    PRECISE_FAILURES,
    ensure_metrics_registered,
)

__all__ = [
    "COMPUTE_ERRORS",
    "FALLBACK_ACTIVATIONS",
    "MEMO_HITS",
    "MEMO_MISSES",
    "POSITION_QUERIES",
    "PRECISE_FAILURES",
    "ensure_metrics_registered",
]
