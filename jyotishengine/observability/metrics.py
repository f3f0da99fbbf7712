"""Prometheus metric definitions shared across jyotishengine components."""

from __future__ import annotations

from collections.abc import Iterable

from prometheus_client import REGISTRY, CollectorRegistry, Counter

__all__ = [
    "COMPUTE_ERRORS",
    "FALLBACK_ACTIVATIONS",
    "MEMO_HITS",
    "MEMO_MISSES",
    "POSITION_QUERIES",
    "PRECISE_FAILURES",
    "ensure_metrics_registered",
]


POSITION_QUERIES = Counter(
    "jyotish_position_queries_total",
    "Total body position queries answered, grouped by precision tier.",
    ("source",),
    registry=None,
)

PRECISE_FAILURES = Counter(
    "jyotish_precise_failures_total",
    "Total precise ephemeris call failures grouped by error kind.",
    ("kind",),
    registry=None,
)

FALLBACK_ACTIVATIONS = Counter(
    "jyotish_fallback_activations_total",
    "Total queries answered by the analytic fallback after a precise failure.",
    ("body",),
    registry=None,
)

MEMO_HITS = Counter(
    "jyotish_memo_hits_total",
    "Total memoiser lookups served from cache or an in-flight computation.",
    ("operation",),
    registry=None,
)

MEMO_MISSES = Counter(
    "jyotish_memo_misses_total",
    "Total memoiser lookups that started a new computation.",
    ("operation",),
    registry=None,
)

COMPUTE_ERRORS = Counter(
    "jyotish_compute_errors_total",
    "Count of runtime failures surfaced by engine operations.",
    ("component", "kind"),
    registry=None,
)


def _iter_metrics() -> Iterable[Counter]:
    yield POSITION_QUERIES
    yield PRECISE_FAILURES
    yield FALLBACK_ACTIVATIONS
    yield MEMO_HITS
    yield MEMO_MISSES
    yield COMPUTE_ERRORS


def ensure_metrics_registered(
    registry: CollectorRegistry | None = None,
) -> None:
    """Register shared metrics with ``registry`` if not already present."""

    target = registry or REGISTRY
    for metric in _iter_metrics():
        try:
            target.register(metric)
        except ValueError:
            # Prometheus raises when a metric name already exists in the registry.
            continue
