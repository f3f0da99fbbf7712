from __future__ import annotations

import logging
import math
import threading
from collections.abc import Iterator

import pytest
from prometheus_client import CollectorRegistry

from jyotishengine.core.bodies import SWE_MEAN_NODE, SWE_TRUE_NODE, Body
from jyotishengine.core.time import Instant
from jyotishengine.ephemeris.analytic import AnalyticPositionSource
from jyotishengine.ephemeris.models import Source
from jyotishengine.ephemeris.precise import PrecisePositionProvider, PrecisePositionSource
from jyotishengine.ephemeris.sources import DegradingPositionSource, PositionSource
from jyotishengine.errors import (
    CalculationFailureError,
    SourceTimeoutError,
    SourceUnavailableError,
    ValidationError,
)
from jyotishengine.observability.metrics import ensure_metrics_registered

from ..conftest import J2000_NOON
from ..stubs import ScriptedCapability

INSTANT = Instant.from_datetime(J2000_NOON)


@pytest.fixture
def gate() -> Iterator[threading.Event]:
    event = threading.Event()
    yield event
    event.set()


def test_stub_satisfies_the_provider_protocol() -> None:
    assert isinstance(ScriptedCapability(), PrecisePositionProvider)
    assert isinstance(AnalyticPositionSource(), PositionSource)


def test_valid_vector_is_tagged_precise() -> None:
    capability = ScriptedCapability([(123.5, 1.25, 0.9, 0.98, 0.0, 0.0)])
    source = PrecisePositionSource(capability)
    try:
        position = source.position("mars", INSTANT)
    finally:
        source.close()
    assert position.source is Source.PRECISE
    assert position.body is Body.MARS
    assert position.longitude == pytest.approx(123.5)
    assert position.latitude == pytest.approx(1.25)
    assert capability.calls[0][1] == Body.MARS.swe_code


def test_ketu_is_derived_from_the_node() -> None:
    capability = ScriptedCapability([(10.0, 0.0, 0.00257, -0.05)])
    source = PrecisePositionSource(capability)
    try:
        ketu = source.position(Body.KETU, INSTANT)
    finally:
        source.close()
    assert capability.calls[0][1] == SWE_MEAN_NODE
    assert ketu.body is Body.KETU
    assert ketu.longitude == pytest.approx(190.0)
    assert ketu.retrograde


def test_true_node_uses_the_true_node_code() -> None:
    capability = ScriptedCapability()
    source = PrecisePositionSource(capability, node_type="true")
    try:
        rahu = source.position(Body.RAHU, INSTANT)
    finally:
        source.close()
    assert capability.calls[0][1] == SWE_TRUE_NODE
    assert rahu.body is Body.RAHU


@pytest.mark.parametrize(
    "vector",
    [
        (math.nan, 0.0, 1.0, 1.0),
        (10.0, 0.0, 1.0),
        (10.0, 0.0, 1.0, 1.0, 0.0, 0.0, 0.0),
        (10.0, 95.0, 1.0, 1.0),
        (10.0, 0.0, -1.0, 1.0),
        ("ten", 0.0, 1.0, 1.0),
    ],
)
def test_malformed_vectors_are_rejected(vector: tuple[object, ...]) -> None:
    source = PrecisePositionSource(ScriptedCapability([vector]))
    try:
        with pytest.raises(CalculationFailureError):
            source.position("sun", INSTANT)
    finally:
        source.close()


def test_timeouts_are_retried_then_raised(gate: threading.Event) -> None:
    capability = ScriptedCapability([gate, gate, gate])
    source = PrecisePositionSource(capability, timeout_s=0.2, retries=2)
    try:
        with pytest.raises(SourceTimeoutError) as excinfo:
            source.position("sun", INSTANT)
    finally:
        gate.set()
        source.close()
    assert excinfo.value.retriable
    assert len(capability.calls) == 3


def test_timeout_then_success(gate: threading.Event) -> None:
    capability = ScriptedCapability([gate, (42.0, 0.0, 1.0, 1.0)])
    source = PrecisePositionSource(capability, timeout_s=0.05, retries=1)
    try:
        position = source.position("sun", INSTANT)
    finally:
        gate.set()
        source.close()
    assert position.longitude == pytest.approx(42.0)
    assert len(capability.calls) == 2


def test_provider_errors_are_not_retried() -> None:
    capability = ScriptedCapability([RuntimeError("ephemeris file missing")])
    source = PrecisePositionSource(capability, retries=3)
    try:
        with pytest.raises(CalculationFailureError, match="ephemeris file missing"):
            source.position("sun", INSTANT)
    finally:
        source.close()
    assert len(capability.calls) == 1


def test_missing_capability_is_unavailable() -> None:
    source = PrecisePositionSource(None)
    assert not source.available
    with pytest.raises(SourceUnavailableError):
        source.position("sun", INSTANT)


def test_negative_retries_are_rejected() -> None:
    with pytest.raises(ValueError):
        PrecisePositionSource(ScriptedCapability(), retries=-1)


def _sample(registry: CollectorRegistry, name: str, labels: dict[str, str]) -> float:
    return registry.get_sample_value(name, labels) or 0.0


def test_degrading_source_falls_back_and_reports(caplog: pytest.LogCaptureFixture) -> None:
    registry = CollectorRegistry()
    ensure_metrics_registered(registry)
    before = _sample(registry, "jyotish_fallback_activations_total", {"body": "sun"})
    capability = ScriptedCapability([RuntimeError("boom")])
    precise = PrecisePositionSource(capability)
    analytic = AnalyticPositionSource()
    source = DegradingPositionSource(precise, analytic)
    caplog.set_level(logging.INFO, logger="jyotishengine")
    try:
        position = source.position("sun", INSTANT)
    finally:
        precise.close()
    assert position.source is Source.FALLBACK
    assert position == analytic.position("sun", INSTANT)
    codes = [getattr(record, "err_code", None) for record in caplog.records]
    assert "PRECISE_FAILURE" in codes
    after = _sample(registry, "jyotish_fallback_activations_total", {"body": "sun"})
    assert after == before + 1


def test_degrading_source_recovers_from_timeouts(gate: threading.Event) -> None:
    precise = PrecisePositionSource(ScriptedCapability([gate]), timeout_s=0.05, retries=0)
    source = DegradingPositionSource(precise)
    try:
        position = source.position("moon", INSTANT)
    finally:
        gate.set()
        precise.close()
    assert position.source is Source.FALLBACK


def test_degrading_source_prefers_precise_when_healthy() -> None:
    precise = PrecisePositionSource(ScriptedCapability())
    source = DegradingPositionSource(precise)
    try:
        positions = source.positions(["sun", "moon"], INSTANT)
    finally:
        precise.close()
    assert {pos.source for pos in positions.values()} == {Source.PRECISE}


def test_fallback_only_mode_never_calls_the_capability(
    caplog: pytest.LogCaptureFixture,
) -> None:
    capability = ScriptedCapability()
    precise = PrecisePositionSource(capability)
    caplog.set_level(logging.INFO, logger="jyotishengine")
    source = DegradingPositionSource(precise, prefer_precise=False)
    position = source.position("sun", INSTANT)
    assert position.source is Source.FALLBACK
    assert capability.calls == []
    assert any(getattr(r, "err_code", None) == "FALLBACK_ACTIVE" for r in caplog.records)


def test_validation_errors_are_not_recovered() -> None:
    precise = PrecisePositionSource(ScriptedCapability())
    source = DegradingPositionSource(precise)
    try:
        with pytest.raises(ValidationError):
            source.position("chiron", INSTANT)
    finally:
        precise.close()


def test_body_without_an_ephemeris_code_is_a_validation_error(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(Body, "swe_code", property(lambda self: None))
    capability = ScriptedCapability()
    precise = PrecisePositionSource(capability)
    source = DegradingPositionSource(precise)
    try:
        with pytest.raises(ValidationError) as excinfo:
            source.position("mars", INSTANT)
    finally:
        precise.close()
    assert excinfo.value.context["body"] == "mars"
    assert capability.calls == []


def test_unavailable_precise_source_is_skipped_without_a_call() -> None:
    precise = PrecisePositionSource(None)
    source = DegradingPositionSource(precise)
    assert source.position("sun", INSTANT).source is Source.FALLBACK
