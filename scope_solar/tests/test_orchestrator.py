import asyncio
from datetime import datetime, timezone

import pytest

from scope_solar.config import PanelConfig
from scope_solar.errors import InvalidInput
from scope_solar.logging import get_logger
from scope_solar.models.geo import AreaSpec, GeoPoint
from scope_solar.models.prediction import PredictionSource
from scope_solar.services.events import PREDICTION_COMPLETED, EventHub
from scope_solar.services.history import BoundedHistory
from scope_solar.services.orchestrator import (
    OrchestratorState,
    PredictionOrchestrator,
    capacity_kw,
    compute_fallback,
    panel_count,
)
from scope_solar.services.prediction_client import parse_prediction
from scope_solar.services.simulation_client import SimulationPredictionClient


LOG = get_logger("orchestrator-test")
FIXED_NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def _orchestrator(client, **kwargs):
    kwargs.setdefault("history", BoundedHistory(50))
    kwargs.setdefault("clock", lambda: FIXED_NOW)
    return PredictionOrchestrator(client, LOG, **kwargs)


def test_fallback_scenario_matches_zone_estimate():
    client = SimulationPredictionClient("transport", {}, LOG)
    orch = _orchestrator(client, retries=0)

    prediction = asyncio.run(orch.predict(GeoPoint(20.0, 78.0), AreaSpec(200.0)))

    assert prediction.source is PredictionSource.FALLBACK
    assert prediction.is_fallback
    assert prediction.daily_kwh == pytest.approx(187.0)
    assert prediction.monthly_kwh == pytest.approx(187.0 * 30)
    assert prediction.yearly_kwh == pytest.approx(187.0 * 365)
    assert prediction.confidence == 0.75
    assert prediction.factors.system_efficiency == 0.85
    assert orch.last_state is OrchestratorState.COMPLETED
    assert len(orch.history) == 1


@pytest.mark.parametrize(
    "latitude, expected",
    [(28.6, 187.0), (-28.6, 187.0), (40.0, 163.2), (50.0, 136.0)],
)
def test_fallback_uses_fallback_latitude_bands(latitude, expected):
    client = SimulationPredictionClient("transport", {}, LOG)
    orch = _orchestrator(client, retries=0)

    prediction = asyncio.run(orch.predict(GeoPoint(latitude, 77.2), AreaSpec(200.0)))

    assert prediction.is_fallback
    assert prediction.daily_kwh == pytest.approx(expected)


def test_fallback_helpers():
    panel = PanelConfig()
    assert panel_count(200.0, panel) == 100
    assert panel_count(3.9, panel) == 1
    assert capacity_kw(100, panel) == pytest.approx(40.0)
    assert compute_fallback(0.0, 1.0, panel).daily_kwh == 0.0


def test_remote_success_records_remote_source():
    client = SimulationPredictionClient(None, {"daily_kwh": 42.0, "confidence": 0.9}, LOG)
    orch = _orchestrator(client)

    prediction = asyncio.run(orch.predict(GeoPoint(12.97, 77.59), AreaSpec(50.0)))

    assert prediction.source is PredictionSource.REMOTE
    assert prediction.daily_kwh == 42.0
    assert prediction.confidence == 0.9
    assert prediction.model_version == "sim-1"
    record = orch.history.latest()
    assert record.timestamp == FIXED_NOW
    assert record.area_m2 == 50.0
    assert len(record.id) == 32


def test_transient_failures_are_retried():
    client = SimulationPredictionClient("transport", {"daily_kwh": 10.0}, LOG, fail_times=2)
    orch = _orchestrator(client, retries=2)

    outcome = asyncio.run(orch.attempt_remote(GeoPoint(10.0, 10.0), 20.0))

    assert outcome.succeeded
    assert outcome.attempts == 3
    assert len(client.calls) == 3


def test_retries_exhausted_falls_back():
    client = SimulationPredictionClient("timeout", {}, LOG)
    orch = _orchestrator(client, retries=2)

    prediction = asyncio.run(orch.predict(GeoPoint(10.0, 10.0), AreaSpec(20.0)))

    assert prediction.is_fallback
    assert len(client.calls) == 3


@pytest.mark.parametrize("fault", ["http_4xx", "malformed"])
def test_non_transient_failure_is_not_retried(fault):
    client = SimulationPredictionClient(fault, {}, LOG)
    orch = _orchestrator(client, retries=2)

    outcome = asyncio.run(orch.attempt_remote(GeoPoint(10.0, 10.0), 20.0))

    assert not outcome.succeeded
    assert outcome.attempts == 1
    assert outcome.error


def test_slow_remote_times_out_into_fallback():
    client = SimulationPredictionClient(None, {}, LOG, delay=0.3)
    orch = _orchestrator(client, timeout=0.05, retries=0)

    outcome = asyncio.run(orch.attempt_remote(GeoPoint(10.0, 10.0), 20.0))

    assert not outcome.succeeded
    assert "timed out" in outcome.error


def test_invalid_input_makes_no_remote_call_and_records_nothing():
    client = SimulationPredictionClient(None, {}, LOG)
    orch = _orchestrator(client)

    with pytest.raises(InvalidInput) as exc:
        asyncio.run(orch.predict(GeoPoint(95.0, 0.0), AreaSpec(0.0)))

    assert len(exc.value.errors) == 2
    assert client.calls == []
    assert len(orch.history) == 0
    assert orch.last_state is OrchestratorState.IDLE


def test_cancelled_prediction_records_nothing():
    client = SimulationPredictionClient(None, {}, LOG, delay=0.3)
    orch = _orchestrator(client)

    async def scenario():
        task = asyncio.create_task(orch.predict(GeoPoint(10.0, 10.0), AreaSpec(20.0)))
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(scenario())
    assert len(orch.history) == 0


def test_concurrent_predictions_each_record_once():
    client = SimulationPredictionClient(None, {}, LOG)
    events = EventHub(LOG)
    seen = []
    events.subscribe(PREDICTION_COMPLETED, lambda _e, record: seen.append(record.id))
    orch = _orchestrator(client, events=events)

    async def scenario():
        sites = [GeoPoint(float(i), float(i)) for i in range(5)]
        return await asyncio.gather(*(orch.predict(geo, AreaSpec(10.0 + i)) for i, geo in enumerate(sites)))

    results = asyncio.run(scenario())

    assert len(results) == 5
    assert len(orch.history) == 5
    assert sorted(seen) == sorted(r.id for r in orch.history.all())


class RaisingClient:
    def __init__(self, exc):
        self.exc = exc
        self.calls = 0

    def predict(self, latitude, longitude, area_m2):
        self.calls += 1
        raise self.exc


@pytest.mark.parametrize("exc", [OverflowError("int too large"), KeyError("daily"), RuntimeError("boom")])
def test_unexpected_client_error_falls_back_without_retry(exc, caplog):
    client = RaisingClient(exc)
    orch = _orchestrator(client, retries=2)

    with caplog.at_level("WARNING", logger="orchestrator-test"):
        prediction = asyncio.run(orch.predict(GeoPoint(20.0, 78.0), AreaSpec(200.0)))

    assert prediction.is_fallback
    assert prediction.daily_kwh == pytest.approx(187.0)
    assert client.calls == 1
    assert type(exc).__name__ in caplog.text
    assert len(orch.history) == 1


def test_oversized_remote_number_falls_back():
    class HugeNumberClient:
        def predict(self, latitude, longitude, area_m2):
            return parse_prediction(
                {"daily_kwh": 10**400, "monthly_kwh": 1.0, "yearly_kwh": 1.0, "confidence": 0.9}
            )

    orch = _orchestrator(HugeNumberClient(), retries=2)

    outcome = asyncio.run(orch.attempt_remote(GeoPoint(10.0, 10.0), 20.0))

    assert not outcome.succeeded
    assert outcome.attempts == 1
    assert "daily_kwh" in outcome.error


def test_cancellation_still_propagates_from_remote_attempt():
    client = SimulationPredictionClient(None, {}, LOG, delay=0.3)
    orch = _orchestrator(client)

    async def scenario():
        task = asyncio.create_task(orch.attempt_remote(GeoPoint(10.0, 10.0), 20.0))
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(scenario())
