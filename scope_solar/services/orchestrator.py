# scope_solar/services/orchestrator.py

from __future__ import annotations

import asyncio
import math
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from scope_solar.config import PanelConfig
from scope_solar.errors import InvalidInput, RemoteUnavailable
from scope_solar.logging import PredictionLogEntry, StructuredLog
from scope_solar.models.geo import AreaSpec, GeoPoint
from scope_solar.models.prediction import (
    GenerationPrediction,
    PredictionFactors,
    PredictionRecord,
    PredictionSource,
)
from scope_solar.services.events import PREDICTION_COMPLETED, EventHub
from scope_solar.services.history import PREDICTION_HISTORY_CAPACITY, BoundedHistory
from scope_solar.services.irradiance import fallback_zone
from scope_solar.services.validation import DEFAULT_MAX_AREA_M2, validate_request

FALLBACK_CONFIDENCE = 0.75
FALLBACK_MODEL_VERSION = "fallback"
DEFAULT_TIMEOUT = 30.0
DEFAULT_RETRIES = 2


class OrchestratorState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    REMOTE_ATTEMPT = "remote_attempt"
    SUCCESS = "success"
    FAILURE = "failure"
    FALLBACK = "fallback"
    COMPLETED = "completed"


@dataclass(frozen=True)
class RemoteOutcome:
    prediction: Optional[GenerationPrediction]
    attempts: int
    error: Optional[str]

    @property
    def succeeded(self) -> bool:
        return self.prediction is not None


def panel_count(area_m2: float, panel: PanelConfig) -> int:
    return int(math.floor(area_m2 / panel.area_m2))


def capacity_kw(panels: int, panel: PanelConfig) -> float:
    return panels * panel.wattage_w / 1000.0


def compute_fallback(latitude: float, area_m2: float, panel: PanelConfig) -> GenerationPrediction:
    """Deterministic estimate from the fallback-zone irradiance and panel heuristics."""
    panels = panel_count(area_m2, panel)
    capacity = capacity_kw(panels, panel)
    daily = capacity * fallback_zone(latitude).average_irradiance * panel.system_efficiency
    return GenerationPrediction(
        daily_kwh=daily,
        monthly_kwh=daily * 30,
        yearly_kwh=daily * 365,
        confidence=FALLBACK_CONFIDENCE,
        source=PredictionSource.FALLBACK,
        factors=PredictionFactors(
            weather_adj=1.0,
            seasonal_adj=1.0,
            location_adj=1.0,
            system_efficiency=panel.system_efficiency,
        ),
        model_version=FALLBACK_MODEL_VERSION,
    )


class PredictionOrchestrator:
    """
    Validate -> remote attempt (timeout + retries) -> fallback -> record.

    The remote client is any object exposing a blocking
    ``predict(latitude, longitude, area_m2)`` that raises RemoteUnavailable.
    """

    def __init__(
        self,
        client,
        log,
        *,
        panel: PanelConfig | None = None,
        history: BoundedHistory[PredictionRecord] | None = None,
        events: EventHub | None = None,
        structured_log: StructuredLog | None = None,
        max_area_m2: float = DEFAULT_MAX_AREA_M2,
        timeout: float = DEFAULT_TIMEOUT,
        retries: int = DEFAULT_RETRIES,
        retry_delay: float = 0.0,
        clock: Callable[[], datetime] | None = None,
    ):
        self.client = client
        self.log = log
        self.panel = panel or PanelConfig()
        self.history = history if history is not None else BoundedHistory(PREDICTION_HISTORY_CAPACITY)
        self.events = events
        self.structured_log = structured_log
        self.max_area_m2 = max_area_m2
        self.timeout = timeout
        self.retries = max(0, int(retries))
        self.retry_delay = retry_delay
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.last_state = OrchestratorState.IDLE

    # ------------------------------------------------------------------
    def _transition(self, state: OrchestratorState) -> None:
        self.log.debug("Orchestrator %s -> %s", self.last_state.value, state.value)
        self.last_state = state

    # ------------------------------------------------------------------
    async def attempt_remote(self, geo: GeoPoint, area_m2: float) -> RemoteOutcome:
        """
        Call the remote client; never raises for remote failures.

        Any exception from the client other than RemoteUnavailable counts as a
        permanent failure and is not retried. Cancellation still propagates.

        A timed-out call stops being awaited, but the worker thread running
        ``client.predict`` keeps going until the client returns. The client's
        own request timeout is what bounds that thread.
        """
        attempts = 0
        last_error: Optional[str] = None

        for attempt in range(self.retries + 1):
            attempts += 1
            try:
                remote = await asyncio.wait_for(
                    asyncio.to_thread(self.client.predict, geo.latitude, geo.longitude, area_m2),
                    timeout=self.timeout,
                )
            except asyncio.TimeoutError:
                last_error = f"timed out after {self.timeout:.1f}s"
                transient = True
            except RemoteUnavailable as exc:
                last_error = str(exc)
                transient = exc.transient
            except Exception as exc:
                last_error = f"unexpected {type(exc).__name__}: {exc}"
                transient = False
            else:
                prediction = GenerationPrediction(
                    daily_kwh=remote.daily_kwh,
                    monthly_kwh=remote.monthly_kwh,
                    yearly_kwh=remote.yearly_kwh,
                    confidence=remote.confidence,
                    source=PredictionSource.REMOTE,
                    factors=remote.factors,
                    model_version=remote.model_version or getattr(self.client, "model_version", None),
                )
                return RemoteOutcome(prediction=prediction, attempts=attempts, error=None)

            self.log.warning(
                "Remote prediction attempt %d/%d failed: %s",
                attempt + 1,
                self.retries + 1,
                last_error,
            )
            if not transient:
                break
            if self.retry_delay and attempt < self.retries:
                await asyncio.sleep(self.retry_delay)

        return RemoteOutcome(prediction=None, attempts=attempts, error=last_error)

    def compute_fallback(self, geo: GeoPoint, area_m2: float) -> GenerationPrediction:
        return compute_fallback(geo.latitude, area_m2, self.panel)

    # ------------------------------------------------------------------
    async def predict(self, geo: GeoPoint, area: AreaSpec) -> GenerationPrediction:
        """
        Resolve a GenerationPrediction for ``geo``/``area``.

        Raises InvalidInput before any remote call when the request is out of
        range. Remote failures fall back to the local estimate. A cancelled
        call leaves the history untouched.
        """
        self._transition(OrchestratorState.VALIDATING)
        try:
            validate_request(geo, area, self.max_area_m2)
        except InvalidInput:
            self._transition(OrchestratorState.IDLE)
            raise
        area_m2 = area.square_meters

        self._transition(OrchestratorState.REMOTE_ATTEMPT)
        outcome = await self.attempt_remote(geo, area_m2)

        if outcome.succeeded:
            self._transition(OrchestratorState.SUCCESS)
            prediction = outcome.prediction
        else:
            self._transition(OrchestratorState.FAILURE)
            self._transition(OrchestratorState.FALLBACK)
            prediction = self.compute_fallback(geo, area_m2)
            self.log.info(
                "Using fallback prediction for (%.4f, %.4f): %.2f kWh/day",
                geo.latitude,
                geo.longitude,
                prediction.daily_kwh,
            )

        record = PredictionRecord(
            id=uuid.uuid4().hex,
            timestamp=self._clock(),
            geo=geo,
            area_m2=area_m2,
            prediction=prediction,
        )
        self.history.append(record)
        self._transition(OrchestratorState.COMPLETED)

        if self.structured_log is not None:
            self.structured_log.write(
                PredictionLogEntry(
                    timestamp=record.timestamp.isoformat(),
                    record_id=record.id,
                    latitude=geo.latitude,
                    longitude=geo.longitude,
                    area_m2=area_m2,
                    source=prediction.source.value,
                    daily_kwh=prediction.daily_kwh,
                    yearly_kwh=prediction.yearly_kwh,
                    confidence=prediction.confidence,
                    remote_attempts=outcome.attempts,
                    remote_error=outcome.error,
                )
            )
        if self.events is not None:
            self.events.publish(PREDICTION_COMPLETED, record)
        return prediction
