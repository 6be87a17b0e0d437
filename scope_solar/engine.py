# scope_solar/engine.py

from __future__ import annotations

import asyncio
from datetime import date
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple

import requests

from scope_solar.config import AppConfig, Config
from scope_solar.logging import StructuredLog, get_logger
from scope_solar.models.geo import AreaSpec, GeoPoint
from scope_solar.models.irradiance import IrradianceEstimate
from scope_solar.models.prediction import PredictionRecord
from scope_solar.models.results import SolarAnalysis
from scope_solar.models.weather import WeatherFactors
from scope_solar.services import history_codec, state_maintenance
from scope_solar.services.app_state import AppState
from scope_solar.services.environmental import compute_environmental
from scope_solar.services.events import HISTORY_CLEARED, PREDICTION_COMPLETED, EventHub
from scope_solar.services.financial import FinancialAnalyzer
from scope_solar.services.generation_profile import GenerationProfile, build_profile
from scope_solar.services.history import BoundedHistory
from scope_solar.services.irradiance_client import IrradianceClient
from scope_solar.services.orchestrator import PredictionOrchestrator, capacity_kw, panel_count
from scope_solar.services.output_formatter import format_summary, to_json
from scope_solar.services.prediction_client import PredictionAPIClient
from scope_solar.services.weather_client import WeatherClient


class SolarEngine:
    """
    Entry point for hosts: wires clients, history stores, events and the
    analyzers from one AppConfig.

    ``client`` replaces the HTTP prediction client (e.g. a
    SimulationPredictionClient); ``session`` is shared by every HTTP client.
    """

    def __init__(
        self,
        cfg: AppConfig | None = None,
        log=None,
        *,
        client=None,
        session: Optional[requests.Session] = None,
        state: AppState | None = None,
        clock=None,
        retry_delay: float = 0.0,
    ):
        self.cfg = cfg or AppConfig()
        self.log = log or get_logger("scope")
        self.session = session or requests.Session()
        self.events = EventHub(self.log)

        self.predictions: BoundedHistory[PredictionRecord] = BoundedHistory(self.cfg.history.prediction_capacity)
        self.weather_history = BoundedHistory(self.cfg.history.weather_capacity)

        self.state = state or AppState(self.cfg.state.path, persist=self.cfg.state.persist)
        if self.state.persistent:
            self.predictions.extend(self.state.load_records(limit=self.cfg.history.prediction_capacity))
            self.events.subscribe(PREDICTION_COMPLETED, self._persist_record)

        self.client = client or PredictionAPIClient(self.cfg.prediction, self.log, session=self.session)
        self.structured_log = StructuredLog(
            self.cfg.logging.structured_path,
            enabled=self.cfg.logging.structured_enabled,
        )
        self.orchestrator = PredictionOrchestrator(
            self.client,
            self.log,
            panel=self.cfg.panel,
            history=self.predictions,
            events=self.events,
            structured_log=self.structured_log,
            max_area_m2=self.cfg.validation.max_area_m2,
            timeout=self.cfg.prediction.timeout,
            retries=self.cfg.prediction.retries,
            retry_delay=retry_delay,
            clock=clock,
        )
        self.financial = FinancialAnalyzer(self.cfg.panel, self.cfg.financial, self.log)
        self.weather = WeatherClient(
            self.cfg.weather,
            self.log,
            session=self.session,
            history=self.weather_history,
            events=self.events,
        )
        self.irradiance = IrradianceClient(self.cfg.irradiance, self.log, session=self.session)

    @classmethod
    def from_config(cls, path: str | Path, log=None, **kwargs: Any) -> "SolarEngine":
        return cls(Config.load(str(path)), log, **kwargs)

    # ------------------------------------------------------------------
    def _persist_record(self, _event: str, record: PredictionRecord) -> None:
        self.state.save_records([record])

    # ------------------------------------------------------------------
    async def analyze(
        self,
        geo: GeoPoint,
        area: AreaSpec,
        *,
        subsidy_rate: float | None = None,
        electricity_rate: float | None = None,
    ) -> SolarAnalysis:
        """Predict generation for one site and derive its financial and environmental figures."""
        prediction = await self.orchestrator.predict(geo, area)
        area_m2 = area.square_meters
        panels = panel_count(area_m2, self.cfg.panel)
        financial = self.financial.compute_financial(
            prediction.yearly_kwh,
            panels,
            subsidy_rate=subsidy_rate,
            electricity_rate=electricity_rate,
        )
        environmental = compute_environmental(prediction.yearly_kwh, self.cfg.environmental)
        return SolarAnalysis(
            geo=geo,
            area_m2=area_m2,
            panel_count=panels,
            capacity_kw=capacity_kw(panels, self.cfg.panel),
            prediction=prediction,
            financial=financial,
            environmental=environmental,
        )

    async def analyze_many(self, sites: Sequence[Tuple[GeoPoint, AreaSpec]]) -> List[SolarAnalysis]:
        return list(await asyncio.gather(*(self.analyze(geo, area) for geo, area in sites)))

    def generation_profile(self, analysis: SolarAnalysis, years: int = 10) -> GenerationProfile:
        p = analysis.prediction
        return build_profile(p.daily_kwh, p.monthly_kwh, p.yearly_kwh, years)

    def summary(self, analysis: SolarAnalysis, currency: str | None = None) -> str:
        """Human summary in ``currency``, defaulting to the configured one."""
        return format_summary(analysis, currency or self.cfg.financial.currency)

    def export_analysis(self, analysis: SolarAnalysis) -> str:
        return to_json(analysis)

    def weather_factors(self, geo: GeoPoint, *, today: date | None = None) -> WeatherFactors:
        return self.weather.average_factors(geo, today=today)

    def irradiance_estimate(self, geo: GeoPoint, year: int | None = None) -> Optional[IrradianceEstimate]:
        return self.irradiance.fetch_estimate(geo, year)

    # History ----------------------------------------------------------
    def prediction_history(self) -> Tuple[PredictionRecord, ...]:
        return self.predictions.all()

    def clear_history(self) -> None:
        self.predictions.clear()
        self.weather_history.clear()
        self.state.clear_records()
        self.events.publish(HISTORY_CLEARED, None)
        self.log.info("Prediction and weather history cleared")

    def export_history(self, path: str | Path) -> Path:
        target = history_codec.save_json(self.predictions.all(), path)
        self.log.debug("Exported %d prediction record(s) to %s", len(self.predictions), target)
        return target

    def import_history(self, path: str | Path) -> int:
        """Append records from a JSON export; the store's capacity still applies."""
        records = history_codec.load_json(path)
        self.predictions.extend(records)
        if self.state.persistent:
            self.state.save_records(records)
        return len(records)

    def prune_state(self) -> int:
        return state_maintenance.prune(
            self.state,
            self.cfg.retention.record_days,
            vacuum=self.cfg.retention.vacuum_after_prune,
        )

    def close(self) -> None:
        self.state.close()
