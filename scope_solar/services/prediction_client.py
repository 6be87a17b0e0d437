from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from scope_solar.config import PredictionConfig
from scope_solar.errors import RemoteUnavailable
from scope_solar.models.prediction import PredictionFactors


@dataclass(frozen=True)
class RemotePrediction:
    daily_kwh: float
    monthly_kwh: float
    yearly_kwh: float
    confidence: float
    model_version: str | None
    factors: PredictionFactors
    raw: Dict[str, Any]


def _pick(payload: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in payload and payload[key] is not None:
            return payload[key]
    return None


def _as_float(value: Any, field: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        raise RemoteUnavailable(f"Prediction response field '{field}' is not numeric: {value!r}", transient=False)
    if not math.isfinite(number):
        raise RemoteUnavailable(f"Prediction response field '{field}' is not finite: {value!r}", transient=False)
    return number


def parse_prediction(payload: Any) -> RemotePrediction:
    """Decode a prediction payload; accepts snake_case and camelCase keys."""
    if not isinstance(payload, dict):
        raise RemoteUnavailable("Prediction response was not a JSON object", transient=False)

    daily = _pick(payload, "daily_kwh", "dailyGeneration")
    monthly = _pick(payload, "monthly_kwh", "monthlyGeneration")
    yearly = _pick(payload, "yearly_kwh", "yearlyGeneration")
    confidence = _pick(payload, "confidence")
    missing = [
        name
        for name, value in (
            ("daily_kwh", daily),
            ("monthly_kwh", monthly),
            ("yearly_kwh", yearly),
            ("confidence", confidence),
        )
        if value is None
    ]
    if missing:
        raise RemoteUnavailable(f"Prediction response missing {', '.join(missing)}", transient=False)

    factors_raw = payload.get("factors") or {}
    if not isinstance(factors_raw, dict):
        factors_raw = {}
    defaults = PredictionFactors()

    def _factor(name: str, camel: str) -> float:
        value = _pick(factors_raw, name, camel)
        if value is None:
            return getattr(defaults, name)
        return _as_float(value, name)

    factors = PredictionFactors(
        weather_adj=_factor("weather_adj", "weatherAdjustment"),
        seasonal_adj=_factor("seasonal_adj", "seasonalAdjustment"),
        location_adj=_factor("location_adj", "locationAdjustment"),
        system_efficiency=_factor("system_efficiency", "systemEfficiency"),
    )

    conf = _as_float(confidence, "confidence")
    return RemotePrediction(
        daily_kwh=_as_float(daily, "daily_kwh"),
        monthly_kwh=_as_float(monthly, "monthly_kwh"),
        yearly_kwh=_as_float(yearly, "yearly_kwh"),
        confidence=max(0.0, min(1.0, conf)),
        model_version=_pick(payload, "model_version", "modelVersion"),
        factors=factors,
        raw=payload,
    )


class PredictionAPIClient:
    """Thin HTTP wrapper around the remote solar prediction service."""

    PREDICT_PATH = "/predict/solar"

    def __init__(self, cfg: PredictionConfig, log, session: Optional[requests.Session] = None):
        self.cfg = cfg
        self.log = log
        self.session = session or requests.Session()
        self.base_url = cfg.base_url.rstrip("/")

    # ------------------------------------------------------------------
    @property
    def enabled(self) -> bool:
        return bool(self.cfg.enabled and self.base_url)

    @property
    def model_version(self) -> str:
        return self.cfg.model_version

    def _build_url(self, path: str) -> str:
        if not path.startswith("/"):
            path = "/" + path
        return f"{self.base_url}{path}"

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", "User-Agent": "scope-solar/1.0"}
        if self.cfg.api_key:
            headers["Authorization"] = f"Bearer {self.cfg.api_key}"
        return headers

    # ------------------------------------------------------------------
    def predict(self, latitude: float, longitude: float, area_m2: float) -> RemotePrediction:
        """Blocking call; raises RemoteUnavailable on any failure."""
        if not self.enabled:
            raise RemoteUnavailable("Prediction API disabled", transient=False)

        body = {
            "latitude": latitude,
            "longitude": longitude,
            "area_m2": area_m2,
            "model_version": self.cfg.model_version,
        }
        url = self._build_url(self.PREDICT_PATH)

        try:
            resp = self.session.post(url, json=body, headers=self._headers(), timeout=self.cfg.timeout)
        except requests.Timeout as exc:
            raise RemoteUnavailable(f"Prediction API timed out: {exc}") from exc
        except requests.RequestException as exc:
            raise RemoteUnavailable(f"Prediction API request failed: {exc}") from exc

        status = resp.status_code
        if status != 200:
            transient = status >= 500 or status == 429
            raise RemoteUnavailable(f"Prediction API returned HTTP {status}", transient=transient)

        try:
            data = resp.json()
        except ValueError as exc:
            raise RemoteUnavailable("Prediction API returned non-JSON payload", transient=False) from exc

        prediction = parse_prediction(data)
        self.log.debug(
            "Remote prediction for (%.4f, %.4f): %.2f kWh/day (confidence %.2f)",
            latitude,
            longitude,
            prediction.daily_kwh,
            prediction.confidence,
        )
        return prediction
