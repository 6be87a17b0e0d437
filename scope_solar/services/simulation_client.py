# scope_solar/services/simulation_client.py

from __future__ import annotations

import time
from typing import Any, Dict, Optional

from scope_solar.errors import RemoteUnavailable
from scope_solar.services.prediction_client import RemotePrediction, parse_prediction


class SimulationPredictionClient:
    """Provide prediction-service responses backed by config data.

    ``fault`` selects a failure mode: ``transport`` and ``timeout`` are
    transient, ``http_4xx`` and ``malformed`` are not. ``fail_times`` limits
    a fault to the first N calls so retry paths can be exercised.
    """

    FAULTS = {"transport", "timeout", "http_4xx", "malformed"}

    def __init__(
        self,
        fault_type: str | None,
        cfg: Dict[str, Any] | None,
        log,
        *,
        enabled: bool = True,
        fail_times: Optional[int] = None,
        delay: float = 0.0,
    ) -> None:
        if fault_type and fault_type not in self.FAULTS:
            raise ValueError(f"Unknown simulated fault '{fault_type}'")
        self.fault = fault_type
        self.cfg_root: Dict[str, Any] = cfg or {}
        self.log = log
        self._enabled = enabled
        self.fail_times = fail_times
        self.delay = delay
        self.model_version = str(self.cfg_root.get("model_version", "sim-1"))
        self.calls: list[tuple[float, float, float]] = []

    # ----------------------------------------------------------
    @staticmethod
    def parse_kv_list(raw: Optional[str]) -> Dict[str, float]:
        if not raw:
            return {}
        out: Dict[str, float] = {}
        for item in raw.split(","):
            if ":" not in item:
                continue
            key, value = item.split(":", 1)
            key = key.strip()
            if not key:
                continue
            try:
                out[key] = float(value.strip())
            except ValueError:
                continue
        return out

    @property
    def enabled(self) -> bool:
        return bool(self._enabled)

    def _faulting(self) -> bool:
        if not self.fault:
            return False
        if self.fail_times is None:
            return True
        return len(self.calls) <= self.fail_times

    def _payload(self, area_m2: float) -> Dict[str, Any]:
        daily_per_m2 = float(self.cfg_root.get("daily_kwh_per_m2", 0.9))
        daily = float(self.cfg_root.get("daily_kwh", daily_per_m2 * area_m2))
        factors = self.cfg_root.get("factors")
        if isinstance(factors, str):
            factors = self.parse_kv_list(factors)
        return {
            "daily_kwh": daily,
            "monthly_kwh": float(self.cfg_root.get("monthly_kwh", daily * 30)),
            "yearly_kwh": float(self.cfg_root.get("yearly_kwh", daily * 365)),
            "confidence": float(self.cfg_root.get("confidence", 0.92)),
            "model_version": self.model_version,
            "factors": factors or {},
        }

    # ----------------------------------------------------------
    def predict(self, latitude: float, longitude: float, area_m2: float) -> RemotePrediction:
        self.calls.append((latitude, longitude, area_m2))
        if not self.enabled:
            raise RemoteUnavailable("Simulated prediction API disabled", transient=False)
        if self.delay:
            time.sleep(self.delay)

        if self._faulting():
            self.log.debug("Simulated prediction fault: %s", self.fault)
            if self.fault == "transport":
                raise RemoteUnavailable("Simulated connection reset")
            if self.fault == "timeout":
                raise RemoteUnavailable("Simulated read timeout")
            if self.fault == "http_4xx":
                raise RemoteUnavailable("Prediction API returned HTTP 400", transient=False)
            return parse_prediction(["not", "an", "object"])

        return parse_prediction(self._payload(area_m2))
