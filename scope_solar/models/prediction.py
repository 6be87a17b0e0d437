from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from scope_solar.models.geo import GeoPoint


class PredictionSource(str, Enum):
    REMOTE = "remote"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class PredictionFactors:
    weather_adj: float = 1.0
    seasonal_adj: float = 1.0
    location_adj: float = 1.0
    system_efficiency: float = 0.85


@dataclass(frozen=True)
class GenerationPrediction:
    daily_kwh: float
    monthly_kwh: float
    yearly_kwh: float
    confidence: float
    source: PredictionSource
    factors: PredictionFactors
    model_version: str | None = None

    @property
    def is_fallback(self) -> bool:
        return self.source is PredictionSource.FALLBACK


@dataclass(frozen=True)
class PredictionRecord:
    id: str
    timestamp: datetime
    geo: GeoPoint
    area_m2: float
    prediction: GenerationPrediction
