from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from scope_solar.models.geo import GeoPoint
from scope_solar.models.prediction import GenerationPrediction


@dataclass(frozen=True)
class FinancialResult:
    investment: float
    monthly_savings: float
    annual_savings: float
    payback_years: Optional[float]  # None when annual savings <= 0
    npv: float
    irr: Optional[float]            # None when Newton-Raphson does not converge
    total_savings: float = 0.0


@dataclass(frozen=True)
class EnvironmentalResult:
    co2_monthly_kg: float
    co2_total_kg: float
    equivalent_trees: float
    distance_offset: float
    water_saved_liters: float = 0.0


class RecommendationLevel(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    MODERATE = "moderate"
    POOR = "poor"
    NOT_RECOMMENDED = "not_recommended"


@dataclass(frozen=True)
class SolarAnalysis:
    geo: GeoPoint
    area_m2: float
    panel_count: int
    capacity_kw: float
    prediction: GenerationPrediction
    financial: FinancialResult
    environmental: EnvironmentalResult

    @property
    def is_viable(self) -> bool:
        payback = self.financial.payback_years
        return payback is not None and payback <= 8.0 and self.prediction.daily_kwh > 5.0

    @property
    def viability_score(self) -> float:
        payback = self.financial.payback_years
        payback_score = max(0.0, (10 - payback) / 10) * 40 if payback is not None else 0.0
        generation_score = min(self.prediction.daily_kwh / 50, 1.0) * 30
        environmental_score = min(self.environmental.co2_monthly_kg / 500, 1.0) * 30
        return payback_score + generation_score + environmental_score

    @property
    def recommendation_level(self) -> RecommendationLevel:
        score = self.viability_score
        if score >= 80:
            return RecommendationLevel.EXCELLENT
        if score >= 60:
            return RecommendationLevel.GOOD
        if score >= 40:
            return RecommendationLevel.MODERATE
        if score >= 20:
            return RecommendationLevel.POOR
        return RecommendationLevel.NOT_RECOMMENDED
