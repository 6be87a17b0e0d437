from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List

# Summer, monsoon, winter, post-monsoon.
SEASON_MULTIPLIERS = (1.15, 0.80, 1.05, 1.10)
MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
ANNUAL_DEGRADATION = 0.005


@dataclass(frozen=True)
class EnergyPoint:
    period: str
    energy_kwh: float


def flat_seasonal_multiplier() -> float:
    """Plain mean of the four season multipliers, independent of calendar month."""
    return sum(SEASON_MULTIPLIERS) / len(SEASON_MULTIPLIERS)


def seasonal_adjusted_daily(daily_kwh: float) -> float:
    return daily_kwh * flat_seasonal_multiplier()


def month_factor(month: int) -> float:
    if month in (1, 2, 12):
        return 1.05
    if month in (3, 4, 5):
        return 1.15
    if month in (6, 7, 8, 9):
        return 0.80
    if month in (10, 11):
        return 1.10
    return 1.0


def solar_curve(hour: int, peak: float = 12.0, width: float = 6.0) -> float:
    return max(0.0, math.exp(-(((hour - peak) / width) ** 2) * 2))


def hourly_series(daily_kwh: float) -> List[EnergyPoint]:
    return [EnergyPoint(f"{hour}:00", daily_kwh * solar_curve(hour) / 24.0) for hour in range(1, 25)]


def monthly_series(monthly_kwh: float) -> List[EnergyPoint]:
    return [EnergyPoint(name, monthly_kwh * month_factor(idx + 1)) for idx, name in enumerate(MONTH_NAMES)]


def yearly_series(yearly_kwh: float, years: int = 10, degradation: float = ANNUAL_DEGRADATION) -> List[EnergyPoint]:
    return [
        EnergyPoint(f"Year {year}", yearly_kwh * (1 - degradation) ** (year - 1))
        for year in range(1, years + 1)
    ]


@dataclass(frozen=True)
class GenerationProfile:
    seasonal_daily_kwh: float
    hourly: List[EnergyPoint]
    monthly: List[EnergyPoint]
    yearly: List[EnergyPoint]


def build_profile(daily_kwh: float, monthly_kwh: float, yearly_kwh: float, years: int = 10) -> GenerationProfile:
    """Chart series for one prediction; the hourly curve spreads the season-adjusted day."""
    seasonal = seasonal_adjusted_daily(daily_kwh)
    return GenerationProfile(
        seasonal_daily_kwh=seasonal,
        hourly=hourly_series(seasonal),
        monthly=monthly_series(monthly_kwh),
        yearly=yearly_series(yearly_kwh, years),
    )
