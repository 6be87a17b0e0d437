from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class WeatherSample:
    timestamp: datetime
    temperature: float      # degC
    humidity: float         # percent
    cloud_cover: float      # percent
    precipitation: float    # mm
    pressure: float         # hPa


@dataclass(frozen=True)
class WeatherFactors:
    average_temperature: float
    average_humidity: float
    average_cloud_cover: float
    rainy_days: int
    sunny_days: int

    @property
    def seasonal_adjustment(self) -> float:
        temperature_factor = min(max((self.average_temperature - 15) / 20, 0.8), 1.2)
        cloud_factor = max(1 - (self.average_cloud_cover / 100), 0.7)
        rainy_factor = max(1 - (self.rainy_days / 30 * 0.2), 0.8)
        return (temperature_factor + cloud_factor + rainy_factor) / 3

    @classmethod
    def default(cls) -> WeatherFactors:
        return cls(
            average_temperature=28.0,
            average_humidity=65.0,
            average_cloud_cover=40.0,
            rainy_days=8,
            sunny_days=22,
        )
