from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict


class SolarZone(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    MODERATE = "Moderate"
    LOW = "Low"

    @property
    def average_irradiance(self) -> float:
        """Fallback kWh/m2/day when no detailed estimate is available."""
        return _ZONE_IRRADIANCE[self]


_ZONE_IRRADIANCE = {
    SolarZone.HIGH: 6.0,
    SolarZone.MEDIUM: 5.5,
    SolarZone.MODERATE: 4.8,
    SolarZone.LOW: 4.0,
}


@dataclass(frozen=True)
class IrradianceEstimate:
    average_daily_kwh_per_m2: float
    # YYYYMM -> average kWh/m2/day, keys ascending
    monthly_breakdown: Dict[str, float] = field(default_factory=dict)
    peak_month: str = ""
    low_month: str = ""


@dataclass(frozen=True)
class SystemLosses:
    dc_to_ac_conversion: float = 0.95
    soiling: float = 0.98
    shading: float = 0.97
    mismatch: float = 0.98
    wiring: float = 0.98
    temperature: float = 0.92
    aging: float = 0.99

    @property
    def overall_efficiency(self) -> float:
        return (
            self.dc_to_ac_conversion
            * self.soiling
            * self.shading
            * self.mismatch
            * self.wiring
            * self.temperature
            * self.aging
        )
