"""Physics-based irradiance estimate and latitude-band solar zones."""

from __future__ import annotations

import math
from typing import Dict, List, Mapping

from scope_solar.models.irradiance import IrradianceEstimate, SolarZone

SOLAR_CONSTANT_WM2 = 1367.0
ATMOSPHERIC_TRANSMITTANCE = 0.75
PEAK_SUN_HOURS = 8.0
MAX_DECLINATION_DEG = 23.45


def declination_deg(day_of_year: int) -> float:
    return MAX_DECLINATION_DEG * math.sin(2 * math.pi * (284 + day_of_year) / 365)


def daily_irradiance(latitude: float, day_of_year: int) -> float:
    """Return the estimated irradiance in kWh/m2/day. Never negative."""
    lat = math.radians(latitude)
    decl = math.radians(declination_deg(day_of_year))

    # Clamp for polar day (-1 -> omega = pi) and polar night (1 -> omega = 0).
    cos_omega = -math.tan(lat) * math.tan(decl)
    hour_angle = math.acos(max(-1.0, min(1.0, cos_omega)))
    if hour_angle == 0.0:
        return 0.0

    raw_w = SOLAR_CONSTANT_WM2 * ATMOSPHERIC_TRANSMITTANCE * (
        math.sin(lat) * math.sin(decl)
        + math.cos(lat) * math.cos(decl) * math.sin(hour_angle) / hour_angle
    )
    return max(0.0, raw_w / 1000.0 * PEAK_SUN_HOURS)


# Upper latitude bounds (exclusive) for HIGH, MEDIUM and MODERATE; beyond is LOW.
ZONE_BANDS = (15.0, 25.0, 35.0)
FALLBACK_ZONE_BANDS = (15.0, 30.0, 45.0)


def _zone_for(latitude: float, bands) -> SolarZone:
    abs_lat = abs(latitude)
    for bound, zone in zip(bands, (SolarZone.HIGH, SolarZone.MEDIUM, SolarZone.MODERATE)):
        if abs_lat < bound:
            return zone
    return SolarZone.LOW


def solar_zone(latitude: float) -> SolarZone:
    return _zone_for(latitude, ZONE_BANDS)


def fallback_zone(latitude: float) -> SolarZone:
    """Zone used by the local prediction fallback, which uses wider bands."""
    return _zone_for(latitude, FALLBACK_ZONE_BANDS)


def optimal_tilt(latitude: float) -> float:
    """Year-round fixed tilt: roughly the latitude, capped at 60 degrees."""
    return min(max(abs(latitude), 0.0), 60.0)


def monthly_profile(daily_values: Mapping[str, float]) -> IrradianceEstimate:
    """
    Group a daily series keyed by date string (YYYYMM or YYYYMMDD) into
    month averages. Months are sorted ascending before peak/low are picked.
    """
    if not daily_values:
        return IrradianceEstimate(average_daily_kwh_per_m2=0.0)

    grouped: Dict[str, List[float]] = {}
    for key, value in daily_values.items():
        grouped.setdefault(str(key)[:6], []).append(float(value))

    breakdown = {month: sum(vals) / len(vals) for month, vals in sorted(grouped.items())}
    average = sum(float(v) for v in daily_values.values()) / len(daily_values)

    months = list(breakdown)
    peak = max(months, key=lambda m: breakdown[m])
    low = min(months, key=lambda m: breakdown[m])

    return IrradianceEstimate(
        average_daily_kwh_per_m2=average,
        monthly_breakdown=breakdown,
        peak_month=peak,
        low_month=low,
    )
