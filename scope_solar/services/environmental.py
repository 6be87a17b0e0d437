from __future__ import annotations

from scope_solar.config import EnvironmentalConfig
from scope_solar.models.results import EnvironmentalResult


def compute_environmental(yearly_kwh: float, cfg: EnvironmentalConfig | None = None) -> EnvironmentalResult:
    """CO2 avoided and its everyday equivalents for a yearly generation figure."""
    cfg = cfg or EnvironmentalConfig()
    yearly_co2 = yearly_kwh * cfg.co2_per_kwh
    return EnvironmentalResult(
        co2_monthly_kg=(yearly_kwh / 12) * cfg.co2_per_kwh,
        co2_total_kg=yearly_co2 * cfg.horizon_years,
        equivalent_trees=yearly_co2 / cfg.co2_per_tree_per_year,
        distance_offset=yearly_kwh * cfg.distance_per_kwh,
        water_saved_liters=yearly_kwh * cfg.water_saved_per_kwh,
    )
