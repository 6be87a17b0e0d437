# scope_solar/services/output_formatter.py

from __future__ import annotations

import json
from typing import Any, Dict, Optional

from scope_solar.models.results import SolarAnalysis
from scope_solar.services.financial import convert_currency
from scope_solar.services.irradiance import solar_zone

CURRENCY_SYMBOLS = {
    "INR": "₹",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "AUD": "A$",
    "CAD": "C$",
    "JPY": "¥",
}


def format_currency(amount: float, currency: str = "INR") -> str:
    code = currency.upper()
    symbol = CURRENCY_SYMBOLS.get(code, code + " ")
    return f"{symbol}{amount:,.0f}"


def _years(value: Optional[float]) -> str:
    return f"{value:.1f} years" if value is not None else "n/a"


def _pct(value: Optional[float]) -> str:
    return f"{value * 100:.1f}%" if value is not None else "n/a"


def analysis_to_dict(analysis: SolarAnalysis) -> Dict[str, Any]:
    pred = analysis.prediction
    fin = analysis.financial
    env = analysis.environmental
    return {
        "location": {
            "latitude": analysis.geo.latitude,
            "longitude": analysis.geo.longitude,
            "formatted": analysis.geo.formatted,
            "solar_zone": solar_zone(analysis.geo.latitude).value,
        },
        "area_m2": analysis.area_m2,
        "panel_count": analysis.panel_count,
        "capacity_kw": analysis.capacity_kw,
        "prediction": {
            "daily_kwh": pred.daily_kwh,
            "monthly_kwh": pred.monthly_kwh,
            "yearly_kwh": pred.yearly_kwh,
            "confidence": pred.confidence,
            "source": pred.source.value,
            "model_version": pred.model_version,
            "factors": {
                "weather_adj": pred.factors.weather_adj,
                "seasonal_adj": pred.factors.seasonal_adj,
                "location_adj": pred.factors.location_adj,
                "system_efficiency": pred.factors.system_efficiency,
            },
        },
        "financial": {
            "investment": fin.investment,
            "monthly_savings": fin.monthly_savings,
            "annual_savings": fin.annual_savings,
            "payback_years": fin.payback_years,
            "npv": fin.npv,
            "irr": fin.irr,
            "total_savings": fin.total_savings,
        },
        "environmental": {
            "co2_monthly_kg": env.co2_monthly_kg,
            "co2_total_kg": env.co2_total_kg,
            "equivalent_trees": env.equivalent_trees,
            "distance_offset": env.distance_offset,
            "water_saved_liters": env.water_saved_liters,
        },
        "viability": {
            "score": analysis.viability_score,
            "recommendation": analysis.recommendation_level.value,
            "is_viable": analysis.is_viable,
        },
    }


def to_json(analysis: SolarAnalysis, *, indent: int = 2) -> str:
    return json.dumps(analysis_to_dict(analysis), indent=indent)


def format_summary(analysis: SolarAnalysis, currency: str = "INR") -> str:
    """Multi-line human summary; money is converted from INR to ``currency``."""
    pred = analysis.prediction
    fin = analysis.financial
    env = analysis.environmental

    def money(amount: float) -> str:
        return format_currency(convert_currency(amount, "INR", currency), currency)

    source = "remote model" if pred.source.value == "remote" else "local estimate"
    lines = [
        f"Location: {analysis.geo.formatted} ({solar_zone(analysis.geo.latitude).value} solar zone)",
        f"Area: {analysis.area_m2:,.1f} m² -> {analysis.panel_count} panels ({analysis.capacity_kw:.1f} kW)",
        f"Generation ({source}, confidence {pred.confidence:.0%}): "
        f"{pred.daily_kwh:.1f} kWh/day, {pred.monthly_kwh:,.0f} kWh/month, {pred.yearly_kwh:,.0f} kWh/year",
        f"Investment: {money(fin.investment)}  Savings: {money(fin.monthly_savings)}/month, "
        f"{money(fin.annual_savings)}/year",
        f"Payback: {_years(fin.payback_years)}  NPV: {money(fin.npv)}  IRR: {_pct(fin.irr)}",
        f"CO2 avoided: {env.co2_monthly_kg:,.0f} kg/month, {env.co2_total_kg / 1000:,.1f} t lifetime "
        f"(~{env.equivalent_trees:,.0f} trees)",
        f"Recommendation: {analysis.recommendation_level.value} (score {analysis.viability_score:.0f}/100)",
    ]
    return "\n".join(lines)
