from __future__ import annotations

from typing import Any, Dict, Optional

import requests

from scope_solar.config import IrradianceConfig
from scope_solar.models.geo import GeoPoint
from scope_solar.models.irradiance import IrradianceEstimate
from scope_solar.services.irradiance import monthly_profile

PARAMETER = "ALLSKY_SFC_SW_DWN"


def parse_power_series(payload: Any) -> Dict[str, float]:
    """Daily kWh/m2 keyed YYYYMMDD; fill values (negative) are dropped."""
    if not isinstance(payload, dict):
        return {}
    params = (payload.get("properties") or {}).get("parameter") or {}
    series = params.get(PARAMETER) or {}
    if not isinstance(series, dict):
        return {}
    out: Dict[str, float] = {}
    for key, value in series.items():
        try:
            val = float(value)
        except (TypeError, ValueError):
            continue
        if val < 0:
            continue
        out[str(key)] = val
    return out


class IrradianceClient:
    """NASA POWER daily surface irradiance for one point and calendar year."""

    def __init__(self, cfg: IrradianceConfig, log, session: Optional[requests.Session] = None):
        self.cfg = cfg
        self.log = log
        self.session = session or requests.Session()

    @property
    def enabled(self) -> bool:
        return bool(self.cfg.enabled and self.cfg.base_url)

    def fetch_estimate(self, geo: GeoPoint, year: int | None = None) -> Optional[IrradianceEstimate]:
        if not self.enabled:
            return None
        year = year or self.cfg.year
        params = {
            "parameters": PARAMETER,
            "community": "SB",
            "longitude": geo.longitude,
            "latitude": geo.latitude,
            "start": f"{year}0101",
            "end": f"{year}1231",
            "format": "JSON",
        }
        try:
            resp = self.session.get(self.cfg.base_url, params=params, timeout=self.cfg.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as exc:
            self.log.warning("Irradiance fetch failed: %s", exc)
            return None

        series = parse_power_series(data)
        if not series:
            self.log.warning("Irradiance response for %s had no usable values", geo.formatted)
            return None
        return monthly_profile(series)
