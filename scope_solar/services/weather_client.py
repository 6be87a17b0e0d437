from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterable, List, Optional

import requests

from scope_solar.config import WeatherConfig
from scope_solar.models.geo import GeoPoint
from scope_solar.models.weather import WeatherFactors, WeatherSample
from scope_solar.services.events import WEATHER_UPDATED, EventHub
from scope_solar.services.history import WEATHER_HISTORY_CAPACITY, BoundedHistory

DAILY_FIELDS = (
    "temperature_2m_mean",
    "relative_humidity_2m_mean",
    "cloud_cover_mean",
    "precipitation_sum",
    "surface_pressure_mean",
)
SUNNY_CLOUD_COVER_PCT = 30.0


def _parse_day(ts: str | None) -> Optional[datetime]:
    if not ts:
        return None
    try:
        dt = datetime.fromisoformat(ts)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _series_value(series: Any, idx: int) -> Optional[float]:
    if not isinstance(series, list) or idx >= len(series):
        return None
    value = series[idx]
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_daily_samples(payload: Any) -> List[WeatherSample]:
    """Turn an Open-Meteo archive payload into ordered samples; rows missing core fields are dropped."""
    if not isinstance(payload, dict):
        return []
    daily = payload.get("daily") or {}
    times = list(daily.get("time") or [])

    samples: List[WeatherSample] = []
    for idx, raw_time in enumerate(times):
        ts = _parse_day(raw_time)
        temperature = _series_value(daily.get("temperature_2m_mean"), idx)
        cloud = _series_value(daily.get("cloud_cover_mean"), idx)
        if ts is None or temperature is None or cloud is None:
            continue
        humidity = _series_value(daily.get("relative_humidity_2m_mean"), idx)
        precipitation = _series_value(daily.get("precipitation_sum"), idx)
        pressure = _series_value(daily.get("surface_pressure_mean"), idx)
        samples.append(
            WeatherSample(
                timestamp=ts,
                temperature=temperature,
                humidity=humidity if humidity is not None else 0.0,
                cloud_cover=cloud,
                precipitation=precipitation if precipitation is not None else 0.0,
                pressure=pressure if pressure is not None else 0.0,
            )
        )
    samples.sort(key=lambda s: s.timestamp)
    return samples


def aggregate_weather(samples: Iterable[WeatherSample]) -> WeatherFactors:
    """Average temperature/humidity/cloud cover and count rainy and sunny samples."""
    items = list(samples)
    if not items:
        return WeatherFactors.default()
    count = len(items)
    return WeatherFactors(
        average_temperature=sum(s.temperature for s in items) / count,
        average_humidity=sum(s.humidity for s in items) / count,
        average_cloud_cover=sum(s.cloud_cover for s in items) / count,
        rainy_days=sum(1 for s in items if s.precipitation > 0),
        sunny_days=sum(1 for s in items if s.cloud_cover < SUNNY_CLOUD_COVER_PCT),
    )


@dataclass
class WeatherClient:
    cfg: WeatherConfig
    log: Any
    session: Optional[requests.Session] = None
    history: Optional[BoundedHistory[WeatherSample]] = None
    events: Optional[EventHub] = None

    def __post_init__(self):
        if self.session is None:
            self.session = requests.Session()
        if self.history is None:
            self.history = BoundedHistory(WEATHER_HISTORY_CAPACITY)

    @property
    def enabled(self) -> bool:
        return bool(self.cfg.enabled and self.cfg.base_url)

    def fetch_samples(self, geo: GeoPoint, start: date, end: date) -> List[WeatherSample]:
        """Daily samples for [start, end]; empty on any failure."""
        if not self.enabled:
            return []

        params = {
            "latitude": geo.latitude,
            "longitude": geo.longitude,
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "daily": ",".join(DAILY_FIELDS),
            "timezone": "UTC",
        }

        try:
            resp = self.session.get(self.cfg.base_url, params=params, timeout=self.cfg.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as exc:
            self.log.warning("Weather fetch failed: %s", exc)
            return []

        samples = parse_daily_samples(data)
        if samples:
            self.history.extend(samples)
            if self.events is not None:
                self.events.publish(WEATHER_UPDATED, samples)
        self.log.debug("Fetched %d weather samples for %s", len(samples), geo.formatted)
        return samples

    def average_factors(self, geo: GeoPoint, *, days: int | None = None, today: date | None = None) -> WeatherFactors:
        """Aggregate the last ``days`` (default from config) into WeatherFactors."""
        span = days if days is not None else self.cfg.history_days
        end = today or datetime.now(timezone.utc).date()
        start = end - timedelta(days=span)
        samples = self.fetch_samples(geo, start, end)
        if not samples:
            self.log.info("No weather history for %s; using default weather factors.", geo.formatted)
        return aggregate_weather(samples)
