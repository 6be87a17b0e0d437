# scope_solar/tests/test_weather_client.py

from datetime import date

import pytest
import requests

from scope_solar.config import WeatherConfig
from scope_solar.logging import get_logger
from scope_solar.models.geo import GeoPoint
from scope_solar.models.weather import WeatherFactors
from scope_solar.services.events import WEATHER_UPDATED, EventHub
from scope_solar.services.history import BoundedHistory
from scope_solar.services.weather_client import WeatherClient, aggregate_weather, parse_daily_samples


LOG = get_logger("weather-test")


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload or {}

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")


class FakeSession:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        return FakeResponse(self.status_code, self.payload)


def _daily_payload(days):
    return {
        "daily": {
            "time": [f"2024-01-{d:02d}" for d in range(1, days + 1)],
            "temperature_2m_mean": [25.0 + (d % 3) for d in range(days)],
            "relative_humidity_2m_mean": [60.0] * days,
            "cloud_cover_mean": [20.0 if d % 2 == 0 else 50.0 for d in range(days)],
            "precipitation_sum": [1.5 if d < 2 else 0.0 for d in range(days)],
            "surface_pressure_mean": [1010.0] * days,
        }
    }


def test_fetch_samples_builds_request_and_records_history():
    session = FakeSession(_daily_payload(4))
    history = BoundedHistory(100)
    events = EventHub(LOG)
    updates = []
    events.subscribe(WEATHER_UPDATED, lambda _e, samples: updates.append(len(samples)))
    client = WeatherClient(WeatherConfig(enabled=True, timeout=7.0), LOG, session=session, history=history, events=events)

    samples = client.fetch_samples(GeoPoint(12.0, 77.0), date(2024, 1, 1), date(2024, 1, 4))

    assert len(samples) == 4
    assert samples[0].timestamp.isoformat().startswith("2024-01-01")
    assert history.size() == 4
    assert updates == [4]
    params = session.calls[0]["params"]
    assert params["start_date"] == "2024-01-01"
    assert params["end_date"] == "2024-01-04"
    assert "cloud_cover_mean" in params["daily"]
    assert session.calls[0]["timeout"] == 7.0


def test_weather_history_is_capped():
    history = BoundedHistory(100)
    payload = {
        "daily": {
            "time": [f"2023-{m:02d}-{d:02d}" for m in range(1, 7) for d in range(1, 26)],
            "temperature_2m_mean": [20.0] * 150,
            "cloud_cover_mean": [10.0] * 150,
        }
    }
    client = WeatherClient(WeatherConfig(enabled=True), LOG, session=FakeSession(payload), history=history)
    samples = client.fetch_samples(GeoPoint(0.0, 0.0), date(2023, 1, 1), date(2023, 6, 25))
    assert len(samples) == 150
    assert history.size() == 100
    assert history.all()[0] == samples[50]


def test_rows_missing_core_values_are_dropped():
    payload = _daily_payload(3)
    payload["daily"]["temperature_2m_mean"][1] = None
    samples = parse_daily_samples(payload)
    assert len(samples) == 2
    assert parse_daily_samples(["nope"]) == []


def test_aggregate_weather_counts_rainy_and_sunny_days():
    factors = aggregate_weather(parse_daily_samples(_daily_payload(4)))
    assert factors.average_temperature == pytest.approx((25 + 26 + 27 + 25) / 4)
    assert factors.average_cloud_cover == pytest.approx(35.0)
    assert factors.rainy_days == 2
    assert factors.sunny_days == 2


def test_average_factors_uses_configured_window():
    session = FakeSession(_daily_payload(2))
    client = WeatherClient(WeatherConfig(enabled=True, history_days=30), LOG, session=session)
    client.average_factors(GeoPoint(1.0, 2.0), today=date(2024, 3, 31))
    assert session.calls[0]["params"]["start_date"] == "2024-03-01"


def test_http_failure_falls_back_to_defaults():
    session = FakeSession({}, status_code=503)
    client = WeatherClient(WeatherConfig(enabled=True), LOG, session=session)
    geo = GeoPoint(1.0, 2.0)
    assert client.fetch_samples(geo, date(2024, 1, 1), date(2024, 1, 2)) == []
    assert client.average_factors(geo, today=date(2024, 1, 2)) == WeatherFactors.default()


def test_weather_disabled_short_circuits():
    session = FakeSession(_daily_payload(2))
    client = WeatherClient(WeatherConfig(enabled=False), LOG, session=session)
    assert client.fetch_samples(GeoPoint(0.0, 0.0), date(2024, 1, 1), date(2024, 1, 2)) == []
    assert session.calls == []


def test_default_factors_seasonal_adjustment():
    adj = WeatherFactors.default().seasonal_adjustment
    # temperature 0.8 floor -> 0.8, cloud 0.6 -> 0.7, rain 1 - 8/30*0.2
    assert adj == pytest.approx((0.8 + 0.7 + (1 - 8 / 30 * 0.2)) / 3)
