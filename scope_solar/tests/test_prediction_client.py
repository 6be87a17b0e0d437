# scope_solar/tests/test_prediction_client.py

import pytest
import requests

from scope_solar.config import PredictionConfig
from scope_solar.errors import RemoteUnavailable
from scope_solar.logging import get_logger
from scope_solar.services.prediction_client import PredictionAPIClient, parse_prediction


LOG = get_logger("prediction-api-test")

GOOD_PAYLOAD = {
    "daily_kwh": 50.0,
    "monthly_kwh": 1500.0,
    "yearly_kwh": 18250.0,
    "confidence": 0.88,
    "model_version": "v2.1",
    "factors": {
        "weather_adj": 0.95,
        "seasonal_adj": 1.02,
        "location_adj": 1.1,
        "system_efficiency": 0.84,
    },
}


class FakeResponse:
    def __init__(self, status_code=200, payload=None, bad_json=False):
        self.status_code = status_code
        self._payload = payload
        self._bad_json = bad_json

    def json(self):
        if self._bad_json:
            raise ValueError("Expecting value")
        return self._payload


class FakeSession:
    def __init__(self, response):
        self.response = response
        self.calls = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def _cfg(**overrides):
    cfg = PredictionConfig(base_url="https://api.test/v1/", api_key=None, timeout=5.0)
    for key, value in overrides.items():
        setattr(cfg, key, value)
    return cfg


def test_successful_prediction_posts_request_body():
    session = FakeSession(FakeResponse(200, GOOD_PAYLOAD))
    client = PredictionAPIClient(_cfg(api_key="SECRET"), LOG, session=session)

    result = client.predict(12.5, 77.25, 120.0)

    assert result.daily_kwh == 50.0
    assert result.model_version == "v2.1"
    assert result.factors.location_adj == 1.1
    call = session.calls[0]
    assert call["url"] == "https://api.test/v1/predict/solar"
    assert call["json"] == {"latitude": 12.5, "longitude": 77.25, "area_m2": 120.0, "model_version": "v1.0"}
    assert call["headers"]["Authorization"] == "Bearer SECRET"
    assert call["timeout"] == 5.0


def test_no_auth_header_without_key():
    session = FakeSession(FakeResponse(200, GOOD_PAYLOAD))
    PredictionAPIClient(_cfg(), LOG, session=session).predict(0.0, 0.0, 10.0)
    assert "Authorization" not in session.calls[0]["headers"]


@pytest.mark.parametrize(
    "status, transient",
    [(500, True), (503, True), (429, True), (400, False), (404, False)],
)
def test_http_errors_classified(status, transient):
    client = PredictionAPIClient(_cfg(), LOG, session=FakeSession(FakeResponse(status, {})))
    with pytest.raises(RemoteUnavailable) as exc:
        client.predict(0.0, 0.0, 10.0)
    assert exc.value.transient is transient
    assert str(status) in str(exc.value)


@pytest.mark.parametrize("error", [requests.ConnectionError("reset"), requests.Timeout("slow")])
def test_transport_errors_are_transient(error):
    client = PredictionAPIClient(_cfg(), LOG, session=FakeSession(error))
    with pytest.raises(RemoteUnavailable) as exc:
        client.predict(0.0, 0.0, 10.0)
    assert exc.value.transient is True


def test_non_json_body_is_not_transient():
    client = PredictionAPIClient(_cfg(), LOG, session=FakeSession(FakeResponse(200, bad_json=True)))
    with pytest.raises(RemoteUnavailable) as exc:
        client.predict(0.0, 0.0, 10.0)
    assert exc.value.transient is False


def test_disabled_client_never_calls_out():
    session = FakeSession(FakeResponse(200, GOOD_PAYLOAD))
    client = PredictionAPIClient(_cfg(enabled=False), LOG, session=session)
    with pytest.raises(RemoteUnavailable) as exc:
        client.predict(0.0, 0.0, 10.0)
    assert exc.value.transient is False
    assert session.calls == []


def test_parse_accepts_camel_case_and_clamps_confidence():
    result = parse_prediction(
        {
            "dailyGeneration": "10.5",
            "monthlyGeneration": 315,
            "yearlyGeneration": 3832.5,
            "confidence": 1.4,
            "factors": {"weatherAdjustment": 0.0},
        }
    )
    assert result.daily_kwh == 10.5
    assert result.confidence == 1.0
    assert result.factors.weather_adj == 0.0
    assert result.factors.system_efficiency == 0.85
    assert result.model_version is None


def test_parse_rejects_incomplete_payloads():
    with pytest.raises(RemoteUnavailable) as exc:
        parse_prediction({"daily_kwh": 1.0})
    assert "monthly_kwh" in str(exc.value)
    assert exc.value.transient is False

    with pytest.raises(RemoteUnavailable):
        parse_prediction({"daily_kwh": "lots", "monthly_kwh": 1, "yearly_kwh": 1, "confidence": 0.5})


@pytest.mark.parametrize("value", [10**400, float("nan"), "inf", "-Infinity"])
def test_parse_rejects_non_finite_numbers(value):
    with pytest.raises(RemoteUnavailable) as exc:
        parse_prediction({"daily_kwh": value, "monthly_kwh": 1, "yearly_kwh": 1, "confidence": 0.5})
    assert exc.value.transient is False
    assert "daily_kwh" in str(exc.value)
