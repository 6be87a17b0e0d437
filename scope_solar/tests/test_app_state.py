from datetime import datetime, timedelta, timezone
import json
import sqlite3

import pytest

from scope_solar.models.geo import GeoPoint
from scope_solar.models.prediction import (
    GenerationPrediction,
    PredictionFactors,
    PredictionRecord,
    PredictionSource,
)
from scope_solar.services import history_codec, state_maintenance
from scope_solar.services.app_state import AppState


def _record(rid, ts, daily=10.0, source=PredictionSource.FALLBACK):
    return PredictionRecord(
        id=rid,
        timestamp=ts,
        geo=GeoPoint(19.07, 72.87),
        area_m2=40.0,
        prediction=GenerationPrediction(
            daily_kwh=daily,
            monthly_kwh=daily * 30,
            yearly_kwh=daily * 365,
            confidence=0.75,
            source=source,
            factors=PredictionFactors(),
        ),
    )


NOW = datetime(2024, 5, 1, 8, 30, tzinfo=timezone.utc)


def test_codec_writes_expected_shape(tmp_path):
    path = history_codec.save_json([_record("r1", NOW)], tmp_path / "out" / "history.json")
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload == [
        {
            "id": "r1",
            "timestamp": "2024-05-01T08:30:00+00:00",
            "input": {"latitude": 19.07, "longitude": 72.87, "area_m2": 40.0},
            "prediction": {
                "daily_kwh": 10.0,
                "monthly_kwh": 300.0,
                "yearly_kwh": 3650.0,
                "confidence": 0.75,
                "source": "fallback",
            },
        }
    ]
    assert history_codec.load_json(path) == [_record("r1", NOW)]


def test_codec_handles_missing_and_malformed(tmp_path):
    assert history_codec.load_json(tmp_path / "none.json") == []
    with pytest.raises(ValueError):
        history_codec.records_from_payload({"id": "x"})
    with pytest.raises(ValueError):
        history_codec.records_from_payload([{"id": "x"}])


def test_records_persist_across_connections(tmp_path):
    db_path = tmp_path / "state.db"
    state = AppState(path=db_path)
    state.save_records([_record("a", NOW - timedelta(hours=1)), _record("b", NOW)])
    state.save_records([_record("a", NOW - timedelta(hours=1), daily=12.0)])
    state.close()

    reopened = AppState(path=db_path)
    records = reopened.load_records()
    assert [r.id for r in records] == ["a", "b"]
    assert records[0].prediction.daily_kwh == 12.0
    assert [r.id for r in reopened.load_records(limit=1)] == ["b"]

    conn = sqlite3.connect(db_path)
    assert conn.execute("SELECT COUNT(*) FROM prediction_records").fetchone()[0] == 2
    conn.close()
    reopened.close()


def test_memory_mode():
    state = AppState(persist=False)
    assert state.path is None
    assert not state.persistent
    state.save_records([_record("m", NOW)])
    assert [r.id for r in state.load_records()] == ["m"]
    state.clear_records()
    assert state.load_records() == []
    assert state_maintenance.prune(state, record_days=1) == 0


def test_prune_removes_old_records(tmp_path):
    state = AppState(path=tmp_path / "state.db")
    state.save_records(
        [
            _record("old", NOW - timedelta(days=400)),
            _record("recent", NOW - timedelta(days=10)),
        ]
    )

    removed = state_maintenance.prune(state, record_days=365, vacuum=False, now=NOW)

    assert removed == 1
    assert [r.id for r in state.load_records()] == ["recent"]
    state.close()


def test_load_skips_rows_missing_fields(tmp_path, caplog):
    state = AppState(path=tmp_path / "state.db")
    state.save_records([_record("good", NOW)])
    with state.connection:
        state.connection.execute(
            "INSERT INTO prediction_records(id, recorded_at, source, payload) VALUES (?, ?, ?, ?)",
            ("partial", (NOW + timedelta(hours=1)).isoformat(), "fallback", json.dumps({"id": "partial"})),
        )

    with caplog.at_level("WARNING", logger="scope.state"):
        records = state.load_records()
        newest = state.load_records(limit=1)

    assert [r.id for r in records] == ["good"]
    assert [r.id for r in newest] == ["good"]
    assert "Skipping malformed prediction record" in caplog.text
    state.close()
