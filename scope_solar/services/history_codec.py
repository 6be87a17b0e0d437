from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List

from scope_solar.models.geo import GeoPoint
from scope_solar.models.prediction import (
    GenerationPrediction,
    PredictionFactors,
    PredictionRecord,
    PredictionSource,
)


def record_to_dict(record: PredictionRecord) -> Dict[str, Any]:
    pred = record.prediction
    return {
        "id": record.id,
        "timestamp": record.timestamp.isoformat(),
        "input": {
            "latitude": record.geo.latitude,
            "longitude": record.geo.longitude,
            "area_m2": record.area_m2,
        },
        "prediction": {
            "daily_kwh": pred.daily_kwh,
            "monthly_kwh": pred.monthly_kwh,
            "yearly_kwh": pred.yearly_kwh,
            "confidence": pred.confidence,
            "source": pred.source.value,
        },
    }


def record_from_dict(data: Dict[str, Any]) -> PredictionRecord:
    """Inverse of record_to_dict. Factors are not persisted and come back as defaults."""
    try:
        inp = data["input"]
        pred = data["prediction"]
        ts = datetime.fromisoformat(data["timestamp"])
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        prediction = GenerationPrediction(
            daily_kwh=float(pred["daily_kwh"]),
            monthly_kwh=float(pred["monthly_kwh"]),
            yearly_kwh=float(pred["yearly_kwh"]),
            confidence=float(pred["confidence"]),
            source=PredictionSource(pred["source"]),
            factors=PredictionFactors(),
        )
        return PredictionRecord(
            id=str(data["id"]),
            timestamp=ts,
            geo=GeoPoint(float(inp["latitude"]), float(inp["longitude"])),
            area_m2=float(inp["area_m2"]),
            prediction=prediction,
        )
    except (KeyError, TypeError) as exc:
        raise ValueError(f"Malformed prediction record: {exc}") from exc


def records_to_payload(records: Iterable[PredictionRecord]) -> List[Dict[str, Any]]:
    return [record_to_dict(r) for r in records]


def records_from_payload(payload: Any) -> List[PredictionRecord]:
    if not isinstance(payload, list):
        raise ValueError("Prediction history must be a JSON list")
    return [record_from_dict(item) for item in payload]


def save_json(records: Iterable[PredictionRecord], path: str | Path) -> Path:
    target = Path(path).expanduser()
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(records_to_payload(records), indent=2), encoding="utf-8")
    return target


def load_json(path: str | Path) -> List[PredictionRecord]:
    source = Path(path).expanduser()
    if not source.exists():
        return []
    return records_from_payload(json.loads(source.read_text(encoding="utf-8")))
