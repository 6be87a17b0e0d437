# scope_solar/services/app_state.py

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from scope_solar.models.prediction import PredictionRecord
from scope_solar.services.history_codec import record_from_dict, record_to_dict


class AppState:
    """SQLite-backed store for the persisted prediction history."""

    def __init__(self, path: Optional[Union[Path, str]] = None, *, persist: bool = True):
        default_path = Path.home() / ".scope_solar_state.db"
        self._persist = persist
        self._log = logging.getLogger("scope.state")
        if self._persist:
            resolved = Path(path).expanduser() if path else default_path
            resolved.parent.mkdir(parents=True, exist_ok=True)
            self.path: Optional[Path] = resolved
            self._conn = sqlite3.connect(self.path)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._init_schema()
        else:
            self.path = None
            self._conn = None
            self._memory: Dict[str, Dict] = {"records": {}}

    # ------------------------------------------------------------------
    def _init_schema(self) -> None:
        with self._conn:
            self._conn.execute(
                """
                CREATE TABLE IF NOT EXISTS prediction_records (
                    id TEXT PRIMARY KEY,
                    recorded_at TEXT NOT NULL,
                    source TEXT NOT NULL,
                    payload TEXT NOT NULL
                )
                """
            )

    @property
    def persistent(self) -> bool:
        return self._persist and self._conn is not None

    @property
    def connection(self) -> Optional[sqlite3.Connection]:
        return self._conn

    # Prediction records ----------------------------------------------
    def save_records(self, records: Iterable[PredictionRecord]) -> int:
        """Upsert records by id; returns how many were written."""
        rows = [(r.id, r.timestamp.isoformat(), r.prediction.source.value, record_to_dict(r)) for r in records]
        if not self._persist:
            for rid, _, _, payload in rows:
                self._memory["records"][rid] = payload
            return len(rows)
        with self._conn:
            self._conn.executemany(
                """
                INSERT INTO prediction_records(id, recorded_at, source, payload)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    recorded_at=excluded.recorded_at,
                    source=excluded.source,
                    payload=excluded.payload
                """,
                [(rid, ts, source, json.dumps(payload)) for rid, ts, source, payload in rows],
            )
        return len(rows)

    def load_records(self, limit: Optional[int] = None) -> List[PredictionRecord]:
        """Stored records oldest first; ``limit`` keeps only the newest N."""
        if not self._persist:
            payloads = sorted(self._memory["records"].values(), key=lambda p: p["timestamp"])
        else:
            rows = self._conn.execute(
                "SELECT payload FROM prediction_records ORDER BY recorded_at ASC"
            ).fetchall()
            payloads = []
            for row in rows:
                try:
                    payloads.append(json.loads(row["payload"]))
                except json.JSONDecodeError:
                    self._log.warning("Skipping unreadable prediction record")
        records = []
        for payload in payloads:
            try:
                records.append(record_from_dict(payload))
            except ValueError as exc:
                self._log.warning("Skipping malformed prediction record: %s", exc)
        if limit is not None:
            records = records[-limit:] if limit > 0 else []
        return records

    def clear_records(self) -> None:
        if not self._persist:
            self._memory["records"].clear()
            return
        with self._conn:
            self._conn.execute("DELETE FROM prediction_records")

    # ------------------------------------------------------------------
    def close(self) -> None:
        if self._conn is not None:
            self._conn.commit()
            self._conn.close()
            self._conn = None
