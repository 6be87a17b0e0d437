from __future__ import annotations

import datetime as dt


def _cutoff(days: int, now: dt.datetime | None = None) -> str:
    now = now or dt.datetime.now(dt.timezone.utc)
    return (now - dt.timedelta(days=days)).isoformat()


def prune(state, record_days: int, *, vacuum: bool = True, now: dt.datetime | None = None) -> int:
    """Drop prediction records older than ``record_days``; returns the number removed."""
    conn = getattr(state, "connection", None)
    if not getattr(state, "persistent", False) or conn is None:
        return 0
    with conn:
        cur = conn.execute(
            "DELETE FROM prediction_records WHERE recorded_at < ?",
            (_cutoff(record_days, now),),
        )
    removed = cur.rowcount
    if vacuum:
        conn.execute("VACUUM")
    return removed
