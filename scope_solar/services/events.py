# scope_solar/services/events.py

from __future__ import annotations

import threading
from typing import Any, Callable, Dict, List

PREDICTION_COMPLETED = "prediction_completed"
WEATHER_UPDATED = "weather_updated"
HISTORY_CLEARED = "history_cleared"

EVENTS = (PREDICTION_COMPLETED, WEATHER_UPDATED, HISTORY_CLEARED)

Listener = Callable[[str, Any], None]


class EventHub:
    """Fan-out of engine events to presentation-layer subscribers."""

    def __init__(self, log):
        self.log = log
        self._listeners: Dict[str, List[Listener]] = {name: [] for name in EVENTS}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    def subscribe(self, event: str, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; returns a callable that unsubscribes it."""
        if event not in self._listeners:
            raise ValueError(f"Unknown event '{event}'")
        with self._lock:
            self._listeners[event].append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners[event]:
                    self._listeners[event].remove(listener)

        return _unsubscribe

    # ------------------------------------------------------------------
    def publish(self, event: str, payload: Any = None) -> int:
        """Deliver ``payload`` to every listener; returns how many were called.

        A failing listener is logged and does not stop delivery to the others.
        """
        with self._lock:
            listeners = list(self._listeners.get(event, []))
        delivered = 0
        for listener in listeners:
            try:
                listener(event, payload)
                delivered += 1
            except Exception as exc:
                self.log.warning("Listener for %s failed: %s", event, exc)
        self.log.debug("Published %s to %d listener(s)", event, delivered)
        return delivered
