# scope_solar/services/history.py

from __future__ import annotations

import threading
from typing import Generic, Iterable, List, Optional, Tuple, TypeVar

T = TypeVar("T")

WEATHER_HISTORY_CAPACITY = 100
PREDICTION_HISTORY_CAPACITY = 50


class BoundedHistory(Generic[T]):
    """
    Capped append-only log keeping the most recent ``capacity`` items in
    insertion order. Writers serialize on a lock; readers get a tuple
    snapshot taken under the same lock.
    """

    def __init__(self, capacity: int, items: Optional[Iterable[T]] = None):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._items: List[T] = []
        self._lock = threading.Lock()
        if items:
            self.extend(items)

    # ------------------------------------------------------------------
    def _evict(self) -> None:
        overflow = len(self._items) - self.capacity
        if overflow > 0:
            del self._items[:overflow]
        assert len(self._items) <= self.capacity, "history exceeded capacity"

    def append(self, item: T) -> None:
        with self._lock:
            self._items.append(item)
            self._evict()

    def extend(self, items: Iterable[T]) -> None:
        with self._lock:
            self._items.extend(items)
            self._evict()

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    # ------------------------------------------------------------------
    def all(self) -> Tuple[T, ...]:
        with self._lock:
            return tuple(self._items)

    def latest(self) -> Optional[T]:
        with self._lock:
            return self._items[-1] if self._items else None

    def size(self) -> int:
        with self._lock:
            return len(self._items)

    def __len__(self) -> int:
        return self.size()

    def __iter__(self):
        return iter(self.all())
