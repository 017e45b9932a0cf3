"""Thread-safe in-memory storage of metrics and the repositories over it."""

from __future__ import annotations

import threading
from dataclasses import replace
from typing import Generic, TypeVar

from metrix.types import MetricID, Metrics

K = TypeVar("K")
V = TypeVar("V")


class MemoryStorage(Generic[K, V]):
    """A dictionary guarded by a lock shared by all repositories over it."""

    def __init__(self) -> None:
        self.data: dict[K, V] = {}
        self.lock = threading.Lock()


class MetricMemoryGetRepository:
    """Looks up single metrics."""

    def __init__(self, storage: MemoryStorage[MetricID, Metrics]) -> None:
        self._storage = storage

    def get(self, metric_id: MetricID) -> Metrics | None:
        """A copy of the stored metric, or None when it is absent."""
        with self._storage.lock:
            metric = self._storage.data.get(metric_id)
        return None if metric is None else replace(metric)


class MetricMemorySaveRepository:
    """Stores metrics, replacing any earlier one with the same id and type."""

    def __init__(self, storage: MemoryStorage[MetricID, Metrics]) -> None:
        self._storage = storage

    def save(self, metric: Metrics) -> None:
        """Store a copy of ``metric`` under its id and type."""
        key = MetricID(id=metric.id, mtype=metric.mtype)
        with self._storage.lock:
            self._storage.data[key] = replace(metric)


class MetricMemoryListRepository:
    """Lists every stored metric."""

    def __init__(self, storage: MemoryStorage[MetricID, Metrics]) -> None:
        self._storage = storage

    def list(self) -> list[Metrics]:
        """Copies of all stored metrics, sorted by id."""
        with self._storage.lock:
            metrics = [replace(metric) for metric in self._storage.data.values()]
        return sorted(metrics, key=lambda metric: metric.id)