"""Business logic for updating, reading and listing metrics."""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable, Protocol

from metrix.errors import MetricNotFoundError
from metrix.logger import get_logger
from metrix.types import MetricID, Metrics, MetricType


class _MetricGetter(Protocol):
    def get(self, metric_id: MetricID) -> Metrics | None: ...


class _MetricSaver(Protocol):
    def save(self, metric: Metrics) -> None: ...


class _MetricLister(Protocol):
    def list(self) -> list[Metrics]: ...


class MetricUpdateService:
    """Stores metrics; counters are added to the value already stored."""

    def __init__(self, saver: _MetricSaver, getter: _MetricGetter) -> None:
        self._saver = saver
        self._getter = getter

    def update(self, metrics: Iterable[Metrics]) -> None:
        """Save every metric in order, stopping at the first failure."""
        log = get_logger()
        for metric in metrics:
            if metric.mtype == MetricType.COUNTER:
                try:
                    existing = self._getter.get(MetricID(id=metric.id, mtype=metric.mtype))
                except Exception as exc:
                    log.error(
                        "Failed to get existing metric",
                        extra={"fields": {"id": metric.id, "error": str(exc)}},
                    )
                    raise
                if (
                    existing is not None
                    and metric.delta is not None
                    and existing.delta is not None
                ):
                    metric = replace(metric, delta=metric.delta + existing.delta)
            try:
                self._saver.save(metric)
            except Exception as exc:
                log.error(
                    "Failed to save metric",
                    extra={"fields": {"id": metric.id, "error": str(exc)}},
                )
                raise


class MetricGetService:
    """Reads single metrics."""

    def __init__(self, getter: _MetricGetter) -> None:
        self._getter = getter

    def get(self, metric_id: MetricID) -> Metrics:
        """The stored metric; raises MetricNotFoundError when there is none."""
        log = get_logger()
        fields = {"id": metric_id.id, "type": str(metric_id.mtype)}
        log.info("MetricGetService.Get called", extra={"fields": fields})
        try:
            metric = self._getter.get(metric_id)
        except Exception as exc:
            log.error(
                "Failed to get metric", extra={"fields": {**fields, "error": str(exc)}}
            )
            raise
        if metric is None:
            log.warning("Metric not found", extra={"fields": fields})
            raise MetricNotFoundError()
        log.info(
            "Metric retrieved successfully",
            extra={"fields": {"id": metric.id, "type": str(metric.mtype)}},
        )
        return metric


class MetricListService:
    """Lists all metrics."""

    def __init__(self, lister: _MetricLister) -> None:
        self._lister = lister

    def list(self) -> list[Metrics]:
        """Every stored metric, as the underlying lister orders them."""
        return self._lister.list()