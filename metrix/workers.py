"""The agent's metric collection and reporting pipeline."""

from __future__ import annotations

import gc
import queue
import random
import sys
import threading
import time
from typing import Callable, Iterable, Iterator, Protocol

from metrix.runners import RunContext
from metrix.types import MetricsUpdatePathRequest, MetricType, format_float

try:
    import resource
except ImportError:  # not available on every platform
    resource = None

Collector = Callable[[], Iterable[MetricsUpdatePathRequest]]

_JOBS_CAPACITY = 100
_CLOSED = object()


class _MetricUpdater(Protocol):
    def update(self, request: MetricsUpdatePathRequest) -> None: ...


class _GCTracker:
    """Records collector pauses through the interpreter's gc callbacks."""

    def __init__(self) -> None:
        self.started_ns = time.monotonic_ns()
        self.pause_total_ns = 0
        self.last_gc_ns = 0
        self._pause_start = 0

    def __call__(self, phase: str, info: dict) -> None:
        if phase == "start":
            self._pause_start = time.perf_counter_ns()
        elif phase == "stop":
            self.pause_total_ns += time.perf_counter_ns() - self._pause_start
            self.last_gc_ns = time.time_ns()

    def cpu_fraction(self) -> float:
        elapsed = time.monotonic_ns() - self.started_ns
        return self.pause_total_ns / elapsed if elapsed > 0 else 0.0


_GC_TRACKER = _GCTracker()
gc.callbacks.append(_GC_TRACKER)


def _max_rss_bytes() -> int:
    if resource is None:
        return 0
    rss = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    return rss if sys.platform == "darwin" else rss * 1024


def collect_runtime_gauge_metrics() -> list[MetricsUpdatePathRequest]:
    """Gauges describing the interpreter's memory and collector, plus RandomValue.

    The names are the fixed set the server expects; each is filled from the
    closest figure the interpreter exposes, and zero where it has none.
    """
    stats = gc.get_stats()
    collections = sum(generation["collections"] for generation in stats)
    collected = sum(generation["collected"] for generation in stats)
    objects = len(gc.get_objects())
    blocks = sys.getallocatedblocks()
    rss = _max_rss_bytes()
    threshold = gc.get_threshold()[0]
    pending = gc.get_count()[0]

    values: dict[str, float] = {
        "Alloc": blocks,
        "BuckHashSys": 0,
        "Frees": collected,
        "GCCPUFraction": _GC_TRACKER.cpu_fraction(),
        "GCSys": 0,
        "HeapAlloc": blocks,
        "HeapIdle": 0,
        "HeapInuse": blocks,
        "HeapObjects": objects,
        "HeapReleased": 0,
        "HeapSys": rss,
        "LastGC": _GC_TRACKER.last_gc_ns,
        "Lookups": 0,
        "MCacheInuse": 0,
        "MCacheSys": 0,
        "MSpanInuse": 0,
        "MSpanSys": 0,
        "Mallocs": objects + collected,
        "NextGC": max(threshold - pending, 0),
        "NumForcedGC": 0,
        "NumGC": collections,
        "OtherSys": 0,
        "PauseTotalNs": _GC_TRACKER.pause_total_ns,
        "StackInuse": 0,
        "StackSys": 0,
        "Sys": rss,
        "TotalAlloc": objects + collected,
        "RandomValue": random.random() * 100,
    }
    return [
        MetricsUpdatePathRequest(
            name=name, mtype=MetricType.GAUGE.value, value=format_float(float(value))
        )
        for name, value in values.items()
    ]


def collect_runtime_counter_metrics() -> list[MetricsUpdatePathRequest]:
    """The PollCount counter, incremented by one on every poll."""
    return [
        MetricsUpdatePathRequest(name="PollCount", mtype=MetricType.COUNTER.value, value="1")
    ]


def poll_metrics(
    ctx: RunContext, poll_interval: float, *collectors: Collector
) -> Iterator[MetricsUpdatePathRequest]:
    """Every ``poll_interval`` seconds, yield what each collector returns.

    The iterator ends once ``ctx`` is done.
    """
    if poll_interval <= 0:
        raise ValueError("poll interval must be positive")

    def poll() -> Iterator[MetricsUpdatePathRequest]:
        while not ctx.wait(poll_interval):
            for collect in collectors:
                yield from collect()

    return poll()


def _drain(errors: queue.Queue) -> Iterator[BaseException]:
    while (item := errors.get()) is not _CLOSED:
        yield item


def report_metrics(
    ctx: RunContext,
    updater: _MetricUpdater,
    report_interval: float,
    worker_count: int,
    source: Iterable[MetricsUpdatePathRequest],
) -> Iterator[BaseException]:
    """Send metrics from ``source`` in batches every ``report_interval`` seconds.

    ``worker_count`` threads send the updates. The buffered metrics are sent
    one last time when the source is exhausted or ``ctx`` is done. Returns an
    iterator over the errors the updater raised, which ends once every
    sender has finished.
    """
    if report_interval <= 0:
        raise ValueError("report interval must be positive")
    if worker_count < 1:
        raise ValueError("worker count must be at least 1")

    jobs: queue.Queue = queue.Queue(maxsize=_JOBS_CAPACITY)
    errors: queue.Queue = queue.Queue()
    buffer: list[MetricsUpdatePathRequest] = []
    lock = threading.Lock()
    stop = RunContext(ctx)

    def feed() -> None:
        try:
            for metric in source:
                with lock:
                    buffer.append(metric)
        finally:
            stop.cancel()

    def flush() -> None:
        with lock:
            pending = buffer[:]
            buffer.clear()
        for metric in pending:
            jobs.put(metric)

    def dispatch() -> None:
        try:
            while not stop.wait(report_interval):
                flush()
            flush()
        finally:
            for _ in range(worker_count):
                jobs.put(_CLOSED)

    def send() -> None:
        while (metric := jobs.get()) is not _CLOSED:
            try:
                updater.update(metric)
            except Exception as exc:
                errors.put(exc)

    senders = [threading.Thread(target=send, daemon=True) for _ in range(worker_count)]

    def close_errors() -> None:
        for sender in senders:
            sender.join()
        errors.put(_CLOSED)

    for sender in senders:
        sender.start()
    threading.Thread(target=feed, daemon=True).start()
    threading.Thread(target=dispatch, daemon=True).start()
    threading.Thread(target=close_errors, daemon=True).start()
    return _drain(errors)


def wait_for_context_or_error(
    ctx: RunContext, errors: Iterable[BaseException | None]
) -> None:
    """Wait for ``ctx`` to finish or for the first error from ``errors``.

    Raises the context's error, or the first error that is not None.
    Returns once ``errors`` is exhausted without an error.
    """
    wake = RunContext(ctx)
    found: list[BaseException] = []

    def forward() -> None:
        try:
            for error in errors:
                if error is not None:
                    found.append(error)
                    return
        except BaseException as exc:
            found.append(exc)
        finally:
            wake.cancel()

    threading.Thread(target=forward, daemon=True).start()
    wake.wait()
    error = ctx.err()
    if error is not None:
        raise error
    if found:
        raise found[0]


def new_metric_agent_worker(
    updater: _MetricUpdater,
    poll_interval: float,
    report_interval: float,
    worker_count: int,
) -> Callable[[RunContext], None]:
    """A worker that polls runtime metrics and reports them through ``updater``."""

    def worker(ctx: RunContext) -> None:
        source = poll_metrics(
            ctx,
            poll_interval,
            collect_runtime_gauge_metrics,
            collect_runtime_counter_metrics,
        )
        errors = report_metrics(ctx, updater, report_interval, worker_count, source)
        wait_for_context_or_error(ctx, errors)

    return worker