"""Metric records and their textual and HTML renderings."""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Iterable


class MetricType(str, Enum):
    """The kinds of metric the server understands."""

    COUNTER = "counter"
    GAUGE = "gauge"

    def __str__(self) -> str:
        return self.value

    def __hash__(self) -> int:
        return hash(self.value)


@dataclass(frozen=True)
class MetricID:
    """Key that identifies a stored metric."""

    id: str
    mtype: str


@dataclass
class Metrics:
    """A single metric: counters carry ``delta``, gauges carry ``value``."""

    id: str
    mtype: str
    delta: int | None = None
    value: float | None = None
    hash: str = ""


@dataclass(frozen=True)
class MetricsUpdatePathRequest:
    """A metric update as sent by the agent in the URL path."""

    name: str
    mtype: str
    value: str


@dataclass(frozen=True)
class APIError:
    """An HTTP status code together with the message to send."""

    code: int
    message: str


def format_float(value: float) -> str:
    """Shortest decimal text that round-trips ``value``, never in exponent form."""
    value = float(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    return format(Decimal(repr(value)).normalize(), "f")


def get_metric_string_value(metric: Metrics | None) -> str:
    """The metric's value as text, or an empty string when there is none."""
    if metric is None:
        return ""
    if metric.mtype == MetricType.COUNTER:
        return "" if metric.delta is None else str(int(metric.delta))
    if metric.mtype == MetricType.GAUGE:
        return "" if metric.value is None else format_float(metric.value)
    return ""


_HTML_ESCAPES = str.maketrans(
    {"&": "&amp;", "'": "&#39;", "<": "&lt;", ">": "&gt;", '"': "&#34;"}
)


def _escape(text: str) -> str:
    return text.translate(_HTML_ESCAPES)


def get_metrics_html(metrics: Iterable[Metrics] | None) -> str:
    """Render metrics as a simple HTML page with one list item per metric."""
    items = "".join(
        f"<li>{_escape(metric.id)}: {_escape(get_metric_string_value(metric))}</li>"
        for metric in metrics or ()
    )
    return (
        "<html><head><title>Metrics List</title></head><body>"
        "<h1>Metrics</h1>"
        f"<ul>{items}</ul></body></html>"
    )