"""Errors raised while validating, storing and serving metrics."""

from __future__ import annotations


class MetricsError(Exception):
    """Base class for every metrics error."""

    default_message = "metrics error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(self.default_message if message is None else message)

    @property
    def message(self) -> str:
        """The human readable text of the error."""
        return str(self.args[0])


class InternalServerError(MetricsError):
    """An unexpected failure inside the server."""

    default_message = "internal server error"


class InvalidMetricIDError(MetricsError):
    """The metric name is missing or empty."""

    default_message = "invalid metric id"


class InvalidMetricTypeError(MetricsError):
    """The metric type is neither counter nor gauge."""

    default_message = "invalid metric type"


class InvalidCounterValueError(MetricsError):
    """A counter value is not a 64-bit integer."""

    default_message = "invalid counter value"


class InvalidGaugeValueError(MetricsError):
    """A gauge value is not a floating point number."""

    default_message = "invalid gauge value"


class MetricNotFoundError(MetricsError):
    """The requested metric is not stored."""

    default_message = "metric not found"