"""Validation of metric path parameters and mapping of errors to HTTP answers."""

from __future__ import annotations

import math
import re
from http import HTTPStatus

from metrix.errors import (
    InternalServerError,
    InvalidCounterValueError,
    InvalidGaugeValueError,
    InvalidMetricIDError,
    InvalidMetricTypeError,
    MetricNotFoundError,
)
from metrix.types import APIError, MetricID, Metrics, MetricType

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

_INT_RE = re.compile(r"[+-]?[0-9]+")
_DEC_FLOAT_RE = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_HEX_FLOAT_RE = re.compile(
    r"[+-]?0[xX](?:[0-9a-fA-F]+\.?[0-9a-fA-F]*|\.[0-9a-fA-F]+)[pP][+-]?[0-9]+"
)
_SPECIAL_FLOAT_RE = re.compile(r"[+-]?(?:inf|infinity)|nan", re.IGNORECASE)


def _parse_int64(text: str) -> int:
    if not _INT_RE.fullmatch(text):
        raise ValueError(f"invalid integer: {text!r}")
    number = int(text)
    if not _INT64_MIN <= number <= _INT64_MAX:
        raise ValueError(f"integer out of range: {text!r}")
    return number


def _parse_float64(text: str) -> float:
    if _SPECIAL_FLOAT_RE.fullmatch(text):
        return float(text)
    if _HEX_FLOAT_RE.fullmatch(text):
        try:
            return float.fromhex(text)
        except OverflowError:
            raise ValueError(f"float out of range: {text!r}") from None
    if _DEC_FLOAT_RE.fullmatch(text):
        number = float(text)
        if math.isinf(number):
            raise ValueError(f"float out of range: {text!r}")
        return number
    raise ValueError(f"invalid float: {text!r}")


def validate_metric_id_path(metric_id: str, metric_type: str) -> MetricID:
    """Check the name and type of a metric and return its key."""
    if not metric_id:
        raise InvalidMetricIDError()
    if metric_type not in (MetricType.COUNTER, MetricType.GAUGE):
        raise InvalidMetricTypeError()
    return MetricID(id=metric_id, mtype=metric_type)


def validate_metric_path(metric_id: str, metric_type: str, value: str) -> Metrics:
    """Check a full update path and return the metric it describes."""
    key = validate_metric_id_path(metric_id, metric_type)
    if metric_type == MetricType.COUNTER:
        try:
            delta = _parse_int64(value)
        except ValueError:
            raise InvalidCounterValueError() from None
        return Metrics(id=key.id, mtype=key.mtype, delta=delta)
    try:
        gauge = _parse_float64(value)
    except ValueError:
        raise InvalidGaugeValueError() from None
    return Metrics(id=key.id, mtype=key.mtype, value=gauge)


def handle_metrics_validation_error(error: BaseException | None) -> APIError | None:
    """Translate an error into the HTTP status and message to answer with."""
    if error is None:
        return None
    if isinstance(error, (InvalidMetricIDError, MetricNotFoundError)):
        return APIError(code=HTTPStatus.NOT_FOUND, message=str(error))
    if isinstance(
        error, (InvalidMetricTypeError, InvalidGaugeValueError, InvalidCounterValueError)
    ):
        return APIError(code=HTTPStatus.BAD_REQUEST, message=str(error))
    return APIError(
        code=HTTPStatus.INTERNAL_SERVER_ERROR, message=str(InternalServerError())
    )