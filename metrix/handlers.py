"""HTTP handlers for updating, reading and listing metrics."""

from __future__ import annotations

from http import HTTPStatus
from typing import Callable, Iterable, Mapping, Optional, Protocol

from werkzeug.wrappers import Request, Response

from metrix.errors import InternalServerError, MetricsError
from metrix.types import (
    APIError,
    MetricID,
    Metrics,
    get_metric_string_value,
    get_metrics_html,
)
from metrix.validators import validate_metric_path

Handler = Callable[[Request, Mapping[str, str]], Response]
ErrorHandler = Callable[[BaseException], Optional[APIError]]

_TEXT = "text/plain; charset=utf-8"
_HTML = "text/html; charset=utf-8"


class _MetricUpdater(Protocol):
    def update(self, metrics: Iterable[Metrics]) -> None: ...


class _MetricGetter(Protocol):
    def get(self, metric_id: MetricID) -> Metrics: ...


class _MetricLister(Protocol):
    def list(self) -> list[Metrics]: ...


def _error_response(message: str, code: int) -> Response:
    response = Response(message + "\n", status=int(code), content_type=_TEXT)
    response.headers["X-Content-Type-Options"] = "nosniff"
    return response


def _api_error_response(api_error: APIError) -> Response:
    return _error_response(api_error.message, api_error.code)


def _new_metrics(metric_type: str, name: str, value: str) -> Metrics:
    try:
        return validate_metric_path(name, metric_type, value)
    except MetricsError:
        return Metrics(id=name, mtype=metric_type)


def new_metric_update_path_handler(
    validate: Callable[[str, str, str], object],
    handle_error: ErrorHandler,
    service: _MetricUpdater,
) -> Handler:
    """Handler that stores the metric named by the type, name and value in the path."""

    def handler(request: Request, params: Mapping[str, str]) -> Response:
        metric_type = params.get("type", "")
        name = params.get("name", "")
        value = params.get("value", "")
        try:
            validate(name, metric_type, value)
        except Exception as exc:
            api_error = handle_error(exc)
            if api_error is not None:
                return _api_error_response(api_error)
        try:
            service.update([_new_metrics(metric_type, name, value)])
        except Exception:
            return _error_response(
                str(InternalServerError()), HTTPStatus.INTERNAL_SERVER_ERROR
            )
        return Response(status=HTTPStatus.OK, content_type=_TEXT)

    return handler


def new_metric_get_path_handler(
    validate: Callable[[str, str], object],
    handle_error: ErrorHandler,
    service: _MetricGetter,
) -> Handler:
    """Handler that answers with the value of the metric named in the path."""

    def handler(request: Request, params: Mapping[str, str]) -> Response:
        metric_type = params.get("type", "")
        name = params.get("name", "")
        try:
            validate(name, metric_type)
        except Exception as exc:
            api_error = handle_error(exc)
            if api_error is not None:
                return _api_error_response(api_error)
        metric: Metrics | None = None
        try:
            metric = service.get(MetricID(id=name, mtype=metric_type))
        except Exception as exc:
            api_error = handle_error(exc)
            if api_error is not None:
                return _api_error_response(api_error)
        return Response(
            get_metric_string_value(metric), status=HTTPStatus.OK, content_type=_TEXT
        )

    return handler


def new_metric_list_html_handler(
    handle_error: ErrorHandler, service: _MetricLister
) -> Handler:
    """Handler that answers with an HTML page listing every metric."""

    def handler(request: Request, params: Mapping[str, str]) -> Response:
        metrics: list[Metrics] = []
        try:
            metrics = service.list()
        except Exception as exc:
            api_error = handle_error(exc)
            if api_error is not None:
                return _api_error_response(api_error)
        return Response(
            get_metrics_html(metrics), status=HTTPStatus.OK, content_type=_HTML
        )

    return handler