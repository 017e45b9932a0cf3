"""Request logging for HTTP handlers."""

from __future__ import annotations

import time
from typing import Mapping

from werkzeug.wrappers import Request, Response

from metrix.handlers import Handler
from metrix.logger import get_logger


def _request_uri(request: Request) -> str:
    query = request.query_string.decode("latin-1")
    return f"{request.path}?{query}" if query else request.path


def logging_middleware(handler: Handler) -> Handler:
    """Wrap ``handler`` so each request and its response are logged."""

    def wrapped(request: Request, params: Mapping[str, str]) -> Response:
        start = time.perf_counter()
        response = handler(request, params)
        duration = time.perf_counter() - start

        log = get_logger()
        log.info(
            "Request",
            extra={
                "fields": {
                    "method": request.method,
                    "uri": _request_uri(request),
                    "duration": duration,
                }
            },
        )
        size = 0 if response.is_streamed else len(response.get_data())
        log.info(
            "Response",
            extra={"fields": {"status": response.status_code, "response_size": size}},
        )
        return response

    return wrapped