"""URL routing of the metrics server."""

from __future__ import annotations

from typing import Callable, Iterable, Mapping

from werkzeug.exceptions import HTTPException, NotFound
from werkzeug.routing import Map, Rule
from werkzeug.wrappers import Request, Response

from metrix.handlers import Handler

Middleware = Callable[[Handler], Handler]


class MetricsRouter:
    """WSGI application dispatching metric requests to their handlers."""

    def __init__(
        self,
        update_handler: Handler,
        value_handler: Handler,
        list_handler: Handler,
        middlewares: Iterable[Middleware] = (),
    ) -> None:
        self._handlers = {
            "update": update_handler,
            "value": value_handler,
            "list": list_handler,
        }
        self._url_map = Map(
            [
                Rule("/update/<type>/<name>/<value>", endpoint="update", methods=["POST"]),
                Rule("/update/<type>/<name>", endpoint="update", methods=["POST"]),
                Rule("/value/<type>/<name>", endpoint="value", methods=["GET"]),
                Rule("/value/<type>", endpoint="value", methods=["GET"]),
                Rule("/", endpoint="list", methods=["GET"]),
            ]
        )
        handler: Handler = self._dispatch
        for middleware in reversed(list(middlewares)):
            handler = middleware(handler)
        self._handler = handler

    def _dispatch(self, request: Request, params: Mapping[str, str]) -> Response:
        adapter = self._url_map.bind_to_environ(request.environ)
        try:
            endpoint, values = adapter.match()
        except NotFound:
            return Response(
                "404 page not found\n",
                status=404,
                content_type="text/plain; charset=utf-8",
            )
        except HTTPException as exc:
            return exc.get_response(request.environ)
        return self._handlers[endpoint](request, values)

    def __call__(self, environ, start_response):
        request = Request(environ)
        response = self._handler(request, {})
        return response(environ, start_response)


def new_metrics_router(
    update_handler: Handler,
    value_handler: Handler,
    list_handler: Handler,
    *middlewares: Middleware,
) -> MetricsRouter:
    """Router with the given handlers, wrapped by the middlewares in order."""
    return MetricsRouter(update_handler, value_handler, list_handler, middlewares)