"""Assembly of the metrics server and the metrics agent."""

from __future__ import annotations

import threading
from typing import Callable

import requests
from werkzeug.serving import BaseWSGIServer, make_server

from metrix.configs import AgentConfig, ServerConfig
from metrix.facades import MetricUpdateFacade
from metrix.handlers import (
    new_metric_get_path_handler,
    new_metric_list_html_handler,
    new_metric_update_path_handler,
)
from metrix.middlewares import logging_middleware
from metrix.repositories import (
    MemoryStorage,
    MetricMemoryGetRepository,
    MetricMemoryListRepository,
    MetricMemorySaveRepository,
)
from metrix.routers import MetricsRouter, new_metrics_router
from metrix.runners import RunContext
from metrix.services import MetricGetService, MetricListService, MetricUpdateService
from metrix.validators import (
    handle_metrics_validation_error,
    validate_metric_id_path,
    validate_metric_path,
)
from metrix.workers import new_metric_agent_worker


def _split_address(address: str) -> tuple[str, int]:
    host, sep, port = address.rpartition(":")
    if not sep:
        raise ValueError(f"missing port in address {address!r}")
    return host.strip("[]") or "0.0.0.0", int(port)


class MetricsServer:
    """An HTTP server for a WSGI application, bound when it starts serving."""

    def __init__(self, address: str, app: MetricsRouter) -> None:
        self.address = address
        self.app = app
        self._lock = threading.Lock()
        self._server: BaseWSGIServer | None = None
        self._closed = False

    def serve_forever(self) -> None:
        """Bind to the address and serve until shut down."""
        host, port = _split_address(self.address)
        with self._lock:
            if self._closed:
                raise RuntimeError("server closed")
            server = make_server(host, port, self.app, threaded=True)
            self._server = server
        try:
            server.serve_forever()
        finally:
            server.server_close()

    def shutdown(self) -> None:
        """Stop serving; a server that is shut down cannot serve again."""
        with self._lock:
            self._closed = True
            server = self._server
        if server is not None:
            server.shutdown()


def new_server_app(config: ServerConfig) -> MetricsServer:
    """The metrics server with in-memory storage, listening on ``config.address``."""
    storage = MemoryStorage()
    getter = MetricMemoryGetRepository(storage)
    saver = MetricMemorySaveRepository(storage)
    lister = MetricMemoryListRepository(storage)

    update_service = MetricUpdateService(saver, getter)
    get_service = MetricGetService(getter)
    list_service = MetricListService(lister)

    router = new_metrics_router(
        new_metric_update_path_handler(
            validate_metric_path, handle_metrics_validation_error, update_service
        ),
        new_metric_get_path_handler(
            validate_metric_id_path, handle_metrics_validation_error, get_service
        ),
        new_metric_list_html_handler(handle_metrics_validation_error, list_service),
        logging_middleware,
    )
    return MetricsServer(config.address, router)


def new_agent_app(config: AgentConfig) -> Callable[[RunContext], None]:
    """The agent worker that reports runtime metrics to the configured server."""
    facade = MetricUpdateFacade(
        requests.Session(), config.server_address, config.server_endpoint
    )
    return new_metric_agent_worker(
        facade, config.poll_interval, config.report_interval, config.num_workers
    )