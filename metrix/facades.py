"""HTTP client side for pushing metric updates to the server."""

from __future__ import annotations

import requests

from metrix.types import MetricsUpdatePathRequest


class MetricUpdateError(Exception):
    """A metric update could not be delivered or was refused."""


class MetricUpdateFacade:
    """Sends metric updates as POST /{endpoint}/{type}/{name}/{value}."""

    def __init__(
        self,
        client: requests.Session | None,
        server_addr: str,
        endpoint: str,
        timeout: float | None = None,
    ) -> None:
        self._client = client if client is not None else requests.Session()
        self._server_addr = server_addr.rstrip("/")
        self._endpoint = endpoint.strip("/")
        self._timeout = timeout

    def _url(self, request: MetricsUpdatePathRequest) -> str:
        addr = self._server_addr
        if not addr.startswith(("http://", "https://")):
            addr = "http://" + addr
        return f"{addr}/{self._endpoint}/{request.mtype}/{request.name}/{request.value}"

    def update(self, request: MetricsUpdatePathRequest) -> None:
        """Post one metric; raises MetricUpdateError on failure or a 4xx/5xx answer."""
        try:
            response = self._client.post(
                self._url(request),
                headers={"Content-Type": "text/plain"},
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise MetricUpdateError(f"request error: {exc}") from exc
        if response.status_code >= 400:
            raise MetricUpdateError(
                f"server returned status {response.status_code}: {response.text}"
            )