import re

import pytest
import responses
from werkzeug.test import Client

from metrix.apps import MetricsServer, new_agent_app, new_server_app
from metrix.configs import AgentConfig, ServerConfig
from metrix.runners import ContextCancelled, DeadlineExceeded, RunContext, run_server


@pytest.fixture
def client():
    server = new_server_app(ServerConfig(address=":0", log_level="debug"))
    return Client(server.app)


def test_new_server_app_keeps_address():
    server = new_server_app(ServerConfig(address=":8080"))
    assert server.address == ":8080"


@pytest.mark.parametrize(
    "url, expected",
    [
        ("/update/gauge/temperature/42.5", 200),
        ("/update/gauge/temperature/24.3", 200),
        ("/update/counter/requests/100", 200),
        ("/update/counter/requests/50", 200),
        ("/update/invalid/some/10", 400),
        ("/update/gauge/pressure/not-a-number", 400),
        ("/update/gauge/humidity", 400),
        ("/update/gauge", 404),
        ("/update", 404),
    ],
)
def test_update_metric_path(client, url, expected):
    response = client.post(url, headers={"Content-Type": "text/plain"})
    assert response.status_code == expected


def test_metric_value_path(client):
    assert client.post("/update/counter/requests/150").status_code == 200
    assert client.post("/update/gauge/temperature/42.5").status_code == 200

    gauge = client.get("/value/gauge/temperature")
    assert gauge.status_code == 200
    assert gauge.get_data(as_text=True) == "42.5"

    counter = client.get("/value/counter/requests")
    assert counter.status_code == 200
    assert counter.get_data(as_text=True) == "150"


def test_counter_accumulates_and_gauge_overrides(client):
    client.post("/update/counter/requests/100")
    client.post("/update/counter/requests/50")
    client.post("/update/gauge/temperature/42.5")
    client.post("/update/gauge/temperature/24.3")
    assert client.get("/value/counter/requests").get_data(as_text=True) == "150"
    assert client.get("/value/gauge/temperature").get_data(as_text=True) == "24.3"


def test_unknown_metric_is_not_found(client):
    response = client.get("/value/gauge/missing")
    assert response.status_code == 404
    assert response.get_data(as_text=True).strip() == "metric not found"


def test_metrics_list(client):
    client.post("/update/gauge/temperature/42.5")
    response = client.get("/")
    assert response.status_code == 200
    assert "text/html" in response.headers["Content-Type"]
    body = response.get_data(as_text=True)
    assert "<html>" in body
    assert "<li>temperature: 42.5</li>" in body


def test_server_runs_until_context_ends():
    server = new_server_app(ServerConfig(address="127.0.0.1:0"))
    run_server(RunContext(timeout=0.3), server)
    with pytest.raises(RuntimeError, match="server closed"):
        server.serve_forever()


def test_server_rejects_address_without_port():
    server = MetricsServer("nonsense", new_server_app(ServerConfig()).app)
    with pytest.raises(ValueError, match="missing port"):
        server.serve_forever()


def test_new_agent_app_stops_on_cancelled_context():
    worker = new_agent_app(
        AgentConfig(
            server_address="http://localhost:8080",
            server_endpoint="/update",
            poll_interval=1,
            report_interval=1,
            num_workers=1,
        )
    )
    ctx = RunContext()
    ctx.cancel()
    with pytest.raises(ContextCancelled):
        worker(ctx)


def test_agent_sends_metrics():
    config = AgentConfig(
        server_address="localhost:8080",
        server_endpoint="/update/",
        log_level="debug",
        poll_interval=0.05,
        report_interval=0.05,
        num_workers=1,
    )
    worker = new_agent_app(config)
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        rsps.add(
            responses.POST, re.compile(r"http://localhost:8080/update/.*"), status=200
        )
        with pytest.raises(DeadlineExceeded):
            worker(RunContext(timeout=0.5))
        urls = [call.request.url for call in rsps.calls]
    assert urls
    assert any("/update/gauge/Alloc/" in url for url in urls)
    assert any(url.endswith("/update/counter/PollCount/1") for url in urls)