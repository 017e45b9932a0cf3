# metrix

metrix is a small monitoring pair: a server that keeps gauge and counter
metrics in memory, and an agent that samples statistics of its own Python
process on a fixed interval and reports them to the server.

## Install

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## The server

```
metrix-server -a :8080 -l info
```

| Flag | Environment | Default | Meaning |
|------|-------------|---------|---------|
| `-a` | `ADDRESS`   | `:8080` | address and port to listen on |
| `-l` | `LOG_LEVEL` | `info`  | log level: `debug`, `info`, `warn`, `error`, `dpanic`, `panic`, `fatal` |

A non-empty environment variable takes priority over its flag. An address
with an empty host, such as `:8080`, listens on all interfaces.

### HTTP API

- `POST /update/{type}/{name}/{value}`: store a metric. `type` is `gauge` or
  `counter`. A gauge replaces the stored value; a counter value (a 64-bit
  integer) is added to the stored one. The answer is `400` for an unknown
  type or a value that does not parse (including a missing value,
  `POST /update/{type}/{name}`), and `404` when the path has no name.
- `GET /value/{type}/{name}`: the current value as plain text, `404` if the
  metric is not known or the name is missing, `400` for an unknown type.
- `GET /`: an HTML page listing every metric as `name: value`, sorted by name.

```
curl -X POST http://localhost:8080/update/gauge/temperature/42.5
curl -X POST http://localhost:8080/update/counter/requests/100
curl http://localhost:8080/value/counter/requests
```

Each request is logged with its method, URI, duration, status and response
size. Once `metrix.logger.initialize` has been called (the commands do this)
log records are written to stderr as one JSON object per line.

## The agent

```
metrix-agent -a localhost:8080 -e /update -p 2 -r 10 -w 5
```

| Flag | Environment       | Default          | Meaning |
|------|-------------------|------------------|---------|
| `-a` | `ADDRESS`         | `localhost:8080` | server address; `http://` is added when no scheme is given |
| `-e` | `SERVER_ENDPOINT` | `/update`        | update endpoint path |
| `-l` | `LOG_LEVEL`       | `info`           | log level |
| `-p` | `POLL_INTERVAL`   | `2`              | polling interval, seconds |
| `-r` | `REPORT_INTERVAL` | `10`             | reporting interval, seconds |
| `-w` | `NUM_WORKERS`     | `5`              | number of sending threads |

Numeric environment variables are used only when they hold a positive
integer; otherwise the flag value applies.

Every poll gathers a fixed set of gauges (`Alloc`, `HeapObjects`, `NumGC`,
`PauseTotalNs`, `Sys` and others) filled from the interpreter's allocator,
garbage collector and resource usage figures, zero where no such figure
exists, plus a `RandomValue` gauge and a `PollCount` counter of 1. Samples
are buffered and sent at each report interval by the pool of sending
threads. The agent stops at the first failed update.

Both commands stop cleanly on SIGINT, SIGTERM or SIGQUIT.

## Using it as a library

```python
from metrix.apps import new_server_app
from metrix.configs import ServerConfig
from metrix.runners import new_run_context, run_server

server = new_server_app(ServerConfig(address=":8080", log_level="info"))
ctx, stop = new_run_context()
try:
    run_server(ctx, server)
finally:
    stop()
```

- `metrix.types`: `Metrics`, `MetricID`, `MetricType`,
  `get_metric_string_value`, `get_metrics_html`, `format_float`.
- `metrix.validators`: `validate_metric_path`, `validate_metric_id_path`
  and `handle_metrics_validation_error`, which maps the errors of
  `metrix.errors` to an HTTP status and message.
- `metrix.services`: `MetricUpdateService`, `MetricGetService`,
  `MetricListService` over the in-memory repositories of
  `metrix.repositories`.
- `metrix.routers.MetricsRouter`: the WSGI application of the server.
- `metrix.facades.MetricUpdateFacade`: the HTTP client the agent sends
  updates with; it raises `MetricUpdateError` on failure.
- `metrix.runners`: `RunContext` for cancellation, `run_server` and
  `run_worker`.
- `metrix.workers`: the polling and reporting pipeline behind
  `new_metric_agent_worker`.

## What it does not do

Metrics live only in the server's memory: nothing is written to disk, and a
restart starts empty. There is no JSON API, no batch update, no
authentication and no TLS on the server side. The server runs on Werkzeug's
built-in threaded HTTP server.