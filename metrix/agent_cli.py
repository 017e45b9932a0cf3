"""Command line entry point of the metrics agent."""

from __future__ import annotations

import argparse
import os
import re
import sys
from typing import Callable, Mapping, Sequence

from metrix.apps import new_agent_app
from metrix.configs import AgentConfig
from metrix.logger import initialize
from metrix.runners import RunContext, new_run_context, run_worker

Worker = Callable[[RunContext], object]

_INT_RE = re.compile(r"[+-]?[0-9]+")


def _env_str(environ: Mapping[str, str], name: str, flag_value: str) -> str:
    return environ.get(name) or flag_value


def _env_positive_int(environ: Mapping[str, str], name: str, flag_value: int) -> int:
    raw = environ.get(name, "")
    if raw and _INT_RE.fullmatch(raw):
        value = int(raw)
        if value > 0:
            return value
    return flag_value


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="agent")
    parser.add_argument(
        "-a", dest="address", default="localhost:8080",
        help="HTTP server endpoint address",
    )
    parser.add_argument(
        "-e", dest="endpoint", default="/update",
        help="API endpoint for updating metrics",
    )
    parser.add_argument("-l", dest="log_level", default="info", help="logging level")
    parser.add_argument(
        "-p", dest="poll_interval", type=int, default=2,
        help="metric polling frequency (pollInterval) in seconds",
    )
    parser.add_argument(
        "-r", dest="report_interval", type=int, default=10,
        help="metric reporting frequency (reportInterval) in seconds",
    )
    parser.add_argument(
        "-w", dest="num_workers", type=int, default=5, help="number of workers"
    )
    return parser


def parse_flags(
    argv: Sequence[str] | None = None, environ: Mapping[str, str] | None = None
) -> AgentConfig:
    """Agent settings from the command line, overridden by non-empty environment values.

    Integer environment values that are not positive integers are ignored.
    """
    args = _build_parser().parse_args(sys.argv[1:] if argv is None else list(argv))
    env = os.environ if environ is None else environ
    return AgentConfig(
        server_address=_env_str(env, "ADDRESS", args.address),
        server_endpoint=_env_str(env, "SERVER_ENDPOINT", args.endpoint),
        log_level=_env_str(env, "LOG_LEVEL", args.log_level),
        poll_interval=_env_positive_int(env, "POLL_INTERVAL", args.poll_interval),
        report_interval=_env_positive_int(env, "REPORT_INTERVAL", args.report_interval),
        num_workers=_env_positive_int(env, "NUM_WORKERS", args.num_workers),
    )


def run(
    ctx: RunContext | None,
    config: AgentConfig,
    logger_initialize: Callable[[str], object],
    new_agent: Callable[[AgentConfig], Worker],
    new_run_context: Callable[[RunContext | None], tuple[RunContext, Callable[[], None]]],
    run_worker: Callable[[RunContext, Worker], object],
) -> None:
    """Set up logging, build the agent and run it until its context is done."""
    logger_initialize(config.log_level)
    worker = new_agent(config)
    run_ctx, cancel = new_run_context(ctx)
    try:
        run_worker(run_ctx, worker)
    finally:
        cancel()


def main(argv: Sequence[str] | None = None) -> int:
    """Run the agent with settings from ``argv`` and the environment."""
    config = parse_flags(argv)
    run(RunContext(), config, initialize, new_agent_app, new_run_context, run_worker)
    return 0