"""Command line entry point of the metrics server."""

from __future__ import annotations

import argparse
import os
import sys
from typing import Callable, Mapping, Sequence

from metrix.apps import new_server_app
from metrix.configs import ServerConfig
from metrix.logger import initialize
from metrix.runners import RunContext, Server, new_run_context, run_server


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="server")
    parser.add_argument(
        "-a", dest="address", default=":8080", help="address and port to run server"
    )
    parser.add_argument("-l", dest="log_level", default="info", help="log level")
    return parser


def parse_flags(
    argv: Sequence[str] | None = None, environ: Mapping[str, str] | None = None
) -> ServerConfig:
    """Server settings from the command line, overridden by non-empty environment values."""
    args = _build_parser().parse_args(sys.argv[1:] if argv is None else list(argv))
    env = os.environ if environ is None else environ
    return ServerConfig(
        address=env.get("ADDRESS") or args.address,
        log_level=env.get("LOG_LEVEL") or args.log_level,
    )


def run(
    ctx: RunContext | None,
    config: ServerConfig,
    logger_initialize: Callable[[str], object],
    new_server: Callable[[ServerConfig], Server],
    new_run_context: Callable[[RunContext | None], tuple[RunContext, Callable[[], None]]],
    run_server: Callable[[RunContext, Server], object],
) -> None:
    """Set up logging, build the server and serve until its context is done."""
    logger_initialize(config.log_level)
    server = new_server(config)
    run_ctx, cancel = new_run_context(ctx)
    try:
        run_server(run_ctx, server)
    finally:
        cancel()


def main(argv: Sequence[str] | None = None) -> int:
    """Run the server with settings from ``argv`` and the environment."""
    config = parse_flags(argv)
    run(RunContext(), config, initialize, new_server_app, new_run_context, run_server)
    return 0