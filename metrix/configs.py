"""Configuration records for the agent and the server."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable


@dataclass
class AgentConfig:
    """Settings of the metrics agent."""

    server_address: str = ""
    server_endpoint: str = ""
    log_level: str = ""
    poll_interval: int = 0
    report_interval: int = 0
    num_workers: int = 0


@dataclass
class ServerConfig:
    """Settings of the metrics server."""

    address: str = ""
    log_level: str = ""


AgentOption = Callable[[AgentConfig], None]
ServerOption = Callable[[ServerConfig], None]


def new_agent_config(*options: AgentOption) -> AgentConfig:
    """Build an agent config by applying each option in turn."""
    config = AgentConfig()
    for option in options:
        option(config)
    return config


def new_server_config(*options: ServerOption) -> ServerConfig:
    """Build a server config by applying each option in turn."""
    config = ServerConfig()
    for option in options:
        option(config)
    return config