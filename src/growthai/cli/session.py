# Copyright (c) Syntropy Systems
"""Shared setup for CLI commands: config, client, console and workflow."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Optional, TypeVar

import typer
from rich.console import Console

from growthai.cli.render import make_console, print_notice
from growthai.client import GatewayClient
from growthai.config import get_settings_path, load_config, load_settings
from growthai.events import Notifier
from growthai.workflow import WorkflowStateMachine

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Coroutine

    from growthai.config import GrowthAIConfig

T = TypeVar("T")

SERVER_OPTION = typer.Option(
    None,
    "--server", "-s",
    envvar="GROWTHAI_BACKEND_URL",
    help="Gateway base URL (e.g., http://localhost:8001)",
)


def load(server: Optional[str] = None) -> GrowthAIConfig:
    config = load_config()
    if server:
        config.backend_url = server
    return config


def get_console() -> Console:
    """Console styled with the saved display settings."""
    return make_console(load_settings(get_settings_path()))


def make_client(config: GrowthAIConfig) -> GatewayClient:
    return GatewayClient.from_config(config)


def configure_logging(config: GrowthAIConfig, verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else getattr(logging, config.log_level.upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


@asynccontextmanager
async def open_workflow(config: GrowthAIConfig, console: Console) -> AsyncIterator[WorkflowStateMachine]:
    """Yield a workflow wired to the gateway, printing notices to ``console``."""
    notifier = Notifier()
    notifier.add_sink(lambda notice: print_notice(console, notice))
    async with make_client(config) as client:
        yield WorkflowStateMachine.from_config(client, config, notifier)


def run(coro: Coroutine[object, object, T]) -> T:
    return asyncio.run(coro)
