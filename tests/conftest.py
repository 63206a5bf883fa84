# Copyright (c) Syntropy Systems
"""Pytest fixtures for growthai tests."""

from __future__ import annotations

import os
import tempfile
from collections.abc import Generator
from pathlib import Path

import httpx
import pytest

from growthai.client import GatewayClient
from growthai.events import Notifier
from growthai.workflow import WorkflowStateMachine

from fake_gateway import GATEWAY_URL, GatewayState, create_gateway

# Store original cwd at module load time
_original_cwd = Path.cwd()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def growthai_project(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Path, None, None]:
    """Create a temporary project directory with an empty .growthai dir."""
    (temp_dir / ".growthai").mkdir()
    monkeypatch.delenv("GROWTHAI_BACKEND_URL", raising=False)

    # Change to temp directory
    os.chdir(temp_dir)

    yield temp_dir

    # Always return to original cwd
    os.chdir(_original_cwd)


@pytest.fixture
def gateway() -> GatewayState:
    """Behaviour and call log of the in-process gateway."""
    return GatewayState()


@pytest.fixture
def transport(gateway: GatewayState) -> httpx.ASGITransport:
    return httpx.ASGITransport(app=create_gateway(gateway))


@pytest.fixture
def client(transport: httpx.ASGITransport) -> GatewayClient:
    """Gateway client talking to the fake gateway."""
    return GatewayClient(GATEWAY_URL, retries=0, transport=transport)


@pytest.fixture
def notifier() -> Notifier:
    return Notifier()


@pytest.fixture
def workflow(client: GatewayClient, notifier: Notifier) -> WorkflowStateMachine:
    return WorkflowStateMachine(client, notifier)

