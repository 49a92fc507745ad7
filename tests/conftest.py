"""Pytest configuration and fixtures for testing."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Generator

import httpx
import pytest
from fastapi import FastAPI

from openanakin.main import create_app
from openanakin.testing import FAKE_BASE_URL, FakeAnakin
from openanakin.usage_metrics import USAGE_COUNTERS


@pytest.fixture(autouse=True)
def reset_usage_counters() -> Generator[None, None, None]:
    """Keep the process-wide request counters isolated per test."""
    USAGE_COUNTERS.reset()
    yield
    USAGE_COUNTERS.reset()


@pytest.fixture
def relay_config() -> dict[str, Any]:
    return {
        "models": {"m": 42, "gpt-4o": 7, "o1-mini": 9},
        "anakin": {"base_url": FAKE_BASE_URL, "api_version": "2024-05-06"},
        "relay": {"non_streaming_models": ["o1-mini"]},
        "server": {"host": "127.0.0.1", "port": 9999},
    }


@pytest.fixture
def fake_backend() -> FakeAnakin:
    return FakeAnakin()


@asynccontextmanager
async def relay_client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    """Client talking to the relay in-process; closes the relay's own client too."""
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://relay.test",
    ) as client:
        yield client
    await app.state.http_client.aclose()


@pytest.fixture
def relay_app(relay_config, fake_backend) -> FastAPI:
    return create_app(relay_config, transport=fake_backend.transport())
