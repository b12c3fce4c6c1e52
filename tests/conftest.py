"""
tests.conftest

Shared fixtures: settings, fake backend, gateway wiring.
"""

from __future__ import annotations

import httpx
import pytest
from fake_backend import FakeBackend

from orchestra_console.auth.context import SessionContext
from orchestra_console.auth.session import Screen
from orchestra_console.auth.store import InMemoryCredentialStore
from orchestra_console.gateway.client import ApiGatewayClient
from orchestra_console.settings import Settings

BASE_URL = "http://test/api/v1"


class RecordingNavigator:
    def __init__(self) -> None:
        self.screens: list[Screen] = []

    def __call__(self, screen: Screen) -> None:
        self.screens.append(screen)


class CountingStore(InMemoryCredentialStore):
    def __init__(self) -> None:
        super().__init__()
        self.clear_calls = 0

    async def clear(self) -> None:
        self.clear_calls += 1
        await super().clear()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        env="test",
        api_base_url=BASE_URL,
        storage_url=f"sqlite+aiosqlite:///{tmp_path / 'state.db'}",
        metrics_refresh_seconds=0.01,
    )


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def http(backend: FakeBackend) -> httpx.AsyncClient:
    # ASGITransport keeps every call in-process (no real network).
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=backend.app), base_url=BASE_URL)


@pytest.fixture
def gateway(http: httpx.AsyncClient) -> ApiGatewayClient:
    return ApiGatewayClient(http=http, context=SessionContext())


@pytest.fixture
def store() -> CountingStore:
    return CountingStore()


@pytest.fixture
def navigator() -> RecordingNavigator:
    return RecordingNavigator()


def mock_gateway(handler) -> ApiGatewayClient:
    """Gateway over `httpx.MockTransport` for failure shapes the fake backend can't produce."""

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=BASE_URL)
    return ApiGatewayClient(http=http, context=SessionContext())
