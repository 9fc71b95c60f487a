"""Pytest fixtures shared across the suite.

All tests are network-isolated - socket connections are blocked by default.
"""

from __future__ import annotations

import socket

import pytest

from story_client.auth import AuthStore
from tests.fakes import FakeJsonApi, ManualSleep, RecordingSleep
from tests.support.errors import NetworkIsolationError

# =============================================================================
# Network Isolation - Block all socket connections in tests
# =============================================================================


def _blocked_socket_connect(self, *args, **kwargs):
    """Raise an error if any test tries to make a real network connection."""
    raise NetworkIsolationError(str(args))


@pytest.fixture(autouse=True)
def block_network_access(monkeypatch):
    """Block all network access in tests.

    This fixture runs automatically for all tests and prevents any real
    network connections. Tests that need HTTP should use FakeJsonApi
    or a MagicMock session.
    """
    monkeypatch.setattr(socket.socket, "connect", _blocked_socket_connect)
    yield


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep STORY_* variables and .env discovery from leaking into tests."""
    for name in (
        "STORY_API_URL",
        "STORY_API_TIMEOUT_SECONDS",
        "STORY_API_MAX_RETRIES",
        "STORY_API_INITIAL_DELAY_SECONDS",
        "STORY_API_MAX_DELAY_SECONDS",
        "STORY_API_BACKOFF_FACTOR",
        "STORY_PAGE_SIZE",
        "STORY_PROGRESS_DEBOUNCE_SECONDS",
        "STORY_AUTOSAVE_DELAY_SECONDS",
        "STORY_SESSION_PATH",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    yield


@pytest.fixture
def api() -> FakeJsonApi:
    """Provide a scripted JSON API."""
    return FakeJsonApi()


@pytest.fixture
def auth() -> AuthStore:
    """Provide a signed-in auth store (user u1)."""
    store = AuthStore()
    store.login(
        {"id": "u1", "email": "reader@example.com", "username": "reader", "role": "USER"},
        token="token-1",
        refresh_token="refresh-1",
    )
    return store


@pytest.fixture
def anonymous() -> AuthStore:
    """Provide a signed-out auth store."""
    return AuthStore()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def manual_sleep() -> ManualSleep:
    return ManualSleep()
