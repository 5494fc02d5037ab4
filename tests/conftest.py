"""Pytest fixtures shared by all tests.

All tests are network-isolated - socket connections are blocked by default.
"""

from __future__ import annotations

import logging
import socket
from collections.abc import Iterator

import pytest

from tests.support.errors import NetworkIsolationError
from wellness_index.observability import set_log_level

# =============================================================================
# Network Isolation - Block all socket connections in tests
# =============================================================================


def _blocked_socket_connect(self: socket.socket, *args: object, **kwargs: object) -> None:
    """Raise an error if any test tries to make a real network connection."""
    raise NetworkIsolationError(str(args))


@pytest.fixture(autouse=True)
def block_network_access(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Block all network access in tests."""
    monkeypatch.setattr(socket.socket, "connect", _blocked_socket_connect)
    yield


_WELLNESS_ENV_VARS = (
    "WELLNESS_TABLES_PATH",
    "WELLNESS_RESPONSES_PATH",
    "WELLNESS_RESPONSE_MIN",
    "WELLNESS_RESPONSE_MAX",
    "WELLNESS_ZERO_WEIGHT_POLICY",
    "WELLNESS_DECIMAL_PLACES",
    "WELLNESS_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def isolated_wellness_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Clear WELLNESS_* variables so a developer's shell or .env cannot leak in."""
    for name in _WELLNESS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture(autouse=True)
def reset_log_level() -> Iterator[None]:
    """Restore the package log threshold after tests that change it."""
    yield
    set_log_level(logging.INFO)
