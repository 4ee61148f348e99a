"""Test configuration and fixtures."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Iterator
from typing import Any
from unittest.mock import AsyncMock, Mock

import pytest

from fizzy_orchestrator.orchestrator.fizzy.client import FizzyClient
from fizzy_orchestrator.orchestrator.fizzy.models import Card
from fizzy_orchestrator.orchestrator.state.account_resolver import AccountResolver
from fizzy_orchestrator.orchestrator.state.session import SessionStore

BASE_URL = "https://fizzy.test"


def _card(**overrides: Any) -> Card:
    data: dict[str, Any] = {
        "id": "card-42",
        "number": 42,
        "title": "Fix login",
        "status": "open",
        "column_id": None,
        "tags": [],
        "assignees": [],
        "url": f"{BASE_URL}/acme/cards/42",
    }
    data.update(overrides)
    return Card.model_validate(data)


@pytest.fixture
def make_card() -> Callable[..., Card]:
    """Build a card with sensible defaults; keyword arguments override payload fields."""
    return _card


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Any) -> None:
    """Keep the developer's environment and `.env` out of every test."""
    for name in (
        "FIZZY_TOKEN",
        "FIZZY_ACCESS_TOKEN",
        "FIZZY_BASE_URL",
        "FIZZY_ACCOUNT",
        "FIZZY_HTTP_TIMEOUT_SECONDS",
        "FIZZY_CORS_ORIGINS",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def _restore_root_logging() -> Iterator[None]:
    """`configure_logging` replaces root handlers; put pytest's back afterwards."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def mock_client() -> Mock:
    """A FizzyClient double whose async methods are AsyncMocks recorded in `mock_calls`."""
    client = Mock(spec=FizzyClient)
    client.base_url = BASE_URL
    for name, _fn in inspect.getmembers(FizzyClient, inspect.iscoroutinefunction):
        if not name.startswith("__"):
            setattr(client, name, AsyncMock())
    return client


@pytest.fixture
def session_store() -> SessionStore:
    return SessionStore()


@pytest.fixture
def resolver(mock_client: Mock, session_store: SessionStore) -> AccountResolver:
    """A resolver that never consults the environment."""
    return AccountResolver(mock_client, session_store, env_account=lambda: None)
