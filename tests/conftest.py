"""Pytest configuration for test isolation.

The SQLAlchemy engine and the active storage backend are process-wide
singletons. Each test binds its own temporary SQLite file, so both are reset
after every test; otherwise a later test would either reuse an earlier
database or trip the "already initialized with a different URL" guard.

Environment variables that select a backend are cleared as well so that a
developer's ``.env`` or shell settings never leak into the suite.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from db.client import dispose_engine

from kakeibo.backends import LocalStore, RemoteStore, reset_backend
from tests.helpers.db import bootstrap_sqlite_db
from tests.helpers.dynamo_stub import FakeTable

_ENV_VARS = (
    "DATABASE_URL",
    "KAKEIBO_BACKEND",
    "KAKEIBO_DYNAMODB_TABLE",
    "KAKEIBO_USER_ID",
    "KAKEIBO_LOG_LEVEL",
    "AWS_REGION",
)


@pytest.fixture(autouse=True)
def _isolate_backend(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Start each test without backend env vars and drop shared state after it."""

    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield
    reset_backend()
    dispose_engine()


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    return bootstrap_sqlite_db(tmp_path / "kakeibo.db")


@pytest.fixture
def local_store(database_url: str) -> LocalStore:
    return LocalStore(database_url)


@pytest.fixture
def fake_table() -> FakeTable:
    return FakeTable()


@pytest.fixture
def remote_store(fake_table: FakeTable) -> RemoteStore:
    return RemoteStore(fake_table, user_id="user-1")


@pytest.fixture(params=["local", "remote"])
def backend(request: pytest.FixtureRequest):
    """Both backends, for behavior that must be identical across them."""

    return request.getfixturevalue(f"{request.param}_store")
