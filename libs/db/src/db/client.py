"""Engine/session helpers for the local ledger database.

Usage
-----
from db.client import open_ledger, session_scope

open_ledger(database_url=url)  # engine + ledger tables
with session_scope(database_url=url) as s:
    s.execute(...)

The engine is a process-wide singleton bound to one URL. Call
``dispose_engine()`` before binding a different one (tests do this between
cases).
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from .models.ledger import Base

_ENGINE: Engine | None = None
_SESSION_MAKER: sessionmaker[Session] | None = None
_DB_URL: str | None = None
_SCHEMA_READY = False


def _database_url(override: str | None = None) -> str:
    url = override or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is not set; cannot open the ledger database")
    return url


def _ensure_sqlite_dir(url: str) -> None:
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return
    database = parsed.database
    if database and database != ":memory:" and not database.startswith("file:"):
        Path(database).expanduser().parent.mkdir(parents=True, exist_ok=True)


def get_engine(*, database_url: str | None = None) -> Engine:
    """Return the shared engine, creating it on first use."""

    global _ENGINE, _SESSION_MAKER, _DB_URL
    url = _database_url(database_url)
    if _ENGINE is None:
        _ensure_sqlite_dir(url)
        engine = create_engine(url, pool_pre_ping=True)
        _SESSION_MAKER = sessionmaker(bind=engine, expire_on_commit=False, class_=Session)
        _ENGINE = engine
        _DB_URL = url
        return engine
    if _DB_URL is not None and url != _DB_URL:
        raise RuntimeError(
            "ledger engine already bound to a different DATABASE_URL; "
            "call dispose_engine() first"
        )
    return _ENGINE


def open_ledger(*, database_url: str | None = None) -> Engine:
    """Bind the engine and create the ``kb_*`` tables if they are missing."""

    global _SCHEMA_READY
    engine = get_engine(database_url=database_url)
    if not _SCHEMA_READY:
        Base.metadata.create_all(bind=engine)
        _SCHEMA_READY = True
    return engine


def dispose_engine() -> None:
    """Dispose the shared engine so the next call may bind a different URL."""

    global _ENGINE, _SESSION_MAKER, _DB_URL, _SCHEMA_READY
    if _ENGINE is not None:
        _ENGINE.dispose()
    _ENGINE = None
    _SESSION_MAKER = None
    _DB_URL = None
    _SCHEMA_READY = False


@contextmanager
def session_scope(*, database_url: str | None = None) -> Iterator[Session]:
    """Commit on success, roll back on any exception, always close."""

    get_engine(database_url=database_url)
    assert _SESSION_MAKER is not None  # bound by get_engine
    session = _SESSION_MAKER()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


__all__ = [
    "dispose_engine",
    "get_engine",
    "open_ledger",
    "session_scope",
]
