"""Process settings read from the environment.

The CLI loads ``.env`` (via ``python-dotenv``, without overriding variables
that are already set) before calling :meth:`Settings.from_env`.

Variables
---------
- ``KAKEIBO_BACKEND``: ``local`` (default) or ``remote``.
- ``DATABASE_URL``: SQLAlchemy URL of the local store.
- ``KAKEIBO_DYNAMODB_TABLE``: table name of the remote store.
- ``AWS_REGION``: region of the remote store (default ``us-east-1``).
- ``KAKEIBO_USER_ID``: identity that scopes every remote record.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Literal

type BackendKind = Literal["local", "remote"]

BACKEND_KINDS: tuple[str, ...] = ("local", "remote")
DEFAULT_REGION = "us-east-1"
DEFAULT_TABLE = "kakeibo"


@dataclass(frozen=True, slots=True)
class Settings:
    backend: BackendKind = "local"
    database_url: str | None = None
    dynamodb_table: str = DEFAULT_TABLE
    aws_region: str = DEFAULT_REGION
    user_id: str | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ
        backend = (env.get("KAKEIBO_BACKEND") or "local").strip().lower()
        if backend not in BACKEND_KINDS:
            raise ValueError(
                f"KAKEIBO_BACKEND must be one of {', '.join(BACKEND_KINDS)}; got {backend!r}"
            )
        return cls(
            backend=backend,  # type: ignore[arg-type]
            database_url=env.get("DATABASE_URL") or None,
            dynamodb_table=env.get("KAKEIBO_DYNAMODB_TABLE") or DEFAULT_TABLE,
            aws_region=env.get("AWS_REGION") or DEFAULT_REGION,
            user_id=(env.get("KAKEIBO_USER_ID") or "").strip() or None,
        )


__all__ = ["BACKEND_KINDS", "BackendKind", "Settings"]
