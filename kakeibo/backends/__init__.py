"""Backend selection.

Exactly one backend is active per process. :func:`get_backend` builds it from
:class:`~kakeibo.settings.Settings` on first use and returns the same instance
afterwards; asking again with different settings is a programming error.
"""

from __future__ import annotations

from ..logging_setup import get_logger
from ..settings import Settings
from .base import CONFIG, MONTHS, STORES, TRANSACTIONS, StorageBackend
from .local import LocalStore
from .remote import RemoteStore

_logger = get_logger("kakeibo.backends")

_BACKEND: StorageBackend | None = None
_SETTINGS: Settings | None = None


def get_backend(settings: Settings | None = None) -> StorageBackend:
    """Return the process-wide backend, creating it on first use."""

    global _BACKEND, _SETTINGS
    settings = settings or Settings.from_env()
    if _BACKEND is not None:
        if settings != _SETTINGS:
            raise RuntimeError(
                "get_backend() already initialized with different settings; "
                "call reset_backend() first"
            )
        return _BACKEND

    if settings.backend == "remote":
        backend: StorageBackend = RemoteStore.connect(
            settings.dynamodb_table, user_id=settings.user_id, region=settings.aws_region
        )
    else:
        backend = LocalStore(settings.database_url)
    _logger.info("using %s backend", backend.name)
    _BACKEND, _SETTINGS = backend, settings
    return backend


def reset_backend() -> None:
    """Forget the cached backend (tests, or a host switching identities)."""

    global _BACKEND, _SETTINGS
    _BACKEND = None
    _SETTINGS = None


__all__ = [
    "CONFIG",
    "LocalStore",
    "MONTHS",
    "RemoteStore",
    "STORES",
    "StorageBackend",
    "TRANSACTIONS",
    "get_backend",
    "reset_backend",
]
