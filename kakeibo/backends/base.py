"""Storage capability interface shared by the local and remote backends.

Records cross this interface as plain dicts in the backup wire format
(camelCase keys). Three stores exist:

- ``months``: key field ``month``; one summary per accounting month.
- ``transactions``: key field ``id`` (assigned by the backend on first
  write); indexes ``month`` and ``monthCategoryKey``.
- ``config``: key field ``key``; one ``{key, value}`` record per setting.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Protocol, runtime_checkable

MONTHS = "months"
TRANSACTIONS = "transactions"
CONFIG = "config"

STORES: tuple[str, ...] = (MONTHS, TRANSACTIONS, CONFIG)
KEY_FIELDS: dict[str, str] = {MONTHS: "month", TRANSACTIONS: "id", CONFIG: "key"}
INDEXES: dict[str, tuple[str, ...]] = {TRANSACTIONS: ("month", "monthCategoryKey")}

type Record = dict[str, Any]


def check_store(store: str) -> str:
    if store not in STORES:
        raise ValueError(f"unknown store {store!r}; expected one of {', '.join(STORES)}")
    return store


def check_index(store: str, index: str) -> str:
    if index not in INDEXES.get(check_store(store), ()):
        raise ValueError(f"store {store!r} has no index {index!r}")
    return index


@runtime_checkable
class StorageBackend(Protocol):
    """Operations the application needs from a persistence backend.

    Implementations raise ``kakeibo.errors.StorageError`` for any failure of
    the underlying store and ``ValueError`` for unknown store/index names.
    """

    name: str

    def put(self, store: str, record: Mapping[str, Any]) -> None: ...

    def get_all(self, store: str) -> list[Record]: ...

    def get_by_key(self, store: str, key: Any) -> Record | None: ...

    def get_by_index(self, store: str, index: str, value: str) -> list[Record]: ...

    def delete(self, store: str, key: Any) -> None: ...

    def clear(self, store: str) -> None: ...

    def delete_month(self, month: str) -> int:
        """Delete every transaction of ``month``; return how many were removed."""
        ...

    def batch_write(self, store: str, records: Iterable[Mapping[str, Any]]) -> int:
        """Write ``records``; return how many were written."""
        ...


__all__ = [
    "CONFIG",
    "INDEXES",
    "KEY_FIELDS",
    "MONTHS",
    "Record",
    "STORES",
    "StorageBackend",
    "TRANSACTIONS",
    "check_index",
    "check_store",
]
