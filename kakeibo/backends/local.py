"""Local embedded store over SQLAlchemy (``db`` models ``kb_*``).

Every public method runs in its own ``session_scope`` so each call commits
or rolls back as a unit; ``batch_write`` writes all records in one database
transaction. Opening the store creates the ``kb_*`` tables when they are missing.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db import Base, KbConfig, KbMonth, KbTransaction
from db.client import open_ledger, session_scope

from ..errors import StorageError
from ..logging_setup import get_logger
from .base import CONFIG, MONTHS, TRANSACTIONS, Record, check_index, check_store

_logger = get_logger("kakeibo.backends.local")

_MODELS: dict[str, type[Base]] = {
    MONTHS: KbMonth,
    TRANSACTIONS: KbTransaction,
    CONFIG: KbConfig,
}


# ---- record <-> row ----------------------------------------------------------


def _month_row(record: Mapping[str, Any]) -> KbMonth:
    return KbMonth(
        month=str(record["month"]),
        income=record.get("income") or 0,
        points=record.get("points") or 0,
        income_detail=dict(record.get("incomeDetail") or {}),
        expenses=dict(record.get("expenses") or {}),
        sankey_flows=[dict(f) for f in record.get("sankeyFlows") or ()],
        node_column=dict(record.get("nodeColumn") or {}),
    )


def _month_record(row: KbMonth) -> Record:
    return {
        "month": row.month,
        "income": row.income,
        "points": row.points,
        "incomeDetail": dict(row.income_detail or {}),
        "expenses": dict(row.expenses or {}),
        "sankeyFlows": [dict(f) for f in row.sankey_flows or ()],
        "nodeColumn": dict(row.node_column or {}),
    }


def _transaction_row(record: Mapping[str, Any]) -> KbTransaction:
    row = KbTransaction(
        month=str(record["month"]),
        month_category_key=str(record["monthCategoryKey"]),
        date=record.get("date"),
        content=record.get("content"),
        amount=int(record.get("amount") or 0),
        institution=record.get("institution"),
        category=record.get("category"),
        subcategory=record.get("subcategory"),
    )
    if record.get("id") is not None:
        row.id = int(record["id"])
    return row


def _transaction_record(row: KbTransaction) -> Record:
    return {
        "id": row.id,
        "month": row.month,
        "monthCategoryKey": row.month_category_key,
        "date": row.date or "",
        "content": row.content or "",
        "amount": row.amount,
        "institution": row.institution or "",
        "category": row.category or "",
        "subcategory": row.subcategory or "",
    }


def _config_row(record: Mapping[str, Any]) -> KbConfig:
    return KbConfig(key=str(record["key"]), value=record.get("value"))


def _config_record(row: KbConfig) -> Record:
    return {"key": row.key, "value": row.value}


_TO_ROW = {MONTHS: _month_row, TRANSACTIONS: _transaction_row, CONFIG: _config_row}
_TO_RECORD = {MONTHS: _month_record, TRANSACTIONS: _transaction_record, CONFIG: _config_record}
_ORDER_BY = {MONTHS: KbMonth.month, TRANSACTIONS: KbTransaction.id, CONFIG: KbConfig.key}
_INDEX_COLUMNS = {
    "month": KbTransaction.month,
    "monthCategoryKey": KbTransaction.month_category_key,
}


def _write(session: Session, store: str, record: Mapping[str, Any]) -> None:
    row = _TO_ROW[store](record)
    if store == TRANSACTIONS and record.get("id") is None:
        session.add(row)
    else:
        session.merge(row)


class LocalStore:
    """``StorageBackend`` backed by a SQL database (SQLite in practice)."""

    name = "local"

    def __init__(self, database_url: str | None = None) -> None:
        self._database_url = database_url
        try:
            engine = open_ledger(database_url=database_url)
        except (SQLAlchemyError, RuntimeError) as exc:
            raise StorageError(f"could not open local store: {exc}") from exc
        _logger.debug("local store ready at %s", engine.url.render_as_string(hide_password=True))

    def _scope(self):
        return session_scope(database_url=self._database_url)

    def put(self, store: str, record: Mapping[str, Any]) -> None:
        check_store(store)
        try:
            with self._scope() as session:
                _write(session, store, record)
        except SQLAlchemyError as exc:
            _logger.error("put into %s failed: %s", store, exc)
            raise StorageError(f"failed to write {store} record: {exc}") from exc

    def get_all(self, store: str) -> list[Record]:
        check_store(store)
        to_record = _TO_RECORD[store]
        try:
            with self._scope() as session:
                rows = session.scalars(select(_MODELS[store]).order_by(_ORDER_BY[store])).all()
                return [to_record(r) for r in rows]
        except SQLAlchemyError as exc:
            raise StorageError(f"failed to read {store}: {exc}") from exc

    def get_by_key(self, store: str, key: Any) -> Record | None:
        check_store(store)
        if store == TRANSACTIONS:
            key = int(key)
        try:
            with self._scope() as session:
                row = session.get(_MODELS[store], key)
                return _TO_RECORD[store](row) if row is not None else None
        except SQLAlchemyError as exc:
            raise StorageError(f"failed to read {store} {key!r}: {exc}") from exc

    def get_by_index(self, store: str, index: str, value: str) -> list[Record]:
        check_index(store, index)
        column = _INDEX_COLUMNS[index]
        try:
            with self._scope() as session:
                rows = session.scalars(
                    select(KbTransaction).where(column == value).order_by(KbTransaction.id)
                ).all()
                return [_transaction_record(r) for r in rows]
        except SQLAlchemyError as exc:
            raise StorageError(f"failed to query {store} by {index}: {exc}") from exc

    def delete(self, store: str, key: Any) -> None:
        check_store(store)
        if store == TRANSACTIONS:
            key = int(key)
        try:
            with self._scope() as session:
                row = session.get(_MODELS[store], key)
                if row is not None:
                    session.delete(row)
        except SQLAlchemyError as exc:
            raise StorageError(f"failed to delete {store} {key!r}: {exc}") from exc

    def clear(self, store: str) -> None:
        check_store(store)
        try:
            with self._scope() as session:
                session.execute(delete(_MODELS[store]))
        except SQLAlchemyError as exc:
            raise StorageError(f"failed to clear {store}: {exc}") from exc

    def delete_month(self, month: str) -> int:
        try:
            with self._scope() as session:
                result = session.execute(delete(KbTransaction).where(KbTransaction.month == month))
                removed = result.rowcount or 0
        except SQLAlchemyError as exc:
            raise StorageError(f"failed to delete transactions of {month}: {exc}") from exc
        _logger.debug("deleted %d transactions of %s", removed, month)
        return removed

    def batch_write(self, store: str, records: Iterable[Mapping[str, Any]]) -> int:
        check_store(store)
        count = 0
        try:
            with self._scope() as session:
                for record in records:
                    _write(session, store, record)
                    count += 1
        except SQLAlchemyError as exc:
            _logger.error("batch write into %s failed: %s", store, exc)
            raise StorageError(f"failed to write {store} batch: {exc}") from exc
        _logger.debug("committed %d %s records", count, store)
        return count


__all__ = ["LocalStore"]
