"""Remote document store over a single DynamoDB table.

Item layout
-----------
- ``pk``: ``<user_id>#<store>``; every record is scoped to one user.
- ``sk``: the record key (``month`` for months, ``key`` for config). A
  transaction's key is ``<YYYY/MM>#<uuid>`` so that all rows of one month are
  a single ``begins_with`` range query; the ``id`` field carries the same
  value.

Multi-record writes and deletes go through ``TransactWriteItems`` in chunks of
at most 100 actions (the service ceiling). A failing chunk raises
``StorageError`` that reports how many chunks were already committed; earlier
chunks are not rolled back.

Numbers are stored as ``Decimal`` and read back as ``int`` when integral.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Iterator, Mapping, Sequence
from decimal import Decimal
from typing import Any

import boto3
from boto3.dynamodb.conditions import Attr, Key
from boto3.dynamodb.types import TypeSerializer
from botocore.exceptions import BotoCoreError, ClientError

from .. import keys
from ..errors import StorageError
from ..logging_setup import get_logger
from .base import KEY_FIELDS, TRANSACTIONS, Record, check_index, check_store

TRANSACT_LIMIT = 100

_logger = get_logger("kakeibo.backends.remote")
_serializer = TypeSerializer()


def _to_dynamo(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, Mapping):
        return {str(k): _to_dynamo(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [_to_dynamo(v) for v in value]
    return value


def _from_dynamo(value: Any) -> Any:
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, Mapping):
        return {k: _from_dynamo(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_from_dynamo(v) for v in value]
    return value


def _chunks(items: Sequence[Any], size: int) -> Iterator[Sequence[Any]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


class RemoteStore:
    """``StorageBackend`` backed by a DynamoDB table resource."""

    name = "remote"

    def __init__(self, table: Any, *, user_id: str | None) -> None:
        if not user_id:
            raise StorageError("remote store requires a signed-in user (set KAKEIBO_USER_ID)")
        self._table = table
        self._user_id = user_id

    @classmethod
    def connect(cls, table_name: str, *, user_id: str | None, region: str) -> RemoteStore:
        table = boto3.resource("dynamodb", region_name=region).Table(table_name)
        return cls(table, user_id=user_id)

    # ---- item helpers ---------------------------------------------------

    def _pk(self, store: str) -> str:
        return f"{self._user_id}#{store}"

    def _item(self, store: str, record: Mapping[str, Any]) -> dict[str, Any]:
        item = _to_dynamo(dict(record))
        key_field = KEY_FIELDS[store]
        if store == TRANSACTIONS and not item.get("id"):
            item["id"] = f"{keys.month_key(str(item['month']))}#{uuid.uuid4().hex}"
        item["pk"] = self._pk(store)
        item["sk"] = str(item[key_field])
        return item

    @staticmethod
    def _record(item: Mapping[str, Any]) -> Record:
        return {k: _from_dynamo(v) for k, v in item.items() if k not in ("pk", "sk")}

    def _query(self, store: str, *, prefix: str | None = None, filter_expr=None) -> list[dict]:
        cond = Key("pk").eq(self._pk(store))
        if prefix is not None:
            cond = cond & Key("sk").begins_with(prefix)
        kwargs: dict[str, Any] = {"KeyConditionExpression": cond}
        if filter_expr is not None:
            kwargs["FilterExpression"] = filter_expr
        items: list[dict] = []
        while True:
            resp = self._table.query(**kwargs)
            items.extend(resp.get("Items", []))
            last = resp.get("LastEvaluatedKey")
            if not last:
                return items
            kwargs["ExclusiveStartKey"] = last

    def _transact(self, actions: Sequence[dict[str, Any]], what: str) -> None:
        client = self._table.meta.client
        total = (len(actions) + TRANSACT_LIMIT - 1) // TRANSACT_LIMIT
        for done, chunk in enumerate(_chunks(actions, TRANSACT_LIMIT)):
            try:
                client.transact_write_items(TransactItems=list(chunk))
            except (BotoCoreError, ClientError) as exc:
                _logger.error("%s: chunk %d/%d failed: %s", what, done + 1, total, exc)
                raise StorageError(
                    f"{what} failed after {done} of {total} committed batch(es): {exc}"
                ) from exc
            _logger.debug("%s: committed chunk %d/%d (%d items)", what, done + 1, total, len(chunk))

    def _put_action(self, item: Mapping[str, Any]) -> dict[str, Any]:
        return {
            "Put": {
                "TableName": self._table.name,
                "Item": {k: _serializer.serialize(v) for k, v in item.items()},
            }
        }

    def _delete_action(self, pk: str, sk: str) -> dict[str, Any]:
        return {
            "Delete": {
                "TableName": self._table.name,
                "Key": {"pk": _serializer.serialize(pk), "sk": _serializer.serialize(sk)},
            }
        }

    # ---- StorageBackend -------------------------------------------------

    def put(self, store: str, record: Mapping[str, Any]) -> None:
        check_store(store)
        try:
            self._table.put_item(Item=self._item(store, record))
        except (BotoCoreError, ClientError) as exc:
            _logger.error("put into %s failed: %s", store, exc)
            raise StorageError(f"failed to write {store} record: {exc}") from exc

    def get_all(self, store: str) -> list[Record]:
        check_store(store)
        try:
            items = self._query(store)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"failed to read {store}: {exc}") from exc
        return [self._record(i) for i in items]

    def get_by_key(self, store: str, key: Any) -> Record | None:
        check_store(store)
        try:
            resp = self._table.get_item(Key={"pk": self._pk(store), "sk": str(key)})
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"failed to read {store} {key!r}: {exc}") from exc
        item = resp.get("Item")
        return self._record(item) if item else None

    def get_by_index(self, store: str, index: str, value: str) -> list[Record]:
        check_index(store, index)
        if index == "month":
            prefix, filter_expr = f"{value}#", None
        else:
            prefix = f"{keys.month_of_detail_key(value)}#"
            filter_expr = Attr("monthCategoryKey").eq(value)
        try:
            items = self._query(store, prefix=prefix, filter_expr=filter_expr)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"failed to query {store} by {index}: {exc}") from exc
        return [self._record(i) for i in items]

    def delete(self, store: str, key: Any) -> None:
        check_store(store)
        try:
            self._table.delete_item(Key={"pk": self._pk(store), "sk": str(key)})
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"failed to delete {store} {key!r}: {exc}") from exc

    def _delete_items(self, items: Iterable[Mapping[str, Any]], what: str) -> int:
        actions = [self._delete_action(i["pk"], i["sk"]) for i in items]
        if actions:
            self._transact(actions, what)
        return len(actions)

    def clear(self, store: str) -> None:
        check_store(store)
        try:
            items = self._query(store)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"failed to read {store}: {exc}") from exc
        removed = self._delete_items(items, f"clear {store}")
        _logger.debug("cleared %d %s records", removed, store)

    def delete_month(self, month: str) -> int:
        try:
            items = self._query(TRANSACTIONS, prefix=f"{month}#")
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"failed to read transactions of {month}: {exc}") from exc
        removed = self._delete_items(items, f"delete {month}")
        _logger.debug("deleted %d transactions of %s", removed, month)
        return removed

    def batch_write(self, store: str, records: Iterable[Mapping[str, Any]]) -> int:
        check_store(store)
        actions = [self._put_action(self._item(store, r)) for r in records]
        if actions:
            self._transact(actions, f"write {store}")
        return len(actions)


__all__ = ["RemoteStore", "TRANSACT_LIMIT"]
