"""JSON backup export and restore.

Document shape::

    {
      "months": [<month summary record>, ...],
      "transactions": [<transaction record>, ...],
      "config": {"budgets": {...}, "fixed": [...], "theme": "dark", "fontSize": 1.15}
    }

Restore validates each record with the pydantic DTOs in ``kakeibo.models``.
Records that fail validation are skipped and counted, never fatal. Only a
document that is not a JSON object at all is rejected.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import date
from os import PathLike
from pathlib import Path
from typing import Any

import pydantic

from . import config as config_ops
from .backends.base import MONTHS, TRANSACTIONS, StorageBackend
from .errors import FormatError, ValidationError
from .logging_setup import get_logger
from .models import MAX_CONFIG_NAME_LENGTH, BackupMonth, BackupTransaction

_logger = get_logger("kakeibo.backup")


def backup_filename(today: date | None = None) -> str:
    return f"kakeibo_backup_{(today or date.today()).isoformat()}.json"


def export_data(backend: StorageBackend) -> dict[str, Any]:
    """Collect every month, transaction and setting into one document."""

    months = backend.get_all(MONTHS)
    transactions = [
        {k: v for k, v in t.items() if k != "id"} for t in backend.get_all(TRANSACTIONS)
    ]
    cfg = config_ops.load_config(backend)
    _logger.info("exporting %d months, %d transactions", len(months), len(transactions))
    return {"months": months, "transactions": transactions, "config": cfg.to_export()}


def dump_backup(payload: Mapping[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False, indent=2)


def load_backup(path: str | PathLike[str]) -> Any:
    """Read a backup file; raises ``FormatError`` when it is not JSON."""

    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise FormatError(f"backup is not valid JSON: {exc}") from exc


@dataclass(frozen=True, slots=True)
class RestoreReport:
    months: int = 0
    transactions: int = 0
    skipped_months: int = 0
    skipped_transactions: int = 0
    skipped_config_entries: int = 0
    config_restored: bool = False

    @property
    def skipped(self) -> int:
        return self.skipped_months + self.skipped_transactions + self.skipped_config_entries


def _is_number(v: Any) -> bool:
    return isinstance(v, int | float) and not isinstance(v, bool)


def _valid_name(v: Any) -> bool:
    return isinstance(v, str) and 0 < len(v) <= MAX_CONFIG_NAME_LENGTH


def _restore_config(
    backend: StorageBackend, raw: Mapping[str, Any]
) -> tuple[config_ops.Config, int]:
    cfg = config_ops.load_config(backend)
    skipped = 0

    budgets_raw = raw.get("budgets")
    if isinstance(budgets_raw, Mapping):
        budgets: dict[str, int] = {}
        for k, v in budgets_raw.items():
            if _valid_name(k) and _is_number(v):
                budgets[k] = v
            else:
                skipped += 1
        cfg = replace(cfg, budgets=budgets)

    fixed_raw = raw.get("fixed")
    if isinstance(fixed_raw, list):
        fixed = [f for f in fixed_raw if _valid_name(f)]
        skipped += len(fixed_raw) - len(fixed)
        cfg = replace(cfg, fixed=tuple(dict.fromkeys(fixed)))

    theme = raw.get("theme")
    if theme is not None:
        if theme in config_ops.THEMES:
            cfg = replace(cfg, theme=theme)
        else:
            skipped += 1

    font = raw.get("fontSize")
    if font is not None:
        if _is_number(font) and font in config_ops.FONT_SIZES.values():
            cfg = replace(cfg, font_scale=float(font))
        else:
            skipped += 1

    config_ops.save_config(backend, cfg)
    return cfg, skipped


def restore_data(backend: StorageBackend, payload: Any) -> RestoreReport:
    """Validate and write a backup document into ``backend``.

    Months are upserted by key. For every month that appears in the backup's
    transactions, the stored transactions of that month are replaced.
    """

    if not isinstance(payload, Mapping):
        raise ValidationError("backup must be a JSON object with months/transactions/config")

    months = []
    skipped_months = 0
    raw_months = payload.get("months")
    for raw in raw_months if isinstance(raw_months, list) else ():
        try:
            months.append(BackupMonth.model_validate(raw))
        except pydantic.ValidationError as exc:
            skipped_months += 1
            _logger.debug("skipping invalid month record: %s", exc.errors(include_url=False))

    transactions = []
    skipped_txns = 0
    raw_txns = payload.get("transactions")
    for raw in raw_txns if isinstance(raw_txns, list) else ():
        try:
            transactions.append(BackupTransaction.model_validate(raw).to_transaction())
        except pydantic.ValidationError as exc:
            skipped_txns += 1
            _logger.debug("skipping invalid transaction record: %s", exc.errors(include_url=False))

    for month in dict.fromkeys(t.month for t in transactions):
        backend.delete_month(month)
    written_txns = backend.batch_write(TRANSACTIONS, (t.to_record() for t in transactions))
    written_months = backend.batch_write(MONTHS, (m.to_summary().to_record() for m in months))

    config_restored = False
    skipped_config = 0
    raw_config = payload.get("config")
    if isinstance(raw_config, Mapping):
        _, skipped_config = _restore_config(backend, raw_config)
        config_restored = True

    report = RestoreReport(
        months=written_months,
        transactions=written_txns,
        skipped_months=skipped_months,
        skipped_transactions=skipped_txns,
        skipped_config_entries=skipped_config,
        config_restored=config_restored,
    )
    _logger.info(
        "restored %d months, %d transactions (%d records skipped)",
        report.months,
        report.transactions,
        report.skipped,
    )
    return report


__all__ = [
    "RestoreReport",
    "backup_filename",
    "dump_backup",
    "export_data",
    "load_backup",
    "restore_data",
]
