"""Application services for the ``kakeibo`` package.

This module is the orchestration layer between the pure pipeline
(``ingest`` → ``classify`` → ``aggregate``) and a storage backend:

- :func:`import_month` parses and classifies an export completely before any
  destructive step, asks before replacing an existing month, then writes the
  transactions followed by the summary.
- :func:`load_summaries` and the detail lookups are the read paths used by
  the CLI and the reports.
- :func:`clear_all_data` wipes every store and resets Config.

Any storage failure propagates as ``StorageError``. An import that fails
part-way must be re-run; the summary is written last, so a month without a
summary is treated as absent.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from os import PathLike
from pathlib import Path

from . import keys
from .aggregate import aggregate_text
from .backends.base import MONTHS, TRANSACTIONS, StorageBackend
from .config import Config, load_config, register_categories, reset_config
from .errors import FormatError
from .ingest.month_resolver import resolve_target_month
from .ingest.utils import read_export_text
from .logging_setup import get_logger
from .models import ClassifiedTransaction, MonthSummary

type ConfirmOverwrite = Callable[[str], bool]

_logger = get_logger("kakeibo.api")


@dataclass(frozen=True, slots=True)
class ImportReport:
    month: str
    committed: bool
    processed: int = 0
    skipped: int = 0
    transactions: int = 0
    overwritten: bool = False
    summary: MonthSummary | None = None


def import_month(
    backend: StorageBackend,
    text: str,
    *,
    filename: str | None = None,
    target_month: str | None = None,
    confirm_overwrite: ConfirmOverwrite | None = None,
) -> ImportReport:
    """Import one export file as the data of a single accounting month.

    ``target_month`` (``YYYY-MM`` or ``YYYY/MM``) overrides the month derived
    from ``filename``. When the month already has a summary, the import only
    proceeds if ``confirm_overwrite(month)`` returns true; without a callback
    the existing month is kept.

    Raises ``FormatError``/``RowError`` before touching storage when the file
    cannot be parsed, and ``StorageError`` when a write fails.
    """

    month = keys.month_key(target_month or resolve_target_month(filename))
    batch = aggregate_text(text, month)
    if batch.is_empty:
        raise FormatError(
            f"no income or expense rows in file ({batch.skipped} skipped); "
            f"nothing to import for {month}"
        )

    existing = backend.get_by_key(MONTHS, month) is not None
    if existing:
        if confirm_overwrite is None or not confirm_overwrite(month):
            _logger.info("import of %s declined; existing data kept", month)
            return ImportReport(
                month=month,
                committed=False,
                processed=batch.processed,
                skipped=batch.skipped,
            )
        backend.delete(MONTHS, month)

    # Also reclaims rows orphaned by an interrupted earlier import.
    removed = backend.delete_month(month)
    if removed:
        _logger.info("removed %d previous transactions of %s", removed, month)

    written = backend.batch_write(TRANSACTIONS, (t.to_record() for t in batch.transactions))
    backend.put(MONTHS, batch.summary.to_record())
    register_categories(backend, load_config(backend), batch.summary.expenses)

    _logger.info(
        "imported %s: %d transactions, income=%s expense=%s",
        month,
        written,
        batch.summary.income,
        batch.summary.total_expense,
    )
    return ImportReport(
        month=month,
        committed=True,
        processed=batch.processed,
        skipped=batch.skipped,
        transactions=written,
        overwritten=existing,
        summary=batch.summary,
    )


def import_file(
    backend: StorageBackend,
    path: str | PathLike[str],
    *,
    target_month: str | None = None,
    confirm_overwrite: ConfirmOverwrite | None = None,
) -> ImportReport:
    """Convenience wrapper: decode ``path`` and :func:`import_month` it."""

    return import_month(
        backend,
        read_export_text(path),
        filename=Path(path).name,
        target_month=target_month,
        confirm_overwrite=confirm_overwrite,
    )


# ---- read paths -------------------------------------------------------------


def load_summaries(backend: StorageBackend) -> dict[str, MonthSummary]:
    """All stored month summaries keyed by ``YYYY/MM``, oldest first."""

    summaries = [MonthSummary.from_record(r) for r in backend.get_all(MONTHS)]
    return {s.month: s for s in sorted(summaries, key=lambda s: s.month)}


def get_summary(backend: StorageBackend, month: str) -> MonthSummary | None:
    record = backend.get_by_key(MONTHS, keys.month_key(month))
    return MonthSummary.from_record(record) if record else None


@dataclass(frozen=True, slots=True)
class Detail:
    """Transactions behind one row of a month view, sorted by date."""

    month: str
    title: str
    rows: tuple[ClassifiedTransaction, ...]

    @property
    def total(self) -> int:
        return sum(abs(t.amount) for t in self.rows)

    @property
    def count(self) -> int:
        return len(self.rows)


@dataclass(frozen=True, slots=True)
class InstitutionDetail:
    month: str
    institution: str
    income: tuple[ClassifiedTransaction, ...]
    expense: tuple[ClassifiedTransaction, ...]

    @property
    def income_total(self) -> int:
        return sum(t.amount for t in self.income)

    @property
    def expense_total(self) -> int:
        return sum(abs(t.amount) for t in self.expense)

    @property
    def count(self) -> int:
        return len(self.income) + len(self.expense)


def _by_date(records: list[dict]) -> tuple[ClassifiedTransaction, ...]:
    rows = [ClassifiedTransaction.from_record(r) for r in records]
    return tuple(sorted(rows, key=lambda t: t.date))


def expense_detail(backend: StorageBackend, month: str, category: str) -> Detail:
    mk = keys.month_key(month)
    key = keys.expense_detail_key(mk, category)
    return Detail(
        month=mk,
        title=category,
        rows=_by_date(backend.get_by_index(TRANSACTIONS, "monthCategoryKey", key)),
    )


def income_detail(backend: StorageBackend, month: str, detail_label: str) -> Detail:
    """Rows of one income detail label such as ``給与（三井住友銀行）``."""

    mk = keys.month_key(month)
    key = keys.income_detail_key(mk, detail_label)
    return Detail(
        month=mk,
        title=detail_label,
        rows=_by_date(backend.get_by_index(TRANSACTIONS, "monthCategoryKey", key)),
    )


def institution_detail(backend: StorageBackend, month: str, institution: str) -> InstitutionDetail:
    mk = keys.month_key(month)
    records = [
        r
        for r in backend.get_by_index(TRANSACTIONS, "month", mk)
        if r.get("institution") == institution
    ]
    rows = _by_date(records)
    return InstitutionDetail(
        month=mk,
        institution=institution,
        income=tuple(t for t in rows if t.is_income),
        expense=tuple(t for t in rows if not t.is_income),
    )


def clear_all_data(backend: StorageBackend) -> Config:
    """Delete every month, transaction and setting; return default Config."""

    backend.clear(MONTHS)
    backend.clear(TRANSACTIONS)
    config = reset_config(backend)
    _logger.info("cleared all data")
    return config


__all__ = [
    "ConfirmOverwrite",
    "Detail",
    "ImportReport",
    "InstitutionDetail",
    "clear_all_data",
    "expense_detail",
    "get_summary",
    "import_file",
    "import_month",
    "income_detail",
    "institution_detail",
    "load_summaries",
    "read_export_text",
]
