"""Fold classified rows of one export into a month summary and transactions.

All per-file state lives in a :class:`MonthAccumulator` owned by the caller;
nothing is kept at module level. :func:`aggregate_text` runs the full
parse → classify → accumulate chain for one file and returns an
:class:`ImportBatch` without touching storage.

Flow edges are finalized in two groups, each sorted by amount descending
(ties keep first-seen order): income edges first (all in the income color,
dropped below 100), then expense edges (dropped below 500) colored by their
ordinal among the kept expense edges, skipping the income color.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from . import keys
from .classify import classify_row
from .errors import RowError
from .ingest.adapters.moneyforward_csv import read_rows
from .logging_setup import get_logger
from .models import (
    ClassifiedTransaction,
    Expense,
    FlowEdge,
    Income,
    MonthSummary,
    Outcome,
    Point,
    Skip,
)

PALETTE: tuple[str, ...] = (
    "#22c55e",
    "#f59e0b",
    "#ec4899",
    "#a855f7",
    "#3b82f6",
    "#06b6d4",
    "#64748b",
    "#84cc16",
)
INCOME_COLOR = PALETTE[0]
EXPENSE_COLORS = PALETTE[1:]

INCOME_EDGE_MIN = 100
EXPENSE_EDGE_MIN = 500

SOURCE_COLUMN = 0
INSTITUTION_COLUMN = 1
CATEGORY_COLUMN = 2

_logger = get_logger("kakeibo.aggregate")


def expense_color(ordinal: int) -> str:
    """Color of the ``ordinal``-th kept expense edge (0-based)."""

    return EXPENSE_COLORS[ordinal % len(EXPENSE_COLORS)]


@dataclass
class MonthAccumulator:
    """Running totals for one accounting month (``YYYY/MM``)."""

    month: str
    income: int = 0
    points: int = 0
    income_detail: dict[str, int] = field(default_factory=dict)
    expenses: dict[str, int] = field(default_factory=dict)
    income_flows: dict[tuple[str, str], int] = field(default_factory=dict)
    expense_flows: dict[tuple[str, str], int] = field(default_factory=dict)
    node_column: dict[str, int] = field(default_factory=dict)
    transactions: list[ClassifiedTransaction] = field(default_factory=list)
    processed: int = 0
    skipped: int = 0

    def add(self, outcome: Outcome) -> None:
        match outcome:
            case Skip():
                self.skipped += 1
                return
            case Point(amount=amount):
                self.points += amount
            case Income():
                self._add_income(outcome)
            case Expense():
                self._add_expense(outcome)
        self.processed += 1

    def _add_income(self, inc: Income) -> None:
        label = inc.detail_label
        self.income += inc.amount
        self.income_detail[label] = self.income_detail.get(label, 0) + inc.amount
        edge = (label, inc.institution)
        self.income_flows[edge] = self.income_flows.get(edge, 0) + inc.amount
        self.node_column[label] = SOURCE_COLUMN
        self.node_column[inc.institution] = INSTITUTION_COLUMN
        self.transactions.append(
            ClassifiedTransaction(
                month=self.month,
                month_category_key=keys.income_detail_key(self.month, label),
                date=inc.date,
                content=inc.content,
                amount=inc.amount,
                institution=inc.institution,
                category=keys.INCOME_CATEGORY,
                subcategory=inc.label,
            )
        )

    def _add_expense(self, exp: Expense) -> None:
        spent = abs(exp.amount)
        self.expenses[exp.category] = self.expenses.get(exp.category, 0) + spent
        edge = (exp.institution, exp.category)
        self.expense_flows[edge] = self.expense_flows.get(edge, 0) + spent
        self.node_column[exp.institution] = INSTITUTION_COLUMN
        self.node_column[exp.category] = CATEGORY_COLUMN
        self.transactions.append(
            ClassifiedTransaction(
                month=self.month,
                month_category_key=keys.expense_detail_key(self.month, exp.category),
                date=exp.date,
                content=exp.content,
                amount=exp.amount,
                institution=exp.institution,
                category=exp.category,
                subcategory=exp.subcategory,
            )
        )

    def flows(self) -> tuple[FlowEdge, ...]:
        edges: list[FlowEdge] = []
        for (src, dst), amount in sorted(
            self.income_flows.items(), key=lambda kv: kv[1], reverse=True
        ):
            if amount < INCOME_EDGE_MIN:
                continue
            edges.append(FlowEdge(src, dst, amount, INCOME_COLOR))

        kept = 0
        for (src, dst), amount in sorted(
            self.expense_flows.items(), key=lambda kv: kv[1], reverse=True
        ):
            if amount < EXPENSE_EDGE_MIN:
                continue
            edges.append(FlowEdge(src, dst, amount, expense_color(kept)))
            kept += 1
        return tuple(edges)

    def summary(self) -> MonthSummary:
        return MonthSummary(
            month=self.month,
            income=self.income,
            points=self.points,
            income_detail=dict(self.income_detail),
            expenses=dict(self.expenses),
            flows=self.flows(),
            node_column=dict(self.node_column),
        )


@dataclass(frozen=True, slots=True)
class ImportBatch:
    """Everything one export contributes to one accounting month."""

    summary: MonthSummary
    transactions: tuple[ClassifiedTransaction, ...]
    processed: int
    skipped: int

    @property
    def is_empty(self) -> bool:
        """True when no income or expense row was found; points alone do not count."""

        return not self.transactions


def aggregate_text(text: str, month: str) -> ImportBatch:
    """Parse and classify ``text`` into an :class:`ImportBatch` for ``month``.

    ``month`` may be given as ``YYYY-MM`` or ``YYYY/MM``. Raises
    ``FormatError`` for an unusable file and ``RowError`` for the first row
    that cannot be classified; no partial batch is ever returned.
    """

    acc = MonthAccumulator(month=keys.month_key(month))
    columns, rows = read_rows(text)
    for line_no, row in rows:
        try:
            outcome = classify_row(row, columns)
        except ValueError as exc:
            raise RowError(line_no, str(exc)) from exc
        acc.add(outcome)

    _logger.info(
        "aggregated %s: processed=%d skipped=%d transactions=%d",
        acc.month,
        acc.processed,
        acc.skipped,
        len(acc.transactions),
    )
    return ImportBatch(
        summary=acc.summary(),
        transactions=tuple(acc.transactions),
        processed=acc.processed,
        skipped=acc.skipped,
    )


__all__ = [
    "CATEGORY_COLUMN",
    "EXPENSE_EDGE_MIN",
    "INCOME_COLOR",
    "INCOME_EDGE_MIN",
    "INSTITUTION_COLUMN",
    "ImportBatch",
    "MonthAccumulator",
    "PALETTE",
    "SOURCE_COLUMN",
    "aggregate_text",
    "expense_color",
]
