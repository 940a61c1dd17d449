"""Read-only views derived from month summaries and Config.

Nothing here touches storage; callers pass summaries loaded through
``kakeibo.api.load_summaries`` and the current ``Config``.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from .config import Config
from .layout.chart import ChartPoint
from .models import MonthSummary

type Summaries = Mapping[str, MonthSummary]


def _round_half_up(x: float) -> int:
    return math.floor(x + 0.5)


def savings_rate(income: float, expense: float) -> int:
    """Balance as a whole percent of income; 0 when there is no income."""

    if income <= 0:
        return 0
    return _round_half_up((income - expense) / income * 100)


def month_label(month: str) -> str:
    """``"2026/01"`` → ``"1月"``."""

    return f"{int(month.split('/')[1])}月"


# ---- one month ------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class MonthKpis:
    month: str
    income: float
    expense: float
    fixed: float
    variable: float
    balance: float
    savings_rate: int
    points: float


def month_kpis(summary: MonthSummary, fixed: Iterable[str]) -> MonthKpis:
    fixed_set = set(fixed)
    total = summary.total_expense
    fixed_total = sum(v for k, v in summary.expenses.items() if k in fixed_set)
    return MonthKpis(
        month=summary.month,
        income=summary.income,
        expense=total,
        fixed=fixed_total,
        variable=total - fixed_total,
        balance=summary.income - total,
        savings_rate=savings_rate(summary.income, total),
        points=summary.points,
    )


@dataclass(frozen=True, slots=True)
class BudgetRow:
    category: str
    budget: float
    actual: float

    @property
    def difference(self) -> float:
        """Budget minus actual; negative means over budget."""
        return self.budget - self.actual


@dataclass(frozen=True, slots=True)
class ExpenseBreakdown:
    fixed: tuple[BudgetRow, ...]
    variable: tuple[BudgetRow, ...]

    @property
    def fixed_total(self) -> float:
        return sum(r.actual for r in self.fixed)

    @property
    def variable_total(self) -> float:
        return sum(r.actual for r in self.variable)


def expense_breakdown(summary: MonthSummary, config: Config) -> ExpenseBreakdown:
    rows = [
        BudgetRow(category=k, budget=config.budget_for(k), actual=v)
        for k, v in sorted(summary.expenses.items(), key=lambda kv: kv[1], reverse=True)
    ]
    return ExpenseBreakdown(
        fixed=tuple(r for r in rows if config.is_fixed(r.category)),
        variable=tuple(r for r in rows if not config.is_fixed(r.category)),
    )


@dataclass(frozen=True, slots=True)
class IncomeRow:
    label: str
    amount: float
    share: float


def income_breakdown(summary: MonthSummary) -> tuple[IncomeRow, ...]:
    """Income detail rows by amount descending, with their share in percent."""

    total = sum(summary.income_detail.values())
    return tuple(
        IncomeRow(label=k, amount=v, share=round(v / total * 100, 1) if total > 0 else 0.0)
        for k, v in sorted(summary.income_detail.items(), key=lambda kv: kv[1], reverse=True)
    )


# ---- month ranges ---------------------------------------------------------


def rolling_months(selected: str, count: int = 12) -> list[str]:
    """The ``count`` months ending at ``selected`` (``YYYY/MM``), oldest first."""

    year, month = (int(p) for p in selected.split("/"))
    out: list[str] = []
    for back in range(count - 1, -1, -1):
        y, m = divmod(year * 12 + (month - 1) - back, 12)
        out.append(f"{y:04d}/{m + 1:02d}")
    return out


def calendar_months(year: int | str) -> list[str]:
    return [f"{int(year):04d}/{m:02d}" for m in range(1, 13)]


def available_years(months: Iterable[str]) -> list[str]:
    return sorted({m.split("/")[0] for m in months})


# ---- series ---------------------------------------------------------------


def trend_points(summaries: Summaries, months: Sequence[str]) -> list[ChartPoint]:
    """Income/expense bars with a balance line that is absent for missing months."""

    points: list[ChartPoint] = []
    for m in months:
        s = summaries.get(m)
        income = s.income if s else 0
        expense = s.total_expense if s else 0
        points.append(
            ChartPoint(
                label=month_label(m),
                bars=(income, expense),
                line=income - expense if s else None,
            )
        )
    return points


def fixed_variable_points(
    summaries: Summaries, months: Sequence[str], fixed: Iterable[str]
) -> list[ChartPoint]:
    fixed_set = set(fixed)
    points: list[ChartPoint] = []
    for m in months:
        s = summaries.get(m)
        expenses = s.expenses if s else {}
        fixed_total = sum(v for k, v in expenses.items() if k in fixed_set)
        total = sum(expenses.values())
        points.append(ChartPoint(label=month_label(m), bars=(fixed_total, total - fixed_total)))
    return points


@dataclass(frozen=True, slots=True)
class RatePoint:
    label: str
    rate: int


def savings_rate_points(summaries: Summaries, months: Sequence[str]) -> list[RatePoint]:
    out: list[RatePoint] = []
    for m in months:
        s = summaries.get(m)
        rate = savings_rate(s.income, s.total_expense) if s else 0
        out.append(RatePoint(label=month_label(m), rate=rate))
    return out


@dataclass(frozen=True, slots=True)
class YearRow:
    month: str
    label: str
    income: float
    expense: float
    has_data: bool

    @property
    def balance(self) -> float:
        return self.income - self.expense


@dataclass(frozen=True, slots=True)
class YearTable:
    rows: tuple[YearRow, ...]

    @property
    def total_income(self) -> float:
        return sum(r.income for r in self.rows)

    @property
    def total_expense(self) -> float:
        return sum(r.expense for r in self.rows)

    @property
    def total_balance(self) -> float:
        return self.total_income - self.total_expense


def year_table(summaries: Summaries, months: Sequence[str]) -> YearTable:
    rows = []
    for m in months:
        s = summaries.get(m)
        rows.append(
            YearRow(
                month=m,
                label=month_label(m),
                income=s.income if s else 0,
                expense=s.total_expense if s else 0,
                has_data=s is not None,
            )
        )
    return YearTable(rows=tuple(rows))


__all__ = [
    "BudgetRow",
    "ExpenseBreakdown",
    "IncomeRow",
    "MonthKpis",
    "RatePoint",
    "YearRow",
    "YearTable",
    "available_years",
    "calendar_months",
    "expense_breakdown",
    "fixed_variable_points",
    "income_breakdown",
    "month_kpis",
    "month_label",
    "rolling_months",
    "savings_rate",
    "savings_rate_points",
    "trend_points",
    "year_table",
]
