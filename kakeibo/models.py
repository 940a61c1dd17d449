"""Data models and type aliases for ``kakeibo``.

Two families live here:

- Frozen dataclasses for in-process values (column maps, classifier outcomes,
  stored transactions, month summaries). These use snake_case attributes and
  convert to/from the camelCase record dicts that cross the storage interface
  via ``to_record``/``from_record``.
- pydantic DTOs that validate the backup wire format on restore. They accept
  exactly the camelCase keys written by export and reject wrong types
  (``strict=True``) instead of coercing them.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from . import keys

# ---------------------------------------------------------------------------
# Ingestion: raw rows, column map, classifier outcomes
# ---------------------------------------------------------------------------

type RawRow = Sequence[str]
"""Ordered fields of one parsed CSV line; no identity beyond position."""


@dataclass(frozen=True, slots=True)
class ColumnMap:
    """Column indices located in the header row (``None`` when absent).

    ``amount`` is the only required column; header detection raises
    ``FormatError`` without it.
    """

    amount: int
    category: int | None = None
    subcategory: int | None = None
    institution: int | None = None
    content: int | None = None
    date: int | None = None
    counted: int | None = None
    transfer: int | None = None


@dataclass(frozen=True, slots=True)
class Skip:
    """Row excluded from calculation (not counted, transfer, or too short)."""

    reason: str


@dataclass(frozen=True, slots=True)
class Point:
    """Reward/cashback/interest amount; counted only in the month's points."""

    amount: int


@dataclass(frozen=True, slots=True)
class Income:
    amount: int
    # One of 給与 / 交通費支給 / その他収入.
    label: str
    institution: str
    date: str = ""
    content: str = ""

    @property
    def detail_label(self) -> str:
        return keys.income_detail_label(self.label, self.institution)


@dataclass(frozen=True, slots=True)
class Expense:
    # Signed amount as read (<= 0); summaries use its absolute value.
    amount: int
    category: str
    subcategory: str
    institution: str
    date: str = ""
    content: str = ""


type Outcome = Skip | Point | Income | Expense


# ---------------------------------------------------------------------------
# Persisted records
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ClassifiedTransaction:
    """A single stored transaction row of one accounting month."""

    month: str
    month_category_key: str
    date: str
    content: str
    amount: int
    institution: str
    category: str
    subcategory: str

    @property
    def is_income(self) -> bool:
        return self.category == keys.INCOME_CATEGORY

    def to_record(self) -> dict[str, Any]:
        return {
            "month": self.month,
            "monthCategoryKey": self.month_category_key,
            "date": self.date,
            "content": self.content,
            "amount": self.amount,
            "institution": self.institution,
            "category": self.category,
            "subcategory": self.subcategory,
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> ClassifiedTransaction:
        month = str(record["month"])
        category = str(record.get("category") or "")
        subcategory = str(record.get("subcategory") or "")
        institution = str(record.get("institution") or "")
        mck = record.get("monthCategoryKey") or keys.detail_key_for(
            month, category, subcategory, institution
        )
        return cls(
            month=month,
            month_category_key=str(mck),
            date=str(record.get("date") or ""),
            content=str(record.get("content") or ""),
            amount=int(record.get("amount") or 0),
            institution=institution,
            category=category,
            subcategory=subcategory,
        )


@dataclass(frozen=True, slots=True)
class FlowEdge:
    """Directed, weighted edge of the flow graph (``from`` → ``to``)."""

    source: str
    target: str
    amount: int
    color: str

    def to_record(self) -> dict[str, Any]:
        return {"from": self.source, "to": self.target, "amount": self.amount, "color": self.color}

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> FlowEdge:
        return cls(
            source=str(record["from"]),
            target=str(record["to"]),
            amount=record["amount"],
            color=str(record.get("color") or ""),
        )


@dataclass(frozen=True, slots=True)
class MonthSummary:
    """Aggregated totals of one accounting month.

    Invariant: ``sum(income_detail.values()) == income``. Total expense is
    derived from ``expenses`` on demand and never stored.
    """

    month: str
    income: int = 0
    points: int = 0
    income_detail: dict[str, int] = field(default_factory=dict)
    expenses: dict[str, int] = field(default_factory=dict)
    flows: tuple[FlowEdge, ...] = ()
    node_column: dict[str, int] = field(default_factory=dict)

    @property
    def total_expense(self) -> int:
        return sum(self.expenses.values())

    @property
    def balance(self) -> int:
        return self.income - self.total_expense

    def to_record(self) -> dict[str, Any]:
        return {
            "month": self.month,
            "income": self.income,
            "points": self.points,
            "incomeDetail": dict(self.income_detail),
            "expenses": dict(self.expenses),
            "sankeyFlows": [f.to_record() for f in self.flows],
            "nodeColumn": dict(self.node_column),
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> MonthSummary:
        return cls(
            month=str(record["month"]),
            income=record.get("income") or 0,
            points=record.get("points") or 0,
            income_detail=dict(record.get("incomeDetail") or {}),
            expenses=dict(record.get("expenses") or {}),
            flows=tuple(FlowEdge.from_record(f) for f in record.get("sankeyFlows") or ()),
            node_column=dict(record.get("nodeColumn") or {}),
        )


# ---------------------------------------------------------------------------
# DTOs for backup restore
# ---------------------------------------------------------------------------

MAX_TEXT_LENGTH = 200
MAX_CONFIG_NAME_LENGTH = 50


class BackupFlow(BaseModel):
    model_config = ConfigDict(strict=True, extra="ignore", populate_by_name=True)

    source: str = Field(alias="from")
    target: str = Field(alias="to")
    amount: int | float
    color: str = ""


class BackupMonth(BaseModel):
    """One month summary as written by export."""

    model_config = ConfigDict(strict=True, extra="ignore", populate_by_name=True)

    month: str = Field(pattern=r"^\d{4}/\d{2}$")
    income: int | float
    points: int | float = 0
    income_detail: dict[str, int | float] = Field(default_factory=dict, alias="incomeDetail")
    expenses: dict[str, int | float] = Field(default_factory=dict)
    sankey_flows: list[BackupFlow] = Field(default_factory=list, alias="sankeyFlows")
    node_column: dict[str, int] = Field(default_factory=dict, alias="nodeColumn")

    def to_summary(self) -> MonthSummary:
        return MonthSummary(
            month=self.month,
            income=self.income,
            points=self.points,
            income_detail=dict(self.income_detail),
            expenses=dict(self.expenses),
            flows=tuple(
                FlowEdge(source=f.source, target=f.target, amount=f.amount, color=f.color)
                for f in self.sankey_flows
            ),
            node_column=dict(self.node_column),
        )


class BackupTransaction(BaseModel):
    """One stored transaction as written by export.

    String fields longer than 200 characters are truncated rather than
    rejected; a wrong type rejects the record.
    """

    model_config = ConfigDict(strict=True, extra="ignore", populate_by_name=True)

    month: str = Field(pattern=r"^\d{4}/\d{2}$")
    month_category_key: str | None = Field(
        default=None, validation_alias=AliasChoices("monthCategoryKey", "monthCat")
    )
    date: str = ""
    content: str = ""
    amount: int = 0
    institution: str = Field(default="", validation_alias=AliasChoices("institution", "account"))
    category: str = ""
    subcategory: str = ""

    @field_validator(
        "month_category_key", "date", "content", "institution", "category", "subcategory"
    )
    @classmethod
    def _cap_length(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v[:MAX_TEXT_LENGTH]

    def to_transaction(self) -> ClassifiedTransaction:
        mck = self.month_category_key or keys.detail_key_for(
            self.month, self.category, self.subcategory, self.institution
        )
        return ClassifiedTransaction(
            month=self.month,
            month_category_key=mck,
            date=self.date,
            content=self.content,
            amount=self.amount,
            institution=self.institution,
            category=self.category,
            subcategory=self.subcategory,
        )


__all__ = [
    "BackupFlow",
    "BackupMonth",
    "BackupTransaction",
    "ClassifiedTransaction",
    "ColumnMap",
    "Expense",
    "FlowEdge",
    "Income",
    "MAX_CONFIG_NAME_LENGTH",
    "MAX_TEXT_LENGTH",
    "MonthSummary",
    "Outcome",
    "Point",
    "RawRow",
    "Skip",
]
