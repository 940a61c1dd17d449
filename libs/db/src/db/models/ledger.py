from __future__ import annotations

from typing import Any

from sqlalchemy import JSON, BigInteger, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


# ---------------------------
# Core: kb_months
# ---------------------------


class KbMonth(Base):
    """One aggregated summary per accounting month.

    The presence of a row is the only signal that a month exists; transaction
    rows without a matching summary are orphans from an interrupted import.
    """

    __tablename__ = "kb_months"

    # Accounting month key, ``YYYY/MM``.
    month: Mapped[str] = mapped_column(String(7), primary_key=True)
    income: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    points: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    income_detail: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    expenses: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    # Ordered list of {from, to, amount, color}; order is significant for layout.
    sankey_flows: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    node_column: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)


# ---------------------------
# Core: kb_transactions
# ---------------------------


class KbTransaction(Base):
    __tablename__ = "kb_transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    month: Mapped[str] = mapped_column(String(7), nullable=False, index=True)
    # ``month|||category`` or ``month|||income|||detailLabel``; see kakeibo.keys.
    month_category_key: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    date: Mapped[str | None] = mapped_column(String, nullable=True)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    institution: Mapped[str | None] = mapped_column(String, nullable=True)
    category: Mapped[str | None] = mapped_column(String, nullable=True)
    subcategory: Mapped[str | None] = mapped_column(String, nullable=True)


# ---------------------------
# Reference: kb_config
# ---------------------------


class KbConfig(Base):
    __tablename__ = "kb_config"

    key: Mapped[str] = mapped_column(String, primary_key=True)
    value: Mapped[Any] = mapped_column(JSON, nullable=True)


__all__ = [
    "Base",
    "KbConfig",
    "KbMonth",
    "KbTransaction",
]
