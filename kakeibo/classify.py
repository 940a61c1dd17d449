"""Row classification: one parsed export row → one typed outcome.

Rules are applied in order:

1. ``Skip`` when the row has no amount cell, when a counted column exists and
   its value is not ``"1"``, or when a transfer column exists and is ``"1"``.
2. Positive amounts whose content matches the point lexicon become ``Point``.
3. Other positive amounts become ``Income`` labelled 給与 / 交通費支給 / その他収入.
4. Everything else (including zero) is an ``Expense``.

Malformed rows raise ``ValueError``; the aggregator turns that into a
row-indexed ``RowError`` so the whole file is rejected.
"""

from __future__ import annotations

import re
from decimal import ROUND_DOWN, Decimal, InvalidOperation

from .models import ColumnMap, Expense, Income, Outcome, Point, RawRow, Skip

UNKNOWN = "不明"
COUNTED_MARKER = "1"
TRANSFER_MARKER = "1"

INSTITUTION_MAX_LENGTH = 14
CONTENT_MAX_LENGTH = 30

POINT_TERMS = (
    "ポイント",
    "キャッシュバック",
    "利息",
    "プレゼント",
)

SALARY_LABEL = "給与"
COMMUTE_LABEL = "交通費支給"
OTHER_INCOME_LABEL = "その他収入"

_SALARY_SUBCATEGORY_MARKER = "給与"
_PAYROLL_CONTENT_MARKER = "給料"
_COMMUTE_MARKER = "交通費"

_HALF_PAREN_RE = re.compile(r"\(.*?\)")
_FULL_PAREN_RE = re.compile(r"（.*?）")
_AMOUNT_NOISE = str.maketrans("", "", ",，円¥￥ ")


def normalize_institution(raw: str) -> str:
    """Strip parenthetical segments, trim and cap at 14 characters.

    When the name consists only of a parenthetical (``"(三井住友銀行)"``), the
    parenthesized text itself is used instead of collapsing to an empty name.
    """

    name = _FULL_PAREN_RE.sub("", _HALF_PAREN_RE.sub("", raw)).strip()
    if not name:
        name = raw.strip().strip("()（）").strip()
    return name[:INSTITUTION_MAX_LENGTH]


def parse_amount(raw: str) -> int:
    """Parse a yen amount such as ``-5,491`` or ``160000円``.

    Blank cells count as 0; fractional values truncate toward zero.
    """

    s = raw.translate(_AMOUNT_NOISE)
    if not s:
        return 0
    try:
        value = Decimal(s)
    except InvalidOperation as exc:
        raise ValueError(f"invalid amount {raw!r}") from exc
    if not value.is_finite():
        raise ValueError(f"invalid amount {raw!r}")
    return int(value.to_integral_value(rounding=ROUND_DOWN))


def is_point_content(content: str) -> bool:
    return any(term in content for term in POINT_TERMS)


def income_label(category: str, subcategory: str, content: str) -> str:
    if _SALARY_SUBCATEGORY_MARKER in subcategory or _PAYROLL_CONTENT_MARKER in content:
        return SALARY_LABEL
    if _COMMUTE_MARKER in category or _COMMUTE_MARKER in subcategory:
        return COMMUTE_LABEL
    return OTHER_INCOME_LABEL


def _cell(row: RawRow, idx: int | None, name: str) -> str | None:
    if idx is None:
        return None
    if idx >= len(row):
        raise ValueError(f"missing {name} column (row has {len(row)} fields)")
    return row[idx]


def classify_row(row: RawRow, columns: ColumnMap) -> Outcome:
    """Classify one data row against the detected ``columns``."""

    if len(row) <= columns.amount:
        return Skip("no amount")
    if columns.counted is not None:
        counted = row[columns.counted] if columns.counted < len(row) else None
        if counted != COUNTED_MARKER:
            return Skip("not counted")
    if columns.transfer is not None:
        transfer = row[columns.transfer] if columns.transfer < len(row) else None
        if transfer == TRANSFER_MARKER:
            return Skip("transfer")

    amount = parse_amount(row[columns.amount])
    category = _cell(row, columns.category, "category")
    subcategory = _cell(row, columns.subcategory, "subcategory") or ""
    institution = _cell(row, columns.institution, "institution")
    content = _cell(row, columns.content, "content") or ""
    date = _cell(row, columns.date, "date") or ""

    institution = normalize_institution(institution) if institution else ""
    institution = institution or UNKNOWN

    if amount > 0:
        if is_point_content(content):
            return Point(amount)
        return Income(
            amount=amount,
            label=income_label(category or "", subcategory, content),
            institution=institution,
            date=date,
            content=content[:CONTENT_MAX_LENGTH],
        )

    return Expense(
        amount=amount,
        category=category or UNKNOWN,
        subcategory=subcategory,
        institution=institution,
        date=date,
        content=content[:CONTENT_MAX_LENGTH],
    )


__all__ = [
    "COMMUTE_LABEL",
    "OTHER_INCOME_LABEL",
    "POINT_TERMS",
    "SALARY_LABEL",
    "UNKNOWN",
    "classify_row",
    "income_label",
    "is_point_content",
    "normalize_institution",
    "parse_amount",
]
