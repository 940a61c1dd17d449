"""Key encoding for months, detail lookups and flow edges.

All composite keys are built and parsed here so that the producer (the
aggregator) and the consumers (detail lookups, backends, backup restore) can
never drift apart.

Formats
-------
- Month key: ``YYYY/MM`` (canonical, used in storage).
- Month input: ``YYYY-MM`` (file-name resolution, user input); both are
  accepted by :func:`month_key`.
- Expense detail key: ``YYYY/MM|||<category>``.
- Income detail key: ``YYYY/MM|||income|||<detailLabel>``.
- Income detail label: ``<label>（<institution>）`` (full-width parentheses).
"""

from __future__ import annotations

import re

SEPARATOR = "|||"
INCOME_CATEGORY = "income"

_MONTH_KEY_RE = re.compile(r"^(\d{4})[/-](\d{2})$")
MONTH_KEY_PATTERN = re.compile(r"^\d{4}/\d{2}$")


def month_key(value: str) -> str:
    """Return the canonical ``YYYY/MM`` form of ``YYYY-MM`` or ``YYYY/MM``."""

    m = _MONTH_KEY_RE.match(value.strip())
    if not m:
        raise ValueError(f"invalid month: {value!r} (expected YYYY-MM or YYYY/MM)")
    month_num = int(m.group(2))
    if not 1 <= month_num <= 12:
        raise ValueError(f"invalid month: {value!r} (month must be 01-12)")
    return f"{m.group(1)}/{m.group(2)}"


def month_input(key: str) -> str:
    """Inverse of :func:`month_key`: ``YYYY/MM`` → ``YYYY-MM``."""

    return month_key(key).replace("/", "-")


def income_detail_label(label: str, institution: str) -> str:
    return f"{label}（{institution}）"


def expense_detail_key(month: str, category: str) -> str:
    return f"{month}{SEPARATOR}{category}"


def income_detail_key(month: str, detail_label: str) -> str:
    return f"{month}{SEPARATOR}{INCOME_CATEGORY}{SEPARATOR}{detail_label}"


def detail_key_for(month: str, category: str, subcategory: str, institution: str) -> str:
    """Derive the detail key of a stored transaction from its own fields.

    Income rows carry ``category == "income"`` and the income label in
    ``subcategory``.
    """

    if category == INCOME_CATEGORY:
        return income_detail_key(month, income_detail_label(subcategory, institution))
    return expense_detail_key(month, category)


def month_of_detail_key(key: str) -> str:
    return key.split(SEPARATOR, 1)[0]


__all__ = [
    "INCOME_CATEGORY",
    "MONTH_KEY_PATTERN",
    "SEPARATOR",
    "detail_key_for",
    "expense_detail_key",
    "income_detail_key",
    "income_detail_label",
    "month_input",
    "month_key",
    "month_of_detail_key",
]
