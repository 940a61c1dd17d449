"""Adapter for household-ledger CSV exports (MoneyForward-style).

Column order is not fixed. Columns are located by case-insensitive substring
match on the header names; the first header (left to right) that contains any
of a column's terms wins. Japanese export headers look like::

    計算対象,日付,内容,金額（円）,保有金融機関,大項目,中項目,メモ,振替,ID

English aliases (``amount``, ``category``, ``institution``, ``settled``,
``transfer``, ``content``, ``date``) are accepted as well.

Only the amount column is required; without it the file is rejected with
``FormatError`` before any row is read.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence

from ...errors import FormatError
from ...logging_setup import get_logger
from ...models import ColumnMap, RawRow
from ..csv_line import split_csv_line
from ..utils import non_empty_lines

COUNTED_TERMS = ("計算対象", "settled", "counted")
AMOUNT_TERMS = ("金額（円）", "金額", "amount")
CATEGORY_TERMS = ("大項目", "category")
SUBCATEGORY_TERMS = ("中項目", "subcategory", "sub-category", "sub category")
INSTITUTION_TERMS = ("保有金融機関", "口座", "institution", "account")
TRANSFER_TERMS = ("振替", "transfer")
CONTENT_TERMS = ("内容", "content", "description")
DATE_TERMS = ("日付", "date")

_logger = get_logger("kakeibo.ingest.adapters.moneyforward_csv")


def _find_column(
    header: Sequence[str], terms: Sequence[str], *, exclude: Sequence[str] = ()
) -> int | None:
    lowered_terms = [t.lower() for t in terms]
    lowered_exclude = [t.lower() for t in exclude]
    for idx, name in enumerate(header):
        h = name.lower()
        if any(t in h for t in lowered_exclude):
            continue
        if any(t in h for t in lowered_terms):
            return idx
    return None


def detect_columns(header: Sequence[str]) -> ColumnMap:
    """Locate the known columns in ``header``.

    Raises ``FormatError`` when no amount column exists.
    """

    amount = _find_column(header, AMOUNT_TERMS)
    if amount is None:
        raise FormatError("amount column not found in header (expected e.g. 金額 / amount)")
    columns = ColumnMap(
        amount=amount,
        category=_find_column(header, CATEGORY_TERMS, exclude=SUBCATEGORY_TERMS),
        subcategory=_find_column(header, SUBCATEGORY_TERMS),
        institution=_find_column(header, INSTITUTION_TERMS),
        content=_find_column(header, CONTENT_TERMS),
        date=_find_column(header, DATE_TERMS),
        counted=_find_column(header, COUNTED_TERMS),
        transfer=_find_column(header, TRANSFER_TERMS),
    )
    _logger.debug("detected columns: %s", columns)
    return columns


def read_rows(text: str) -> tuple[ColumnMap, Iterator[tuple[int, RawRow]]]:
    """Parse the header and return ``(columns, rows)``.

    ``rows`` yields ``(line_number, fields)`` for every non-empty data line;
    ``line_number`` counts non-empty lines with the header as 0.
    """

    if not text:
        raise FormatError("file is empty")
    lines = non_empty_lines(text)
    if len(lines) < 2:
        raise FormatError("no data rows found")

    columns = detect_columns(split_csv_line(lines[0]))

    def _rows() -> Iterator[tuple[int, RawRow]]:
        for line_no, line in enumerate(lines[1:], start=1):
            yield line_no, split_csv_line(line)

    return columns, _rows()


__all__ = ["detect_columns", "read_rows"]
