"""Resolve the default accounting month of an export from its file name.

Precedence (first match wins):

1. a date range ``YYYY-MM-DD_YYYY-MM-DD`` (``-`` or ``_`` separators): the
   later date's year-month;
2. a single date ``YYYY-MM-DD``: its year-month;
3. a loose ``YYYY-MM`` / ``YYYY_MM`` / ``YYYYMM`` anywhere in the name, with
   ``MM`` between 01 and 12;
4. the current calendar month.

The result is only a suggestion in ``YYYY-MM`` form; callers may override it
before aggregation. File content is never inspected.
"""

from __future__ import annotations

import re
from datetime import datetime

from ..logging_setup import get_logger

_DATE = r"(\d{4})[-_](\d{2})[-_](\d{2})"
_RANGE_RE = re.compile(_DATE + r"[-_]" + _DATE)
_SINGLE_RE = re.compile(_DATE)
_LOOSE_RE = re.compile(r"(\d{4})[-_]?(0[1-9]|1[0-2])")

_logger = get_logger("kakeibo.ingest.month_resolver")


def resolve_target_month(filename: str | None, *, now: datetime | None = None) -> str:
    """Return the suggested target month for ``filename`` as ``YYYY-MM``."""

    if filename:
        m = _RANGE_RE.search(filename)
        if m:
            resolved = f"{m.group(4)}-{m.group(5)}"
            _logger.debug("target month from date range in %r: %s", filename, resolved)
            return resolved

        m = _SINGLE_RE.search(filename)
        if m:
            resolved = f"{m.group(1)}-{m.group(2)}"
            _logger.debug("target month from date in %r: %s", filename, resolved)
            return resolved

        m = _LOOSE_RE.search(filename)
        if m:
            resolved = f"{m.group(1)}-{m.group(2)}"
            _logger.debug("target month from year-month in %r: %s", filename, resolved)
            return resolved

    current = now or datetime.now()
    resolved = f"{current.year:04d}-{current.month:02d}"
    _logger.debug("no month in %r; defaulting to current month %s", filename, resolved)
    return resolved


__all__ = ["resolve_target_month"]
