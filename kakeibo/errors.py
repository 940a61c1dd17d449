"""Error taxonomy for ingestion, storage and backup restore.

Every failure that reaches a user derives from :class:`KakeiboError` so the
CLI can render it as a single human-readable line.
"""

from __future__ import annotations


class KakeiboError(Exception):
    """Base class for all user-facing failures."""


class FormatError(KakeiboError):
    """The export file cannot be processed at all (e.g. no amount column)."""


class RowError(KakeiboError):
    """A single data row failed classification; the whole file is rejected.

    ``row_index`` is the 1-based line number within the non-empty lines of the
    file (the header is line 0).
    """

    def __init__(self, row_index: int, cause: str) -> None:
        super().__init__(f"row {row_index}: {cause}")
        self.row_index = row_index
        self.cause = cause


class StorageError(KakeiboError):
    """A backend read or write failed; the operation is considered failed."""


class ValidationError(KakeiboError):
    """A backup record failed its schema check and is skipped on restore."""


__all__ = [
    "FormatError",
    "KakeiboError",
    "RowError",
    "StorageError",
    "ValidationError",
]
