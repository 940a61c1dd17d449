"""Ingest utilities shared by CLI commands and the import service.

Exposes helpers to read an export file into text (UTF-8 first, then the
legacy Japanese code page) and to split the text into non-empty lines.
"""

from __future__ import annotations

from os import PathLike
from pathlib import Path

from ..errors import FormatError
from ..logging_setup import get_logger

# Trial order: UTF-8 (a BOM is tolerated) then Shift_JIS as written by
# Windows exporters. cp932 is a superset of shift_jis that also covers the
# vendor extensions (circled digits, NEC special characters).
ENCODINGS: tuple[str, ...] = ("utf-8-sig", "cp932")

_logger = get_logger("kakeibo.ingest.utils")


def decode_export_bytes(data: bytes) -> str:
    """Decode raw export bytes by trial, raising ``FormatError`` when none fits."""

    for encoding in ENCODINGS:
        try:
            text = data.decode(encoding)
        except UnicodeDecodeError:
            _logger.debug("export is not %s; trying next encoding", encoding)
            continue
        _logger.debug("decoded export as %s (%d chars)", encoding, len(text))
        return text
    raise FormatError("could not decode file as UTF-8 or Shift_JIS")


def read_export_text(path: str | PathLike[str]) -> str:
    """Read an export file from disk and decode it (see :func:`decode_export_bytes`)."""

    return decode_export_bytes(Path(path).read_bytes())


def non_empty_lines(text: str) -> list[str]:
    """Split ``text`` into trimmed lines, dropping blank ones."""

    return [stripped for line in text.splitlines() if (stripped := line.strip())]


__all__ = ["ENCODINGS", "decode_export_bytes", "non_empty_lines", "read_export_text"]
