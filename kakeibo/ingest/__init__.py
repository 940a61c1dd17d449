"""Export-file ingestion: decoding, line splitting and month resolution."""

from .csv_line import split_csv_line
from .month_resolver import resolve_target_month
from .utils import decode_export_bytes, read_export_text

__all__ = [
    "decode_export_bytes",
    "read_export_text",
    "resolve_target_month",
    "split_csv_line",
]
