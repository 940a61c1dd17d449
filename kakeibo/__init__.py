"""Public interface for the ``kakeibo`` package.

This module exposes the import pipeline, the application services and the
public models as the stable import surface. There is no runtime logic here,
only symbol re-exports.
"""

from .aggregate import ImportBatch, aggregate_text
from .api import (
    Detail,
    ImportReport,
    InstitutionDetail,
    clear_all_data,
    expense_detail,
    get_summary,
    import_file,
    import_month,
    income_detail,
    institution_detail,
    load_summaries,
)
from .backends import LocalStore, RemoteStore, StorageBackend, get_backend, reset_backend
from .backup import export_data, restore_data
from .classify import classify_row
from .config import Config, load_config
from .errors import FormatError, KakeiboError, RowError, StorageError, ValidationError
from .models import (
    ClassifiedTransaction,
    ColumnMap,
    Expense,
    FlowEdge,
    Income,
    MonthSummary,
    Outcome,
    Point,
    Skip,
)
from .settings import Settings

__all__ = [
    # Pipeline
    "aggregate_text",
    "classify_row",
    "ImportBatch",
    # API
    "clear_all_data",
    "expense_detail",
    "export_data",
    "get_summary",
    "import_file",
    "import_month",
    "income_detail",
    "institution_detail",
    "load_config",
    "load_summaries",
    "restore_data",
    "Detail",
    "ImportReport",
    "InstitutionDetail",
    # Backends / settings
    "get_backend",
    "reset_backend",
    "LocalStore",
    "RemoteStore",
    "StorageBackend",
    "Settings",
    "Config",
    # Models / types
    "ClassifiedTransaction",
    "ColumnMap",
    "Expense",
    "FlowEdge",
    "Income",
    "MonthSummary",
    "Outcome",
    "Point",
    "Skip",
    # Errors
    "FormatError",
    "KakeiboError",
    "RowError",
    "StorageError",
    "ValidationError",
]
