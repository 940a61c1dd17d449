"""Shared SQLAlchemy models registry for the ledger database.

Currently includes the month/transaction/config tables used by ``kakeibo``.
"""

from .ledger import Base, KbConfig, KbMonth, KbTransaction

__all__ = [
    "Base",
    "KbConfig",
    "KbMonth",
    "KbTransaction",
]
