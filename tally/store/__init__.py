"""Store layer - owns the ledger state and persisted client storage.

This module re-exports the public store classes for easy importing.
"""

from tally.store.ledger import ERROR_CLEAR_DELAY, LedgerStore, Scheduler, ThreadingScheduler
from tally.store.storage import (
    BUDGET_KEY,
    TOKEN_KEY,
    ClientStorage,
    FileStorage,
    MemoryStorage,
    get_storage_path,
)

__all__ = [
    # Ledger
    "ERROR_CLEAR_DELAY",
    "LedgerStore",
    "Scheduler",
    "ThreadingScheduler",
    # Storage
    "BUDGET_KEY",
    "TOKEN_KEY",
    "ClientStorage",
    "FileStorage",
    "MemoryStorage",
    "get_storage_path",
]
