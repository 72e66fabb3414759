"""Services package."""

from finance_tracker.services.storage import (
    DuplicateError,
    InMemoryLedgerStore,
    LedgerStore,
    SqlLedgerStore,
    StoreError,
    StoreUnavailableError,
)

__all__ = [
    "DuplicateError",
    "InMemoryLedgerStore",
    "LedgerStore",
    "SqlLedgerStore",
    "StoreError",
    "StoreUnavailableError",
]
