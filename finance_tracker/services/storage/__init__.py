"""
Storage Services Package

Provides the abstract ledger store interface and its implementations:
SQLAlchemy for real deployments, in-memory for tests and demos.
"""

from finance_tracker.services.storage.interface import (
    DuplicateError,
    LedgerStore,
    StoreError,
    StoreUnavailableError,
)
from finance_tracker.services.storage.memory import InMemoryLedgerStore
from finance_tracker.services.storage.sql import SqlLedgerStore

__all__ = [
    # Interface
    "LedgerStore",
    # Exceptions
    "DuplicateError",
    "StoreError",
    "StoreUnavailableError",
    # Implementations
    "InMemoryLedgerStore",
    "SqlLedgerStore",
]
