"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Run on SQLite locally and Postgres in production without code changes
2. Use in-memory storage for testing
3. Keep registry and aggregation logic decoupled from persistence

The interface is intentionally small - we're not building a full ORM.
Just the reads and appends the registries and the aggregation engine need.
Ownership checks and protection rules live above this layer; the store
only enforces referential integrity.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional, Sequence

from finance_tracker.errors import DuplicateError, StoreError, StoreUnavailableError
from finance_tracker.models.ledger import (
    Category,
    FinancialAccount,
    Transaction,
    TransactionInput,
    TransactionType,
    User,
)


class LedgerStore(ABC):
    """
    Abstract interface for the ledger, accounts, categories and users.

    Any storage implementation (in-memory, SQLAlchemy, ...) must implement
    these methods. Failures of the backing service surface as
    StoreUnavailableError.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Prepare the backend (create tables, open connections)."""
        pass

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    @abstractmethod
    async def add_user(
        self,
        email: str,
        full_name: str,
        password: str,
        default_account_names: Sequence[str] = (),
    ) -> User:
        """
        Create a user together with its protected default accounts.

        The user row and its accounts are written all-or-nothing.

        Raises:
            DuplicateError: If the email is already registered
        """
        pass

    @abstractmethod
    async def get_user(self, user_id: int) -> Optional[User]:
        """Retrieve a user by id, or None."""
        pass

    @abstractmethod
    async def get_user_by_email(self, email: str) -> Optional[User]:
        """Retrieve a user by (case-insensitive) email, or None."""
        pass

    # ------------------------------------------------------------------
    # Financial accounts
    # ------------------------------------------------------------------

    @abstractmethod
    async def add_account(
        self,
        user_id: int,
        name: str,
        is_protected: bool = False,
    ) -> FinancialAccount:
        """Create an account owned by ``user_id``."""
        pass

    @abstractmethod
    async def get_account(self, account_id: int) -> Optional[FinancialAccount]:
        """Retrieve an account by id, or None."""
        pass

    @abstractmethod
    async def list_accounts(self, user_id: int) -> list[FinancialAccount]:
        """List a user's accounts, sorted by name ascending."""
        pass

    @abstractmethod
    async def delete_account(self, account_id: int) -> int:
        """
        Delete an account and every transaction recorded against it.

        Both deletions happen in one atomic unit.

        Returns:
            Number of transactions removed with the account
        """
        pass

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    @abstractmethod
    async def add_category(
        self,
        name: str,
        type: TransactionType,
        is_fallback: bool = False,
    ) -> Category:
        """Create a category."""
        pass

    @abstractmethod
    async def get_category(self, category_id: int) -> Optional[Category]:
        """Retrieve a category by id, or None."""
        pass

    @abstractmethod
    async def list_categories(self) -> list[Category]:
        """List all categories, sorted by name ascending."""
        pass

    @abstractmethod
    async def get_fallback_category(self, type: TransactionType) -> Optional[Category]:
        """The fallback category for a polarity, or None if not seeded."""
        pass

    @abstractmethod
    async def delete_category(self, category_id: int, fallback_id: int) -> int:
        """
        Reassign a category's transactions to ``fallback_id``, then remove it.

        CRITICAL: Reassignment and removal are all-or-nothing. A failure
        part way must leave every transaction on the original category
        and the category row in place.

        Returns:
            Number of transactions reassigned
        """
        pass

    # ------------------------------------------------------------------
    # Ledger
    # ------------------------------------------------------------------

    @abstractmethod
    async def add_transaction(self, data: TransactionInput) -> Transaction:
        """Append a transaction. Assigns id and creation timestamp."""
        pass

    @abstractmethod
    async def list_transactions(
        self,
        account_ids: Sequence[int],
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[Transaction]:
        """
        List transactions of the given accounts.

        Args:
            account_ids: Accounts to read; an empty sequence yields nothing
            date_from: Keep transactions on or after this date
            date_to: Keep transactions strictly before this date

        Returns:
            Transactions sorted by date descending, then by id ascending
        """
        pass


__all__ = [
    "DuplicateError",
    "LedgerStore",
    "StoreError",
    "StoreUnavailableError",
]
