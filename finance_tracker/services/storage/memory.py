"""
In-Memory Storage Implementation

Used by the test-suite and for throwaway demo sessions (DATABASE_BACKEND=memory).

Mutations that touch more than one collection (account cascade, category
reassignment) are done copy-on-write: the new state is built on copies and
swapped in only when every step succeeded, so a failure part way leaves
the store exactly as it was.
"""

import asyncio
import itertools
from datetime import date, datetime
from typing import Optional, Sequence

from finance_tracker.models.ledger import (
    Category,
    FinancialAccount,
    Transaction,
    TransactionInput,
    TransactionType,
    User,
)
from finance_tracker.services.storage.interface import (
    DuplicateError,
    LedgerStore,
    StoreError,
)


class InMemoryLedgerStore(LedgerStore):
    """Dict-backed ledger store. Ids are assigned sequentially from 1."""

    def __init__(self):
        self._users: dict[int, User] = {}
        self._accounts: dict[int, FinancialAccount] = {}
        self._categories: dict[int, Category] = {}
        self._transactions: dict[int, Transaction] = {}
        self._sequences = {
            "users": itertools.count(1),
            "accounts": itertools.count(1),
            "categories": itertools.count(1),
            "transactions": itertools.count(1),
        }
        self._lock = asyncio.Lock()

    def _next_id(self, table: str) -> int:
        return next(self._sequences[table])

    async def initialize(self) -> None:
        """Nothing to prepare."""
        return None

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def add_user(
        self,
        email: str,
        full_name: str,
        password: str,
        default_account_names: Sequence[str] = (),
    ) -> User:
        async with self._lock:
            if self._find_user_by_email(email) is not None:
                raise DuplicateError(f"Email already registered: {email}")

            user = User(
                id=self._next_id("users"),
                email=email.lower(),
                full_name=full_name,
                password=password,
            )
            accounts = dict(self._accounts)
            for name in default_account_names:
                account_id = self._next_id("accounts")
                accounts[account_id] = FinancialAccount(
                    id=account_id,
                    name=name,
                    user_id=user.id,
                    is_protected=True,
                )

            self._users[user.id] = user
            self._accounts = accounts
            return user

    async def get_user(self, user_id: int) -> Optional[User]:
        return self._users.get(user_id)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        return self._find_user_by_email(email)

    def _find_user_by_email(self, email: str) -> Optional[User]:
        wanted = email.strip().lower()
        for user in self._users.values():
            if user.email == wanted:
                return user
        return None

    # ------------------------------------------------------------------
    # Financial accounts
    # ------------------------------------------------------------------

    async def add_account(
        self,
        user_id: int,
        name: str,
        is_protected: bool = False,
    ) -> FinancialAccount:
        async with self._lock:
            if user_id not in self._users:
                raise StoreError(f"Unknown user: {user_id}")
            account = FinancialAccount(
                id=self._next_id("accounts"),
                name=name,
                user_id=user_id,
                is_protected=is_protected,
            )
            self._accounts[account.id] = account
            return account

    async def get_account(self, account_id: int) -> Optional[FinancialAccount]:
        return self._accounts.get(account_id)

    async def list_accounts(self, user_id: int) -> list[FinancialAccount]:
        owned = [a for a in self._accounts.values() if a.user_id == user_id]
        return sorted(owned, key=lambda a: (a.name, a.id))

    async def delete_account(self, account_id: int) -> int:
        async with self._lock:
            if account_id not in self._accounts:
                return 0
            transactions = {
                tid: t for tid, t in self._transactions.items()
                if t.financial_account_id != account_id
            }
            removed = len(self._transactions) - len(transactions)
            accounts = dict(self._accounts)
            del accounts[account_id]

            self._transactions = transactions
            self._accounts = accounts
            return removed

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    async def add_category(
        self,
        name: str,
        type: TransactionType,
        is_fallback: bool = False,
    ) -> Category:
        async with self._lock:
            category = Category(
                id=self._next_id("categories"),
                name=name,
                type=type,
                is_fallback=is_fallback,
            )
            self._categories[category.id] = category
            return category

    async def get_category(self, category_id: int) -> Optional[Category]:
        return self._categories.get(category_id)

    async def list_categories(self) -> list[Category]:
        return sorted(self._categories.values(), key=lambda c: (c.name, c.id))

    async def get_fallback_category(self, type: TransactionType) -> Optional[Category]:
        for category in self._categories.values():
            if category.is_fallback and category.type == type:
                return category
        return None

    async def delete_category(self, category_id: int, fallback_id: int) -> int:
        async with self._lock:
            if fallback_id not in self._categories:
                raise StoreError(f"Fallback category does not exist: {fallback_id}")

            transactions = dict(self._transactions)
            categories = dict(self._categories)

            moved = 0
            for tid, transaction in transactions.items():
                if transaction.category_id == category_id:
                    transactions[tid] = transaction.model_copy(
                        update={"category_id": fallback_id}
                    )
                    moved += 1
            self._remove_category_row(categories, category_id)

            self._transactions = transactions
            self._categories = categories
            return moved

    def _remove_category_row(self, categories: dict[int, Category], category_id: int) -> None:
        categories.pop(category_id, None)

    # ------------------------------------------------------------------
    # Ledger
    # ------------------------------------------------------------------

    async def add_transaction(self, data: TransactionInput) -> Transaction:
        async with self._lock:
            if data.financial_account_id not in self._accounts:
                raise StoreError(f"Unknown financial account: {data.financial_account_id}")
            if data.category_id not in self._categories:
                raise StoreError(f"Unknown category: {data.category_id}")

            transaction = Transaction(
                id=self._next_id("transactions"),
                created_at=datetime.utcnow(),
                **data.model_dump(),
            )
            self._transactions[transaction.id] = transaction
            return transaction

    async def list_transactions(
        self,
        account_ids: Sequence[int],
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[Transaction]:
        wanted = set(account_ids)
        if not wanted:
            return []

        matches = []
        for transaction in self._transactions.values():
            if transaction.financial_account_id not in wanted:
                continue
            if date_from and transaction.date < date_from:
                continue
            if date_to and transaction.date >= date_to:
                continue
            matches.append(transaction)

        # Newest date first; same-day entries keep insertion order
        return sorted(matches, key=lambda t: (-t.date.toordinal(), t.id))
