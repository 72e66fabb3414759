"""
Aggregation Engine

Turns the raw ledger into the numbers the user looks at: account balances,
monthly income/expense summaries and per-category spending.

GUARANTEES:
- Every read is scoped to accounts owned by the caller. An account filter
  naming someone else's account is refused, never silently emptied.
- Monthly figures use the half-open window [first of month, first of next
  month).
- Sums are Decimal from start to finish.

Aggregation happens here, in Python, over what the store returns. The
store only filters by account and date.
"""

from collections import defaultdict
from decimal import Decimal
from typing import Iterable, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from finance_tracker.access.boundary import AccessBoundary
from finance_tracker.errors import NotFoundError, ValidationError, from_pydantic
from finance_tracker.models.ledger import (
    Category,
    CategorySpending,
    MonthlySummary,
    Transaction,
    TransactionInput,
    TransactionType,
    TransactionView,
    YearMonth,
)
from finance_tracker.observability import get_logger
from finance_tracker.registry.accounts import AccountRegistry
from finance_tracker.registry.categories import CategoryRegistry
from finance_tracker.services.storage import LedgerStore


ZERO = Decimal("0")

MonthLike = Union[str, YearMonth]


def parse_month(value: MonthLike) -> YearMonth:
    """
    Accept ``YYYY-MM`` strings or YearMonth instances.

    Raises:
        ValidationError: If the value is not a calendar year and month
    """
    if isinstance(value, YearMonth):
        return value
    try:
        return YearMonth.parse(value)
    except ValueError as e:
        raise ValidationError(f"Invalid month {value!r}: expected YYYY-MM", field="month") from e


def net_amount(transactions: Iterable[Transaction]) -> Decimal:
    """Income minus expenses."""
    return sum((t.signed_amount for t in transactions), ZERO)


def _category_of(transaction: Transaction, categories: dict[int, Category]) -> Category:
    category = categories.get(transaction.category_id)
    if category is None:
        raise NotFoundError(
            f"Transaction {transaction.id} references missing category {transaction.category_id}"
        )
    return category


def income_and_expenses(transactions: Iterable[Transaction]) -> tuple[Decimal, Decimal]:
    income = ZERO
    expenses = ZERO
    for t in transactions:
        if t.type == TransactionType.INCOME:
            income += t.amount
        else:
            expenses += t.amount
    return income, expenses


class AggregationEngine:
    """
    Computes balances, summaries and breakdowns for one user at a time.

    Every method takes the already-resolved ``user_id`` as its first
    argument.
    """

    def __init__(
        self,
        store: LedgerStore,
        accounts: AccountRegistry,
        categories: CategoryRegistry,
        access: AccessBoundary,
    ):
        self._store = store
        self._accounts = accounts
        self._categories = categories
        self._access = access
        self._logger = get_logger(__name__)

    async def _scope(self, user_id: int, account_id: Optional[int] = None) -> list[int]:
        """Account ids the query may read: one checked account, or all owned ones."""
        if account_id is not None:
            await self._access.assert_ownership(user_id, account_id)
            return [account_id]
        return [a.id for a in await self._accounts.list_accounts(user_id)]

    # ------------------------------------------------------------------
    # Balances
    # ------------------------------------------------------------------

    async def compute_balance(self, user_id: int, account_id: int) -> Decimal:
        """
        Lifetime balance of one account. Zero when it has no transactions.

        Raises:
            NotFoundError, AuthorizationError
        """
        account_ids = await self._scope(user_id, account_id)
        transactions = await self._store.list_transactions(account_ids)
        return net_amount(transactions)

    async def compute_balances(self, user_id: int) -> dict[int, Decimal]:
        """Lifetime balance of every owned account, keyed by account id."""
        account_ids = await self._scope(user_id)
        balances = {account_id: ZERO for account_id in account_ids}
        for t in await self._store.list_transactions(account_ids):
            balances[t.financial_account_id] += t.signed_amount
        return balances

    async def compute_total_balance(self, user_id: int) -> Decimal:
        """Sum of the lifetime balances of every owned account."""
        return sum((await self.compute_balances(user_id)).values(), ZERO)

    # ------------------------------------------------------------------
    # Monthly views
    # ------------------------------------------------------------------

    async def compute_monthly_summary(self, user_id: int, month: MonthLike) -> MonthlySummary:
        """
        Income, expenses and net for one month across all owned accounts.

        Raises:
            ValidationError: If ``month`` is not YYYY-MM
        """
        window = parse_month(month)
        account_ids = await self._scope(user_id)
        transactions = await self._store.list_transactions(
            account_ids, date_from=window.start, date_to=window.end
        )

        income, expenses = income_and_expenses(transactions)
        return MonthlySummary(
            month=str(window),
            total_income=income,
            total_expenses=expenses,
            net=income - expenses,
        )

    async def compute_category_spending(
        self,
        user_id: int,
        month: MonthLike,
        account_id: Optional[int] = None,
    ) -> list[CategorySpending]:
        """
        Per-category totals for one month.

        Groups by the category's *current* name and type, looked up at read
        time. Sorted by amount descending, then name.

        Raises:
            ValidationError: If ``month`` is not YYYY-MM
            NotFoundError, AuthorizationError: For a bad ``account_id``
        """
        window = parse_month(month)
        account_ids = await self._scope(user_id, account_id)
        transactions = await self._store.list_transactions(
            account_ids, date_from=window.start, date_to=window.end
        )
        categories = await self._category_map()

        totals: dict[tuple[int, str, TransactionType], Decimal] = defaultdict(lambda: ZERO)
        for t in transactions:
            category = _category_of(t, categories)
            totals[(category.id, category.name, t.type)] += t.amount

        spending = [
            CategorySpending(
                category_id=category_id,
                category_name=name,
                type=type_,
                amount=amount,
            )
            for (category_id, name, type_), amount in totals.items()
        ]
        spending.sort(key=lambda s: (-s.amount, s.category_name, s.category_id))
        return spending

    # ------------------------------------------------------------------
    # Ledger access
    # ------------------------------------------------------------------

    async def list_transactions(
        self,
        user_id: int,
        account_id: Optional[int] = None,
        month: Optional[MonthLike] = None,
    ) -> list[TransactionView]:
        """
        Owned transactions, newest date first, each with its category attached.

        Raises:
            ValidationError: If ``month`` is given and not YYYY-MM
            NotFoundError, AuthorizationError: For a bad ``account_id``
        """
        window = parse_month(month) if month is not None else None
        account_ids = await self._scope(user_id, account_id)
        transactions = await self._store.list_transactions(
            account_ids,
            date_from=window.start if window else None,
            date_to=window.end if window else None,
        )
        categories = await self._category_map()
        return [TransactionView.build(t, _category_of(t, categories)) for t in transactions]

    async def record_transaction(
        self,
        user_id: int,
        data: Union[TransactionInput, dict],
    ) -> Transaction:
        """
        Validate and append a transaction.

        Raises:
            ValidationError: Empty title, non-positive or non-finite amount,
                unknown type, unknown category, or a type that does not
                match the category's type
            NotFoundError: If the account does not exist
            AuthorizationError: If the account belongs to another user
        """
        if not isinstance(data, TransactionInput):
            try:
                data = TransactionInput.model_validate(data)
            except PydanticValidationError as e:
                raise from_pydantic(e) from e

        await self._access.assert_ownership(user_id, data.financial_account_id)

        try:
            category = await self._categories.get_category(data.category_id)
        except NotFoundError as e:
            raise ValidationError(
                f"Category does not exist: {data.category_id}", field="category_id"
            ) from e
        if category.type != data.type:
            raise ValidationError(
                f"A {data.type.value} transaction cannot use the "
                f"{category.type.value} category '{category.name}'",
                field="category_id",
            )

        transaction = await self._store.add_transaction(data)
        self._logger.info(
            "transaction_recorded",
            transaction_id=transaction.id,
            user_id=user_id,
            account_id=transaction.financial_account_id,
            category_id=transaction.category_id,
            type=transaction.type.value,
            amount=str(transaction.amount),
        )
        return transaction

    async def _category_map(self) -> dict[int, Category]:
        return {c.id: c for c in await self._categories.list_categories()}
