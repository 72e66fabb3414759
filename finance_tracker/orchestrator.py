"""
Main Orchestrator for the Finance Tracker

This module ties together all the components and exposes the one surface
the presentation shell talks to.

DESIGN DECISION: The orchestrator enforces the boundaries:
- No operation runs before the caller's identity is resolved
- Every engine call receives that identity explicitly
- Every failure reaches the shell as a typed error

Flow of one request:
    RequestContext → AccessBoundary.resolve_identity → registry / engine
    → result (or FinanceTrackerError) → shell
"""

from decimal import Decimal
from typing import Awaitable, Callable, Optional, TypeVar, Union

from finance_tracker.access import (
    AccessBoundary,
    PasswordCredentialVerifier,
    RequestContext,
    TokenCredentialVerifier,
)
from finance_tracker.aggregation import AggregationEngine
from finance_tracker.config import AuthSettings, Settings, get_settings
from finance_tracker.errors import FinanceTrackerError
from finance_tracker.models.ledger import (
    Category,
    CategorySpending,
    FinancialAccount,
    MonthlySummary,
    Transaction,
    TransactionInput,
    TransactionView,
    User,
    YearMonth,
)
from finance_tracker.observability import configure_logging, get_logger
from finance_tracker.registry import AccountRegistry, CategoryRegistry, UserRegistry
from finance_tracker.services.storage import (
    InMemoryLedgerStore,
    LedgerStore,
    SqlLedgerStore,
)


T = TypeVar("T")


class FinanceTracker:
    """
    Request/response facade over the registries and the aggregation engine.

    Every method except ``register`` and ``bootstrap`` takes a
    RequestContext and fails with AuthenticationError before touching any
    data if the context does not resolve to a user.
    """

    def __init__(
        self,
        store: LedgerStore,
        access: AccessBoundary,
        users: UserRegistry,
        accounts: AccountRegistry,
        categories: CategoryRegistry,
        engine: AggregationEngine,
        auth_settings: Optional[AuthSettings] = None,
    ):
        self._store = store
        self._access = access
        self._users = users
        self._accounts = accounts
        self._categories = categories
        self._engine = engine
        self._auth_settings = auth_settings
        self._logger = get_logger(__name__)

    async def bootstrap(self) -> Optional[User]:
        """
        Prepare the store, seed default categories and the default owner.

        Returns:
            The default owner, or None when no auth settings were given
        """
        await self._store.initialize()
        await self._categories.ensure_defaults()

        if self._auth_settings is None:
            return None
        return await self._users.ensure_default_owner(
            self._auth_settings.default_owner_email,
            self._auth_settings.default_owner_name,
            self._auth_settings.default_owner_password,
        )

    async def _run(
        self,
        context: Optional[RequestContext],
        operation: str,
        call: Callable[[int], Awaitable[T]],
    ) -> T:
        user_id = await self._access.resolve_identity(context)
        log = self._logger.bind(
            correlation_id=str(context.correlation_id),
            user_id=user_id,
            operation=operation,
        )
        try:
            result = await call(user_id)
        except FinanceTrackerError as e:
            log.warning("request_failed", code=e.code, error=e.message)
            raise
        log.debug("request_completed")
        return result

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    async def register(self, email: str, full_name: str, password: str) -> User:
        """Create a new user with the default accounts."""
        return await self._users.register_user(email, full_name, password)

    async def authenticate(self, context: Optional[RequestContext]) -> User:
        """The user behind ``context``."""
        return await self._run(context, "authenticate", self._users.get_user)

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    async def list_accounts(self, context: RequestContext) -> list[FinancialAccount]:
        return await self._run(context, "list_accounts", self._accounts.list_accounts)

    async def create_account(self, context: RequestContext, name: str) -> FinancialAccount:
        return await self._run(
            context,
            "create_account",
            lambda user_id: self._accounts.create_account(user_id, name),
        )

    async def delete_account(self, context: RequestContext, account_id: int) -> None:
        await self._run(
            context,
            "delete_account",
            lambda user_id: self._accounts.delete_account(user_id, account_id),
        )

    # ------------------------------------------------------------------
    # Categories (global definitions, authenticated callers only)
    # ------------------------------------------------------------------

    async def list_categories(self, context: RequestContext) -> list[Category]:
        return await self._run(
            context,
            "list_categories",
            lambda _user_id: self._categories.list_categories(),
        )

    async def create_category(self, context: RequestContext, name: str, type: str) -> Category:
        return await self._run(
            context,
            "create_category",
            lambda _user_id: self._categories.create_category(name, type),
        )

    async def delete_category(self, context: RequestContext, category_id: int) -> None:
        await self._run(
            context,
            "delete_category",
            lambda _user_id: self._categories.delete_category(category_id),
        )

    # ------------------------------------------------------------------
    # Ledger and aggregation
    # ------------------------------------------------------------------

    async def list_transactions(
        self,
        context: RequestContext,
        account_id: Optional[int] = None,
        month: Optional[Union[str, YearMonth]] = None,
    ) -> list[TransactionView]:
        return await self._run(
            context,
            "list_transactions",
            lambda user_id: self._engine.list_transactions(user_id, account_id, month),
        )

    async def record_transaction(
        self,
        context: RequestContext,
        data: Union[TransactionInput, dict],
    ) -> Transaction:
        return await self._run(
            context,
            "record_transaction",
            lambda user_id: self._engine.record_transaction(user_id, data),
        )

    async def monthly_summary(
        self,
        context: RequestContext,
        month: Union[str, YearMonth],
    ) -> MonthlySummary:
        return await self._run(
            context,
            "monthly_summary",
            lambda user_id: self._engine.compute_monthly_summary(user_id, month),
        )

    async def account_balance(self, context: RequestContext, account_id: int) -> Decimal:
        return await self._run(
            context,
            "account_balance",
            lambda user_id: self._engine.compute_balance(user_id, account_id),
        )

    async def account_balances(self, context: RequestContext) -> dict[int, Decimal]:
        return await self._run(context, "account_balances", self._engine.compute_balances)

    async def total_balance(self, context: RequestContext) -> Decimal:
        return await self._run(context, "total_balance", self._engine.compute_total_balance)

    async def category_spending(
        self,
        context: RequestContext,
        month: Union[str, YearMonth],
        account_id: Optional[int] = None,
    ) -> list[CategorySpending]:
        return await self._run(
            context,
            "category_spending",
            lambda user_id: self._engine.compute_category_spending(user_id, month, account_id),
        )


def create_store(settings: Settings) -> LedgerStore:
    """Build the store selected by DATABASE_BACKEND."""
    database = settings.database
    if database.backend == "memory":
        return InMemoryLedgerStore()
    return SqlLedgerStore(database.url, echo=database.echo)


def create_app_components(
    settings: Optional[Settings] = None,
    store: Optional[LedgerStore] = None,
) -> FinanceTracker:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to use; defaults to the cached environment settings
        store: Store to use; defaults to the one selected in settings.
               Tests pass an InMemoryLedgerStore here.

    Returns:
        A FinanceTracker. Call ``await tracker.bootstrap()`` before use.
    """
    settings = settings or get_settings()
    app_settings = settings.app
    configure_logging(app_settings.log_level, app_settings.log_json)

    auth_settings = settings.auth
    store = store or create_store(settings)

    accounts = AccountRegistry(store)
    categories = CategoryRegistry(store)
    users = UserRegistry(store)
    access = AccessBoundary(
        accounts,
        verifiers=[
            TokenCredentialVerifier(auth_settings.api_tokens, store),
            PasswordCredentialVerifier(store),
        ],
    )
    engine = AggregationEngine(store, accounts, categories, access)

    return FinanceTracker(
        store=store,
        access=access,
        users=users,
        accounts=accounts,
        categories=categories,
        engine=engine,
        auth_settings=auth_settings,
    )
