"""
Account Registry

Financial accounts, each owned by exactly one user. The default accounts
created with a user are protected: nobody, the owner included, can delete
them.
"""

from pydantic import ValidationError as PydanticValidationError

from finance_tracker.errors import (
    AuthorizationError,
    NotFoundError,
    ProtectedResourceError,
    from_pydantic,
)
from finance_tracker.models.ledger import AccountInput, FinancialAccount
from finance_tracker.observability import get_logger
from finance_tracker.services.storage import LedgerStore


# Created (protected) for every new user
DEFAULT_ACCOUNT_NAMES = ("Cash", "Bank", "Savings")

PROTECTED_ACCOUNT_MESSAGE = "Cannot delete default financial accounts"


class AccountRegistry:
    """Create, list and delete financial accounts."""

    def __init__(self, store: LedgerStore):
        self._store = store
        self._logger = get_logger(__name__)

    async def list_accounts(self, user_id: int) -> list[FinancialAccount]:
        """The user's accounts, sorted by name."""
        return await self._store.list_accounts(user_id)

    async def get_account(self, account_id: int) -> FinancialAccount:
        """
        Fetch an account regardless of owner.

        Raises:
            NotFoundError: If no account has this id
        """
        account = await self._store.get_account(account_id)
        if account is None:
            raise NotFoundError(f"Financial account not found: {account_id}")
        return account

    async def create_account(self, user_id: int, name: str) -> FinancialAccount:
        """
        Create an account owned by ``user_id``.

        Raises:
            ValidationError: If the name is empty
        """
        try:
            data = AccountInput(name=name)
        except PydanticValidationError as e:
            raise from_pydantic(e, default_field="name") from e

        account = await self._store.add_account(user_id, data.name)
        self._logger.info(
            "account_created",
            account_id=account.id,
            user_id=user_id,
            name=account.name,
        )
        return account

    async def delete_account(self, user_id: int, account_id: int) -> int:
        """
        Delete an account and its transactions.

        The protection check runs before the ownership check, so a protected
        account reports ProtectedResourceError whoever asks.

        Returns:
            Number of transactions removed with the account

        Raises:
            NotFoundError: If the account does not exist
            ProtectedResourceError: If it is one of the default accounts
            AuthorizationError: If it belongs to another user
        """
        account = await self.get_account(account_id)

        if account.is_protected:
            self._logger.warning(
                "protected_account_delete_rejected",
                account_id=account_id,
                user_id=user_id,
            )
            raise ProtectedResourceError(PROTECTED_ACCOUNT_MESSAGE)

        if account.user_id != user_id:
            self._logger.warning(
                "access_denied",
                account_id=account_id,
                user_id=user_id,
                operation="delete_account",
            )
            raise AuthorizationError(f"Financial account {account_id} belongs to another user")

        removed = await self._store.delete_account(account_id)
        self._logger.info(
            "account_deleted",
            account_id=account_id,
            user_id=user_id,
            transactions_removed=removed,
        )
        return removed
