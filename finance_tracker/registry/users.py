"""
User Registry

Registration creates the user and its protected default accounts in one
store transaction.
"""

from pydantic import ValidationError as PydanticValidationError

from finance_tracker.errors import (
    DuplicateError,
    NotFoundError,
    ValidationError,
    from_pydantic,
)
from finance_tracker.models.ledger import User, UserInput
from finance_tracker.observability import get_logger
from finance_tracker.registry.accounts import DEFAULT_ACCOUNT_NAMES
from finance_tracker.services.storage import LedgerStore


class UserRegistry:
    """Register and look up users."""

    def __init__(self, store: LedgerStore):
        self._store = store
        self._logger = get_logger(__name__)

    async def register_user(self, email: str, full_name: str, password: str) -> User:
        """
        Create a user with the default Cash/Bank/Savings accounts.

        Raises:
            ValidationError: On empty fields, a malformed email, or an email
                that is already registered
        """
        try:
            data = UserInput(email=email, full_name=full_name, password=password)
        except PydanticValidationError as e:
            raise from_pydantic(e) from e

        try:
            user = await self._store.add_user(
                data.email,
                data.full_name,
                data.password,
                default_account_names=DEFAULT_ACCOUNT_NAMES,
            )
        except DuplicateError as e:
            raise ValidationError("Email is already registered", field="email") from e

        self._logger.info("user_registered", user_id=user.id)
        return user

    async def ensure_default_owner(self, email: str, full_name: str, password: str) -> User:
        """Return the user with ``email``, registering it first if needed."""
        existing = await self._store.get_user_by_email(email)
        if existing is not None:
            return existing
        return await self.register_user(email, full_name, password)

    async def get_user(self, user_id: int) -> User:
        """
        Raises:
            NotFoundError: If no user has this id
        """
        user = await self._store.get_user(user_id)
        if user is None:
            raise NotFoundError(f"User not found: {user_id}")
        return user
