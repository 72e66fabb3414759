"""
Access Boundary

Two jobs:
1. Turn a request context into a user id, or refuse the request.
2. Confirm that an account belongs to that user before anything reads or
   writes its transactions.

DESIGN DECISION: The caller identity is always passed explicitly as an
argument. Nothing here stores "the current user" in ambient state.

How credentials are checked is pluggable: the boundary walks a list of
CredentialVerifier objects and takes the first identity any of them
resolves.
"""

import hmac
from abc import ABC, abstractmethod
from typing import Mapping, Optional, Sequence
from uuid import UUID

from pydantic import BaseModel, Field, SecretStr

from finance_tracker.errors import AuthenticationError, AuthorizationError
from finance_tracker.models.ledger import FinancialAccount
from finance_tracker.observability import create_correlation_id, get_logger
from finance_tracker.registry.accounts import AccountRegistry
from finance_tracker.services.storage import LedgerStore


class RequestContext(BaseModel):
    """What the presentation shell knows about the caller."""

    email: Optional[str] = None
    password: Optional[SecretStr] = None
    token: Optional[SecretStr] = None
    correlation_id: UUID = Field(default_factory=create_correlation_id)


class CredentialVerifier(ABC):
    """Resolves a user id from a request context."""

    @abstractmethod
    async def verify(self, context: RequestContext) -> Optional[int]:
        """
        Returns:
            The user id, or None if this verifier does not recognize
            the context
        """
        pass


class PasswordCredentialVerifier(CredentialVerifier):
    """Email and password, compared against the stored user."""

    def __init__(self, store: LedgerStore):
        self._store = store

    async def verify(self, context: RequestContext) -> Optional[int]:
        if not context.email or context.password is None:
            return None

        user = await self._store.get_user_by_email(context.email)
        if user is None:
            return None

        supplied = context.password.get_secret_value().encode("utf-8")
        if hmac.compare_digest(supplied, user.password.encode("utf-8")):
            return user.id
        return None


class TokenCredentialVerifier(CredentialVerifier):
    """
    Static bearer tokens mapped to user ids (from AUTH_API_TOKENS).

    A token only resolves if its user still exists in the store.
    """

    def __init__(self, tokens: Mapping[str, int], store: LedgerStore):
        self._tokens = dict(tokens)
        self._store = store

    async def verify(self, context: RequestContext) -> Optional[int]:
        if context.token is None:
            return None

        supplied = context.token.get_secret_value().encode("utf-8")
        for token, user_id in self._tokens.items():
            if hmac.compare_digest(supplied, token.encode("utf-8")):
                user = await self._store.get_user(user_id)
                return user.id if user is not None else None
        return None


class AccessBoundary:
    """
    Gatekeeper in front of the aggregation engine.

    Only reads the account registry; never writes.
    """

    def __init__(
        self,
        accounts: AccountRegistry,
        verifiers: Sequence[CredentialVerifier],
    ):
        self._accounts = accounts
        self._verifiers = list(verifiers)
        self._logger = get_logger(__name__)

    async def resolve_identity(self, context: Optional[RequestContext]) -> int:
        """
        Raises:
            AuthenticationError: If no verifier recognizes the context
        """
        if context is not None:
            for verifier in self._verifiers:
                user_id = await verifier.verify(context)
                if user_id is not None:
                    return user_id

        self._logger.warning(
            "authentication_failed",
            correlation_id=str(context.correlation_id) if context else None,
        )
        raise AuthenticationError("Invalid email or password")

    async def assert_ownership(self, user_id: int, account_id: int) -> FinancialAccount:
        """
        Check that ``account_id`` belongs to ``user_id``.

        Returns:
            The account

        Raises:
            NotFoundError: If the account does not exist
            AuthorizationError: If it exists but belongs to someone else
        """
        account = await self._accounts.get_account(account_id)
        if account.user_id != user_id:
            self._logger.warning(
                "access_denied",
                account_id=account_id,
                user_id=user_id,
            )
            raise AuthorizationError(f"Financial account {account_id} belongs to another user")
        return account
