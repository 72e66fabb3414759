"""
Tests for the access boundary

Identity resolution (password and token verifiers) and the ownership
check in front of every account-scoped read and write.
"""

import pytest

from finance_tracker.access import (
    AccessBoundary,
    PasswordCredentialVerifier,
    RequestContext,
    TokenCredentialVerifier,
)
from finance_tracker.errors import AuthenticationError, AuthorizationError, NotFoundError
from finance_tracker.registry import AccountRegistry


@pytest.fixture
def boundary(store, alice) -> AccessBoundary:
    return AccessBoundary(
        AccountRegistry(store),
        verifiers=[
            TokenCredentialVerifier({"alice-token": alice.user.id, "ghost-token": 999}, store),
            PasswordCredentialVerifier(store),
        ],
    )


class TestResolveIdentity:
    """Tests for turning a request context into a user id."""

    async def test_password(self, boundary, alice):
        """Test resolving an email and password."""
        assert await boundary.resolve_identity(alice.context) == alice.user.id

    async def test_email_is_case_insensitive(self, boundary, alice):
        """Test that the email lookup ignores case."""
        context = RequestContext(email="ALICE@example.com", password="alice-secret")
        assert await boundary.resolve_identity(context) == alice.user.id

    async def test_wrong_password(self, boundary, alice):
        """Test that a bad password is refused."""
        context = RequestContext(email=alice.user.email, password="wrong")
        with pytest.raises(AuthenticationError):
            await boundary.resolve_identity(context)

    async def test_unknown_email(self, boundary, alice):
        """Test that an unregistered email is refused."""
        context = RequestContext(email="nobody@example.com", password="alice-secret")
        with pytest.raises(AuthenticationError):
            await boundary.resolve_identity(context)

    @pytest.mark.parametrize("context", [None, RequestContext()])
    async def test_missing_credentials(self, boundary, context):
        """Test that an empty or absent context is refused."""
        with pytest.raises(AuthenticationError):
            await boundary.resolve_identity(context)

    async def test_token(self, boundary, alice):
        """Test resolving a configured bearer token."""
        assert await boundary.resolve_identity(RequestContext(token="alice-token")) == alice.user.id

    async def test_unknown_token(self, boundary):
        """Test that an unconfigured token is refused."""
        with pytest.raises(AuthenticationError):
            await boundary.resolve_identity(RequestContext(token="forged"))

    async def test_token_for_missing_user(self, boundary):
        """Test that a configured token whose user does not exist is refused."""
        with pytest.raises(AuthenticationError):
            await boundary.resolve_identity(RequestContext(token="ghost-token"))

    def test_secrets_hidden_from_repr(self):
        """Test that credentials are not leaked through logging the context."""
        context = RequestContext(email="a@example.com", password="hunter2", token="tokenvalue")
        assert "hunter2" not in repr(context)
        assert "tokenvalue" not in repr(context)

    def test_correlation_ids_are_unique(self):
        """Test that each context carries its own correlation id."""
        assert RequestContext().correlation_id != RequestContext().correlation_id


class TestAssertOwnership:
    """Tests for the account ownership check."""

    async def test_owner(self, boundary, alice):
        """Test that the owner passes and gets the account back."""
        cash = alice.accounts["Cash"]
        account = await boundary.assert_ownership(alice.user.id, cash.id)
        assert account.id == cash.id

    async def test_other_user(self, boundary, alice, bob):
        """Test that someone else's account is refused."""
        with pytest.raises(AuthorizationError):
            await boundary.assert_ownership(bob.user.id, alice.accounts["Cash"].id)

    async def test_missing_account_is_distinguishable(self, boundary, alice):
        """Test that an unknown account reports NotFoundError, not AuthorizationError."""
        with pytest.raises(NotFoundError):
            await boundary.assert_ownership(alice.user.id, 9999)
