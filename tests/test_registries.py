"""
Tests for the account, category and user registries

Exercised through the FinanceTracker facade on the in-memory store, so the
access boundary runs in front of every call the way it does in the app.
"""

import pytest
from datetime import date

from finance_tracker.errors import (
    AuthorizationError,
    NotFoundError,
    ProtectedResourceError,
    StoreError,
    ValidationError,
)
from finance_tracker.models import TransactionType
from finance_tracker.registry import (
    DEFAULT_CATEGORIES,
    PROTECTED_ACCOUNT_MESSAGE,
    PROTECTED_CATEGORY_MESSAGE,
    CategoryRegistry,
)


class TestUserRegistry:
    """Tests for registration and the default owner."""

    async def test_register_creates_protected_defaults(self, tracker, alice):
        """Test that a new user gets Cash, Bank and Savings, all protected."""
        accounts = await tracker.list_accounts(alice.context)
        assert [a.name for a in accounts] == ["Bank", "Cash", "Savings"]
        assert all(a.is_protected for a in accounts)
        assert all(a.user_id == alice.user.id for a in accounts)

    async def test_duplicate_email_rejected(self, tracker, alice):
        """Test that an email can only be registered once, case-insensitively."""
        with pytest.raises(ValidationError) as exc_info:
            await tracker.register("ALICE@example.com", "Other Alice", "pw")
        assert exc_info.value.field == "email"

    @pytest.mark.parametrize("email,name,password", [
        ("not-an-email", "Carol", "pw"),
        ("carol@example.com", "", "pw"),
        ("carol@example.com", "Carol", ""),
    ])
    async def test_register_validates_fields(self, tracker, email, name, password):
        """Test that malformed registrations are refused."""
        with pytest.raises(ValidationError):
            await tracker.register(email, name, password)

    async def test_bootstrap_seeds_default_owner_once(self, tracker, settings):
        """Test that the configured owner exists and is not duplicated."""
        owner = await tracker.bootstrap()
        again = await tracker.bootstrap()
        assert owner.email == settings.auth.default_owner_email
        assert again.id == owner.id


class TestAccountRegistry:
    """Tests for creating, listing and deleting accounts."""

    async def test_create_and_list_sorted(self, tracker, alice):
        """Test that accounts are listed by name ascending."""
        await tracker.create_account(alice.context, "Wallet")
        await tracker.create_account(alice.context, "Brokerage")
        names = [a.name for a in await tracker.list_accounts(alice.context)]
        assert names == sorted(names)
        assert "Wallet" in names and "Brokerage" in names

    async def test_accounts_are_per_user(self, tracker, alice, bob):
        """Test that one user's accounts never show up for another."""
        await tracker.create_account(alice.context, "Wallet")
        bob_accounts = await tracker.list_accounts(bob.context)
        assert "Wallet" not in [a.name for a in bob_accounts]
        assert all(a.user_id == bob.user.id for a in bob_accounts)

    @pytest.mark.parametrize("name", ["", "   "])
    async def test_create_rejects_empty_name(self, tracker, alice, name):
        """Test that an empty name is refused."""
        with pytest.raises(ValidationError):
            await tracker.create_account(alice.context, name)

    async def test_delete_protected_account_fails(self, tracker, alice):
        """Test that default accounts cannot be deleted by their owner."""
        cash = alice.accounts["Cash"]
        with pytest.raises(ProtectedResourceError) as exc_info:
            await tracker.delete_account(alice.context, cash.id)
        assert exc_info.value.message == PROTECTED_ACCOUNT_MESSAGE
        assert cash.id in [a.id for a in await tracker.list_accounts(alice.context)]

    async def test_delete_protected_account_fails_for_anyone(self, tracker, alice, bob):
        """Test that protection is reported even to a non-owner."""
        with pytest.raises(ProtectedResourceError):
            await tracker.delete_account(bob.context, alice.accounts["Cash"].id)

    async def test_delete_other_users_account_forbidden(self, tracker, alice, bob):
        """Test that only the owner can delete an account."""
        wallet = await tracker.create_account(alice.context, "Wallet")
        with pytest.raises(AuthorizationError):
            await tracker.delete_account(bob.context, wallet.id)
        assert wallet.id in [a.id for a in await tracker.list_accounts(alice.context)]

    async def test_delete_missing_account(self, tracker, alice):
        """Test that deleting an unknown id reports NotFoundError."""
        with pytest.raises(NotFoundError):
            await tracker.delete_account(alice.context, 9999)

    async def test_delete_cascades_transactions(self, tracker, alice, record):
        """Test that an account's transactions vanish with it."""
        wallet = await tracker.create_account(alice.context, "Wallet")
        alice.accounts["Wallet"] = wallet
        await record(alice, "Wallet", "Food", "20.00", date(2024, 1, 3))
        await record(alice, "Cash", "Food", "5.00", date(2024, 1, 4))

        await tracker.delete_account(alice.context, wallet.id)

        remaining = await tracker.list_transactions(alice.context)
        assert [t.financial_account_id for t in remaining] == [alice.accounts["Cash"].id]
        with pytest.raises(NotFoundError):
            await tracker.list_transactions(alice.context, account_id=wallet.id)


class TestCategoryRegistry:
    """Tests for the global category list and fallback reassignment."""

    async def test_defaults_seeded(self, tracker, categories):
        """Test that bootstrap seeds the default categories with their fallbacks."""
        assert set(categories) == {name for name, _, _ in DEFAULT_CATEGORIES}
        assert categories["Other"].is_fallback
        assert categories["Other"].type == TransactionType.EXPENSE
        assert categories["Other Income"].is_fallback
        assert categories["Other Income"].type == TransactionType.INCOME
        assert not categories["Food"].is_fallback

    async def test_ensure_defaults_is_idempotent(self, store, tracker):
        """Test that seeding twice does not duplicate categories."""
        assert await CategoryRegistry(store).ensure_defaults() == []
        assert len(await store.list_categories()) == len(DEFAULT_CATEGORIES)

    async def test_list_sorted_by_name(self, tracker, alice):
        """Test that categories are listed by name ascending."""
        names = [c.name for c in await tracker.list_categories(alice.context)]
        assert names == sorted(names)

    async def test_create_category(self, tracker, alice):
        """Test creating a category visible to every user."""
        created = await tracker.create_category(alice.context, "Books", "expense")
        assert created.type == TransactionType.EXPENSE
        assert not created.is_fallback

    @pytest.mark.parametrize("name,type_", [("", "expense"), ("Books", "transfer")])
    async def test_create_category_validates(self, tracker, alice, name, type_):
        """Test that empty names and unknown types are refused."""
        with pytest.raises(ValidationError):
            await tracker.create_category(alice.context, name, type_)

    @pytest.mark.parametrize("name", ["Other", "Other Income"])
    async def test_delete_fallback_fails(self, tracker, alice, categories, name):
        """Test that fallback categories cannot be deleted."""
        before = await tracker.list_categories(alice.context)
        with pytest.raises(ProtectedResourceError) as exc_info:
            await tracker.delete_category(alice.context, categories[name].id)
        assert exc_info.value.message == PROTECTED_CATEGORY_MESSAGE
        assert await tracker.list_categories(alice.context) == before

    async def test_delete_missing_category(self, tracker, alice):
        """Test that deleting an unknown id reports NotFoundError."""
        with pytest.raises(NotFoundError):
            await tracker.delete_category(alice.context, 9999)

    async def test_delete_reassigns_to_matching_fallback(self, tracker, alice, bob, categories, record):
        """Test that expense and income transactions move to their own fallback."""
        books = await tracker.create_category(alice.context, "Books", "expense")
        bonus = await tracker.create_category(alice.context, "Bonus", "income")
        categories["Books"] = books
        categories["Bonus"] = bonus
        await record(alice, "Cash", "Books", "30.00", date(2024, 5, 1))
        await record(bob, "Bank", "Books", "12.00", date(2024, 5, 2))
        await record(alice, "Bank", "Bonus", "500.00", date(2024, 5, 3))

        await tracker.delete_category(alice.context, books.id)
        await tracker.delete_category(alice.context, bonus.id)

        remaining_ids = {c.id for c in await tracker.list_categories(alice.context)}
        assert books.id not in remaining_ids
        assert bonus.id not in remaining_ids

        for member in (alice, bob):
            for t in await tracker.list_transactions(member.context):
                assert t.category_id in remaining_ids
                expected = "Other" if t.type == TransactionType.EXPENSE else "Other Income"
                assert t.category.name == expected

    async def test_delete_without_fallback_fails(self, store, tracker, alice):
        """Test that a missing fallback is reported rather than dropping transactions."""
        lonely = await store.add_category("Lonely", TransactionType.EXPENSE)
        store._categories = {
            cid: c for cid, c in store._categories.items()
            if not (c.is_fallback and c.type == TransactionType.EXPENSE)
        }
        with pytest.raises(StoreError):
            await tracker.delete_category(alice.context, lonely.id)
        assert await store.get_category(lonely.id) is not None
