"""
Shared fixtures.

Every test gets a freshly bootstrapped tracker on the in-memory store, with
default categories seeded and two registered users, Alice and Bob.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

import pytest

from finance_tracker.access import RequestContext
from finance_tracker.config import Settings
from finance_tracker.models import Category, FinancialAccount, User
from finance_tracker.orchestrator import FinanceTracker, create_app_components
from finance_tracker.services.storage import InMemoryLedgerStore, SqlLedgerStore


@dataclass
class Member:
    """A registered user together with a context that authenticates as them."""

    user: User
    context: RequestContext
    accounts: dict[str, FinancialAccount]


@pytest.fixture
def settings(monkeypatch) -> Settings:
    """Settings isolated from the developer's environment and .env file."""
    for name in ("DATABASE_BACKEND", "DATABASE_URL", "AUTH_API_TOKENS", "LOG_LEVEL", "LOG_JSON"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DATABASE_BACKEND", "memory")
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    return Settings()


@pytest.fixture
def store() -> InMemoryLedgerStore:
    return InMemoryLedgerStore()


@pytest.fixture
async def tracker(settings, store) -> FinanceTracker:
    tracker = create_app_components(settings=settings, store=store)
    await tracker.bootstrap()
    return tracker


async def _member(tracker: FinanceTracker, email: str, name: str, password: str) -> Member:
    user = await tracker.register(email, name, password)
    context = RequestContext(email=email, password=password)
    accounts = {a.name: a for a in await tracker.list_accounts(context)}
    return Member(user=user, context=context, accounts=accounts)


@pytest.fixture
async def alice(tracker) -> Member:
    return await _member(tracker, "alice@example.com", "Alice", "alice-secret")


@pytest.fixture
async def bob(tracker) -> Member:
    return await _member(tracker, "bob@example.com", "Bob", "bob-secret")


@pytest.fixture
async def categories(tracker, alice) -> dict[str, Category]:
    """Seeded categories by name."""
    return {c.name: c for c in await tracker.list_categories(alice.context)}


@pytest.fixture
def record(tracker, categories):
    """Record a transaction for a member: ``await record(member, "Cash", "Food", "12.50", date(...))``."""

    async def _record(member: Member, account: str, category: str, amount, when: date, title: str = "Entry"):
        chosen = categories[category]
        return await tracker.record_transaction(member.context, {
            "title": title,
            "amount": Decimal(str(amount)),
            "type": chosen.type,
            "date": when,
            "financial_account_id": member.accounts[account].id,
            "category_id": chosen.id,
        })

    return _record


@pytest.fixture
async def sql_store(tmp_path):
    """A SQLite-backed store in a throwaway file."""
    store = SqlLedgerStore(f"sqlite:///{tmp_path / 'test.db'}")
    await store.initialize()
    yield store
    store.dispose()
