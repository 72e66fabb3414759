"""
Category Registry

Categories are global: every user picks from the same list. Each polarity
has one fallback category that cannot be deleted and that inherits the
transactions of any category removed from under them.
"""

from pydantic import ValidationError as PydanticValidationError

from finance_tracker.errors import (
    NotFoundError,
    ProtectedResourceError,
    StoreError,
    from_pydantic,
)
from finance_tracker.models.ledger import Category, CategoryInput, TransactionType
from finance_tracker.observability import get_logger
from finance_tracker.services.storage import LedgerStore


# (name, type, is_fallback) seeded into an empty store
DEFAULT_CATEGORIES = (
    ("Salary", TransactionType.INCOME, False),
    ("Food", TransactionType.EXPENSE, False),
    ("Transport", TransactionType.EXPENSE, False),
    ("Entertainment", TransactionType.EXPENSE, False),
    ("Utilities", TransactionType.EXPENSE, False),
    ("Other", TransactionType.EXPENSE, True),
    ("Other Income", TransactionType.INCOME, True),
)

PROTECTED_CATEGORY_MESSAGE = "Cannot delete 'Other' categories"


class CategoryRegistry:
    """Create, list and delete categories."""

    def __init__(self, store: LedgerStore):
        self._store = store
        self._logger = get_logger(__name__)

    async def ensure_defaults(self) -> list[Category]:
        """Seed the default categories if the store has none. Returns what was created."""
        if await self._store.list_categories():
            return []

        created = []
        for name, type_, is_fallback in DEFAULT_CATEGORIES:
            created.append(await self._store.add_category(name, type_, is_fallback=is_fallback))
        self._logger.info("default_categories_seeded", count=len(created))
        return created

    async def list_categories(self) -> list[Category]:
        """All categories, sorted by name."""
        return await self._store.list_categories()

    async def get_category(self, category_id: int) -> Category:
        """
        Raises:
            NotFoundError: If no category has this id
        """
        category = await self._store.get_category(category_id)
        if category is None:
            raise NotFoundError(f"Category not found: {category_id}")
        return category

    async def create_category(self, name: str, type: str) -> Category:
        """
        Raises:
            ValidationError: If the name is empty or type is not income/expense
        """
        try:
            data = CategoryInput(name=name, type=type)
        except PydanticValidationError as e:
            raise from_pydantic(e) from e

        category = await self._store.add_category(data.name, data.type)
        self._logger.info(
            "category_created",
            category_id=category.id,
            name=category.name,
            type=category.type.value,
        )
        return category

    async def delete_category(self, category_id: int) -> int:
        """
        Delete a category, moving its transactions to the matching fallback.

        Reassignment and removal happen in one store transaction.

        Returns:
            Number of transactions reassigned

        Raises:
            NotFoundError: If the category does not exist
            ProtectedResourceError: If it is a fallback category
        """
        category = await self.get_category(category_id)

        if category.is_fallback:
            self._logger.warning("protected_category_delete_rejected", category_id=category_id)
            raise ProtectedResourceError(PROTECTED_CATEGORY_MESSAGE)

        fallback = await self._store.get_fallback_category(category.type)
        if fallback is None:
            raise StoreError(f"No fallback category configured for type {category.type.value}")

        moved = await self._store.delete_category(category_id, fallback.id)
        self._logger.info(
            "category_deleted",
            category_id=category_id,
            fallback_category_id=fallback.id,
            transactions_reassigned=moved,
        )
        return moved
