"""Registries for accounts, categories and users."""

from finance_tracker.registry.accounts import (
    DEFAULT_ACCOUNT_NAMES,
    PROTECTED_ACCOUNT_MESSAGE,
    AccountRegistry,
)
from finance_tracker.registry.categories import (
    DEFAULT_CATEGORIES,
    PROTECTED_CATEGORY_MESSAGE,
    CategoryRegistry,
)
from finance_tracker.registry.users import UserRegistry

__all__ = [
    "AccountRegistry",
    "CategoryRegistry",
    "UserRegistry",
    "DEFAULT_ACCOUNT_NAMES",
    "DEFAULT_CATEGORIES",
    "PROTECTED_ACCOUNT_MESSAGE",
    "PROTECTED_CATEGORY_MESSAGE",
]
