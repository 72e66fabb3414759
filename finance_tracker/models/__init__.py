"""
Data Models Package

This package contains all Pydantic models used in the Finance Tracker.
All data flowing through the system must conform to these schemas.
"""

from finance_tracker.models.ledger import (
    AccountInput,
    Category,
    CategoryInput,
    CategorySpending,
    FinancialAccount,
    MonthlySummary,
    Transaction,
    TransactionInput,
    TransactionType,
    TransactionView,
    User,
    UserInput,
    YearMonth,
)

__all__ = [
    # Entities
    "Category",
    "FinancialAccount",
    "Transaction",
    "TransactionType",
    "User",
    # Inputs
    "AccountInput",
    "CategoryInput",
    "TransactionInput",
    "UserInput",
    # Read models
    "CategorySpending",
    "MonthlySummary",
    "TransactionView",
    "YearMonth",
]
