"""
Core Data Models for the Finance Tracker

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for the presentation shell and for logging

DESIGN DECISION: Entities only hold foreign keys (ids), never references to
other entities. Anything the shell wants "attached" (a transaction with its
category) is built at read time as a separate view model.

Amounts are ``Decimal`` everywhere. Binary floats drift at the cent level
once a few hundred of them are summed.
"""

import re
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """
    Polarity of a transaction or category.

    The amount of a transaction is always stored positive; whether it adds
    to or subtracts from a balance is decided by this field alone.
    """
    INCOME = "income"
    EXPENSE = "expense"


# =============================================================================
# ENTITIES
# =============================================================================

class User(BaseModel):
    """An identity owning zero or more financial accounts."""
    model_config = ConfigDict(from_attributes=True, str_strip_whitespace=True)

    id: int
    email: str = Field(..., min_length=3, max_length=100)
    full_name: str = Field(..., min_length=1, max_length=100)
    # Opaque credential, compared for equality at login
    password: str = Field(..., min_length=1, max_length=255, repr=False, exclude=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)


class FinancialAccount(BaseModel):
    """
    A named bucket of transactions.

    CRITICAL: Every account belongs to exactly one user.
    Protected accounts (the defaults created with a user) cannot be deleted.
    """
    model_config = ConfigDict(from_attributes=True, str_strip_whitespace=True)

    id: int
    name: str = Field(..., min_length=1, max_length=100)
    user_id: int
    is_protected: bool = False
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Category(BaseModel):
    """
    A label with a fixed polarity.

    Fallback categories ("Other", "Other Income") are global, cannot be
    deleted, and absorb the transactions of any deleted category of the
    same type.
    """
    model_config = ConfigDict(from_attributes=True, str_strip_whitespace=True)

    id: int
    name: str = Field(..., min_length=1, max_length=100)
    type: TransactionType
    is_fallback: bool = False
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Transaction(BaseModel):
    """
    A single ledger entry.

    Frozen: once recorded, a transaction is never edited. The only thing
    that can move it is the store reassigning its category when that
    category is deleted.
    """
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    title: str
    amount: Decimal
    type: TransactionType
    date: date
    financial_account_id: int
    category_id: int
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def signed_amount(self) -> Decimal:
        """Amount as it affects a balance."""
        return self.amount if self.type == TransactionType.INCOME else -self.amount


# =============================================================================
# INPUT MODELS - what callers send before ids exist
# =============================================================================

class AccountInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)


class CategoryInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    type: TransactionType


class UserInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(..., min_length=3, max_length=100)
    full_name: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1, max_length=255)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: str) -> str:
        if not re.fullmatch(r"[^@\s]+@[^@\s]+\.[^@\s]+", v):
            raise ValueError("Email address is not valid")
        return v.lower()


class TransactionInput(BaseModel):
    """
    A transaction as submitted by the user, before it is recorded.

    Amount must be strictly positive; the sign lives in ``type``.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=200)
    amount: Decimal = Field(
        ...,
        gt=0,
        max_digits=18,
        decimal_places=2,
        description="Positive amount, two fractional digits at most"
    )
    type: TransactionType
    date: date
    financial_account_id: int
    category_id: int

    @field_validator('amount')
    @classmethod
    def reject_non_finite(cls, v: Decimal) -> Decimal:
        if not v.is_finite():
            raise ValueError("Amount must be a finite number")
        return v


# =============================================================================
# READ MODELS - derived views, never stored
# =============================================================================

class TransactionView(BaseModel):
    """A transaction with its category joined in for display."""

    id: int
    title: str
    amount: Decimal
    type: TransactionType
    date: date
    financial_account_id: int
    category_id: int
    created_at: datetime
    category: Category

    @classmethod
    def build(cls, transaction: Transaction, category: Category) -> "TransactionView":
        return cls(**transaction.model_dump(), category=category)


class MonthlySummary(BaseModel):
    """Income and expense totals for one calendar month."""

    month: str
    total_income: Decimal
    total_expenses: Decimal
    net: Decimal


class CategorySpending(BaseModel):
    """Sum of a month's transactions for one category."""

    category_id: int
    category_name: str
    type: TransactionType
    amount: Decimal


# =============================================================================
# MONTH WINDOW
# =============================================================================

_YEAR_MONTH_PATTERN = re.compile(r"(\d{4})-(\d{2})")


class YearMonth(BaseModel):
    """
    A calendar month, written ``YYYY-MM``.

    All monthly aggregation uses the half-open window
    ``[start, end)``: the last day of a month belongs to that month and
    never to the next one.
    """
    model_config = ConfigDict(frozen=True)

    year: int = Field(..., ge=1, le=9998)
    month: int = Field(..., ge=1, le=12)

    @classmethod
    def parse(cls, value: str) -> "YearMonth":
        """Parse ``YYYY-MM``. Raises ValueError on anything else."""
        match = _YEAR_MONTH_PATTERN.fullmatch(value) if isinstance(value, str) else None
        if not match:
            raise ValueError(f"Month must look like YYYY-MM, got {value!r}")
        return cls(year=int(match.group(1)), month=int(match.group(2)))

    @classmethod
    def of(cls, day: date) -> "YearMonth":
        return cls(year=day.year, month=day.month)

    @property
    def start(self) -> date:
        """First day of the month (inclusive)."""
        return date(self.year, self.month, 1)

    @property
    def end(self) -> date:
        """First day of the next month (exclusive)."""
        if self.month == 12:
            return date(self.year + 1, 1, 1)
        return date(self.year, self.month + 1, 1)

    def contains(self, day: date) -> bool:
        return self.start <= day < self.end

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"
