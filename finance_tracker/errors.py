"""
Error Taxonomy

Every failure the tracker reports to the presentation shell is one of
these types. Each carries a stable ``code`` so the shell can special-case
some of them (the protected-resource message in particular) without
parsing text.
"""

from typing import Optional


class FinanceTrackerError(Exception):
    """Base class for all tracker errors."""

    code = "error"

    def __init__(self, message: str, *, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict:
        """Shape used by the shell when rendering a failure."""
        result = {"code": self.code, "message": self.message}
        if self.field:
            result["field"] = self.field
        return result


class ValidationError(FinanceTrackerError):
    """Malformed input: bad month, empty name, invalid type or amount."""

    code = "validation_error"


class NotFoundError(FinanceTrackerError):
    """Referenced entity does not exist."""

    code = "not_found"


class AuthorizationError(FinanceTrackerError):
    """Entity exists but the caller does not own it."""

    code = "forbidden"


class ProtectedResourceError(FinanceTrackerError):
    """Deletion of a protected account or fallback category."""

    code = "protected_resource"


class AuthenticationError(FinanceTrackerError):
    """No identity could be resolved from the request."""

    code = "unauthenticated"


class StoreError(FinanceTrackerError):
    """Base exception for storage operations."""

    code = "store_error"


class StoreUnavailableError(StoreError):
    """Underlying persistence failed. Safe to retry."""

    code = "store_unavailable"
    retryable = True


class DuplicateError(StoreError):
    """Attempted to insert a duplicate entity."""

    code = "duplicate"


def from_pydantic(exc, default_field: Optional[str] = None) -> ValidationError:
    """
    Translate a pydantic ValidationError into ours.

    Only the first reported problem is kept; the shell shows one message.
    """
    errors = exc.errors()
    if not errors:
        return ValidationError(str(exc), field=default_field)
    first = errors[0]
    location = first.get("loc") or ()
    field = str(location[0]) if location else default_field
    message = first.get("msg", "Invalid value")
    if field:
        message = f"{field}: {message}"
    return ValidationError(message, field=field)
