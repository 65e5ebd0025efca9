"""
Base exception classes for application-wide error handling.

Every domain error carries a human-readable message, a machine-readable
error code and optional structured details. Webhook processing records the
message on the stored event, so the format here is what operators see when
they inspect failed events in the admin.

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ValidationError - Malformed input (e.g. a webhook payload missing ids)
    ├── NotFoundError - A record that must already exist is missing
    └── ExternalServiceError - Third-party service failures

Usage:
    from core.exceptions import NotFoundError

    raise NotFoundError(
        "Subscription sub_123 not found",
        details={"dodo_subscription_id": "sub_123"},
    )

    try:
        ...
    except BaseApplicationError as e:
        return JsonResponse(e.to_dict(), status=400)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (ids, field errors, etc.)
    """

    default_error_code: str = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize the exception.

        Args:
            message: Human-readable error description
            error_code: Machine-readable error code (defaults to class default)
            details: Additional error context
        """
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Example:
            {
                "error": "Subscription not found",
                "error_code": "SUBSCRIPTION_NOT_FOUND",
                "details": {"dodo_subscription_id": "sub_123"}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when input does not have the expected shape.

    Example:
        if not payment_id:
            raise ValidationError(
                "Webhook payload has no payment id",
                details={"event_type": event_type},
            )
    """

    default_error_code: str = "VALIDATION_ERROR"


class NotFoundError(BaseApplicationError):
    """
    Raised when a record that must already exist cannot be found.

    Lookups that may legitimately miss (customer by provider id) return
    None instead; use this for updates that require an existing row.
    """

    default_error_code: str = "NOT_FOUND"


class ExternalServiceError(BaseApplicationError):
    """
    Raised when an external service call fails.

    Use for:
    - Payment provider API failures
    - Network timeouts
    - Unexpected response shapes from a provider

    Note:
        Log the original error for debugging but don't expose
        internal details to webhook senders.
    """

    default_error_code: str = "EXTERNAL_SERVICE_ERROR"
