"""
Payment-specific exceptions for webhook reconciliation.

This module provides a hierarchy of exceptions for payment operations,
covering both webhook reconciliation errors and Dodo Payments API errors.

Exception Hierarchy:
    PaymentError (base for payment domain)
    ├── InvalidWebhookPayloadError - Webhook body missing required fields (ValidationError)
    ├── SubscriptionNotFoundError - State update for an unknown subscription (NotFoundError)
    └── PaymentProcessingError - Payment provider failures (ExternalServiceError)
        └── DodoError - Base for all Dodo Payments API errors
            ├── DodoNotFoundError - Resource does not exist (permanent)
            ├── DodoInvalidRequestError - Invalid request params (permanent)
            ├── DodoAuthenticationError - Bad API key (permanent)
            ├── DodoInvalidResponseError - Unexpected response shape (permanent)
            ├── DodoRateLimitError - Rate limited (transient, retry)
            └── DodoAPIUnavailableError - Network/server failure (transient, retry)

Usage:
    from payments.exceptions import DodoError, SubscriptionNotFoundError

    try:
        details = adapter.get_payment_details(payment_id)
    except DodoError as e:
        if e.is_retryable:
            ...
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import (
    BaseApplicationError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)

if TYPE_CHECKING:
    from typing import Any


# =============================================================================
# Payment Domain Exceptions
# =============================================================================


class PaymentError(BaseApplicationError):
    """
    Base exception for all payment operations.

    All payment-specific exceptions inherit from this class,
    which itself inherits from BaseApplicationError for
    consistent error responses.
    """

    default_error_code: str = "PAYMENT_ERROR"


class InvalidWebhookPayloadError(PaymentError, ValidationError):
    """
    Raised when a webhook event lacks the fields a handler needs.

    Example:
        if not payment_id:
            raise InvalidWebhookPayloadError(
                "Payment webhook has no payment id",
                details={"event_type": event_type},
            )
    """

    default_error_code: str = "INVALID_WEBHOOK_PAYLOAD"


class SubscriptionNotFoundError(PaymentError, NotFoundError):
    """
    Raised when a lifecycle webhook targets a subscription we never stored.

    Usually the subscription.active event has not arrived yet; the failed
    event is replayed later by the retry task.
    """

    default_error_code: str = "SUBSCRIPTION_NOT_FOUND"


class PaymentProcessingError(PaymentError, ExternalServiceError):
    """Raised when talking to the payment provider fails."""

    default_error_code: str = "PAYMENT_PROCESSING_ERROR"


# =============================================================================
# Dodo-Specific Exceptions
# =============================================================================


class DodoError(PaymentProcessingError):
    """
    Base exception for all Dodo Payments API errors.

    Use is_retryable to determine retry behavior:
    - True: Transient error, safe to retry with backoff
    - False: Permanent error, do not retry
    """

    default_error_code: str = "DODO_ERROR"
    is_retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if status_code:
            details["status_code"] = status_code
        super().__init__(message, error_code=error_code, details=details)
        self.status_code = status_code


class DodoNotFoundError(DodoError):
    """The requested resource does not exist at Dodo."""

    default_error_code: str = "DODO_NOT_FOUND"


class DodoInvalidRequestError(DodoError):
    """Dodo rejected the request parameters."""

    default_error_code: str = "DODO_INVALID_REQUEST"


class DodoAuthenticationError(DodoError):
    """
    Dodo rejected the API key.

    This is an operational issue (wrong or revoked key), not something a
    retry will fix.
    """

    default_error_code: str = "DODO_AUTHENTICATION_ERROR"


class DodoInvalidResponseError(DodoError):
    """A Dodo response did not have the shape we decode."""

    default_error_code: str = "DODO_INVALID_RESPONSE"


class DodoRateLimitError(DodoError):
    """Dodo rate limited the request."""

    default_error_code: str = "DODO_RATE_LIMITED"
    is_retryable: bool = True


class DodoAPIUnavailableError(DodoError):
    """Dodo could not be reached or returned a server error."""

    default_error_code: str = "DODO_API_UNAVAILABLE"
    is_retryable: bool = True
