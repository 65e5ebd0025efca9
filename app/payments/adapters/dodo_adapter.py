"""
Dodo Payments API adapter.

This module provides the DodoAdapter class which encapsulates all Dodo
Payments API calls made by the webhook pipeline. Calls go through this
adapter to get consistent error handling, timeouts and observability.

Features:
- Configurable timeout and SDK-level retries with exponential backoff
- Automatic error translation to domain exceptions
- Structured logging with timing metrics
- A single decoding step per response (PaymentDetails.from_api)

Configuration (via settings):
- DODO_PAYMENTS_API_KEY: Dodo API key
- DODO_PAYMENTS_ENVIRONMENT: 'test_mode' or 'live_mode'
- DODO_API_TIMEOUT_SECONDS: API call timeout (default: 10)
- DODO_MAX_RETRIES: Retry attempts for transient failures (default: 3)

Usage:
    from payments.adapters import DodoAdapter

    adapter = DodoAdapter()
    details = adapter.get_payment_details("pay_xxx")
    print(details.total_amount, details.currency)
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import dodopayments
from django.conf import settings

from payments.exceptions import (
    DodoAPIUnavailableError,
    DodoAuthenticationError,
    DodoError,
    DodoInvalidRequestError,
    DodoInvalidResponseError,
    DodoNotFoundError,
    DodoRateLimitError,
)

if TYPE_CHECKING:
    from dodopayments import DodoPayments


# =============================================================================
# Data Types
# =============================================================================


@dataclass
class PaymentDetails:
    """
    Authoritative payment details fetched from Dodo.

    Attributes:
        payment_id: Dodo payment ID
        total_amount: Amount in smallest currency unit
        currency: ISO 4217 currency code
        status: Provider status (may be None while the payment is created)
        customer_id: Dodo customer ID
        product_ids: Product IDs in the payment's cart
        metadata: Attached metadata
        raw_response: Full response dict (for debugging)
    """

    payment_id: str
    total_amount: int
    currency: str
    customer_id: str
    status: str | None = None
    product_ids: list[str] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    raw_response: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> PaymentDetails:
        """
        Decode a Dodo payment resource.

        Raises:
            DodoInvalidResponseError: A required field is missing or has
                the wrong type
        """
        customer = data.get("customer")
        payment_id = data.get("payment_id")
        total_amount = data.get("total_amount")
        currency = data.get("currency")

        if not isinstance(payment_id, str) or not payment_id:
            raise DodoInvalidResponseError(
                "Payment response has no payment_id",
                details={"fields": sorted(data)},
            )
        if not isinstance(total_amount, int) or isinstance(total_amount, bool):
            raise DodoInvalidResponseError(
                "Payment response has no integer total_amount",
                details={"payment_id": payment_id},
            )
        if not isinstance(currency, str) or not currency:
            raise DodoInvalidResponseError(
                "Payment response has no currency",
                details={"payment_id": payment_id},
            )
        if not isinstance(customer, dict) or not isinstance(customer.get("customer_id"), str):
            raise DodoInvalidResponseError(
                "Payment response has no customer.customer_id",
                details={"payment_id": payment_id},
            )

        product_cart = data.get("product_cart") or []
        return cls(
            payment_id=payment_id,
            total_amount=total_amount,
            currency=currency,
            customer_id=customer["customer_id"],
            status=data.get("status"),
            product_ids=[item["product_id"] for item in product_cart if "product_id" in item],
            metadata=dict(data.get("metadata") or {}),
            raw_response=data,
        )


# =============================================================================
# Dodo Adapter
# =============================================================================


class DodoAdapter:
    """
    Adapter for Dodo Payments API operations.

    Instances hold an SDK client, constructed from settings unless one is
    passed in. The client is thread-safe, so one adapter is shared by all
    requests in a process.

    Usage:
        adapter = DodoAdapter()
        details = adapter.get_payment_details("pay_xxx")

        # In tests
        adapter = DodoAdapter(client=MagicMock())
    """

    def __init__(self, client: DodoPayments | None = None):
        self._client = client

    @property
    def client(self) -> DodoPayments:
        """Return the SDK client, creating it from settings on first use."""
        if self._client is None:
            self._client = dodopayments.DodoPayments(
                bearer_token=settings.DODO_PAYMENTS_API_KEY,
                environment=settings.DODO_PAYMENTS_ENVIRONMENT,
                timeout=settings.DODO_API_TIMEOUT_SECONDS,
                max_retries=settings.DODO_MAX_RETRIES,
            )
        return self._client

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Get logger for this adapter."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    # =========================================================================
    # Core Operations
    # =========================================================================

    def get_payment_details(self, payment_id: str) -> PaymentDetails:
        """
        Retrieve a payment by ID.

        Args:
            payment_id: Dodo payment ID

        Returns:
            PaymentDetails decoded from the response

        Raises:
            DodoNotFoundError: Payment does not exist
            DodoInvalidResponseError: Response has an unexpected shape
            DodoError: Any other API failure
        """
        logger = self.get_logger()

        log_context = {
            "operation": "get_payment_details",
            "dodo_payment_id": payment_id,
        }

        start_time = time.time()
        logger.debug("Starting Dodo operation", extra=log_context)

        try:
            payment = self.client.payments.retrieve(payment_id)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            self._handle_dodo_error(e, log_context, duration_ms)
            raise

        duration_ms = (time.time() - start_time) * 1000
        details = PaymentDetails.from_api(payment.to_dict())

        logger.debug(
            "Dodo operation completed",
            extra={
                **log_context,
                "status": details.status,
                "duration_ms": duration_ms,
            },
        )
        return details

    # =========================================================================
    # Error Handling
    # =========================================================================

    @classmethod
    def _handle_dodo_error(
        cls,
        error: Exception,
        log_context: dict[str, Any],
        duration_ms: float,
    ) -> None:
        """
        Translate Dodo SDK exceptions to domain exceptions.

        Raises:
            DodoNotFoundError: Resource not found
            DodoAuthenticationError: Invalid API key
            DodoInvalidRequestError: Invalid request parameters
            DodoRateLimitError: Rate limited
            DodoAPIUnavailableError: Network failure or server error
        """
        logger = cls.get_logger()
        log_context = {**log_context, "duration_ms": duration_ms}

        if isinstance(error, DodoError):
            raise error

        if isinstance(error, dodopayments.NotFoundError):
            logger.warning("Resource not found at Dodo", extra=log_context)
            raise DodoNotFoundError(str(error), status_code=error.status_code)

        elif isinstance(error, (dodopayments.AuthenticationError, dodopayments.PermissionDeniedError)):
            # Invalid API key - permanent, operational issue
            logger.critical(
                "Dodo authentication failed - check API key",
                extra=log_context,
            )
            raise DodoAuthenticationError(
                "Dodo authentication failed",
                status_code=error.status_code,
            )

        elif isinstance(error, dodopayments.RateLimitError):
            logger.warning("Rate limited by Dodo", extra=log_context)
            raise DodoRateLimitError(
                "Dodo rate limit exceeded. Please retry.",
                status_code=error.status_code,
            )

        elif isinstance(error, dodopayments.InternalServerError):
            logger.error("Dodo API error", extra=log_context, exc_info=True)
            raise DodoAPIUnavailableError(
                "Dodo service error. Please retry.",
                status_code=error.status_code,
            )

        elif isinstance(error, dodopayments.APIStatusError):
            logger.error(
                "Invalid request to Dodo",
                extra={**log_context, "status_code": error.status_code},
            )
            raise DodoInvalidRequestError(str(error), status_code=error.status_code)

        elif isinstance(error, dodopayments.APIConnectionError):
            # Includes timeouts
            logger.error("Connection error to Dodo", extra=log_context, exc_info=True)
            raise DodoAPIUnavailableError("Could not connect to Dodo. Please retry.")

        else:
            logger.error(
                f"Unexpected error from Dodo: {type(error).__name__}",
                extra=log_context,
                exc_info=True,
            )
            raise DodoAPIUnavailableError(f"Unexpected Dodo error: {error}")
