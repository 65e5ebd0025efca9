"""
Payment webhook processing.

All payment.* events are routed to process_payment_webhook, which decodes
the event once into PaymentEventData and branches on the outcome:

    succeeded / completed  -> record success, send payment_succeeded
    failed / declined      -> record failure, send payment_failed
    pending / cancelled    -> record the status only
    anything else          -> audit row only (processing included)

Success and failure both try to fetch the authoritative payment from Dodo
first. That enrichment is best effort: if it fails, processing continues
with the data carried by the event.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from payments.exceptions import DodoError, InvalidWebhookPayloadError
from payments.models.payment import DEFAULT_CURRENCY
from payments.signals import payment_failed, payment_succeeded, send_robust_and_log
from payments.state_machines import PaymentStatus
from payments.webhooks.handlers import HandlerContext, get_event_object, register_handler

if TYPE_CHECKING:
    from payments.adapters import PaymentDetails
    from payments.models import Customer


logger = logging.getLogger(__name__)


SUCCESS_EVENTS = ("payment.succeeded", "payment.completed")
FAILURE_EVENTS = ("payment.failed", "payment.declined")
STATUS_EVENTS = {
    "payment.pending": PaymentStatus.PENDING,
    "payment.cancelled": PaymentStatus.CANCELLED,
}
# Routed here so they are audited, but they never touch the payment row
AUDIT_ONLY_EVENTS = ("payment.processing",)

DEFAULT_FAILURE_REASON = "Unknown error"


@dataclass
class PaymentEventData:
    """
    The fields of a payment webhook the handlers use.

    Attributes:
        event_type: Webhook event type
        payment_id: Dodo payment ID
        status: Status carried by the event, if any
        amount: Amount in smallest currency unit, if carried
        currency: Currency code, if carried
        customer_id: Dodo customer ID, if carried
        failure_reason: Failure reason, if carried
        metadata: Metadata carried by the event
    """

    event_type: str
    payment_id: str
    status: str | None = None
    amount: int | None = None
    currency: str | None = None
    customer_id: str | None = None
    failure_reason: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_event(cls, event: dict[str, Any]) -> PaymentEventData:
        """
        Decode a payment webhook envelope.

        Raises:
            InvalidWebhookPayloadError: The event has no payment id
        """
        payment = get_event_object(event)
        payment_id = payment.get("payment_id") or payment.get("id")
        if not payment_id:
            raise InvalidWebhookPayloadError(
                "Payment webhook has no payment id",
                details={"event_type": event.get("type"), "dodo_event_id": event.get("id")},
            )

        customer_id = payment.get("customer_id")
        if not customer_id and isinstance(payment.get("customer"), dict):
            customer_id = payment["customer"].get("customer_id")

        amount = payment.get("amount")
        if amount is None:
            amount = payment.get("total_amount")

        return cls(
            event_type=event.get("type", ""),
            payment_id=payment_id,
            status=payment.get("status"),
            amount=amount,
            currency=payment.get("currency"),
            customer_id=customer_id,
            failure_reason=payment.get("failure_reason"),
            metadata=payment.get("metadata") or {},
        )


# =============================================================================
# Entry Point
# =============================================================================


@register_handler(*SUCCESS_EVENTS, *FAILURE_EVENTS, *STATUS_EVENTS, *AUDIT_ONLY_EVENTS)
def process_payment_webhook(event: dict[str, Any], context: HandlerContext) -> dict[str, Any]:
    """Route a payment webhook to the handler for its outcome."""
    event_data = PaymentEventData.from_event(event)

    logger.info(
        f"Processing payment webhook: {event_data.event_type}",
        extra={"dodo_payment_id": event_data.payment_id},
    )

    if event_data.event_type in SUCCESS_EVENTS:
        return handle_payment_success(event_data, context)
    if event_data.event_type in FAILURE_EVENTS:
        return handle_payment_failure(event_data, context)
    if event_data.event_type in STATUS_EVENTS:
        event_data.status = STATUS_EVENTS[event_data.event_type]
        return handle_payment_status_update(event_data, context)

    if event_data.event_type not in AUDIT_ONLY_EVENTS:
        logger.warning(
            f"Unhandled payment webhook type: {event_data.event_type}",
            extra={"dodo_payment_id": event_data.payment_id},
        )
    context.repository.record_payment_event(
        dodo_payment_id=event_data.payment_id,
        event_type=event_data.event_type,
        status=event_data.status or "unknown",
        amount=event_data.amount or 0,
        currency=event_data.currency or DEFAULT_CURRENCY,
        dodo_customer_id=event_data.customer_id,
        metadata=event_data.metadata,
    )
    return {"message": "Payment event recorded"}


# =============================================================================
# Outcome Handlers
# =============================================================================


def fetch_payment_details(
    event_data: PaymentEventData, context: HandlerContext
) -> PaymentDetails | None:
    """Fetch the payment from Dodo, or None if the call fails."""
    try:
        return context.provider.get_payment_details(event_data.payment_id)
    except DodoError as e:
        logger.warning(
            "Could not fetch payment details, using event data",
            extra={
                "dodo_payment_id": event_data.payment_id,
                "error_code": e.error_code,
                "error": e.message,
            },
        )
        return None


def _resolve_customer(
    details: PaymentDetails | None, event_data: PaymentEventData, context: HandlerContext
) -> tuple[str | None, Customer | None]:
    dodo_customer_id = details.customer_id if details else event_data.customer_id
    return dodo_customer_id, context.repository.get_customer_by_dodo_id(dodo_customer_id)


def handle_payment_success(event_data: PaymentEventData, context: HandlerContext) -> dict[str, Any]:
    """Record a succeeded payment and notify receivers."""
    details = fetch_payment_details(event_data, context)
    dodo_customer_id, customer = _resolve_customer(details, event_data, context)

    amount = details.total_amount if details else event_data.amount
    currency = (details.currency if details else event_data.currency) or DEFAULT_CURRENCY
    metadata = details.metadata if details else event_data.metadata

    payment, _ = context.repository.upsert_payment(
        event_data.payment_id,
        status=PaymentStatus.SUCCEEDED,
        customer=customer,
        dodo_customer_id=dodo_customer_id,
        amount=amount,
        currency=currency,
        product_ids=details.product_ids if details else None,
        metadata=metadata,
    )

    context.repository.record_payment_event(
        dodo_payment_id=event_data.payment_id,
        event_type=event_data.event_type,
        status=PaymentStatus.SUCCEEDED,
        amount=amount or 0,
        currency=currency,
        customer=customer,
        dodo_customer_id=dodo_customer_id,
        metadata=metadata,
    )

    send_robust_and_log(
        payment_succeeded,
        sender=process_payment_webhook,
        payment=payment,
        customer=customer,
        details=details,
    )

    return {"message": "Payment success recorded", "enriched": details is not None}


def handle_payment_failure(event_data: PaymentEventData, context: HandlerContext) -> dict[str, Any]:
    """Record a failed payment, creating a minimal row if none exists."""
    details = fetch_payment_details(event_data, context)
    dodo_customer_id, customer = _resolve_customer(details, event_data, context)

    amount = (details.total_amount if details else event_data.amount) or 0
    currency = (details.currency if details else event_data.currency) or DEFAULT_CURRENCY
    metadata = details.metadata if details else event_data.metadata
    failure_reason = event_data.failure_reason or DEFAULT_FAILURE_REASON

    payment, _ = context.repository.upsert_payment(
        event_data.payment_id,
        status=PaymentStatus.FAILED,
        customer=customer,
        dodo_customer_id=dodo_customer_id,
        amount=amount,
        currency=currency,
        failure_reason=failure_reason,
        metadata=metadata,
    )

    context.repository.record_payment_event(
        dodo_payment_id=event_data.payment_id,
        event_type=event_data.event_type,
        status=PaymentStatus.FAILED,
        amount=amount,
        currency=currency,
        customer=customer,
        dodo_customer_id=dodo_customer_id,
        failure_reason=failure_reason,
        metadata=metadata,
    )

    send_robust_and_log(
        payment_failed,
        sender=process_payment_webhook,
        payment=payment,
        customer=customer,
        failure_reason=failure_reason,
    )

    return {"message": "Payment failure recorded", "enriched": details is not None}


def handle_payment_status_update(
    event_data: PaymentEventData, context: HandlerContext
) -> dict[str, Any]:
    """
    Record an intermediate status (pending, cancelled).

    Only the status is written to the payment row. The customer is not
    looked up; the audit row keeps only the Dodo customer id from the event.
    """
    context.repository.upsert_payment(
        event_data.payment_id,
        status=event_data.status,
    )

    context.repository.record_payment_event(
        dodo_payment_id=event_data.payment_id,
        event_type=event_data.event_type,
        status=event_data.status,
        amount=event_data.amount or 0,
        currency=event_data.currency or DEFAULT_CURRENCY,
        customer=None,
        dodo_customer_id=event_data.customer_id,
        metadata=event_data.metadata,
    )

    return {"message": f"Payment {str(event_data.status)} status recorded"}
