"""
Webhook event handlers for Dodo Payments events.

This module provides the handler registry and the reconciliation handlers
for subscription, refund, dispute and license key events. Payment events
are handled in payments.webhooks.payment_handlers, which registers itself
here when imported.

The handler registry allows:
- Clean separation between event routing and handling
- Easy extension for new event types
- An audit-only fallthrough for event types nobody handles

Handlers take the parsed event envelope and a HandlerContext carrying the
collaborators they may use, and return a result dict with at least a
"message". Errors a handler can recover from become a message; anything
else propagates and leaves the stored event unprocessed.

Usage:
    from payments.webhooks.handlers import dispatch_webhook, register_handler

    @register_handler("custom.event")
    def handle_custom_event(event: dict, context: HandlerContext) -> dict:
        return {"message": "Custom event recorded"}

    result = dispatch_webhook(event, context)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Callable

from django.db import DatabaseError, transaction

from payments.state_machines import SubscriptionStatus

if TYPE_CHECKING:
    from payments.adapters import DodoAdapter
    from payments.repositories import StateRepository


logger = logging.getLogger(__name__)


UNHANDLED_EVENT_MESSAGE = "Event logged but not processed"


@dataclass
class HandlerContext:
    """Collaborators available to webhook handlers."""

    repository: StateRepository
    provider: DodoAdapter


# =============================================================================
# Handler Registry
# =============================================================================


# Maps event type strings to handler functions
WEBHOOK_HANDLERS: dict[str, Callable[[dict, HandlerContext], dict]] = {}


def register_handler(*event_types: str) -> Callable:
    """
    Decorator to register a webhook event handler for one or more types.

    Usage:
        @register_handler("refund.succeeded")
        def handle_refund_succeeded(event, context):
            ...

    Args:
        event_types: Dodo event types (e.g., "subscription.active")
    """

    def decorator(func: Callable[[dict, HandlerContext], dict]) -> Callable:
        for event_type in event_types:
            WEBHOOK_HANDLERS[event_type] = func
            logger.debug(f"Registered webhook handler for {event_type}")
        return func

    return decorator


def dispatch_webhook(event: dict[str, Any], context: HandlerContext) -> dict[str, Any]:
    """
    Dispatch a webhook event to the handler for its type.

    Event types match exactly. Unknown types are not an error: the event
    is already stored, so it is acknowledged as logged-only.

    Returns:
        The handler's result dict
    """
    event_type = event.get("type")
    handler = WEBHOOK_HANDLERS.get(event_type)

    if not handler:
        logger.info(
            f"No handler registered for event type: {event_type}",
            extra={"dodo_event_id": event.get("id")},
        )
        return {"message": UNHANDLED_EVENT_MESSAGE}

    logger.info(
        f"Dispatching {event_type} to handler",
        extra={"dodo_event_id": event.get("id")},
    )
    return handler(event, context)


# =============================================================================
# Helpers
# =============================================================================


def get_event_object(event: dict[str, Any]) -> dict[str, Any]:
    """Return event.data.object, or an empty dict if absent."""
    data = event.get("data") or {}
    obj = data.get("object") if isinstance(data, dict) else None
    return obj if isinstance(obj, dict) else {}


def from_epoch(value: int | float | None) -> datetime | None:
    """Convert epoch seconds to an aware UTC datetime."""
    if value is None:
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc)


# =============================================================================
# Subscription Handlers
# =============================================================================


@register_handler("subscription.active")
def handle_subscription_active(event: dict[str, Any], context: HandlerContext) -> dict[str, Any]:
    """
    Create or update the local subscription when it becomes active.

    This is the only subscription handler that creates rows, and it only
    does so for a customer we already know. Lookup and save errors are
    reported in the result instead of failing the event.
    """
    subscription = get_event_object(event)
    dodo_subscription_id = subscription.get("id")

    logger.info(
        "Processing subscription.active",
        extra={"dodo_subscription_id": dodo_subscription_id},
    )

    try:
        customer = context.repository.get_customer_by_dodo_id(subscription.get("customer"))

        if not customer:
            logger.warning(
                "Customer not found for subscription",
                extra={
                    "dodo_subscription_id": dodo_subscription_id,
                    "dodo_customer_id": subscription.get("customer"),
                },
            )
            return {"message": "Customer not found"}

        # Savepoint so a failed save leaves the surrounding transaction usable
        with transaction.atomic():
            context.repository.upsert_subscription(
                dodo_subscription_id,
                customer=customer,
                product_id=subscription.get("product") or "",
                price_id=subscription.get("price") or "",
                status=SubscriptionStatus.ACTIVE,
                current_period_start=from_epoch(subscription.get("current_period_start")),
                current_period_end=from_epoch(subscription.get("current_period_end")),
                cancel_at_period_end=bool(subscription.get("cancel_at_period_end")),
                metadata=subscription.get("metadata") or {},
            )
    except (DatabaseError, ValueError, TypeError, OverflowError):
        logger.exception(
            "Error handling subscription activation",
            extra={"dodo_subscription_id": dodo_subscription_id},
        )
        return {"message": "Error processing subscription activation"}

    return {"message": "Subscription activated and saved"}


@register_handler("subscription.on_hold")
def handle_subscription_on_hold(event: dict[str, Any], context: HandlerContext) -> dict[str, Any]:
    """Mark the subscription as on hold."""
    subscription = get_event_object(event)
    logger.info("Subscription on hold", extra={"dodo_subscription_id": subscription.get("id")})

    context.repository.update_subscription(
        subscription.get("id"), status=SubscriptionStatus.ON_HOLD
    )
    return {"message": "Subscription marked as on hold"}


@register_handler("subscription.renewed")
def handle_subscription_renewed(event: dict[str, Any], context: HandlerContext) -> dict[str, Any]:
    """Reactivate the subscription and move it to the new billing period."""
    subscription = get_event_object(event)
    logger.info("Subscription renewed", extra={"dodo_subscription_id": subscription.get("id")})

    context.repository.update_subscription(
        subscription.get("id"),
        status=SubscriptionStatus.ACTIVE,
        current_period_start=from_epoch(subscription.get("current_period_start")),
        current_period_end=from_epoch(subscription.get("current_period_end")),
    )
    return {"message": "Subscription renewal recorded"}


@register_handler("subscription.plan_changed")
def handle_subscription_plan_changed(
    event: dict[str, Any], context: HandlerContext
) -> dict[str, Any]:
    """Copy the status Dodo reports and replace the metadata."""
    subscription = get_event_object(event)
    logger.info(
        "Subscription plan changed",
        extra={
            "dodo_subscription_id": subscription.get("id"),
            "status": subscription.get("status"),
        },
    )

    context.repository.update_subscription(
        subscription.get("id"),
        status=subscription.get("status"),
        metadata=subscription.get("metadata") or {},
    )
    return {"message": "Subscription plan change recorded"}


@register_handler("subscription.cancelled")
def handle_subscription_cancelled(
    event: dict[str, Any], context: HandlerContext
) -> dict[str, Any]:
    """Mark the subscription cancelled at period end."""
    subscription = get_event_object(event)
    logger.info("Subscription cancelled", extra={"dodo_subscription_id": subscription.get("id")})

    context.repository.update_subscription(
        subscription.get("id"),
        status=SubscriptionStatus.CANCELLED,
        cancel_at_period_end=True,
    )
    return {"message": "Subscription cancellation recorded"}


@register_handler("subscription.failed")
def handle_subscription_failed(event: dict[str, Any], context: HandlerContext) -> dict[str, Any]:
    """Mark the subscription as failed."""
    subscription = get_event_object(event)
    logger.info("Subscription failed", extra={"dodo_subscription_id": subscription.get("id")})

    context.repository.update_subscription(
        subscription.get("id"), status=SubscriptionStatus.FAILED
    )
    return {"message": "Subscription failure recorded"}


@register_handler("subscription.expired")
def handle_subscription_expired(event: dict[str, Any], context: HandlerContext) -> dict[str, Any]:
    """Mark the subscription as expired."""
    subscription = get_event_object(event)
    logger.info("Subscription expired", extra={"dodo_subscription_id": subscription.get("id")})

    context.repository.update_subscription(
        subscription.get("id"), status=SubscriptionStatus.EXPIRED
    )
    return {"message": "Subscription expiration recorded"}


# =============================================================================
# Refund, Dispute & License Key Handlers
# =============================================================================
# No local state yet; these keep the events visible in logs.


@register_handler("refund.succeeded")
def handle_refund_succeeded(event: dict[str, Any], context: HandlerContext) -> dict[str, Any]:
    logger.info("Refund succeeded", extra={"dodo_refund_id": get_event_object(event).get("id")})
    return {"message": "Refund success recorded"}


@register_handler("refund.failed")
def handle_refund_failed(event: dict[str, Any], context: HandlerContext) -> dict[str, Any]:
    logger.info("Refund failed", extra={"dodo_refund_id": get_event_object(event).get("id")})
    return {"message": "Refund failure recorded"}


@register_handler(
    "dispute.opened",
    "dispute.expired",
    "dispute.accepted",
    "dispute.cancelled",
    "dispute.challenged",
    "dispute.won",
    "dispute.lost",
)
def handle_dispute_event(event: dict[str, Any], context: HandlerContext) -> dict[str, Any]:
    """Record any dispute lifecycle event; the subtype only goes in the message."""
    logger.info(
        f"Dispute event: {event.get('type')}",
        extra={"dodo_dispute_id": get_event_object(event).get("id")},
    )
    return {"message": f"Dispute {event.get('type')} recorded"}


@register_handler("license_key.created")
def handle_license_key_created(event: dict[str, Any], context: HandlerContext) -> dict[str, Any]:
    logger.info(
        "License key created",
        extra={"dodo_license_key_id": get_event_object(event).get("id")},
    )
    return {"message": "License key creation recorded"}


# Registers the payment.* handlers
from payments.webhooks import payment_handlers  # noqa: E402, F401
