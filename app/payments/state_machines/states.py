"""
Status enums for payment models.

These are Django TextChoices for database storage and admin integration.
Statuses are driven by provider events rather than local transitions, so a
webhook may move a record to any state the provider reports.

Lifecycles Overview:

Subscription:
    pending → active → on_hold / cancelled / failed / expired
    active → active (renewed: new billing period)
    active → <provider status> (plan_changed)

Payment:
    pending → processing → succeeded / failed
    pending / processing → cancelled

WebhookEvent:
    pending → processed
    pending → failed → processed (replay)
    failed → dead_letter (retries exhausted)
"""

from django.db import models


class SubscriptionStatus(models.TextChoices):
    """
    Status of a locally mirrored Dodo subscription.

    Only ACTIVE is set by the activation handler on creation; every other
    value arrives through a later lifecycle event for an existing row.
    """

    PENDING = "pending", "Pending"
    ACTIVE = "active", "Active"
    ON_HOLD = "on_hold", "On Hold"
    CANCELLED = "cancelled", "Cancelled"
    FAILED = "failed", "Failed"
    EXPIRED = "expired", "Expired"


class PaymentStatus(models.TextChoices):
    """
    Status of a locally mirrored Dodo payment.

    Terminal states: SUCCEEDED, FAILED, CANCELLED
    """

    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    SUCCEEDED = "succeeded", "Succeeded"
    FAILED = "failed", "Failed"
    CANCELLED = "cancelled", "Cancelled"


class WebhookEventStatus(models.TextChoices):
    """
    Processing status for WebhookEvent.

    Tracks the lifecycle of webhook event processing for idempotency.

    State Flow:
        PENDING → PROCESSED
        PENDING → FAILED → PROCESSED (successful replay)
        FAILED → DEAD_LETTER (replay attempts exhausted)
    """

    PENDING = "pending", "Pending"
    PROCESSED = "processed", "Processed"
    FAILED = "failed", "Failed"
    DEAD_LETTER = "dead_letter", "Dead Letter"


__all__ = [
    "PaymentStatus",
    "SubscriptionStatus",
    "WebhookEventStatus",
]
