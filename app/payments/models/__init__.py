"""
Payment domain models.

This module contains all billing models:
- Customer: Local mirror of a Dodo customer, linked to a user
- Subscription: Recurring subscription mirrored from Dodo
- Payment: One-off payment mirrored from Dodo
- PaymentEvent: Append-only audit trail of payment webhooks
- WebhookEvent: Dodo webhook event log for idempotent processing
"""

from payments.models.customer import Customer
from payments.models.payment import Payment, PaymentEvent
from payments.models.subscription import Subscription
from payments.models.webhook_event import WebhookEvent

__all__ = [
    "Customer",
    "Payment",
    "PaymentEvent",
    "Subscription",
    "WebhookEvent",
]
