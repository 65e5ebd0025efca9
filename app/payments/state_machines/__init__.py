"""
Status enums for payment models.

This module defines the status choices shared by models, handlers and admin.
"""

from payments.state_machines.states import (
    PaymentStatus,
    SubscriptionStatus,
    WebhookEventStatus,
)

__all__ = [
    "PaymentStatus",
    "SubscriptionStatus",
    "WebhookEventStatus",
]
