"""
Webhook handling for payment events from Dodo Payments.

This package provides the webhook endpoint, signature verification, the
event store, the handler registry and the processing pipeline. Events are
verified, stored idempotently and reconciled synchronously; failed events
are replayed by Celery tasks.

Usage:
    # In urls.py
    from payments.webhooks.views import dodo_webhook

    urlpatterns = [
        path("webhooks/dodo/", dodo_webhook, name="dodo_webhook"),
    ]
"""

from payments.webhooks.handlers import dispatch_webhook, register_handler
from payments.webhooks.views import dodo_webhook

__all__ = [
    "dispatch_webhook",
    "dodo_webhook",
    "register_handler",
]
