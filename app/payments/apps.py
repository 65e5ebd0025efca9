"""
Payments app configuration.

This app reconciles Dodo Payments webhooks with local billing records:
- Customer, Subscription and Payment mirrors keyed by Dodo ids
- Webhook event log with replay of failed events
"""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    """Configuration for the payments application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payments"

    def ready(self) -> None:
        # Populate the handler registry
        from payments.webhooks import handlers  # noqa: F401
