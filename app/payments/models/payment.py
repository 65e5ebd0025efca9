"""
Payment and PaymentEvent models.

Payment mirrors a Dodo payment and is upserted by dodo_payment_id: a
failure webhook may arrive before any local record exists, in which case a
minimal row is created and enriched by later events.

PaymentEvent is the append-only audit trail written for every payment
webhook. It is never read for control flow.

Usage:
    from payments.models import Payment, PaymentEvent

    payment = Payment.objects.get(dodo_payment_id="pay_xxx")
    history = PaymentEvent.objects.filter(dodo_payment_id="pay_xxx")
"""

from __future__ import annotations

from django.db import models

from core.models import BaseModel
from core.model_mixins import MetadataMixin, UUIDPrimaryKeyMixin

from payments.state_machines import PaymentStatus


DEFAULT_CURRENCY = "USD"


class Payment(UUIDPrimaryKeyMixin, MetadataMixin, BaseModel):
    """
    A one-off payment as reported by Dodo Payments.

    Fields:
        customer: Local customer, null until the linkage resolves
        dodo_payment_id: Dodo payment ID, unique
        dodo_customer_id: Dodo customer ID as reported by the provider
        amount: Amount in smallest currency unit (e.g. cents)
        currency: ISO 4217 currency code
        status: Current payment status
        product_ids: Dodo product IDs in the payment's cart
        failure_reason: Reason reported for a failed payment
        metadata: Provider metadata
    """

    customer = models.ForeignKey(
        "payments.Customer",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="payments",
        help_text="Customer who made the payment",
    )

    dodo_payment_id = models.CharField(
        max_length=255,
        unique=True,
        help_text="Dodo Payments payment ID",
    )

    dodo_customer_id = models.CharField(
        max_length=255,
        blank=True,
        default="",
        db_index=True,
        help_text="Dodo customer ID reported with the payment",
    )

    amount = models.BigIntegerField(
        default=0,
        help_text="Amount in smallest currency unit (e.g., cents)",
    )

    currency = models.CharField(
        max_length=3,
        default=DEFAULT_CURRENCY,
        help_text="ISO 4217 currency code",
    )

    status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
        db_index=True,
        help_text="Current payment status",
    )

    product_ids = models.JSONField(
        default=list,
        blank=True,
        help_text="Dodo product IDs in the cart",
    )

    failure_reason = models.TextField(
        null=True,
        blank=True,
        help_text="Failure reason for failed payments",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Payment"
        verbose_name_plural = "Payments"

    def __str__(self) -> str:
        return f"Payment({self.dodo_payment_id}, {self.status})"

    @property
    def amount_display(self) -> str:
        """Format amount for display (e.g., '$50.00' for USD)."""
        symbol = "$" if self.currency.upper() == "USD" else f"{self.currency.upper()} "
        return f"{symbol}{self.amount / 100:.2f}"


class PaymentEvent(UUIDPrimaryKeyMixin, MetadataMixin, BaseModel):
    """
    Append-only audit row for a payment webhook.

    Kept in its own table so the webhook event log holds exactly one row
    per received event.

    Fields:
        dodo_payment_id: Dodo payment ID the event is about
        event_type: Webhook event type (e.g. 'payment.succeeded')
        status: Status recorded by the event ('unknown' when unreported)
        amount / currency: Amount as known when the event was processed
        customer: Local customer if it was resolved
        dodo_customer_id: Dodo customer ID if known
        failure_reason: Failure reason for failed payments
        processed_at: When the event was processed
    """

    dodo_payment_id = models.CharField(
        max_length=255,
        db_index=True,
        help_text="Dodo Payments payment ID",
    )

    event_type = models.CharField(
        max_length=100,
        help_text="Webhook event type",
    )

    status = models.CharField(
        max_length=30,
        help_text="Status recorded by this event",
    )

    amount = models.BigIntegerField(
        default=0,
        help_text="Amount in smallest currency unit",
    )

    currency = models.CharField(
        max_length=3,
        default=DEFAULT_CURRENCY,
        help_text="ISO 4217 currency code",
    )

    customer = models.ForeignKey(
        "payments.Customer",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="payment_events",
        help_text="Customer if resolved at processing time",
    )

    dodo_customer_id = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        help_text="Dodo customer ID if known",
    )

    failure_reason = models.TextField(
        null=True,
        blank=True,
        help_text="Failure reason for failed payments",
    )

    processed_at = models.DateTimeField(
        help_text="When this event was processed",
    )

    class Meta:
        db_table = "payment_audit_events"
        ordering = ["-processed_at"]
        verbose_name = "Payment Event"
        verbose_name_plural = "Payment Events"

    def __str__(self) -> str:
        return f"PaymentEvent({self.dodo_payment_id}, {self.event_type})"
