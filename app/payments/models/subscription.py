"""
Subscription model mirroring Dodo Payments subscriptions.

A Subscription row is created the first time a subscription.active webhook
arrives for a known customer. Later lifecycle webhooks (on_hold, renewed,
plan_changed, cancelled, failed, expired) only update it; rows are never
deleted by the webhook path.

Usage:
    from payments.models import Subscription
    from payments.state_machines import SubscriptionStatus

    subscription = Subscription.objects.get(dodo_subscription_id="sub_xxx")
    if subscription.is_active:
        ...
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.models import BaseModel
from core.model_mixins import MetadataMixin, UUIDPrimaryKeyMixin

from payments.state_machines import SubscriptionStatus


class Subscription(UUIDPrimaryKeyMixin, MetadataMixin, BaseModel):
    """
    Tracks a recurring subscription as reported by Dodo Payments.

    Status Flow:
        PENDING -> ACTIVE (subscription.active)
        ACTIVE -> ACTIVE (subscription.renewed, new period)
        ACTIVE -> ON_HOLD / CANCELLED / FAILED / EXPIRED
        ACTIVE -> <reported status> (subscription.plan_changed)

    Fields:
        user: Owner of the subscription (copied from the customer)
        customer: Customer paying for the subscription
        dodo_subscription_id: Dodo subscription ID, unique
        product_id: Dodo product ID
        price_id: Dodo price ID
        status: Current status
        current_period_start/end: Current billing period
        cancel_at_period_end: Whether cancellation is scheduled
        metadata: Provider metadata, replaced on plan change
    """

    # ==========================================================================
    # Relationships
    # ==========================================================================

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="billing_subscriptions",
        help_text="User who owns this subscription",
    )

    customer = models.ForeignKey(
        "payments.Customer",
        on_delete=models.CASCADE,
        related_name="subscriptions",
        help_text="Customer paying for this subscription",
    )

    # ==========================================================================
    # Provider Identifiers
    # ==========================================================================

    dodo_subscription_id = models.CharField(
        max_length=255,
        unique=True,
        help_text="Dodo Payments subscription ID",
    )

    product_id = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Dodo product ID",
    )

    price_id = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Dodo price ID",
    )

    # ==========================================================================
    # Status & Billing Period
    # ==========================================================================

    status = models.CharField(
        max_length=30,
        choices=SubscriptionStatus.choices,
        default=SubscriptionStatus.ACTIVE,
        db_index=True,
        help_text="Current subscription status",
    )

    current_period_start = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Start of current billing period",
    )

    current_period_end = models.DateTimeField(
        null=True,
        blank=True,
        help_text="End of current billing period",
    )

    cancel_at_period_end = models.BooleanField(
        default=False,
        help_text="Whether subscription will cancel at period end",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Subscription"
        verbose_name_plural = "Subscriptions"
        indexes = [
            models.Index(fields=["customer", "status"], name="payments_su_custome_5c1f0a_idx"),
        ]

    def __str__(self) -> str:
        return f"Subscription({self.dodo_subscription_id}, {self.status})"

    @property
    def is_active(self) -> bool:
        """Check if subscription is currently active."""
        return self.status == SubscriptionStatus.ACTIVE
