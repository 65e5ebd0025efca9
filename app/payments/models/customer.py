"""
Customer model linking local users to Dodo Payments customers.

Customers are created by the signup flow when a Dodo customer is created
for a user. The webhook path only ever looks them up by dodo_customer_id.

Usage:
    from payments.models import Customer

    customer = Customer.objects.create(
        user=user,
        dodo_customer_id="cus_xxx",
        email=user.email,
    )
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.models import BaseModel
from core.model_mixins import MetadataMixin, UUIDPrimaryKeyMixin


class Customer(UUIDPrimaryKeyMixin, MetadataMixin, BaseModel):
    """
    A Dodo Payments customer mirrored locally.

    Fields:
        user: Local account that owns this customer (optional)
        dodo_customer_id: Dodo customer ID, unique per customer
        email: Billing email
        full_name: Billing name
        phone: Billing phone number
        metadata: Flexible JSON storage
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="billing_customers",
        help_text="User who owns this customer",
    )

    dodo_customer_id = models.CharField(
        max_length=255,
        unique=True,
        help_text="Dodo Payments customer ID",
    )

    email = models.EmailField(
        help_text="Billing email address",
    )

    full_name = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Billing name",
    )

    phone = models.CharField(
        max_length=50,
        blank=True,
        default="",
        help_text="Billing phone number",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Customer"
        verbose_name_plural = "Customers"

    def __str__(self) -> str:
        return f"Customer({self.dodo_customer_id}, {self.email})"
