"""
Model mixins providing reusable functionality for Django models.

This module contains abstract mixin classes that can be combined with
BaseModel to add specific functionality. These are generic infrastructure
classes with no billing-specific logic.

Available Mixins:
    UUIDPrimaryKeyMixin: Use UUID as primary key
    MetadataMixin: Flexible JSON metadata storage

Usage:
    from core.models import BaseModel
    from core.model_mixins import MetadataMixin, UUIDPrimaryKeyMixin

    class Customer(UUIDPrimaryKeyMixin, MetadataMixin, BaseModel):
        dodo_customer_id = models.CharField(max_length=255, unique=True)

Note:
    - Always list mixins before BaseModel in inheritance
    - Mixins are abstract and don't create database tables
"""

from __future__ import annotations

import uuid

from django.db import models


class UUIDPrimaryKeyMixin(models.Model):
    """
    Use UUID as primary key instead of auto-increment integer.

    Benefits:
        - Non-guessable IDs
        - Safe for distributed systems (no ID collisions)
        - Can be generated before database insert

    Fields:
        id: UUIDField as primary key (auto-generated)

    Usage:
        class WebhookEvent(UUIDPrimaryKeyMixin, BaseModel):
            event_type = models.CharField(max_length=100)

        event = WebhookEvent.objects.create(event_type="payment.succeeded")
        print(event.id)  # UUID like: 550e8400-e29b-41d4-a716-446655440000
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for this record",
    )

    class Meta:
        abstract = True


class MetadataMixin(models.Model):
    """
    Flexible JSON metadata storage.

    Provider resources carry free-form metadata that is copied onto local
    records as-is, so the field accepts any JSON object.

    Fields:
        metadata: JSONField for arbitrary key-value data
    """

    metadata = models.JSONField(
        default=dict,
        blank=True,
        help_text="Flexible key-value metadata storage",
    )

    class Meta:
        abstract = True
