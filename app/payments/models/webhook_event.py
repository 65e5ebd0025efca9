"""
WebhookEvent model for Dodo Payments webhook event tracking.

Stores every webhook event received from Dodo before it is dispatched, so
malformed or unhandled events remain auditable and failed events can be
replayed. The unique dodo_event_id constraint ensures a re-delivered event
maps to the existing row instead of a new one.

Usage:
    from payments.webhooks.store import EventStore

    store = EventStore()
    webhook_event, created = store.insert(
        event_type="subscription.active",
        event_data=payload,
        dodo_event_id="evt_1234567890",
    )

    if webhook_event.processed:
        # Duplicate webhook - already processed
        return

    # ... dispatch ...
    store.mark_processed(webhook_event)
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.state_machines import WebhookEventStatus


class WebhookEvent(UUIDPrimaryKeyMixin, BaseModel):
    """
    Append-only log of Dodo webhook events with processing state.

    Stores the full webhook payload and processing status to:
    1. Prevent duplicate handling (idempotency)
    2. Enable replay of failed events
    3. Provide audit trail for debugging

    Processing Flow:
        1. Webhook arrives, signature verified, body parsed
        2. Insert/get WebhookEvent by dodo_event_id
        3. If processed -> skip (duplicate delivery)
        4. Route to the handler for event_type
        5. Mark PROCESSED, or FAILED with error_message
        6. If FAILED, the retry task replays it until retries run out

    Fields:
        dodo_event_id: Dodo event ID, unique when present
        event_type: Type of webhook event
        event_data: Full JSON payload as received (never modified)
        processed: Whether dispatch completed successfully
        status: Processing status
        processed_at: When event was successfully processed
        error_message: Error details if processing failed
        retry_count: Number of failed replay attempts
    """

    # ==========================================================================
    # Event Identification
    # ==========================================================================

    dodo_event_id = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        unique=True,
        help_text="Dodo event ID - unique constraint for idempotency",
    )

    event_type = models.CharField(
        max_length=100,
        db_index=True,
        help_text="Dodo event type (e.g., 'payment.succeeded')",
    )

    # ==========================================================================
    # Payload
    # ==========================================================================

    event_data = models.JSONField(
        help_text="Full webhook payload from Dodo (JSON)",
    )

    # ==========================================================================
    # Processing Status
    # ==========================================================================

    processed = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Whether the event was dispatched successfully",
    )

    status = models.CharField(
        max_length=20,
        choices=WebhookEventStatus.choices,
        default=WebhookEventStatus.PENDING,
        db_index=True,
        help_text="Current processing status",
    )

    processed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When event was successfully processed",
    )

    # ==========================================================================
    # Error Handling
    # ==========================================================================

    error_message = models.TextField(
        null=True,
        blank=True,
        help_text="Error message if processing failed",
    )

    retry_count = models.PositiveSmallIntegerField(
        default=0,
        help_text="Number of failed replay attempts",
    )

    # ==========================================================================
    # Meta & Methods
    # ==========================================================================

    class Meta:
        db_table = "payment_events"
        ordering = ["-created_at"]
        verbose_name = "Webhook Event"
        verbose_name_plural = "Webhook Events"
        indexes = [
            models.Index(fields=["status", "created_at"], name="payment_eve_status_8d6e21_idx"),
            models.Index(fields=["event_type", "created_at"], name="payment_eve_event_t_4b9c7e_idx"),
            models.Index(fields=["status", "retry_count"], name="payment_eve_status_a3f2d9_idx"),
        ]

    def __str__(self) -> str:
        """Return string representation with event ID and type."""
        return f"WebhookEvent({self.dodo_event_id}, {self.event_type})"

    # ==========================================================================
    # Properties
    # ==========================================================================

    @property
    def is_failed(self) -> bool:
        """Check if event processing failed."""
        return self.status == WebhookEventStatus.FAILED

    @property
    def can_retry(self) -> bool:
        """Check if event can be replayed (failed with retries left)."""
        return self.is_failed and self.retry_count < settings.DODO_WEBHOOK_MAX_RETRIES

    # ==========================================================================
    # Helper Methods
    # ==========================================================================

    def mark_processed(self) -> None:
        """
        Mark event as successfully processed.

        Note: Does not save - caller must save after calling.
        """
        self.processed = True
        self.status = WebhookEventStatus.PROCESSED
        self.processed_at = timezone.now()
        self.error_message = None

    def mark_failed(self, error_message: str) -> None:
        """
        Mark event as failed with error message.

        Note: Does not save - caller must save after calling.
        """
        self.processed = False
        self.status = WebhookEventStatus.FAILED
        self.error_message = error_message

    def mark_dead_letter(self) -> None:
        """
        Stop replaying this event; an operator must resolve it by hand.

        Note: Does not save - caller must save after calling.
        """
        self.status = WebhookEventStatus.DEAD_LETTER

    def get_object(self) -> dict:
        """Return the provider resource (data.object) carried by the event."""
        data = self.event_data.get("data") if isinstance(self.event_data, dict) else None
        obj = data.get("object") if isinstance(data, dict) else None
        return obj if isinstance(obj, dict) else {}

    def get_object_id(self) -> str | None:
        """Extract the primary object ID (data.object.id) from the payload."""
        return self.get_object().get("id")
