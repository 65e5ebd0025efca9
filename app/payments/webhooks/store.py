"""
Event store for received Dodo webhooks.

EventStore wraps the WebhookEvent table with the operations the pipeline
needs. Inserts are idempotent on dodo_event_id: a re-delivered event
returns the row stored on first receipt.

Usage:
    store = EventStore()
    webhook_event, created = store.insert("payment.succeeded", payload, "evt_123")
    ...
    store.mark_processed(webhook_event)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import IntegrityError, transaction

from payments.models import WebhookEvent
from payments.state_machines import WebhookEventStatus

if TYPE_CHECKING:
    from typing import Any

    from django.db.models import QuerySet


logger = logging.getLogger(__name__)


class EventStore:
    """Durable log of every webhook event received."""

    def insert(
        self,
        event_type: str,
        event_data: dict[str, Any],
        dodo_event_id: str | None,
    ) -> tuple[WebhookEvent, bool]:
        """
        Store a received event.

        Events without a Dodo event id are always inserted. Events with an
        id already stored return the existing row untouched.

        Returns:
            Tuple of (webhook_event, created)
        """
        if not dodo_event_id:
            webhook_event = WebhookEvent.objects.create(
                event_type=event_type,
                event_data=event_data,
            )
            return webhook_event, True

        try:
            with transaction.atomic():
                return WebhookEvent.objects.get_or_create(
                    dodo_event_id=dodo_event_id,
                    defaults={
                        "event_type": event_type,
                        "event_data": event_data,
                    },
                )
        except IntegrityError:
            # Concurrent delivery inserted the same id first
            logger.info(
                "Webhook event inserted concurrently, using stored row",
                extra={"dodo_event_id": dodo_event_id},
            )
            return WebhookEvent.objects.get(dodo_event_id=dodo_event_id), False

    def get_by_dodo_event_id(self, dodo_event_id: str) -> WebhookEvent | None:
        """Return the stored event with this Dodo id, or None."""
        return WebhookEvent.objects.filter(dodo_event_id=dodo_event_id).first()

    def lock(self, webhook_event: WebhookEvent) -> WebhookEvent:
        """
        Re-read an event under a row lock.

        Must be called inside a transaction. A concurrent delivery of the
        same event waits here until the first one commits.
        """
        return WebhookEvent.objects.select_for_update().get(pk=webhook_event.pk)

    def mark_processed(self, webhook_event: WebhookEvent) -> WebhookEvent:
        """Mark an event processed and save it."""
        webhook_event.mark_processed()
        webhook_event.save(
            update_fields=["processed", "status", "processed_at", "error_message", "updated_at"]
        )
        return webhook_event

    def mark_failed(self, webhook_event: WebhookEvent, error_message: str) -> WebhookEvent:
        """Mark an event failed with the error that stopped it and save it."""
        webhook_event.mark_failed(error_message)
        webhook_event.save(update_fields=["processed", "status", "error_message", "updated_at"])
        return webhook_event

    def record_failed_retry(self, webhook_event: WebhookEvent, error_message: str) -> WebhookEvent:
        """
        Record a failed replay attempt.

        Increments retry_count; once it reaches DODO_WEBHOOK_MAX_RETRIES the
        event is moved to the dead-letter status and no longer replayed.
        """
        webhook_event.mark_failed(error_message)
        webhook_event.retry_count += 1
        if webhook_event.retry_count >= settings.DODO_WEBHOOK_MAX_RETRIES:
            webhook_event.mark_dead_letter()
            logger.error(
                "Webhook event dead-lettered after repeated failures",
                extra={
                    "webhook_event_id": str(webhook_event.id),
                    "dodo_event_id": webhook_event.dodo_event_id,
                    "retry_count": webhook_event.retry_count,
                },
            )
        webhook_event.save(
            update_fields=["processed", "status", "error_message", "retry_count", "updated_at"]
        )
        return webhook_event

    def replayable(self) -> QuerySet[WebhookEvent]:
        """Failed events with replay attempts left, oldest first."""
        return WebhookEvent.objects.filter(
            status=WebhookEventStatus.FAILED,
            retry_count__lt=settings.DODO_WEBHOOK_MAX_RETRIES,
        ).order_by("created_at")
