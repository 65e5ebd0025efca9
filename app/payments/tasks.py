"""
Celery tasks for webhook replay and maintenance.

This module provides async tasks for:
- Replaying a stored webhook event whose processing failed
- Periodically re-queueing failed events with exponential backoff
- Periodic cleanup of old processed events

Usage:
    from payments.tasks import replay_webhook_event

    # Replay one stored event
    replay_webhook_event.delay(str(webhook_event.id))

    # Re-queue all replayable events (typically via celery-beat)
    from payments.tasks import retry_failed_webhooks
    retry_failed_webhooks.delay()
"""

from __future__ import annotations

import logging
import random
from datetime import timedelta
from uuid import UUID

from celery import shared_task
from django.utils import timezone

from payments.models import WebhookEvent
from payments.state_machines import WebhookEventStatus

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

RETRY_BATCH_SIZE = 100
RETRY_BACKOFF_BASE_SECONDS = 30.0
RETRY_BACKOFF_MAX_SECONDS = 3600.0


def backoff_delay(
    attempt: int,
    base: float = RETRY_BACKOFF_BASE_SECONDS,
    max_delay: float = RETRY_BACKOFF_MAX_SECONDS,
) -> float:
    """
    Calculate exponential backoff delay with jitter.

    Jitter prevents thundering herd when multiple workers retry simultaneously.

    Args:
        attempt: Number of failed attempts so far (0-indexed)
        base: Base delay in seconds
        max_delay: Maximum delay in seconds

    Returns:
        Delay in seconds with jitter (0-25% of calculated delay)

    Example:
        # Attempt 0: 30 - 37.5 seconds
        # Attempt 2: 120 - 150 seconds
        delay = backoff_delay(attempt=2)
    """
    delay = min(base * (2**attempt), max_delay)
    jitter = delay * random.uniform(0, 0.25)
    return delay + jitter


# =============================================================================
# Webhook Replay Tasks
# =============================================================================


@shared_task(acks_late=True)
def replay_webhook_event(webhook_event_id: str) -> dict:
    """
    Replay a stored webhook event through the handler pipeline.

    A failed replay increments the event's retry_count; once the budget
    (DODO_WEBHOOK_MAX_RETRIES) is spent the event is dead-lettered.

    Args:
        webhook_event_id: UUID of the WebhookEvent to replay

    Returns:
        Dict with status: processed, already_processed, failed,
        dead_letter or not_found
    """
    # Import here to avoid circular imports
    from payments.webhooks.processor import get_webhook_processor

    if isinstance(webhook_event_id, str):
        webhook_event_id = UUID(webhook_event_id)

    try:
        webhook_event = WebhookEvent.objects.get(id=webhook_event_id)
    except WebhookEvent.DoesNotExist:
        logger.error(
            "WebhookEvent not found",
            extra={"webhook_event_id": str(webhook_event_id)},
        )
        return {"status": "not_found", "webhook_event_id": str(webhook_event_id)}

    if webhook_event.processed:
        logger.info(
            "WebhookEvent already processed, skipping",
            extra={
                "webhook_event_id": str(webhook_event_id),
                "dodo_event_id": webhook_event.dodo_event_id,
            },
        )
        return {"status": "already_processed", "webhook_event_id": str(webhook_event_id)}

    logger.info(
        f"Replaying webhook: {webhook_event.event_type}",
        extra={
            "webhook_event_id": str(webhook_event_id),
            "dodo_event_id": webhook_event.dodo_event_id,
            "retry_count": webhook_event.retry_count,
        },
    )

    result = get_webhook_processor().process_event(webhook_event, replay=True)

    if result.success:
        return {
            "status": "processed",
            "webhook_event_id": str(webhook_event_id),
            "dodo_event_id": webhook_event.dodo_event_id,
        }

    webhook_event.refresh_from_db()
    status = "dead_letter" if webhook_event.status == WebhookEventStatus.DEAD_LETTER else "failed"
    return {
        "status": status,
        "webhook_event_id": str(webhook_event_id),
        "error": result.error,
        "retry_count": webhook_event.retry_count,
    }


@shared_task
def retry_failed_webhooks() -> dict:
    """
    Periodic task to replay failed webhook events.

    Finds failed webhooks that haven't exhausted their replays and queues
    them, oldest first, with a countdown that grows with each failure.

    Scheduled via celery-beat (see CELERY_BEAT_SCHEDULE).

    Returns:
        Dict with count of webhooks queued for replay
    """
    from payments.webhooks.store import EventStore

    failed_webhooks = EventStore().replayable()[:RETRY_BATCH_SIZE]

    queued_count = 0
    for webhook in failed_webhooks:
        try:
            replay_webhook_event.apply_async(
                args=[str(webhook.id)],
                countdown=backoff_delay(webhook.retry_count),
            )
        except Exception as e:
            logger.error(
                f"Failed to queue webhook for replay: {e}",
                extra={"webhook_event_id": str(webhook.id)},
            )
            continue

        queued_count += 1
        logger.info(
            "Queued failed webhook for replay",
            extra={
                "webhook_event_id": str(webhook.id),
                "dodo_event_id": webhook.dodo_event_id,
                "retry_count": webhook.retry_count,
            },
        )

    logger.info(
        f"Queued {queued_count} failed webhooks for replay",
        extra={"queued_count": queued_count},
    )

    return {"queued_count": queued_count}


@shared_task
def cleanup_old_webhooks(days: int = 90) -> dict:
    """
    Periodic task to clean up old processed webhook events.

    Only successfully processed events are removed; failed and
    dead-lettered events are kept for operators.

    Args:
        days: Delete processed webhooks older than this many days

    Returns:
        Dict with count of webhooks deleted
    """
    cutoff = timezone.now() - timedelta(days=days)

    deleted_count, _ = WebhookEvent.objects.filter(
        processed=True,
        processed_at__lt=cutoff,
    ).delete()

    if deleted_count > 0:
        logger.info(
            f"Deleted {deleted_count} old webhook events",
            extra={
                "deleted_count": deleted_count,
                "cutoff_date": cutoff.isoformat(),
            },
        )

    return {"deleted_count": deleted_count}
