"""
Webhook processing pipeline.

WebhookProcessor turns a raw webhook request into reconciled local state:

    verify signature -> parse -> store event -> idempotency gate
        -> dispatch to handler -> mark processed (or failed)

Every verified, parseable event is stored before it is dispatched, so
events nobody handles and events whose handler fails stay auditable and
replayable. A stored event that is already processed is never dispatched
again.

Handler mutations and the processed flag commit in one transaction while a
row lock is held on the stored event; a concurrent delivery of the same
event waits for it and then sees the event as processed.

Usage:
    from payments.webhooks.processor import get_webhook_processor

    result = get_webhook_processor().handle_webhook(raw_body, signature)
    if not result["success"]:
        ...
"""

from __future__ import annotations

import json
import time
from functools import lru_cache
from typing import TYPE_CHECKING, Any

from core.services import BaseService, ServiceResult

from payments.adapters import DodoAdapter
from payments.repositories import StateRepository
from payments.webhooks.handlers import HandlerContext, dispatch_webhook
from payments.webhooks.store import EventStore
from payments.webhooks.verification import verify_signature

if TYPE_CHECKING:
    from payments.models import WebhookEvent


INVALID_SIGNATURE_ERROR = "Invalid signature"
ALREADY_PROCESSED_MESSAGE = "Event already processed"


class WebhookProcessor(BaseService):
    """
    Runs the webhook pipeline against injected collaborators.

    Constructed once per process by get_webhook_processor(); tests build
    their own with doubles for any collaborator.
    """

    def __init__(
        self,
        store: EventStore,
        repository: StateRepository,
        provider: DodoAdapter,
    ):
        self.store = store
        self.context = HandlerContext(repository=repository, provider=provider)

    def handle_webhook(self, raw_body: str | bytes, signature: str | None = None) -> dict[str, Any]:
        """
        Process one webhook request.

        Args:
            raw_body: Request body exactly as received
            signature: Signature header value, if any

        Returns:
            {"success": True, **handler_result} or
            {"success": False, "error": message}

        Raises:
            DatabaseError: The event could not be stored
        """
        logger = self.get_logger()

        if not verify_signature(raw_body, signature):
            logger.warning("Invalid webhook signature")
            return {"success": False, "error": INVALID_SIGNATURE_ERROR}

        try:
            event = self.parse_event(raw_body)
        except ValueError as e:
            logger.warning(f"Unparseable webhook body: {e}")
            return {"success": False, "error": str(e)}

        event_type = event["type"]
        dodo_event_id = event.get("id")

        logger.info(
            f"Received Dodo webhook: {event_type}",
            extra={"dodo_event_id": dodo_event_id, "event_type": event_type},
        )

        webhook_event, created = self.store.insert(
            event_type=event_type,
            event_data=event,
            dodo_event_id=dodo_event_id,
        )

        if not created and webhook_event.processed:
            logger.info(
                "Webhook already processed, skipping",
                extra={"dodo_event_id": dodo_event_id},
            )
            return {"success": True, "message": ALREADY_PROCESSED_MESSAGE, "duplicate": True}

        return self.process_event(webhook_event).to_response()

    @staticmethod
    def parse_event(raw_body: str | bytes) -> dict[str, Any]:
        """
        Parse a webhook body into an event envelope.

        Raises:
            ValueError: Body is not JSON, or not an object with a string type
        """
        try:
            event = json.loads(raw_body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ValueError(f"Invalid JSON body: {e}") from e

        if not isinstance(event, dict) or not isinstance(event.get("type"), str):
            raise ValueError("Webhook body is not an event with a type")
        return event

    def process_event(self, webhook_event: WebhookEvent, replay: bool = False) -> ServiceResult[dict]:
        """
        Dispatch a stored event and record the outcome.

        Args:
            webhook_event: The stored event
            replay: True when called by the retry task; a failure then
                counts against the event's replay budget

        Returns:
            ServiceResult with the handler result, or the failure
        """
        logger = self.get_logger()
        log_context = {
            "webhook_event_id": str(webhook_event.id),
            "dodo_event_id": webhook_event.dodo_event_id,
            "event_type": webhook_event.event_type,
        }
        start_time = time.time()

        try:
            with self.atomic():
                locked_event = self.store.lock(webhook_event)

                if locked_event.processed:
                    logger.info("Webhook already processed, skipping", extra=log_context)
                    return ServiceResult.success(
                        {"message": ALREADY_PROCESSED_MESSAGE, "duplicate": True}
                    )

                result = dispatch_webhook(locked_event.event_data, self.context)
                self.store.mark_processed(locked_event)

        except Exception as e:
            error_msg = f"{type(e).__name__}: {e}"
            webhook_event.refresh_from_db()
            if replay:
                self.store.record_failed_retry(webhook_event, error_msg)
            else:
                self.store.mark_failed(webhook_event, error_msg)

            logger.exception(
                "Webhook processing failed",
                extra={**log_context, "error": error_msg},
            )
            return ServiceResult.from_exception(e)

        logger.info(
            "Webhook processed successfully",
            extra={**log_context, "duration_ms": (time.time() - start_time) * 1000},
        )
        return ServiceResult.success(result)


@lru_cache(maxsize=1)
def get_webhook_processor() -> WebhookProcessor:
    """Return the process-wide WebhookProcessor."""
    return WebhookProcessor(
        store=EventStore(),
        repository=StateRepository(),
        provider=DodoAdapter(),
    )
