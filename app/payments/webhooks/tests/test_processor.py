"""
Tests for the webhook processing pipeline.

Tests cover:
- Signature gate (no event stored on failure)
- Parse gate (no event stored on failure)
- Event storage before dispatch, for handled and unhandled types
- Idempotency gate on re-delivered event ids
- Failure handling: rollback, failed status, replay counting, dead letter
- The concrete subscription.active scenario
"""

import json
from datetime import datetime, timezone
from unittest.mock import patch

import pytest
from django.test import override_settings

from payments.models import Payment, PaymentEvent, Subscription, WebhookEvent
from payments.state_machines import SubscriptionStatus, WebhookEventStatus
from payments.webhooks.handlers import WEBHOOK_HANDLERS
from payments.webhooks.processor import WebhookProcessor, get_webhook_processor
from payments.webhooks.tests.conftest import (
    make_body,
    make_event,
    payment_object,
    subscription_object,
)
from payments.webhooks.verification import compute_signature


# =============================================================================
# Signature Gate
# =============================================================================


class TestSignatureGate:
    def test_invalid_signature_stores_nothing(self, processor, webhook_secret, db):
        body = make_body(make_event("invoice.created"))

        result = processor.handle_webhook(body, "sha256=" + "0" * 64)

        assert result == {"success": False, "error": "Invalid signature"}
        assert not WebhookEvent.objects.exists()

    def test_missing_signature_with_secret_fails(self, processor, webhook_secret, db):
        result = processor.handle_webhook(make_body(make_event("invoice.created")), None)

        assert result == {"success": False, "error": "Invalid signature"}
        assert not WebhookEvent.objects.exists()

    def test_valid_signature_is_processed(self, processor, webhook_secret, db):
        body = make_body(make_event("invoice.created"))

        result = processor.handle_webhook(body, compute_signature(body, webhook_secret))

        assert result["success"] is True
        assert WebhookEvent.objects.count() == 1

    @override_settings(DODO_WEBHOOK_SECRET="", DODO_WEBHOOK_REQUIRE_SECRET=True)
    def test_missing_secret_in_production_rejects(self, processor, db):
        result = processor.handle_webhook(make_body(make_event("invoice.created")), "anything")

        assert result == {"success": False, "error": "Invalid signature"}
        assert not WebhookEvent.objects.exists()


# =============================================================================
# Parse Gate
# =============================================================================


class TestParseGate:
    @pytest.mark.parametrize(
        "body",
        [
            "not json",
            b"\xff\xfe",
            "[]",
            '"payment.succeeded"',
            '{"id": "evt_1"}',
            '{"id": "evt_1", "type": 5}',
        ],
    )
    def test_unparseable_body_stores_nothing(self, processor, no_webhook_secret, db, body):
        result = processor.handle_webhook(body, None)

        assert result["success"] is False
        assert result["error"]
        assert not WebhookEvent.objects.exists()

    def test_parse_event(self):
        event = WebhookProcessor.parse_event(b'{"type": "x", "id": "evt_1"}')

        assert event == {"type": "x", "id": "evt_1"}

    def test_parse_event_rejects_non_json(self):
        with pytest.raises(ValueError, match="Invalid JSON body"):
            WebhookProcessor.parse_event("{")


# =============================================================================
# Storage and Dispatch
# =============================================================================


class TestStorageAndDispatch:
    def test_unhandled_type_is_stored_and_processed(self, processor, no_webhook_secret, db):
        """invoice.created has no handler but is acknowledged and audited."""
        event = make_event("invoice.created", {"id": "inv_1"})

        result = processor.handle_webhook(make_body(event), None)

        assert result == {"success": True, "message": "Event logged but not processed"}
        stored = WebhookEvent.objects.get()
        assert stored.processed is True
        assert stored.status == WebhookEventStatus.PROCESSED
        assert stored.processed_at is not None
        assert stored.event_type == "invoice.created"
        assert stored.event_data == event

    @pytest.mark.parametrize(
        "event_type",
        ["invoice.created", "refund.succeeded", "dispute.won", "license_key.created"],
    )
    def test_one_insert_per_valid_body(self, processor, no_webhook_secret, db, event_type):
        processor.handle_webhook(make_body(make_event(event_type, event_id=None)), None)

        assert WebhookEvent.objects.count() == 1

    def test_events_without_id_are_each_stored(self, processor, no_webhook_secret, db):
        body = make_body(make_event("invoice.created", event_id=None))

        processor.handle_webhook(body, None)
        processor.handle_webhook(body, None)

        assert WebhookEvent.objects.count() == 2

    def test_payment_processing_is_audited_only(self, processor, no_webhook_secret, db):
        event = make_event("payment.processing", payment_object(status="processing"))

        result = processor.handle_webhook(make_body(event), None)

        assert result == {"success": True, "message": "Payment event recorded"}
        assert not Payment.objects.exists()
        assert PaymentEvent.objects.get().status == "processing"
        assert WebhookEvent.objects.get().processed is True

    def test_subscription_active_scenario(self, processor, no_webhook_secret, customer):
        event = {
            "id": "evt_1",
            "type": "subscription.active",
            "data": {
                "object": {
                    "id": "sub_1",
                    "customer": "cus_1",
                    "status": "active",
                    "current_period_start": 1700000000,
                    "current_period_end": 1702592000,
                }
            },
        }

        result = processor.handle_webhook(json.dumps(event), None)

        assert result == {"success": True, "message": "Subscription activated and saved"}
        subscription = Subscription.objects.get()
        assert subscription.dodo_subscription_id == "sub_1"
        assert subscription.status == SubscriptionStatus.ACTIVE
        assert subscription.current_period_start == datetime(
            2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc
        )
        assert subscription.current_period_end == datetime(
            2023, 12, 14, 22, 13, 20, tzinfo=timezone.utc
        )
        assert WebhookEvent.objects.get(dodo_event_id="evt_1").processed is True

    def test_unknown_customer_is_processed_without_subscription(
        self, processor, no_webhook_secret, db
    ):
        body = make_body(make_event("subscription.active", subscription_object()))

        result = processor.handle_webhook(body, None)

        assert result == {"success": True, "message": "Customer not found"}
        assert not Subscription.objects.exists()
        assert WebhookEvent.objects.get().processed is True


# =============================================================================
# Idempotency
# =============================================================================


class TestIdempotency:
    def test_redelivery_of_processed_event_is_skipped(
        self, processor, no_webhook_secret, customer
    ):
        body = make_body(make_event("subscription.active", subscription_object()))
        processor.handle_webhook(body, None)

        with patch.dict(WEBHOOK_HANDLERS, {"subscription.active": _fail}):
            result = processor.handle_webhook(body, None)

        assert result == {"success": True, "message": "Event already processed", "duplicate": True}
        assert WebhookEvent.objects.count() == 1
        assert Subscription.objects.count() == 1

    def test_redelivery_of_failed_event_dispatches_again(
        self, processor, no_webhook_secret, customer
    ):
        body = make_body(make_event("subscription.on_hold", subscription_object()))
        first = processor.handle_webhook(body, None)
        assert first["success"] is False

        activation = make_event("subscription.active", subscription_object(), event_id="evt_2")
        processor.handle_webhook(make_body(activation), None)
        second = processor.handle_webhook(body, None)

        assert second == {"success": True, "message": "Subscription marked as on hold"}
        assert WebhookEvent.objects.filter(dodo_event_id="evt_1").count() == 1
        assert Subscription.objects.get().status == SubscriptionStatus.ON_HOLD

    def test_process_event_skips_processed_row(self, processor, store, db):
        event, _ = store.insert("invoice.created", make_event("invoice.created"), "evt_1")
        store.mark_processed(event)

        result = processor.process_event(event)

        assert result.success
        assert result.data == {"message": "Event already processed", "duplicate": True}


# =============================================================================
# Failure Handling
# =============================================================================


def _fail(event, context):
    raise RuntimeError("handler exploded")


class TestFailureHandling:
    def test_missing_subscription_marks_event_failed(self, processor, no_webhook_secret, db):
        body = make_body(make_event("subscription.cancelled", subscription_object()))

        result = processor.handle_webhook(body, None)

        assert result["success"] is False
        assert result["error_code"] == "SUBSCRIPTION_NOT_FOUND"
        stored = WebhookEvent.objects.get()
        assert stored.processed is False
        assert stored.status == WebhookEventStatus.FAILED
        assert "sub_1" in stored.error_message
        assert stored.retry_count == 0

    def test_handler_mutations_roll_back(self, processor, no_webhook_secret, customer):
        def activate_then_fail(event, context):
            context.repository.upsert_subscription("sub_1", customer=customer)
            raise RuntimeError("handler exploded")

        body = make_body(make_event("test.partial"))
        with patch.dict(WEBHOOK_HANDLERS, {"test.partial": activate_then_fail}):
            result = processor.handle_webhook(body, None)

        assert result["success"] is False
        assert result["error_code"] == "RUNTIMEERROR"
        assert not Subscription.objects.exists()
        assert WebhookEvent.objects.get().status == WebhookEventStatus.FAILED

    @override_settings(DODO_WEBHOOK_MAX_RETRIES=2)
    def test_failed_replays_count_and_dead_letter(self, processor, store, db):
        event, _ = store.insert("test.fail", make_event("test.fail"), "evt_1")

        with patch.dict(WEBHOOK_HANDLERS, {"test.fail": _fail}):
            processor.process_event(event)
            event.refresh_from_db()
            assert event.retry_count == 0

            processor.process_event(event, replay=True)
            event.refresh_from_db()
            assert event.retry_count == 1
            assert event.status == WebhookEventStatus.FAILED

            processor.process_event(event, replay=True)
            event.refresh_from_db()

        assert event.retry_count == 2
        assert event.status == WebhookEventStatus.DEAD_LETTER
        assert event.processed is False

    def test_successful_replay_marks_processed(self, processor, store, customer):
        event, _ = store.insert(
            "subscription.active",
            make_event("subscription.active", subscription_object()),
            "evt_1",
        )
        store.mark_failed(event, "earlier failure")

        result = processor.process_event(event, replay=True)

        event.refresh_from_db()
        assert result.success
        assert event.processed is True
        assert event.error_message is None
        assert event.retry_count == 0


class TestGetWebhookProcessor:
    def test_returns_shared_instance(self):
        get_webhook_processor.cache_clear()
        try:
            assert get_webhook_processor() is get_webhook_processor()
        finally:
            get_webhook_processor.cache_clear()
