"""
Tests for the webhook handler registry and the audit-only handlers.

Tests cover:
- Handler registration
- Handler dispatch, including unknown event types
- Refund, dispute and license key handlers
- Event helpers
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from payments.webhooks.handlers import (
    UNHANDLED_EVENT_MESSAGE,
    WEBHOOK_HANDLERS,
    dispatch_webhook,
    from_epoch,
    get_event_object,
    handle_dispute_event,
    handle_license_key_created,
    handle_refund_failed,
    handle_refund_succeeded,
    handle_subscription_active,
    register_handler,
)
from payments.webhooks.payment_handlers import process_payment_webhook
from payments.webhooks.tests.conftest import make_event

DISPUTE_TYPES = [
    "dispute.opened",
    "dispute.expired",
    "dispute.accepted",
    "dispute.cancelled",
    "dispute.challenged",
    "dispute.won",
    "dispute.lost",
]

PAYMENT_TYPES = [
    "payment.succeeded",
    "payment.completed",
    "payment.failed",
    "payment.declined",
    "payment.processing",
    "payment.pending",
    "payment.cancelled",
]

SUBSCRIPTION_TYPES = [
    "subscription.active",
    "subscription.on_hold",
    "subscription.renewed",
    "subscription.plan_changed",
    "subscription.cancelled",
    "subscription.failed",
    "subscription.expired",
]


# =============================================================================
# Handler Registration Tests
# =============================================================================


class TestRegisterHandler:
    """Tests for handler registration decorator."""

    def test_full_taxonomy_is_registered(self):
        for event_type in [
            *PAYMENT_TYPES,
            *SUBSCRIPTION_TYPES,
            *DISPUTE_TYPES,
            "refund.succeeded",
            "refund.failed",
            "license_key.created",
        ]:
            assert event_type in WEBHOOK_HANDLERS, event_type

    def test_all_payment_types_share_one_processor(self):
        assert {WEBHOOK_HANDLERS[t] for t in PAYMENT_TYPES} == {process_payment_webhook}

    def test_all_dispute_types_share_one_handler(self):
        assert {WEBHOOK_HANDLERS[t] for t in DISPUTE_TYPES} == {handle_dispute_event}

    def test_subscription_states_have_their_own_handlers(self):
        assert len({WEBHOOK_HANDLERS[t] for t in SUBSCRIPTION_TYPES}) == len(SUBSCRIPTION_TYPES)
        assert WEBHOOK_HANDLERS["subscription.active"] == handle_subscription_active

    def test_register_new_handler(self):
        """Should register a new handler for every type given."""

        @register_handler("test.one", "test.two")
        def test_handler(event, context):
            return {"message": "ok"}

        try:
            assert WEBHOOK_HANDLERS["test.one"] == test_handler
            assert WEBHOOK_HANDLERS["test.two"] == test_handler
        finally:
            del WEBHOOK_HANDLERS["test.one"]
            del WEBHOOK_HANDLERS["test.two"]


# =============================================================================
# Dispatch Tests
# =============================================================================


class TestDispatchWebhook:
    def test_dispatch_to_registered_handler(self, context):
        handler = MagicMock(return_value={"message": "handled"})
        WEBHOOK_HANDLERS["test.dispatch"] = handler
        event = make_event("test.dispatch", {"id": "obj_1"})

        try:
            result = dispatch_webhook(event, context)
        finally:
            del WEBHOOK_HANDLERS["test.dispatch"]

        assert result == {"message": "handled"}
        handler.assert_called_once_with(event, context)

    @pytest.mark.parametrize("event_type", ["invoice.created", "payment", "Payment.Succeeded", ""])
    def test_unknown_event_type_is_logged_only(self, context, event_type):
        """Types match exactly; anything else is acknowledged without a handler."""
        result = dispatch_webhook(make_event(event_type), context)

        assert result == {"message": UNHANDLED_EVENT_MESSAGE}

    def test_handler_errors_propagate(self, context):
        def broken(event, context):
            raise RuntimeError("boom")

        WEBHOOK_HANDLERS["test.broken"] = broken
        try:
            with pytest.raises(RuntimeError):
                dispatch_webhook(make_event("test.broken"), context)
        finally:
            del WEBHOOK_HANDLERS["test.broken"]


# =============================================================================
# Audit-only Handler Tests
# =============================================================================


class TestAuditOnlyHandlers:
    def test_refund_succeeded(self, context):
        result = handle_refund_succeeded(make_event("refund.succeeded", {"id": "re_1"}), context)

        assert result == {"message": "Refund success recorded"}

    def test_refund_failed(self, context):
        result = handle_refund_failed(make_event("refund.failed", {"id": "re_1"}), context)

        assert result == {"message": "Refund failure recorded"}

    @pytest.mark.parametrize("event_type", DISPUTE_TYPES)
    def test_dispute_subtype_in_message(self, context, event_type):
        result = handle_dispute_event(make_event(event_type, {"id": "dp_1"}), context)

        assert result == {"message": f"Dispute {event_type} recorded"}

    def test_license_key_created(self, context):
        result = handle_license_key_created(
            make_event("license_key.created", {"id": "lk_1"}), context
        )

        assert result == {"message": "License key creation recorded"}

    def test_audit_handlers_do_not_call_collaborators(self):
        context = MagicMock()

        handle_refund_succeeded(make_event("refund.succeeded"), context)
        handle_dispute_event(make_event("dispute.won"), context)
        handle_license_key_created(make_event("license_key.created"), context)

        context.repository.assert_not_called()
        assert context.repository.method_calls == []
        assert context.provider.method_calls == []


# =============================================================================
# Helper Tests
# =============================================================================


class TestHelpers:
    def test_get_event_object(self):
        assert get_event_object({"data": {"object": {"id": "x"}}}) == {"id": "x"}

    @pytest.mark.parametrize(
        "event",
        [{}, {"data": None}, {"data": "x"}, {"data": {}}, {"data": {"object": ["x"]}}],
    )
    def test_get_event_object_missing(self, event):
        assert get_event_object(event) == {}

    def test_from_epoch_is_aware_utc(self):
        assert from_epoch(1700000000) == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)
        assert from_epoch(1702592000) == datetime(2023, 12, 14, 22, 13, 20, tzinfo=timezone.utc)

    def test_from_epoch_none(self):
        assert from_epoch(None) is None
