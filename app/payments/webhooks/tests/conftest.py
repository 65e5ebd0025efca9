"""
Pytest fixtures for webhook tests.

Provides fixtures for testing webhook views, handlers, the processor and
tasks: Dodo event envelopes, a processor wired to a mocked Dodo adapter,
and customers/subscriptions keyed by the ids the envelopes use.
"""

import json
from typing import Any
from unittest.mock import MagicMock

import pytest
from django.test import override_settings

from payments.adapters import DodoAdapter, PaymentDetails
from payments.exceptions import DodoNotFoundError
from payments.repositories import StateRepository
from payments.tests.factories import CustomerFactory, SubscriptionFactory
from payments.webhooks.handlers import HandlerContext
from payments.webhooks.processor import WebhookProcessor
from payments.webhooks.store import EventStore

WEBHOOK_SECRET = "whsec_test_secret"


# =============================================================================
# Event Builders
# =============================================================================


def make_event(
    event_type: str,
    obj: dict[str, Any] | None = None,
    event_id: str | None = "evt_1",
) -> dict[str, Any]:
    """Build a Dodo event envelope."""
    event: dict[str, Any] = {"type": event_type, "data": {"object": obj or {}}}
    if event_id is not None:
        event["id"] = event_id
    return event


def make_body(event: dict[str, Any]) -> str:
    return json.dumps(event)


def subscription_object(**overrides: Any) -> dict[str, Any]:
    """A Dodo subscription resource for sub_1 owned by cus_1."""
    obj = {
        "id": "sub_1",
        "customer": "cus_1",
        "product": "prod_1",
        "price": "price_1",
        "status": "active",
        "current_period_start": 1700000000,
        "current_period_end": 1702592000,
        "cancel_at_period_end": False,
        "metadata": {"plan": "pro"},
    }
    obj.update(overrides)
    return obj


def payment_object(**overrides: Any) -> dict[str, Any]:
    """A Dodo payment resource for pay_1 paid by cus_1."""
    obj = {
        "payment_id": "pay_1",
        "status": "succeeded",
        "total_amount": 4999,
        "currency": "USD",
        "customer": {"customer_id": "cus_1", "email": "buyer@example.com"},
        "metadata": {"order": "42"},
    }
    obj.update(overrides)
    return obj


# =============================================================================
# Settings Fixtures
# =============================================================================


@pytest.fixture
def no_webhook_secret():
    """Run without a signing secret, in development mode."""
    with override_settings(DODO_WEBHOOK_SECRET="", DODO_WEBHOOK_REQUIRE_SECRET=False):
        yield


@pytest.fixture
def webhook_secret():
    """Run with a signing secret configured."""
    with override_settings(DODO_WEBHOOK_SECRET=WEBHOOK_SECRET):
        yield WEBHOOK_SECRET


# =============================================================================
# Collaborator Fixtures
# =============================================================================


@pytest.fixture
def payment_details():
    """Authoritative details the mocked adapter returns for pay_1."""
    return PaymentDetails(
        payment_id="pay_1",
        total_amount=4999,
        currency="USD",
        customer_id="cus_1",
        status="succeeded",
        product_ids=["prod_1"],
        metadata={"order": "42"},
    )


@pytest.fixture
def provider(payment_details):
    """Mocked DodoAdapter returning payment_details."""
    mock = MagicMock(spec=DodoAdapter)
    mock.get_payment_details.return_value = payment_details
    return mock


@pytest.fixture
def failing_provider():
    """Mocked DodoAdapter whose lookups fail."""
    mock = MagicMock(spec=DodoAdapter)
    mock.get_payment_details.side_effect = DodoNotFoundError("Payment not found")
    return mock


@pytest.fixture
def store():
    return EventStore()


@pytest.fixture
def repository():
    return StateRepository()


@pytest.fixture
def context(repository, provider):
    """HandlerContext for calling handlers directly."""
    return HandlerContext(repository=repository, provider=provider)


@pytest.fixture
def processor(store, repository, provider):
    """WebhookProcessor wired to the real store and repository."""
    return WebhookProcessor(store=store, repository=repository, provider=provider)


# =============================================================================
# Model Fixtures
# =============================================================================


@pytest.fixture
def customer(db):
    """The customer Dodo knows as cus_1."""
    return CustomerFactory(dodo_customer_id="cus_1")


@pytest.fixture
def subscription(db, customer):
    """An active local subscription for sub_1."""
    return SubscriptionFactory(customer=customer, dodo_subscription_id="sub_1")
