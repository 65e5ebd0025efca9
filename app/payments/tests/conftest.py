"""
Pytest fixtures for payment tests.

Provides customers, subscriptions and the state repository shared by the
model and repository tests.
"""

import pytest

from payments.repositories import StateRepository
from payments.tests.factories import (
    CustomerFactory,
    SubscriptionFactory,
    UserFactory,
)


@pytest.fixture
def user(db):
    """Create a test user."""
    return UserFactory()


@pytest.fixture
def customer(db, user):
    """Create a customer linked to the test user."""
    return CustomerFactory(user=user, dodo_customer_id="cus_1")


@pytest.fixture
def subscription(db, customer):
    """Create an active subscription for the test customer."""
    return SubscriptionFactory(customer=customer, dodo_subscription_id="sub_1")


@pytest.fixture
def repository():
    """A fresh StateRepository."""
    return StateRepository()
