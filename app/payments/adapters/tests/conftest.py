"""
Pytest fixtures for Dodo adapter tests.

This module provides fixtures for testing the Dodo adapter, including a
mocked SDK client, payment responses and SDK error instances.

Sections:
    - Mock Dodo Client Fixtures
    - Response Fixtures
    - Error Fixtures
"""

from typing import Any
from unittest.mock import MagicMock

import dodopayments
import httpx
import pytest

from payments.adapters import DodoAdapter


# =============================================================================
# Mock Dodo Client Fixtures
# =============================================================================


class MockDodoObject:
    """Mock SDK model with to_dict support."""

    def __init__(self, data: dict[str, Any]):
        self.data = data

    def to_dict(self) -> dict[str, Any]:
        return self.data


@pytest.fixture
def mock_client():
    """A MagicMock standing in for dodopayments.DodoPayments."""
    return MagicMock()


@pytest.fixture
def adapter(mock_client):
    """DodoAdapter wired to the mock client."""
    return DodoAdapter(client=mock_client)


# =============================================================================
# Response Fixtures
# =============================================================================


@pytest.fixture
def payment_response() -> dict[str, Any]:
    """A Dodo payment resource as returned by payments.retrieve."""
    return {
        "payment_id": "pay_1",
        "total_amount": 4999,
        "currency": "USD",
        "status": "succeeded",
        "customer": {
            "customer_id": "cus_1",
            "email": "buyer@example.com",
            "name": "Buyer",
        },
        "product_cart": [{"product_id": "prod_1", "quantity": 1}],
        "metadata": {"order": "42"},
    }


@pytest.fixture
def mock_payment(payment_response):
    return MockDodoObject(payment_response)


# =============================================================================
# Error Fixtures
# =============================================================================


def make_status_error(error_class: type, status_code: int) -> Exception:
    """Build an SDK status error carrying an HTTP response."""
    request = httpx.Request("GET", "https://test.dodopayments.com/payments/pay_1")
    response = httpx.Response(status_code, request=request)
    return error_class(f"HTTP {status_code}", response=response, body=None)


@pytest.fixture
def connection_error():
    request = httpx.Request("GET", "https://test.dodopayments.com/payments/pay_1")
    return dodopayments.APIConnectionError(request=request)
