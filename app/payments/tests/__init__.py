"""
Tests for payments app.

This package contains test modules for:
- test_models.py: Customer, Subscription, Payment and WebhookEvent model tests
- test_repositories.py: StateRepository upsert and lookup tests

Webhook pipeline tests live in payments/webhooks/tests/ and adapter tests in
payments/adapters/tests/.

Usage:
    pytest app/payments/tests/
    pytest app/payments/tests/test_repositories.py
"""
