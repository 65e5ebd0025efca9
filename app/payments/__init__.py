"""
Payments app for Dodo Payments webhook reconciliation.

This app handles:
- Verifying and storing Dodo webhook events
- Reconciling payment and subscription lifecycle events into local records
- Replaying events whose processing failed

Usage:
    from payments.webhooks.processor import get_webhook_processor

    result = get_webhook_processor().handle_webhook(raw_body, signature)
"""
