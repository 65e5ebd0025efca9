"""
Django signals for payments app.

This module defines the signals sent after a payment webhook has been
reconciled:
- payment_succeeded: a payment was recorded as succeeded
- payment_failed: a payment was recorded as failed

Receivers implement post-payment side effects (confirmation emails,
provisioning product access, support tickets). They are sent with
send_robust(), so a failing receiver is logged and never fails the webhook.

Usage:
    from django.dispatch import receiver
    from payments.signals import payment_succeeded

    @receiver(payment_succeeded)
    def provision_access(sender, payment, customer, **kwargs):
        ...
"""

from __future__ import annotations

import logging

from django.dispatch import Signal

logger = logging.getLogger(__name__)


# Sent with payment=<Payment>, customer=<Customer | None>, details=<PaymentDetails | None>
payment_succeeded = Signal()

# Sent with payment=<Payment>, customer=<Customer | None>, failure_reason=<str>
payment_failed = Signal()


def send_robust_and_log(signal: Signal, sender, **kwargs) -> list:
    """
    Send a signal and log receivers that raised.

    Returns:
        The (receiver, response) pairs from send_robust()
    """
    responses = signal.send_robust(sender=sender, **kwargs)
    for receiver, response in responses:
        if isinstance(response, Exception):
            logger.error(
                f"Payment signal receiver {getattr(receiver, '__name__', receiver)} failed",
                exc_info=(type(response), response, response.__traceback__),
            )
    return responses
