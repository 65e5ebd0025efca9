"""
Payment adapters for external services.

All Dodo Payments API calls go through these adapters to ensure
consistent error handling, timeouts and observability.

Usage:
    from payments.adapters import DodoAdapter

    details = DodoAdapter().get_payment_details("pay_xxx")
"""

from payments.adapters.dodo_adapter import DodoAdapter, PaymentDetails

__all__ = [
    "DodoAdapter",
    "PaymentDetails",
]
