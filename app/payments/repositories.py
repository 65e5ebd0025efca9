"""
State repository for reconciliation writes.

StateRepository is the only place webhook handlers read or write Customer,
Subscription, Payment and PaymentEvent rows. Every record is keyed by the
identifier Dodo assigned to it, and writes are upserts on that identifier so
a re-delivered event never creates a second row.

Lookups return None on not-found and never raise. Updates that require an
existing row raise SubscriptionNotFoundError.

Usage:
    from payments.repositories import StateRepository

    repository = StateRepository()
    customer = repository.get_customer_by_dodo_id("cus_123")
    if customer:
        repository.upsert_subscription("sub_123", customer=customer, status="active")
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.utils import timezone

from payments.exceptions import SubscriptionNotFoundError
from payments.models import Customer, Payment, PaymentEvent, Subscription

if TYPE_CHECKING:
    from typing import Any


logger = logging.getLogger(__name__)


class StateRepository:
    """
    Read/write access to billing records keyed by Dodo identifiers.

    Stateless; one instance is shared by the webhook processor.
    """

    # =========================================================================
    # Customers
    # =========================================================================

    def get_customer_by_dodo_id(self, dodo_customer_id: str | None) -> Customer | None:
        """Return the customer with this Dodo ID, or None."""
        if not dodo_customer_id:
            return None
        return Customer.objects.filter(dodo_customer_id=dodo_customer_id).first()

    # =========================================================================
    # Subscriptions
    # =========================================================================

    def get_subscription_by_dodo_id(self, dodo_subscription_id: str) -> Subscription | None:
        """Return the subscription with this Dodo ID, or None."""
        return Subscription.objects.filter(
            dodo_subscription_id=dodo_subscription_id
        ).first()

    def upsert_subscription(
        self,
        dodo_subscription_id: str,
        customer: Customer,
        **fields: Any,
    ) -> tuple[Subscription, bool]:
        """
        Create or update a subscription by Dodo ID.

        The owning user is copied from the customer.

        Returns:
            Tuple of (subscription, created)
        """
        subscription, created = Subscription.objects.update_or_create(
            dodo_subscription_id=dodo_subscription_id,
            defaults={
                "customer": customer,
                "user_id": customer.user_id,
                **fields,
            },
        )
        logger.info(
            f"{'Created' if created else 'Updated'} subscription {dodo_subscription_id}",
            extra={
                "dodo_subscription_id": dodo_subscription_id,
                "status": subscription.status,
            },
        )
        return subscription, created

    def update_subscription(self, dodo_subscription_id: str, **fields: Any) -> Subscription:
        """
        Update fields on an existing subscription.

        Raises:
            SubscriptionNotFoundError: No subscription with this Dodo ID
        """
        subscription = (
            Subscription.objects.select_for_update()
            .filter(dodo_subscription_id=dodo_subscription_id)
            .first()
        )
        if subscription is None:
            raise SubscriptionNotFoundError(
                f"Subscription {dodo_subscription_id} not found",
                details={"dodo_subscription_id": dodo_subscription_id},
            )

        for name, value in fields.items():
            setattr(subscription, name, value)
        subscription.save(update_fields=[*fields, "updated_at"])
        return subscription

    # =========================================================================
    # Payments
    # =========================================================================

    def get_payment_by_dodo_id(self, dodo_payment_id: str) -> Payment | None:
        """Return the payment with this Dodo ID, or None."""
        return Payment.objects.filter(dodo_payment_id=dodo_payment_id).first()

    def upsert_payment(self, dodo_payment_id: str, **fields: Any) -> tuple[Payment, bool]:
        """
        Create or update a payment by Dodo ID.

        Fields passed as None are left untouched on an existing row, so an
        event carrying only a status does not erase data an earlier event
        recorded. A new row starts from the model defaults (amount 0, USD).

        Returns:
            Tuple of (payment, created)
        """
        defaults = {name: value for name, value in fields.items() if value is not None}
        payment, created = Payment.objects.update_or_create(
            dodo_payment_id=dodo_payment_id,
            defaults=defaults,
        )
        logger.info(
            f"{'Created' if created else 'Updated'} payment {dodo_payment_id}",
            extra={"dodo_payment_id": dodo_payment_id, "status": payment.status},
        )
        return payment, created

    def record_payment_event(
        self,
        dodo_payment_id: str,
        event_type: str,
        status: str,
        amount: int = 0,
        currency: str = "USD",
        customer: Customer | None = None,
        dodo_customer_id: str | None = None,
        failure_reason: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> PaymentEvent:
        """Append an audit row for a payment webhook."""
        return PaymentEvent.objects.create(
            dodo_payment_id=dodo_payment_id,
            event_type=event_type,
            status=status,
            amount=amount,
            currency=currency,
            customer=customer,
            dodo_customer_id=dodo_customer_id,
            failure_reason=failure_reason,
            metadata=metadata or {},
            processed_at=timezone.now(),
        )
