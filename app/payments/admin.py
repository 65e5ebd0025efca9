"""
Payment admin configuration.

Registers the Dodo billing mirrors and the webhook event log with the
Django admin. Billing records are written by webhook handlers, so most
fields are read-only here; failed webhook events can be replayed from the
event list.
"""

from django.contrib import admin

from payments.models import (
    Customer,
    Payment,
    PaymentEvent,
    Subscription,
    WebhookEvent,
)
from payments.state_machines import WebhookEventStatus

__all__ = [
    "CustomerAdmin",
    "SubscriptionAdmin",
    "PaymentAdmin",
    "PaymentEventAdmin",
    "WebhookEventAdmin",
]


class SubscriptionInline(admin.TabularInline):
    """Inline display of subscriptions for a customer."""

    model = Subscription
    extra = 0
    fields = [
        "dodo_subscription_id",
        "product_id",
        "status",
        "current_period_end",
        "cancel_at_period_end",
    ]
    readonly_fields = fields
    can_delete = False
    show_change_link = True

    def has_add_permission(self, request, obj=None) -> bool:
        return False


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    """
    Admin configuration for Customer.

    Provides visibility into Dodo customers and their subscriptions.
    """

    list_display = [
        "id",
        "dodo_customer_id",
        "email",
        "full_name",
        "user",
        "created_at",
    ]
    search_fields = ["id", "dodo_customer_id", "email", "full_name", "user__email"]
    readonly_fields = ["id", "created_at", "updated_at"]
    raw_id_fields = ["user"]
    ordering = ["-created_at"]
    inlines = [SubscriptionInline]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "dodo_customer_id", "user"),
            },
        ),
        (
            "Contact",
            {
                "fields": ("email", "full_name", "phone"),
            },
        ),
        (
            "Metadata",
            {
                "fields": ("metadata",),
                "classes": ("collapse",),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )


@admin.register(Subscription)
class SubscriptionAdmin(admin.ModelAdmin):
    """
    Admin configuration for Subscription.

    Status is driven by Dodo webhooks; change it here only to repair data.
    """

    list_display = [
        "id",
        "dodo_subscription_id",
        "customer",
        "product_id",
        "status",
        "current_period_end",
        "cancel_at_period_end",
        "created_at",
    ]
    list_filter = ["status", "cancel_at_period_end", "created_at"]
    search_fields = [
        "id",
        "dodo_subscription_id",
        "product_id",
        "customer__dodo_customer_id",
        "customer__email",
    ]
    readonly_fields = ["id", "created_at", "updated_at"]
    raw_id_fields = ["user", "customer"]
    ordering = ["-created_at"]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "dodo_subscription_id", "customer", "user"),
            },
        ),
        (
            "Plan",
            {
                "fields": ("product_id", "price_id"),
            },
        ),
        (
            "Status",
            {
                "fields": (
                    "status",
                    "current_period_start",
                    "current_period_end",
                    "cancel_at_period_end",
                ),
            },
        ),
        (
            "Metadata",
            {
                "fields": ("metadata",),
                "classes": ("collapse",),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    """Admin configuration for Payment."""

    list_display = [
        "id",
        "dodo_payment_id",
        "customer",
        "amount_display",
        "status",
        "created_at",
    ]
    list_filter = ["status", "currency", "created_at"]
    search_fields = [
        "id",
        "dodo_payment_id",
        "dodo_customer_id",
        "customer__email",
    ]
    readonly_fields = ["id", "created_at", "updated_at"]
    raw_id_fields = ["customer"]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "dodo_payment_id", "customer", "dodo_customer_id"),
            },
        ),
        (
            "Amount",
            {
                "fields": ("amount", "currency", "product_ids"),
            },
        ),
        (
            "Status",
            {
                "fields": ("status", "failure_reason"),
            },
        ),
        (
            "Metadata",
            {
                "fields": ("metadata",),
                "classes": ("collapse",),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )

    def amount_display(self, obj: Payment) -> str:
        """Display the amount formatted as currency."""
        return obj.amount_display

    amount_display.short_description = "Amount"

    def has_delete_permission(self, request, obj=None) -> bool:
        """Disable delete for payments (audit trail)."""
        return False


@admin.register(PaymentEvent)
class PaymentEventAdmin(admin.ModelAdmin):
    """
    Admin configuration for PaymentEvent.

    The payment audit trail is append-only and fully read-only.
    """

    list_display = [
        "dodo_payment_id",
        "event_type",
        "status",
        "amount",
        "currency",
        "dodo_customer_id",
        "processed_at",
    ]
    list_filter = ["event_type", "status"]
    search_fields = ["dodo_payment_id", "dodo_customer_id"]
    date_hierarchy = "processed_at"
    ordering = ["-processed_at"]

    def get_readonly_fields(self, request, obj=None):
        return [field.name for field in self.model._meta.fields]

    def has_add_permission(self, request) -> bool:
        return False

    def has_change_permission(self, request, obj=None) -> bool:
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        return False


@admin.register(WebhookEvent)
class WebhookEventAdmin(admin.ModelAdmin):
    """
    Admin configuration for WebhookEvent.

    Provides visibility into webhook processing status.
    Webhook payloads are immutable once received.
    """

    list_display = [
        "id",
        "dodo_event_id",
        "event_type",
        "status",
        "processed",
        "retry_count",
        "processed_at",
        "created_at",
    ]
    list_filter = ["status", "processed", "event_type", "created_at"]
    search_fields = ["id", "dodo_event_id", "event_type"]
    readonly_fields = [
        "id",
        "created_at",
        "updated_at",
        "dodo_event_id",
        "event_type",
        "event_data",
        "processed",
        "processed_at",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]
    actions = ["replay_events", "reset_dead_letters"]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "dodo_event_id", "event_type", "status", "processed"),
            },
        ),
        (
            "Processing",
            {
                "fields": ("processed_at", "retry_count"),
            },
        ),
        (
            "Error Info",
            {
                "fields": ("error_message",),
                "classes": ("collapse",),
            },
        ),
        (
            "Payload",
            {
                "fields": ("event_data",),
                "classes": ("collapse",),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )

    @admin.action(description="Replay selected webhook events")
    def replay_events(self, request, queryset):
        """Queue unprocessed events for replay through the handler pipeline."""
        from payments.tasks import replay_webhook_event

        count = 0
        for webhook_event in queryset.filter(processed=False):
            replay_webhook_event.delay(str(webhook_event.id))
            count += 1
        self.message_user(request, f"Queued {count} webhook events for replay.")

    @admin.action(description="Reset dead-lettered events for automatic retry")
    def reset_dead_letters(self, request, queryset):
        """Give dead-lettered events a fresh retry budget."""
        count = queryset.filter(status=WebhookEventStatus.DEAD_LETTER).update(
            status=WebhookEventStatus.FAILED,
            retry_count=0,
        )
        self.message_user(request, f"Reset {count} dead-lettered webhook events.")

    def has_delete_permission(self, request, obj=None) -> bool:
        """Disable delete for webhook events (audit trail)."""
        return False

    def has_add_permission(self, request) -> bool:
        """Disable adding webhook events through admin."""
        return False
