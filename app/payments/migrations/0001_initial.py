import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Customer",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("metadata", models.JSONField(blank=True, default=dict, help_text="Flexible key-value metadata storage")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, help_text="Unique identifier for this record", primary_key=True, serialize=False)),
                ("dodo_customer_id", models.CharField(help_text="Dodo Payments customer ID", max_length=255, unique=True)),
                ("email", models.EmailField(help_text="Billing email address", max_length=254)),
                ("full_name", models.CharField(blank=True, default="", help_text="Billing name", max_length=255)),
                ("phone", models.CharField(blank=True, default="", help_text="Billing phone number", max_length=50)),
                ("user", models.ForeignKey(blank=True, help_text="User who owns this customer", null=True, on_delete=django.db.models.deletion.CASCADE, related_name="billing_customers", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "verbose_name": "Customer",
                "verbose_name_plural": "Customers",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("metadata", models.JSONField(blank=True, default=dict, help_text="Flexible key-value metadata storage")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, help_text="Unique identifier for this record", primary_key=True, serialize=False)),
                ("dodo_payment_id", models.CharField(help_text="Dodo Payments payment ID", max_length=255, unique=True)),
                ("dodo_customer_id", models.CharField(blank=True, db_index=True, default="", help_text="Dodo customer ID reported with the payment", max_length=255)),
                ("amount", models.BigIntegerField(default=0, help_text="Amount in smallest currency unit (e.g., cents)")),
                ("currency", models.CharField(default="USD", help_text="ISO 4217 currency code", max_length=3)),
                ("status", models.CharField(choices=[("pending", "Pending"), ("processing", "Processing"), ("succeeded", "Succeeded"), ("failed", "Failed"), ("cancelled", "Cancelled")], db_index=True, default="pending", help_text="Current payment status", max_length=20)),
                ("product_ids", models.JSONField(blank=True, default=list, help_text="Dodo product IDs in the cart")),
                ("failure_reason", models.TextField(blank=True, help_text="Failure reason for failed payments", null=True)),
                ("customer", models.ForeignKey(blank=True, help_text="Customer who made the payment", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="payments", to="payments.customer")),
            ],
            options={
                "verbose_name": "Payment",
                "verbose_name_plural": "Payments",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="PaymentEvent",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("metadata", models.JSONField(blank=True, default=dict, help_text="Flexible key-value metadata storage")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, help_text="Unique identifier for this record", primary_key=True, serialize=False)),
                ("dodo_payment_id", models.CharField(db_index=True, help_text="Dodo Payments payment ID", max_length=255)),
                ("event_type", models.CharField(help_text="Webhook event type", max_length=100)),
                ("status", models.CharField(help_text="Status recorded by this event", max_length=30)),
                ("amount", models.BigIntegerField(default=0, help_text="Amount in smallest currency unit")),
                ("currency", models.CharField(default="USD", help_text="ISO 4217 currency code", max_length=3)),
                ("dodo_customer_id", models.CharField(blank=True, help_text="Dodo customer ID if known", max_length=255, null=True)),
                ("failure_reason", models.TextField(blank=True, help_text="Failure reason for failed payments", null=True)),
                ("processed_at", models.DateTimeField(help_text="When this event was processed")),
                ("customer", models.ForeignKey(blank=True, help_text="Customer if resolved at processing time", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="payment_events", to="payments.customer")),
            ],
            options={
                "verbose_name": "Payment Event",
                "verbose_name_plural": "Payment Events",
                "db_table": "payment_audit_events",
                "ordering": ["-processed_at"],
            },
        ),
        migrations.CreateModel(
            name="Subscription",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("metadata", models.JSONField(blank=True, default=dict, help_text="Flexible key-value metadata storage")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, help_text="Unique identifier for this record", primary_key=True, serialize=False)),
                ("dodo_subscription_id", models.CharField(help_text="Dodo Payments subscription ID", max_length=255, unique=True)),
                ("product_id", models.CharField(blank=True, default="", help_text="Dodo product ID", max_length=255)),
                ("price_id", models.CharField(blank=True, default="", help_text="Dodo price ID", max_length=255)),
                ("status", models.CharField(choices=[("pending", "Pending"), ("active", "Active"), ("on_hold", "On Hold"), ("cancelled", "Cancelled"), ("failed", "Failed"), ("expired", "Expired")], db_index=True, default="active", help_text="Current subscription status", max_length=30)),
                ("current_period_start", models.DateTimeField(blank=True, help_text="Start of current billing period", null=True)),
                ("current_period_end", models.DateTimeField(blank=True, help_text="End of current billing period", null=True)),
                ("cancel_at_period_end", models.BooleanField(default=False, help_text="Whether subscription will cancel at period end")),
                ("customer", models.ForeignKey(help_text="Customer paying for this subscription", on_delete=django.db.models.deletion.CASCADE, related_name="subscriptions", to="payments.customer")),
                ("user", models.ForeignKey(blank=True, help_text="User who owns this subscription", null=True, on_delete=django.db.models.deletion.CASCADE, related_name="billing_subscriptions", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "verbose_name": "Subscription",
                "verbose_name_plural": "Subscriptions",
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["customer", "status"], name="payments_su_custome_5c1f0a_idx")],
            },
        ),
        migrations.CreateModel(
            name="WebhookEvent",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, help_text="Unique identifier for this record", primary_key=True, serialize=False)),
                ("dodo_event_id", models.CharField(blank=True, help_text="Dodo event ID - unique constraint for idempotency", max_length=255, null=True, unique=True)),
                ("event_type", models.CharField(db_index=True, help_text="Dodo event type (e.g., 'payment.succeeded')", max_length=100)),
                ("event_data", models.JSONField(help_text="Full webhook payload from Dodo (JSON)")),
                ("processed", models.BooleanField(db_index=True, default=False, help_text="Whether the event was dispatched successfully")),
                ("status", models.CharField(choices=[("pending", "Pending"), ("processed", "Processed"), ("failed", "Failed"), ("dead_letter", "Dead Letter")], db_index=True, default="pending", help_text="Current processing status", max_length=20)),
                ("processed_at", models.DateTimeField(blank=True, help_text="When event was successfully processed", null=True)),
                ("error_message", models.TextField(blank=True, help_text="Error message if processing failed", null=True)),
                ("retry_count", models.PositiveSmallIntegerField(default=0, help_text="Number of failed replay attempts")),
            ],
            options={
                "verbose_name": "Webhook Event",
                "verbose_name_plural": "Webhook Events",
                "db_table": "payment_events",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status", "created_at"], name="payment_eve_status_8d6e21_idx"),
                    models.Index(fields=["event_type", "created_at"], name="payment_eve_event_t_4b9c7e_idx"),
                    models.Index(fields=["status", "retry_count"], name="payment_eve_status_a3f2d9_idx"),
                ],
            },
        ),
    ]
