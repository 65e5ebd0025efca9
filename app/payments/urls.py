"""
URL configuration for the payments app.

Routes:
    - POST /webhooks/dodo/ - Dodo Payments webhook endpoint

All routes are prefixed with /api/v1/payments/ when included in the main URLconf.
"""

from django.urls import path

from payments.webhooks.views import dodo_webhook

app_name = "payments"

urlpatterns = [
    # Webhook endpoints
    path("webhooks/dodo/", dodo_webhook, name="dodo_webhook"),
]
