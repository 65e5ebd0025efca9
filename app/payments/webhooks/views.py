"""
Webhook endpoint view for Dodo Payments.

The view hands the raw body and signature header to the webhook processor
and maps its result to an HTTP status:
- 200: Event processed (or already processed, or logged without a handler)
- 400: Invalid signature, unparseable body, or handler failure
- 405: Any method other than POST
- 500: Unexpected error (e.g. the event could not be stored)

Dodo retries deliveries that do not get a 2xx, which complements the
local replay task for events stored as failed.

Usage:
    # In urls.py
    from payments.webhooks.views import dodo_webhook

    urlpatterns = [
        path("webhooks/dodo/", dodo_webhook, name="dodo_webhook"),
    ]
"""

from __future__ import annotations

import logging

from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from payments.webhooks.processor import get_webhook_processor


logger = logging.getLogger(__name__)


SIGNATURE_HEADERS = ("dodo-signature", "x-dodo-signature")


@csrf_exempt
@require_POST
def dodo_webhook(request: HttpRequest) -> JsonResponse:
    """
    Receive and process a Dodo webhook event.

    The signature covers the exact bytes sent, so the body is passed on
    unparsed.

    Security:
    - HMAC signature verification prevents spoofed webhooks
    - CSRF exemption required for external webhooks
    - Only POST requests accepted
    """
    signature = None
    for header in SIGNATURE_HEADERS:
        if request.headers.get(header):
            signature = request.headers[header]
            break

    try:
        result = get_webhook_processor().handle_webhook(request.body, signature)
    except Exception as e:
        logger.error(
            f"Unexpected error processing webhook: {type(e).__name__}",
            exc_info=True,
        )
        return JsonResponse({"success": False, "error": "Internal server error"}, status=500)

    status = 200 if result.get("success") else 400
    return JsonResponse(result, status=status)
