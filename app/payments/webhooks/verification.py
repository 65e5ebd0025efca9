"""
HMAC-SHA256 signature verification for Dodo webhooks.

Dodo signs the exact request body with the webhook secret and sends the
hex digest, optionally prefixed with 'sha256=', in the dodo-signature header.

Verification never raises: a malformed signature is simply invalid.

When no secret is configured, verification passes so webhooks can be
exercised locally. Production settings set DODO_WEBHOOK_REQUIRE_SECRET
(the default whenever DEBUG is off), which turns a missing secret into a
rejection instead.

Timestamps are not checked, so a previously valid signed payload verifies
again if replayed. Re-delivered events are absorbed by the event store's
idempotency gate.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import re

from django.conf import settings

logger = logging.getLogger(__name__)


SIGNATURE_PREFIX = "sha256="
SIGNATURE_PATTERN = re.compile(r"[0-9a-fA-F]{64}")


def compute_signature(body: str | bytes, secret: str) -> str:
    """Return the hex HMAC-SHA256 of body under secret."""
    if isinstance(body, str):
        body = body.encode("utf-8")
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def verify_signature(
    body: str | bytes,
    signature: str | None,
    secret: str | None = None,
) -> bool:
    """
    Verify a webhook signature.

    Args:
        body: Raw request body, exactly as received
        signature: Signature header value (hex, optional 'sha256=' prefix)
        secret: Shared secret (defaults to settings.DODO_WEBHOOK_SECRET)

    Returns:
        True if the signature matches, or if no secret is configured and
        the deployment does not require one
    """
    if secret is None:
        secret = settings.DODO_WEBHOOK_SECRET

    if not secret:
        if settings.DODO_WEBHOOK_REQUIRE_SECRET:
            logger.error("Webhook secret not configured, rejecting request")
            return False
        logger.warning("Webhook secret not configured, skipping signature verification")
        return True

    if not signature:
        return False

    if signature.startswith(SIGNATURE_PREFIX):
        signature = signature[len(SIGNATURE_PREFIX):]

    # bytes.fromhex skips whitespace, so the shape is checked first
    if not SIGNATURE_PATTERN.fullmatch(signature):
        logger.warning("Webhook signature is not a 64-character hex digest")
        return False

    expected = compute_signature(body, secret)
    return hmac.compare_digest(bytes.fromhex(signature), bytes.fromhex(expected))
