"""
WhatsApp webhook signature verification.

Meta signs every webhook POST with the app secret: X-Hub-Signature-256 is
"sha256=<hex HMAC-SHA256 of the raw body>".
"""

import hashlib
import hmac
import logging

from app.constants.event_types import EVENT_WHATSAPP_SIGNATURE_VERIFICATION_FAILURE
from app.core.config import settings

SIGNATURE_PREFIX = "sha256="

logger = logging.getLogger(__name__)


def compute_signature(payload: bytes, app_secret: str) -> str:
    """Header value Meta would send for this body."""
    digest = hmac.new(app_secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def verify_whatsapp_signature(
    payload: bytes,
    signature_header: str | None,
    app_secret: str | None = None,
) -> bool:
    """
    Verify a webhook body against its X-Hub-Signature-256 header.

    Args:
        payload: Raw request body (bytes)
        signature_header: Header value (e.g., "sha256=abc123...")
        app_secret: Overrides settings.whatsapp_app_secret (tests)

    Returns:
        True if the signature matches, or if no app secret is configured (dev mode)
    """
    secret = app_secret if app_secret is not None else settings.whatsapp_app_secret
    if not secret:
        logger.warning(
            "WhatsApp app secret not configured - skipping signature verification. "
            "Set WHATSAPP_APP_SECRET in production."
        )
        return True

    if not signature_header or not signature_header.startswith(SIGNATURE_PREFIX):
        logger.warning(
            f"Missing or malformed X-Hub-Signature-256 header: {signature_header!r}",
            extra={"event_type": EVENT_WHATSAPP_SIGNATURE_VERIFICATION_FAILURE},
        )
        return False

    # Constant-time comparison
    is_valid = hmac.compare_digest(signature_header, compute_signature(payload, secret))
    if not is_valid:
        logger.warning(
            "Invalid WhatsApp webhook signature - request rejected",
            extra={"event_type": EVENT_WHATSAPP_SIGNATURE_VERIFICATION_FAILURE},
        )
    return is_valid
