"""LINE webhook signature verification.

LINE signs each delivery with HMAC-SHA256 over the raw request body, keyed by
the channel secret, and sends the base64 digest in ``x-line-signature``.
"""

from __future__ import annotations

import base64
import hashlib
import hmac

SIGNATURE_HEADER = "x-line-signature"


def compute_signature(channel_secret: str, body: bytes) -> str:
    """Return the base64 HMAC-SHA256 signature LINE would send for ``body``."""
    digest = hmac.new(channel_secret.encode(), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_signature(channel_secret: str, body: bytes, signature: str | None) -> bool:
    """Return True only if ``signature`` matches the body's expected signature.

    Constant-time comparison via hmac.compare_digest. Never raises: a missing
    header, empty secret or undecodable header all count as a mismatch.
    """
    if not signature or not channel_secret:
        return False
    try:
        provided = signature.encode("ascii")
        expected = compute_signature(channel_secret, body).encode("ascii")
    except UnicodeEncodeError:
        return False
    return hmac.compare_digest(provided, expected)
