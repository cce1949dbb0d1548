"""Webhook signature verification.

GitHub signs every delivery with HMAC-SHA256 over the exact request body and
sends ``X-Hub-Signature-256: sha256=<hex>``. Verification must use the raw
bytes as received; re-serialising parsed JSON is not byte-identical.
"""

from __future__ import annotations

import hashlib
import hmac

SIGNATURE_ALGORITHM = "sha256"


def sign_payload(body: bytes, secret: str) -> str:
    """Return the ``sha256=<hex>`` header value for ``body``."""
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_ALGORITHM}={digest}"


def verify_signature(body: bytes, signature: str | None, secret: str) -> bool:
    """Check a signature header against the raw request body.

    Never raises: a missing header, a malformed header, a non-hex digest or a
    mismatching digest all return False.
    """
    if not signature:
        return False

    parts = signature.split("=")
    if len(parts) != 2 or parts[0] != SIGNATURE_ALGORITHM:
        return False

    try:
        provided = bytes.fromhex(parts[1])
    except ValueError:
        return False

    expected = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    return hmac.compare_digest(expected, provided)
