"""
Webhook authenticity check.

Dropbox signs every notification with ``X-Dropbox-Signature``: the hex
HMAC-SHA256 of the raw request body keyed by the app secret. The body must
be checked exactly as received; re-serialising the JSON breaks the MAC.
"""

from __future__ import annotations

import hashlib
import hmac
from typing import Optional

SIGNATURE_HEADER = "X-Dropbox-Signature"


def sign(secret: str, raw_body: bytes) -> str:
    """Hex HMAC-SHA256 of ``raw_body``."""
    return hmac.new(secret.encode(), raw_body, hashlib.sha256).hexdigest()


def verify_signature(secret: str, signature: Optional[str], raw_body: bytes) -> bool:
    """
    Return True only if ``signature`` matches ``raw_body``.

    A missing signature fails closed. The secret is used as the HMAC key
    whatever its value, including empty; startup logs an error when it is unset.
    """
    if not signature:
        return False
    try:
        received = signature.encode("ascii")
    except UnicodeEncodeError:
        return False
    expected = sign(secret, raw_body).encode("ascii")
    return hmac.compare_digest(received, expected)
