"""HMAC-SHA256 signatures over timestamp-prefixed webhook payloads."""

from __future__ import annotations

import hashlib
import hmac


def compute_signature(timestamp: int, payload: str | bytes, secret: str) -> str:
    """Compute the hex HMAC-SHA256 of ``"{timestamp}.{payload}"``.

    Args:
        timestamp: Unix timestamp (seconds) the payload is signed at.
        payload: Raw request body. Bytes are signed as received.
        secret: Webhook signing secret.

    Returns:
        Lowercase hex digest.
    """
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    signed_payload = f"{timestamp}.".encode() + payload
    return hmac.new(
        key=secret.encode("utf-8"),
        msg=signed_payload,
        digestmod=hashlib.sha256,
    ).hexdigest()


def secure_compare(a: str, b: str) -> bool:
    """Compare two digests in constant time.

    Returns False instead of raising for mismatched lengths, non-ASCII
    strings or non-string input.
    """
    try:
        return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))
    except (AttributeError, TypeError):
        return False
