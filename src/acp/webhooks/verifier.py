"""Webhook signature verification with replay protection.

Verification runs three stages against the ``ACP-Signature`` header:

1. Parse ``t=<timestamp>,v1=<hex>[,v1=<hex>...]``.
2. Reject events older than the tolerance window (before any HMAC work).
3. Accept if any ``v1`` value matches the expected digest in constant time.

Multiple ``v1`` values allow a secret to be rotated without dropping events.

Usage:
    from acp.webhooks import construct_event

    event = construct_event(
        payload=request_body,
        header=request.headers["ACP-Signature"],
        secret=webhook_secret,
    )
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from pydantic import ValidationError

from acp.exceptions import SignatureVerificationError, VerificationFailure
from acp.models.webhook import WebhookEvent

from .signature import compute_signature, secure_compare

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 300
SIGNATURE_HEADER = "ACP-Signature"


@dataclass(frozen=True)
class SignatureHeader:
    """Parsed webhook signature header."""

    timestamp: int
    signatures: tuple[str, ...]


def parse_signature_header(header: str | bytes | None) -> SignatureHeader:
    """Parse a ``t=...,v1=...`` signature header.

    Unknown keys are ignored. ``t`` must appear exactly once as a positive
    base-10 integer and at least one ``v1`` value must be present. Raw
    header bytes, as some ASGI servers hand them over, are decoded as UTF-8.

    Raises:
        SignatureVerificationError: With reason MALFORMED_HEADER.
    """
    if not header:
        raise SignatureVerificationError(
            "No webhook signature header provided.",
            VerificationFailure.MALFORMED_HEADER,
        )
    if isinstance(header, bytes):
        try:
            header = header.decode("utf-8")
        except UnicodeDecodeError as e:
            raise SignatureVerificationError(
                "Webhook signature header is not valid UTF-8.",
                VerificationFailure.MALFORMED_HEADER,
            ) from e
    if not isinstance(header, str):
        raise SignatureVerificationError(
            "Webhook signature header must be a string.",
            VerificationFailure.MALFORMED_HEADER,
        )

    timestamp: int | None = None
    signatures: list[str] = []
    seen_timestamp = False

    for item in header.split(","):
        key, _, value = item.strip().partition("=")
        if key == "t":
            if seen_timestamp:
                raise SignatureVerificationError(
                    "Webhook header contains more than one timestamp.",
                    VerificationFailure.MALFORMED_HEADER,
                )
            seen_timestamp = True
            # int() alone would also take "+17", "1_700" and non-ASCII digits
            if value.isascii() and value.isdigit():
                timestamp = int(value)
        elif key == "v1" and value:
            signatures.append(value)

    if timestamp is None or timestamp <= 0:
        raise SignatureVerificationError(
            "Unable to extract timestamp from webhook header.",
            VerificationFailure.MALFORMED_HEADER,
        )

    if not signatures:
        raise SignatureVerificationError(
            "Unable to extract signature from webhook header.",
            VerificationFailure.MALFORMED_HEADER,
        )

    return SignatureHeader(timestamp=timestamp, signatures=tuple(signatures))


def _verify(
    payload: str | bytes,
    header: str | bytes | None,
    secret: str,
    tolerance: int,
    now: Callable[[], float],
) -> SignatureHeader:
    parsed = parse_signature_header(header)

    if not isinstance(payload, (str, bytes)) or not isinstance(secret, str):
        raise SignatureVerificationError(
            "Webhook payload must be str or bytes and the secret a str.",
            VerificationFailure.SIGNATURE_MISMATCH,
        )

    age = int(now()) - parsed.timestamp
    if age > tolerance:
        raise SignatureVerificationError(
            f"Webhook timestamp too old. Event is {age} seconds old, "
            f"tolerance is {tolerance} seconds.",
            VerificationFailure.STALE_EVENT,
        )

    expected = compute_signature(parsed.timestamp, payload, secret)
    if not any(secure_compare(sig, expected) for sig in parsed.signatures):
        raise SignatureVerificationError(
            "Webhook signature verification failed. No matching signature found.",
            VerificationFailure.SIGNATURE_MISMATCH,
        )

    return parsed


def construct_event(
    payload: str | bytes,
    header: str | bytes | None,
    secret: str,
    tolerance: int = DEFAULT_TOLERANCE,
    *,
    now: Callable[[], float] = time.time,
) -> WebhookEvent:
    """Verify a webhook and decode it into a WebhookEvent.

    Args:
        payload: The raw request body, exactly as received.
        header: The ACP-Signature header value.
        secret: Your webhook signing secret.
        tolerance: Maximum event age in seconds.
        now: Clock returning the current Unix time.

    Returns:
        The verified event.

    Raises:
        SignatureVerificationError: If any stage fails; ``reason`` says which.
    """
    try:
        _verify(payload, header, secret, tolerance, now)
        try:
            return WebhookEvent.model_validate_json(payload)
        except ValidationError as e:
            raise SignatureVerificationError(
                "Failed to parse webhook payload as a JSON event.",
                VerificationFailure.PAYLOAD_DECODE_ERROR,
            ) from e
    except SignatureVerificationError as e:
        logger.info("Rejected webhook: %s", e.reason.value, extra={"reason": e.reason.value})
        raise


def verify_signature(
    payload: str | bytes,
    header: str | bytes | None,
    secret: str,
    tolerance: int = DEFAULT_TOLERANCE,
    *,
    now: Callable[[], float] = time.time,
) -> bool:
    """Check a webhook signature without decoding the event.

    Same checks as construct_event, but every failure returns False.
    """
    try:
        _verify(payload, header, secret, tolerance, now)
    except SignatureVerificationError:
        return False
    return True


def generate_test_header(
    payload: str | bytes,
    secret: str,
    timestamp: int | None = None,
) -> str:
    """Build a valid signature header for a payload. For tests only.

    Example:
        ```python
        header = generate_test_header(payload, "whsec_test")
        event = construct_event(payload, header, "whsec_test")
        ```
    """
    if timestamp is None:
        timestamp = int(time.time())
    signature = compute_signature(timestamp, payload, secret)
    return f"t={timestamp},v1={signature}"


class Webhooks:
    """Namespace exposing webhook helpers, available as ``ACPClient.webhooks``."""

    DEFAULT_TOLERANCE = DEFAULT_TOLERANCE

    construct_event = staticmethod(construct_event)
    verify_signature = staticmethod(verify_signature)
    generate_test_header = staticmethod(generate_test_header)
    parse_signature_header = staticmethod(parse_signature_header)
