"""Webhook verification for ACP events.

Example:
    ```python
    from acp.webhooks import construct_event

    event = construct_event(body, headers["ACP-Signature"], secret)
    if event.type == "checkout_session.completed":
        ...
    ```
"""

from .signature import compute_signature, secure_compare
from .verifier import (
    DEFAULT_TOLERANCE,
    SIGNATURE_HEADER,
    SignatureHeader,
    Webhooks,
    construct_event,
    generate_test_header,
    parse_signature_header,
    verify_signature,
)

__all__ = [
    "DEFAULT_TOLERANCE",
    "SIGNATURE_HEADER",
    "SignatureHeader",
    "Webhooks",
    "compute_signature",
    "construct_event",
    "generate_test_header",
    "parse_signature_header",
    "secure_compare",
    "verify_signature",
]
