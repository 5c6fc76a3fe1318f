"""ACP: Python SDK for the Agentic Commerce Protocol.

Webhook verification and a retrying HTTP client for the ACP REST API.

Quick Start:
    from acp import ACPClient

    async with ACPClient("sk_test_...") as acp:
        session = await acp.request(
            "POST",
            "/checkout_sessions",
            {"items": [{"id": "item_123", "quantity": 1}]},
            idempotency_key="cart-42",
        )

    event = ACPClient.webhooks.construct_event(body, signature_header, secret)
"""

__version__ = "0.1.0"

# Client
from .client import ACPClient

# Configuration
from .config import ACPSettings

# Exceptions
from .exceptions import (
    ACPError,
    APIConnectionError,
    APIError,
    AuthenticationError,
    ErrorKind,
    InvalidRequestError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitError,
    SignatureVerificationError,
    VerificationFailure,
)

# Logging
from .logging import configure_logging, get_logger

# Models
from .models import RequestOptions, WebhookEvent

# Webhooks
from .webhooks import (
    Webhooks,
    construct_event,
    generate_test_header,
    verify_signature,
)

__all__ = [
    "__version__",
    "ACPClient",
    "ACPSettings",
    "ACPError",
    "APIConnectionError",
    "APIError",
    "AuthenticationError",
    "ErrorKind",
    "InvalidRequestError",
    "NotFoundError",
    "PermissionDeniedError",
    "RateLimitError",
    "SignatureVerificationError",
    "VerificationFailure",
    "configure_logging",
    "get_logger",
    "RequestOptions",
    "WebhookEvent",
    "Webhooks",
    "construct_event",
    "generate_test_header",
    "verify_signature",
]
