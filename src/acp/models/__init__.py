"""Data models for the ACP SDK."""

from .request import AttemptContext, RequestOptions, generate_request_id
from .webhook import WEBHOOK_EVENT_TYPES, WebhookEvent, WebhookEventType

__all__ = [
    "WEBHOOK_EVENT_TYPES",
    "AttemptContext",
    "RequestOptions",
    "WebhookEvent",
    "WebhookEventType",
    "generate_request_id",
]
