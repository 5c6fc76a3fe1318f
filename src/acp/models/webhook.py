"""Webhook event envelope delivered to merchant endpoints.

The envelope is the decoded form of a verified webhook payload. It is
immutable and carries no persistence of its own.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

# Event types the platform currently emits
WebhookEventType = Literal[
    "checkout_session.created",
    "checkout_session.updated",
    "checkout_session.completed",
    "checkout_session.canceled",
    "order.created",
    "order.fulfilled",
    "order.canceled",
]

WEBHOOK_EVENT_TYPES: list[WebhookEventType] = [
    "checkout_session.created",
    "checkout_session.updated",
    "checkout_session.completed",
    "checkout_session.canceled",
    "order.created",
    "order.fulfilled",
    "order.canceled",
]


class WebhookEvent(BaseModel):
    """A verified webhook event.

    Attributes:
        id: Unique event identifier (e.g. "evt_123").
        type: Dotted event-type tag (e.g. "checkout_session.completed").
        data: Event payload; its shape depends on ``type``.
        created: Unix timestamp (seconds) when the event was created.
        livemode: False for test-mode events.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(description="Unique event identifier")
    type: str = Field(description="Dotted event-type tag")
    data: Any = Field(description="Event-specific payload")
    created: int = Field(description="Creation time, seconds since epoch")
    livemode: bool = Field(default=False, description="True for production events")

    @property
    def is_known_type(self) -> bool:
        """Whether ``type`` is one of the documented event types."""
        return self.type in WEBHOOK_EVENT_TYPES


__all__ = [
    "WEBHOOK_EVENT_TYPES",
    "WebhookEvent",
    "WebhookEventType",
]
