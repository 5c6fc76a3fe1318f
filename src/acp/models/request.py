"""Per-call request options and per-attempt context."""

from __future__ import annotations

import secrets
from dataclasses import dataclass


def generate_request_id() -> str:
    """Generate a fresh request identifier for one physical attempt."""
    return f"req_{secrets.token_hex(12)}"


@dataclass(frozen=True)
class RequestOptions:
    """Overrides for a single logical API call.

    Attributes:
        idempotency_key: Sent unchanged on every attempt so the server can
            deduplicate retried writes.
        timeout: Per-attempt deadline in seconds (client default if None).
        max_network_retries: Retry budget (client default if None).
    """

    idempotency_key: str | None = None
    timeout: float | None = None
    max_network_retries: int | None = None


@dataclass(frozen=True)
class AttemptContext:
    """State of one physical attempt within a logical call.

    ``request_id`` is new for every attempt while ``idempotency_key`` is the
    same for all attempts of the call.
    """

    attempt_index: int
    max_retries: int
    request_id: str
    idempotency_key: str | None = None

    @classmethod
    def first(cls, max_retries: int, idempotency_key: str | None = None) -> AttemptContext:
        """Context for the initial attempt of a call."""
        return cls(
            attempt_index=0,
            max_retries=max_retries,
            request_id=generate_request_id(),
            idempotency_key=idempotency_key,
        )

    def next(self) -> AttemptContext:
        """Context for the following attempt: new request id, same key."""
        return AttemptContext(
            attempt_index=self.attempt_index + 1,
            max_retries=self.max_retries,
            request_id=generate_request_id(),
            idempotency_key=self.idempotency_key,
        )

    @property
    def retries_remaining(self) -> int:
        return max(self.max_retries - self.attempt_index, 0)

    def headers(self, base: dict[str, str]) -> dict[str, str]:
        """Render the header set for this attempt on top of ``base``."""
        headers = dict(base)
        headers["X-Request-Id"] = self.request_id
        if self.idempotency_key:
            headers["Idempotency-Key"] = self.idempotency_key
        return headers
