"""Retry and backoff policy for API requests.

Pure functions: given the attempt index, retry budget and failure class,
decide whether to retry and how long to wait first.

| Failure class      | Retry?                     | Delay                               |
|--------------------|----------------------------|-------------------------------------|
| CLIENT_ERROR       | never                      | -                                   |
| RATE_LIMITED       | while budget remains       | Retry-After seconds (default 1)     |
| SERVER_ERROR       | while budget remains       | 500ms * 2^attempt * [0.75, 1.25]    |
| NETWORK_OR_TIMEOUT | while budget remains       | same as SERVER_ERROR, capped at 30s |
"""

from __future__ import annotations

import math
import random
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from acp.exceptions import ACPError, ErrorKind

BASE_DELAY_MS = 500.0
MAX_DELAY_MS = 30_000.0
JITTER_MIN = 0.75
JITTER_MAX = 1.25
DEFAULT_RETRY_AFTER = 1.0


class FailureClass(str, Enum):
    """Retry-relevant classification of a failed attempt."""

    CLIENT_ERROR = "client_error"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    NETWORK_OR_TIMEOUT = "network_or_timeout"


@dataclass(frozen=True)
class RetryDecision:
    """Outcome of the policy for one failed attempt."""

    retry: bool
    delay_ms: float = 0.0


def should_retry(attempt_index: int, max_retries: int, failure_class: FailureClass) -> bool:
    """Whether a failed attempt may be retried."""
    if failure_class is FailureClass.CLIENT_ERROR:
        return False
    return attempt_index < max_retries


def backoff_delay_ms(
    attempt_index: int,
    failure_class: FailureClass,
    server_hint: float | None = None,
    rand: Callable[[], float] = random.random,
) -> float:
    """Delay before the next attempt, in milliseconds.

    Rate-limited attempts wait exactly what the server asked for; every
    other class uses capped exponential backoff with jitter.
    """
    if failure_class is FailureClass.RATE_LIMITED:
        hint = DEFAULT_RETRY_AFTER if server_hint is None else server_hint
        return hint * 1000.0

    jitter = JITTER_MIN + rand() * (JITTER_MAX - JITTER_MIN)
    return min(BASE_DELAY_MS * (2**attempt_index) * jitter, MAX_DELAY_MS)


def decide_retry(
    attempt_index: int,
    max_retries: int,
    failure_class: FailureClass,
    server_hint: float | None = None,
    rand: Callable[[], float] = random.random,
) -> RetryDecision:
    """Decide whether to retry a failed attempt and how long to wait.

    Args:
        attempt_index: Zero-based index of the attempt that just failed.
        max_retries: Retries allowed after the first attempt.
        failure_class: How the attempt failed.
        server_hint: Server-supplied Retry-After in seconds, if any.
        rand: Source of uniform [0, 1) values for jitter.
    """
    if not should_retry(attempt_index, max_retries, failure_class):
        return RetryDecision(retry=False)
    return RetryDecision(
        retry=True,
        delay_ms=backoff_delay_ms(attempt_index, failure_class, server_hint, rand),
    )


def parse_retry_after(value: str | None) -> float | None:
    """Parse a Retry-After header given in seconds.

    Returns None when the header is absent, and the 1 second default when it
    is present but not a non-negative number (e.g. an HTTP date).
    """
    if value is None:
        return None
    try:
        seconds = float(value.strip())
    except ValueError:
        return DEFAULT_RETRY_AFTER
    if not math.isfinite(seconds) or seconds < 0:
        return DEFAULT_RETRY_AFTER
    return seconds


def classify_failure(error: BaseException) -> FailureClass | None:
    """Map an attempt's error to a FailureClass.

    Returns None for errors that are never retried and fall outside the
    taxonomy, such as a 2xx response whose body could not be decoded.
    """
    if not isinstance(error, ACPError):
        return None
    if error.kind is ErrorKind.CONNECTION:
        return FailureClass.NETWORK_OR_TIMEOUT
    if error.kind is ErrorKind.RATE_LIMIT:
        return FailureClass.RATE_LIMITED
    if error.status_code >= 500:
        return FailureClass.SERVER_ERROR
    if 400 <= error.status_code < 500:
        return FailureClass.CLIENT_ERROR
    return None
