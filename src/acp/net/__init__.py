"""HTTP transport: request pipeline and retry policy."""

from .http_client import USER_AGENT, HttpClient
from .retry import (
    FailureClass,
    RetryDecision,
    backoff_delay_ms,
    classify_failure,
    decide_retry,
    parse_retry_after,
    should_retry,
)

__all__ = [
    "USER_AGENT",
    "FailureClass",
    "HttpClient",
    "RetryDecision",
    "backoff_delay_ms",
    "classify_failure",
    "decide_retry",
    "parse_retry_after",
    "should_retry",
]
