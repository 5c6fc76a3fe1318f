"""HTTP request pipeline with retries.

One logical call runs as a sequence of physical attempts. Each attempt gets a
fresh X-Request-Id while the caller's Idempotency-Key is repeated verbatim.
Between attempts the retry policy in ``acp.net.retry`` decides whether to try
again and for how long to sleep; tenacity drives the loop.
"""

from __future__ import annotations

import asyncio
import json
import logging
import random
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

import httpx
from tenacity import AsyncRetrying, RetryCallState

from acp import __version__
from acp.config import ACPSettings
from acp.exceptions import (
    ACPError,
    APIConnectionError,
    APIError,
    RateLimitError,
    error_from_response,
)
from acp.models.request import AttemptContext, RequestOptions

from .retry import (
    FailureClass,
    backoff_delay_ms,
    classify_failure,
    parse_retry_after,
    should_retry,
)

logger = logging.getLogger(__name__)

USER_AGENT = f"acp-python/{__version__}"

_EXHAUSTIBLE = (FailureClass.SERVER_ERROR, FailureClass.NETWORK_OR_TIMEOUT)


def _log_retry(retry_state: RetryCallState) -> None:
    """Log an upcoming retry with its delay and the failure that caused it."""
    error = retry_state.outcome.exception() if retry_state.outcome else None
    failure = classify_failure(error) if error else None
    next_action = retry_state.next_action
    logger.warning(
        "Retrying ACP request",
        extra={
            "attempt": retry_state.attempt_number,
            "delay_ms": round(next_action.sleep * 1000) if next_action else None,
            "failure_class": failure.value if failure else None,
            "request_id": getattr(error, "request_id", None),
            "error": str(error) if error else None,
        },
    )


class HttpClient:
    """Executes API calls against the ACP REST API.

    The client holds only read-only state (settings and the connection
    pool), so one instance can serve concurrent calls.

    Example:
        ```python
        http = HttpClient(ACPSettings(api_key="sk_test_..."))
        session = await http.request(
            "POST",
            "/checkout_sessions",
            {"items": [{"id": "item_123", "quantity": 1}]},
            RequestOptions(idempotency_key="order-42"),
        )
        ```
    """

    def __init__(
        self,
        settings: ACPSettings,
        http_client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rand: Callable[[], float] = random.random,
    ) -> None:
        """Initialize the pipeline.

        Args:
            settings: Resolved client configuration.
            http_client: Optional httpx client (e.g. with a mock transport).
                When omitted, one is created and closed by ``aclose``.
            sleep: Coroutine used for backoff delays.
            rand: Jitter source returning floats in [0, 1).
        """
        self._settings = settings
        self._owns_http = http_client is None
        self._http = http_client if http_client is not None else httpx.AsyncClient()
        self._sleep = sleep
        self._rand = rand
        self._base_headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {settings.api_key}",
            "ACP-Version": settings.api_version,
            "User-Agent": USER_AGENT,
        }

    @property
    def settings(self) -> ACPSettings:
        return self._settings

    async def aclose(self) -> None:
        """Close the underlying httpx client if this pipeline created it."""
        if self._owns_http:
            await self._http.aclose()

    async def request(
        self,
        method: str,
        path: str,
        body: Mapping[str, Any] | None = None,
        options: RequestOptions | None = None,
    ) -> Any:
        """Execute one logical API call, retrying transient failures.

        Args:
            method: HTTP method.
            path: Path relative to the API base URL (e.g. "/checkout_sessions").
            body: JSON-serializable request body.
            options: Per-call overrides (idempotency key, timeout, retries).

        Returns:
            The decoded JSON response body, or None for an empty body.

        Raises:
            ACPError: The terminal, classified error. Exhausted 5xx or
                network retries surface as APIConnectionError with the last
                error chained as ``__cause__``.
        """
        options = options or RequestOptions()
        timeout = options.timeout if options.timeout is not None else self._settings.timeout
        max_retries = (
            options.max_network_retries
            if options.max_network_retries is not None
            else self._settings.max_network_retries
        )
        method = method.upper()
        url = f"{self._settings.base_url}{path}"
        content = json.dumps(body).encode("utf-8") if body is not None else None

        context = AttemptContext.first(max_retries, options.idempotency_key)
        retrying = AsyncRetrying(
            retry=self._retry_predicate(max_retries),
            wait=self._wait_from_policy,
            before_sleep=_log_retry,
            sleep=self._sleep,
            reraise=True,
        )

        try:
            async for attempt in retrying:
                if attempt.retry_state.attempt_number > 1:
                    context = context.next()
                with attempt:
                    result = await self._attempt(method, url, content, timeout, context)
        except ACPError as e:
            logger.warning(
                "ACP request failed",
                extra={
                    "method": method,
                    "path": path,
                    "attempts": context.attempt_index + 1,
                    "request_id": e.request_id,
                    "error_kind": e.kind.value,
                },
            )
            if classify_failure(e) in _EXHAUSTIBLE:
                raise APIConnectionError(
                    f"Request failed after {context.attempt_index + 1} attempts: {e.message}",
                    request_id=e.request_id,
                ) from e
            raise

        return result

    def _retry_predicate(self, max_retries: int) -> Callable[[RetryCallState], bool]:
        def predicate(retry_state: RetryCallState) -> bool:
            outcome = retry_state.outcome
            if outcome is None or not outcome.failed:
                return False
            failure = classify_failure(outcome.exception())
            if failure is None:
                return False
            return should_retry(retry_state.attempt_number - 1, max_retries, failure)

        return predicate

    def _wait_from_policy(self, retry_state: RetryCallState) -> float:
        """Seconds to sleep before the next attempt."""
        error = retry_state.outcome.exception() if retry_state.outcome else None
        failure = classify_failure(error) if error else None
        if failure is None:
            return 0.0
        hint = error.retry_after if isinstance(error, RateLimitError) else None
        delay_ms = backoff_delay_ms(retry_state.attempt_number - 1, failure, hint, self._rand)
        return delay_ms / 1000.0

    async def _attempt(
        self,
        method: str,
        url: str,
        content: bytes | None,
        timeout: float,
        context: AttemptContext,
    ) -> Any:
        """Run one physical attempt and return its decoded body or raise."""
        headers = context.headers(self._base_headers)

        try:
            async with asyncio.timeout(timeout):
                response = await self._http.request(
                    method, url, content=content, headers=headers, timeout=timeout
                )
        except (TimeoutError, httpx.TimeoutException) as e:
            raise APIConnectionError(
                f"Request timeout after {timeout}s", request_id=context.request_id
            ) from e
        except httpx.RequestError as e:
            raise APIConnectionError(
                f"Network error: {str(e) or type(e).__name__}", request_id=context.request_id
            ) from e

        request_id = response.headers.get("x-request-id") or context.request_id

        if response.is_success:
            logger.debug(
                "ACP request succeeded",
                extra={
                    "status": response.status_code,
                    "request_id": request_id,
                    "attempt": context.attempt_index + 1,
                },
            )
            return _decode_success(response, request_id)

        raise error_from_response(
            response.status_code,
            _decode_error_body(response),
            request_id=request_id,
            retry_after=parse_retry_after(response.headers.get("retry-after")),
        )


def _decode_success(response: httpx.Response, request_id: str) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError as e:
        raise APIError(
            "Invalid JSON in API response body",
            code="invalid_response",
            status_code=response.status_code,
            request_id=request_id,
        ) from e


def _decode_error_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return {}
