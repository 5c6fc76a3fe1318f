"""ACP client entry point."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from types import TracebackType
from typing import Any

import httpx

from acp.config import ACPSettings, get_settings
from acp.exceptions import AuthenticationError
from acp.models.request import RequestOptions
from acp.net.http_client import HttpClient
from acp.webhooks import Webhooks

logger = logging.getLogger(__name__)


class ACPClient:
    """Client for the Agentic Commerce Protocol API.

    Configuration is resolved once, at construction, from explicit arguments
    and ``ACP_*`` environment variables, and is read-only afterwards.

    Example:
        ```python
        async with ACPClient("sk_test_...", max_network_retries=3) as acp:
            session = await acp.request(
                "POST",
                "/checkout_sessions",
                {"items": [{"id": "item_123", "quantity": 1}]},
                idempotency_key="cart-42",
            )
        ```
    """

    webhooks = Webhooks

    def __init__(
        self,
        api_key: str | None = None,
        *,
        settings: ACPSettings | None = None,
        http_client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[None]] | None = None,
        **overrides: Any,
    ) -> None:
        """Create a client.

        Args:
            api_key: Secret API key. Falls back to ``ACP_API_KEY``.
            settings: Fully resolved settings; ``overrides`` are ignored if given.
            http_client: Optional httpx client to send requests through.
            sleep: Optional coroutine used for backoff delays.
            **overrides: Settings fields such as ``timeout`` or ``host``.

        Raises:
            AuthenticationError: If no API key is configured.
        """
        if settings is None:
            settings = get_settings(api_key=api_key, **overrides)
        elif api_key is not None:
            settings = settings.model_copy(update={"api_key": api_key})

        if not settings.api_key:
            raise AuthenticationError(
                "No API key provided. Set the ACP_API_KEY environment variable "
                "or pass it to the ACPClient constructor."
            )

        self._settings = settings
        pipeline_kwargs: dict[str, Any] = {}
        if sleep is not None:
            pipeline_kwargs["sleep"] = sleep
        self._http = HttpClient(settings, http_client=http_client, **pipeline_kwargs)
        logger.debug("ACP client created for %s", settings.host)

    @property
    def settings(self) -> ACPSettings:
        return self._settings

    @property
    def api_version(self) -> str:
        """API version sent in the ACP-Version header."""
        return self._settings.api_version

    async def request(
        self,
        method: str,
        path: str,
        body: Mapping[str, Any] | None = None,
        *,
        idempotency_key: str | None = None,
        timeout: float | None = None,
        max_network_retries: int | None = None,
    ) -> Any:
        """Make an API request with retries.

        Args:
            method: HTTP method.
            path: Path relative to the API base (e.g. "/checkout_sessions/cs_1").
            body: JSON-serializable request body.
            idempotency_key: Reused across retries so writes are not duplicated.
            timeout: Per-attempt deadline in seconds.
            max_network_retries: Retry budget for this call.

        Returns:
            The decoded JSON response.
        """
        options = RequestOptions(
            idempotency_key=idempotency_key,
            timeout=timeout,
            max_network_retries=max_network_retries,
        )
        return await self._http.request(method, path, body, options)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> ACPClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()
