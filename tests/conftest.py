"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from collections.abc import Callable, Iterable

import httpx
import pytest

from acp.config import ACPSettings


class RecordingSleep:
    """Async sleep replacement that records requested delays instead of waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class ScriptedTransport:
    """Replays a fixed sequence of responses and records every request.

    Each script entry is either an httpx.Response or an exception instance to
    raise for that attempt. The last entry repeats once the script runs out.
    """

    def __init__(self, script: Iterable[httpx.Response | Exception]) -> None:
        self.script = list(script)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = min(len(self.requests) - 1, len(self.script) - 1)
        outcome = self.script[index]
        if isinstance(outcome, Exception):
            raise outcome
        # Fresh response per attempt; httpx binds a response to one request.
        return httpx.Response(
            outcome.status_code, headers=outcome.headers, content=outcome.content
        )

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def settings() -> ACPSettings:
    """Settings isolated from the environment and any .env file."""
    return ACPSettings(_env_file=None, api_key="sk_test_123", timeout=5.0)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def scripted() -> Callable[..., ScriptedTransport]:
    """Factory building a ScriptedTransport from responses/exceptions."""

    def factory(*script: httpx.Response | Exception) -> ScriptedTransport:
        return ScriptedTransport(script)

    return factory
