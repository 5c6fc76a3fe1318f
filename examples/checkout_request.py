#!/usr/bin/env python3
"""Call the ACP API with retries and an idempotency key.

    ACP_API_KEY=sk_test_... python examples/checkout_request.py

Retries of the create call reuse the same Idempotency-Key, so a request that
timed out after the server processed it does not create a second session.
"""

import asyncio
import uuid

from acp import ACPClient, ACPError, ErrorKind, configure_logging


async def main() -> None:
    configure_logging(level="INFO", format="text")

    async with ACPClient(max_network_retries=3, timeout=20.0) as acp:
        try:
            session = await acp.request(
                "POST",
                "/checkout_sessions",
                {"items": [{"id": "item_123", "quantity": 1}]},
                idempotency_key=str(uuid.uuid4()),
            )
        except ACPError as e:
            match e.kind:
                case ErrorKind.AUTHENTICATION | ErrorKind.PERMISSION:
                    print(f"Check your API key: {e.message}")
                case ErrorKind.INVALID_REQUEST:
                    print(f"Invalid request ({e.param}): {e.message}")
                case ErrorKind.RATE_LIMIT | ErrorKind.CONNECTION | ErrorKind.API:
                    print(f"Temporary failure, try later: {e.message} [{e.request_id}]")
                case _:
                    raise
            return

        print(f"Created checkout session {session['id']} ({session['status']})")


if __name__ == "__main__":
    asyncio.run(main())
