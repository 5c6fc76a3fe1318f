#!/usr/bin/env python3
"""Receive and verify ACP webhooks in a FastAPI app.

Run it with:

    pip install "acp-sdk[examples]"
    ACP_WEBHOOK_SECRET=whsec_... uvicorn examples.webhook_handler:app --port 8000

The handler reads the raw body, verifies the ACP-Signature header and only
then dispatches on the event type. Verification failures return 400.
"""

from __future__ import annotations

import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from acp import ACPSettings, SignatureVerificationError, WebhookEvent, construct_event
from acp.logging import bind_context, clear_context, configure_logging, get_logger
from acp.webhooks import SIGNATURE_HEADER

settings = ACPSettings()
configure_logging(level=settings.log_level, format=settings.log_format)
logger = get_logger(__name__)

WEBHOOK_SECRET = os.environ.get("ACP_WEBHOOK_SECRET", "whsec_test_secret")

app = FastAPI(title="ACP webhook receiver")


def handle_event(event: WebhookEvent) -> None:
    match event.type:
        case "checkout_session.completed":
            logger.info("Checkout completed", session_id=event.data.get("id"))
        case "order.created":
            logger.info("Order created", order_id=event.data.get("id"))
        case "order.canceled":
            logger.info("Order canceled", order_id=event.data.get("id"))
        case _:
            logger.info("Unhandled event type", event_type=event.type)


@app.post("/webhooks/acp")
async def receive_webhook(request: Request) -> JSONResponse:
    # Verify against the raw bytes; a re-serialized body would not match.
    body = await request.body()
    try:
        event = construct_event(body, request.headers.get(SIGNATURE_HEADER), WEBHOOK_SECRET)
    except SignatureVerificationError as e:
        logger.warning("Webhook rejected", reason=e.reason.value)
        return JSONResponse(status_code=400, content=e.to_dict())

    bind_context(event_id=event.id, livemode=event.livemode)
    try:
        handle_event(event)
    finally:
        clear_context()
    return JSONResponse({"received": True})
