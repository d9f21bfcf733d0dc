"""Webhook HTTP handlers: FastAPI route for inbound Stripe events.

The handler:
1. Reads raw body (needed for HMAC verification)
2. Verifies the Stripe-Signature header
3. Optionally claims the event ID (dedup, off by default)
4. Dispatches the event and waits for reconciliation to finish
5. Acknowledges with 200

Security contract:
- 400 only for signature failures, naming the verification failure
- Processing failures return a generic 500; details stay in server logs
- Unrecognized event types are acknowledged with 200
"""

from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from src.reconcile.errors import SignatureVerificationError
from src.webhooks.dispatcher import WebhookEvent
from src.webhooks.verification import SIGNATURE_HEADER, construct_event

logger = logging.getLogger(__name__)

WEBHOOK_PATH = "/stripe-webhook"


def _log_webhook(event_type: str, event_id: str, status: str) -> None:
    """Audit log for webhook activity."""
    logger.info(
        "WEBHOOK_AUDIT event=%s id=%s status=%s",
        event_type,
        event_id,
        status,
        extra={"event_type": event_type, "event_id": event_id, "status": status},
    )


async def handle_stripe_webhook(request: Request) -> Response:
    """Verify, dispatch, and acknowledge one Stripe delivery."""
    start = time.time()
    state = request.app.state
    settings = state.settings

    body = await request.body()

    # 1. Verify signature
    try:
        payload = construct_event(
            body,
            request.headers.get(SIGNATURE_HEADER),
            settings.stripe_webhook_secret,
            settings.stripe_signature_tolerance,
        )
    except SignatureVerificationError as e:
        logger.error("Webhook signature verification failed: %s", e.reason)
        _log_webhook("unknown", "unknown", "signature_failed")
        return PlainTextResponse(f"Webhook Error: {e.reason}", status_code=400)

    event = WebhookEvent.from_payload(payload)

    # 2. Optional dedup
    deduplicator = state.deduplicator
    if deduplicator is not None and not deduplicator.claim(event.event_id):
        _log_webhook(event.event_type, event.event_id, "duplicate")
        return JSONResponse({"received": True}, status_code=200)

    # 3. Dispatch
    try:
        handled = await state.dispatcher.dispatch(event)
    except Exception as e:
        logger.error(
            "Error processing webhook: %s",
            e,
            exc_info=True,
            extra={"event_id": event.event_id, "event_type": event.event_type},
        )
        if deduplicator is not None:
            deduplicator.release(event.event_id)
        _log_webhook(event.event_type, event.event_id, "failed")
        return JSONResponse({"error": "Failed to process webhook"}, status_code=500)

    _log_webhook(event.event_type, event.event_id, "processed" if handled else "ignored")
    elapsed_ms = (time.time() - start) * 1000
    logger.debug("Webhook processed in %.1fms: %s", elapsed_ms, event.event_type)

    return JSONResponse({"received": True}, status_code=200)


def register_webhook_routes(app: FastAPI) -> None:
    """Register the Stripe webhook endpoint and a liveness probe."""

    @app.post(WEBHOOK_PATH)
    async def stripe_webhook(request: Request):
        """Receive Stripe webhooks (signature-verified)."""
        return await handle_stripe_webhook(request)

    @app.get("/health")
    async def health():
        """Liveness probe."""
        return {"status": "ok"}

    logger.info("Webhook routes registered: %s", WEBHOOK_PATH)
