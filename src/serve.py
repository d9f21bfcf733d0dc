"""FastAPI application for the Stripe -> WooCommerce bridge.

Run with `stripe-woo-bridge` (or `uvicorn src.serve:create_app --factory`).
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from src.clients.stripe_client import StripeGateway
from src.clients.woocommerce import WooCommerceClient
from src.config import Settings, get_settings
from src.logging_config import configure_logging
from src.webhooks.dispatcher import EventDispatcher
from src.webhooks.handlers import register_webhook_routes
from src.webhooks.idempotency import EventDeduplicator

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    dispatcher: EventDispatcher | None = None,
    deduplicator: EventDeduplicator | None = None,
) -> FastAPI:
    """Build the app. Injected collaborators skip client construction."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        woocommerce = None
        if app.state.dispatcher is None:
            woocommerce = WooCommerceClient(
                settings.woocommerce_store_url,
                settings.woocommerce_consumer_key,
                settings.woocommerce_consumer_secret,
                api_version=settings.woocommerce_api_version,
                timeout=settings.http_timeout,
            )
            app.state.dispatcher = EventDispatcher.build(
                StripeGateway(settings.stripe_secret_key), woocommerce
            )
        if app.state.deduplicator is None and settings.dedupe_events:
            app.state.deduplicator = EventDeduplicator.from_url(settings.redis_url)
        logger.info(
            "Bridge started (environment=%s, dedupe_events=%s)",
            settings.environment,
            settings.dedupe_events,
        )
        try:
            yield
        finally:
            if woocommerce is not None:
                await woocommerce.aclose()

    app = FastAPI(title="Stripe WooCommerce Bridge", lifespan=lifespan)
    app.state.settings = settings
    app.state.dispatcher = dispatcher
    app.state.deduplicator = deduplicator
    register_webhook_routes(app)
    return app


def main() -> None:
    settings = get_settings()
    configure_logging(settings)
    logger.info("Server is running on port %d", settings.port)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
