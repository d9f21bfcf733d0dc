"""Bridge configuration: environment-driven via pydantic-settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Environment-driven settings for the Stripe -> WooCommerce bridge."""

    # Stripe
    stripe_secret_key: str = ""
    stripe_webhook_secret: str = ""
    stripe_signature_tolerance: int = 300  # seconds

    # WooCommerce
    woocommerce_store_url: str = ""
    woocommerce_consumer_key: str = ""
    woocommerce_consumer_secret: str = ""
    woocommerce_api_version: str = "wc/v3"
    http_timeout: float = 30.0

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    environment: str = "development"  # development, production

    # Logging
    log_level: str = "INFO"
    log_dir: str = "."

    # Event deduplication (off: replays are reprocessed)
    dedupe_events: bool = False
    redis_url: str = "redis://localhost:6379/0"

    model_config = {"env_file": ".env", "extra": "ignore"}

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide Settings (cached after first load)."""
    return Settings()
