"""Webhook event deduplication: optional, Redis-based.

Policy:
- Disabled by default: a replayed event is processed again, and a replayed
  checkout creates a second order. Stripe event IDs are the only dedup key.
- When enabled, event IDs are claimed in Redis with a 24h TTL
- Key pattern: webhook:seen:stripe:{event_id}
- If Redis is down, fails open (event is processed)
- A claim is released when processing fails so Stripe's retry still runs
"""

from __future__ import annotations

import logging

import redis

logger = logging.getLogger(__name__)

_DEDUP_TTL_SECONDS = 86400  # 24 hours

_KEY_PREFIX = "webhook:seen"


class EventDeduplicator:
    """Claims Stripe event IDs so redeliveries are acknowledged, not reprocessed."""

    def __init__(self, client: redis.Redis, provider: str = "stripe"):
        self._redis = client
        self._provider = provider

    @classmethod
    def from_url(cls, redis_url: str) -> EventDeduplicator:
        return cls(redis.from_url(redis_url, decode_responses=True))

    def _key(self, event_id: str) -> str:
        return f"{_KEY_PREFIX}:{self._provider}:{event_id}"

    def claim(self, event_id: str) -> bool:
        """Atomically mark an event as seen.

        Returns:
            True if this delivery should be processed, False if it is a duplicate.
        """
        if not event_id:
            return True  # No ID = can't dedup, allow through

        try:
            # SET NX returns None when the key already exists
            was_set = self._redis.set(self._key(event_id), "1", nx=True, ex=_DEDUP_TTL_SECONDS)
        except redis.RedisError:
            logger.warning(
                "Redis unavailable for webhook dedup, allowing %s",
                event_id,
                exc_info=True,
            )
            return True

        if not was_set:
            logger.info("Duplicate webhook acknowledged without processing: %s", event_id)
            return False
        return True

    def release(self, event_id: str) -> None:
        """Forget a claim (processing failed; let the redelivery through)."""
        if not event_id:
            return
        try:
            self._redis.delete(self._key(event_id))
        except redis.RedisError:
            logger.warning("Failed to release webhook claim: %s", event_id, exc_info=True)
