"""
Redis caching for the upcoming-events listing.

CACHING STRATEGY
================

What we cache:
  - The GET /api/events/upcoming payload, JSON-serialised
  - One key: "events:upcoming"

Why:
  - It is the most frequent read and the most expensive one (range scan + sort)
  - Events change rarely compared to how often the list is read

Invalidation strategy:
  - On event create/update/delete: bump the "events_generation" counter,
    then delete every "events:*" key
  - A listing read from the database is only cached if the generation is
    still the one seen before the read (WATCH / MULTI), so a list fetched
    before an invalidation cannot be written back after it
  - Short TTL as a safety net
  - Entries whose dateTime has passed since caching are filtered on read, so a
    cached list never shows an event that has already started

Failure policy:
  - Redis is advisory. Every Redis error is logged and treated as a miss, so
    an outage degrades to uncached reads instead of failing requests.

Why NOT cache registrations or stats:
  - The registration transaction needs the live count under the row lock
  - Stats are expected to move with every registration
"""

import json
from datetime import datetime
from typing import Optional

import redis.asyncio as redis

from event_manager.core.clock import as_utc, utc_now
from event_manager.core.config import Settings
from event_manager.core.logging import get_logger
from event_manager.core.metrics import record_cache_operation

logger = get_logger(__name__)

UPCOMING_KEY = "events:upcoming"
KEY_PATTERN = "events:*"
# Outside KEY_PATTERN so invalidation never resets it
GENERATION_KEY = "events_generation"


class EventCache:
    """Thin wrapper around an optional ``redis.asyncio.Redis`` client."""

    def __init__(self, client: Optional[redis.Redis] = None, ttl: int = 60):
        self.client = client
        self.ttl = ttl

    @classmethod
    async def connect(cls, settings: Settings) -> "EventCache":
        """Connect and ping. Returns a disabled cache if Redis is off or unreachable."""
        if not settings.REDIS_ENABLED:
            return cls(None, settings.REDIS_CACHE_TTL)

        client = redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
        )
        try:
            await client.ping()
        except Exception as e:
            logger.error("redis_connection_failed", error=str(e))
            await client.aclose()
            return cls(None, settings.REDIS_CACHE_TTL)

        logger.info("redis_connected", url=settings.REDIS_URL)
        return cls(client, settings.REDIS_CACHE_TTL)

    @property
    def enabled(self) -> bool:
        return self.client is not None

    async def close(self) -> None:
        if self.client is not None:
            await self.client.aclose()
            self.client = None

    async def get_upcoming(self) -> Optional[list[dict]]:
        """Cached upcoming events still in the future, or None on miss."""
        if not self.enabled:
            return None

        try:
            data = await self.client.get(UPCOMING_KEY)
        except Exception as e:
            record_cache_operation("get", "error")
            logger.error("cache_get_error", key=UPCOMING_KEY, error=str(e))
            return None

        if data is None:
            record_cache_operation("get", "miss")
            logger.debug("cache_miss", key=UPCOMING_KEY)
            return None

        record_cache_operation("get", "hit")
        now = utc_now()
        return [
            event for event in json.loads(data)
            if as_utc(datetime.fromisoformat(event["dateTime"])) > now
        ]

    async def generation(self) -> Optional[int]:
        """Current invalidation generation; read it before querying the database."""
        if not self.enabled:
            return None

        try:
            return int(await self.client.get(GENERATION_KEY) or 0)
        except Exception as e:
            logger.error("cache_generation_error", error=str(e))
            return None

    async def set_upcoming(self, events: list[dict], generation: Optional[int]) -> None:
        """Cache ``events`` unless an invalidation happened since ``generation`` was read."""
        if not self.enabled or generation is None:
            return

        try:
            async with self.client.pipeline(transaction=True) as pipe:
                await pipe.watch(GENERATION_KEY)
                if int(await pipe.get(GENERATION_KEY) or 0) != generation:
                    record_cache_operation("set", "stale")
                    logger.debug("cache_set_skipped_stale", key=UPCOMING_KEY)
                    return
                pipe.multi()
                pipe.setex(UPCOMING_KEY, self.ttl, json.dumps(events, default=str))
                await pipe.execute()
            record_cache_operation("set", "ok")
            logger.debug("cache_set", key=UPCOMING_KEY, ttl=self.ttl)
        except redis.WatchError:
            record_cache_operation("set", "stale")
            logger.debug("cache_set_skipped_stale", key=UPCOMING_KEY)
        except Exception as e:
            record_cache_operation("set", "error")
            logger.error("cache_set_error", key=UPCOMING_KEY, error=str(e))

    async def invalidate(self) -> None:
        """Drop every cached event listing."""
        if not self.enabled:
            return

        try:
            await self.client.incr(GENERATION_KEY)
            deleted = 0
            async for key in self.client.scan_iter(match=KEY_PATTERN, count=100):
                await self.client.delete(key)
                deleted += 1
            record_cache_operation("invalidate", "ok")
            logger.info("cache_invalidated", keys_deleted=deleted)
        except Exception as e:
            record_cache_operation("invalidate", "error")
            logger.error("cache_invalidation_error", error=str(e))

    async def stats(self) -> dict:
        """Redis keyspace statistics for the health endpoint."""
        if not self.enabled:
            return {"status": "disabled"}

        try:
            info = await self.client.info("stats")
            hits = info.get("keyspace_hits", 0)
            misses = info.get("keyspace_misses", 0)
            return {
                "status": "connected",
                "hits": hits,
                "misses": misses,
                "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
            }
        except Exception as e:
            return {"status": "error", "error": str(e)}
