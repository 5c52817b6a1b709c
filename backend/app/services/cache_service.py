"""
Redis caching service for event listings and organizer analytics.

CACHING STRATEGY
================

What we cache:
  - Event listing responses (paginated, JSON-serialized)
    Key pattern: "events:list:page={page}&size={size}&upcoming={upcoming}"
  - Analytics summaries, keyed by (kind, owner_id)
    Key pattern: "analytics:{kind}:{owner_id}" where kind is "overall"
    (owner = organizer id) or "event" (owner = event id)

Invalidation strategy:
  - Event listings: on event creation/deletion and on ticket issuance
    (tickets_sold changes). All listing keys share the "events:list:"
    prefix, so we SCAN and delete them.
  - Analytics: every write that changes a count (issuance, scan,
    application, event deletion) deletes exactly the two keys it affects:
    the event's own entry and its organizer's overall entry.
  - TTL-based expiry as safety net (REDIS_CACHE_TTL / ANALYTICS_CACHE_TTL).

Redis is optional. Every function degrades to "no cache" when Redis is
disabled or unreachable; the database stays authoritative.
"""

import json
from typing import Optional

import redis.asyncio as redis
from app.core.config import get_settings
from app.core.logging import get_logger
from app.core.metrics import record_cache_operation

logger = get_logger(__name__)
settings = get_settings()

_redis_client: Optional[redis.Redis] = None

ANALYTICS_OVERALL = "overall"
ANALYTICS_EVENT = "event"


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is disabled."""
    global _redis_client

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        try:
            _redis_client = redis.from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
            )
            # Test connection
            await _redis_client.ping()
            logger.info("redis_connected", url=settings.REDIS_URL)
        except Exception as e:
            logger.error("redis_connection_failed", error=str(e))
            _redis_client = None
            return None

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.close()
        _redis_client = None


def _make_event_list_key(page: int, page_size: int, upcoming_only: bool) -> str:
    return f"events:list:page={page}&size={page_size}&upcoming={upcoming_only}"


def make_analytics_key(kind: str, owner_id: int) -> str:
    return f"analytics:{kind}:{owner_id}"


async def _get_json(key: str) -> Optional[dict]:
    client = await get_redis()
    if not client:
        return None

    try:
        data = await client.get(key)
        if data:
            logger.debug("cache_hit", key=key)
            record_cache_operation("get", hit=True)
            return json.loads(data)
        logger.debug("cache_miss", key=key)
        record_cache_operation("get", hit=False)
    except Exception as e:
        logger.error("cache_get_error", key=key, error=str(e))

    return None


async def _set_json(key: str, data: dict, ttl: int) -> None:
    client = await get_redis()
    if not client:
        return

    try:
        await client.setex(key, ttl, json.dumps(data, default=str))
        logger.debug("cache_set", key=key, ttl=ttl)
    except Exception as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def get_cached_events(page: int, page_size: int, upcoming_only: bool) -> Optional[dict]:
    """Retrieve cached event list response."""
    return await _get_json(_make_event_list_key(page, page_size, upcoming_only))


async def set_cached_events(
    page: int,
    page_size: int,
    upcoming_only: bool,
    data: dict,
) -> None:
    """Cache event list response with TTL."""
    await _set_json(_make_event_list_key(page, page_size, upcoming_only), data, settings.REDIS_CACHE_TTL)


async def invalidate_event_cache() -> None:
    """
    Invalidate all cached event listings.
    Uses SCAN to find and delete all keys matching the prefix.
    """
    client = await get_redis()
    if not client:
        return

    try:
        deleted = 0
        async for key in client.scan_iter(match="events:list:*", count=100):
            await client.delete(key)
            deleted += 1
        logger.info("cache_invalidated", keys_deleted=deleted)
    except Exception as e:
        logger.error("cache_invalidation_error", error=str(e))


async def get_cached_analytics(kind: str, owner_id: int) -> Optional[dict]:
    return await _get_json(make_analytics_key(kind, owner_id))


async def set_cached_analytics(kind: str, owner_id: int, data: dict) -> None:
    await _set_json(make_analytics_key(kind, owner_id), data, settings.ANALYTICS_CACHE_TTL)


async def invalidate_analytics(event_id: int, organizer_id: int) -> None:
    """Drop the analytics entries affected by a change to one event."""
    client = await get_redis()
    if not client:
        return

    keys = [
        make_analytics_key(ANALYTICS_EVENT, event_id),
        make_analytics_key(ANALYTICS_OVERALL, organizer_id),
    ]
    try:
        await client.delete(*keys)
        logger.debug("analytics_cache_invalidated", keys=keys)
    except Exception as e:
        logger.error("cache_invalidation_error", keys=keys, error=str(e))


async def get_cache_stats() -> dict:
    """Get Redis cache statistics for monitoring."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
        keyspace = await client.info("keyspace")
        return {
            "status": "connected",
            "hits": info.get("keyspace_hits", 0),
            "misses": info.get("keyspace_misses", 0),
            "hit_rate": (
                round(
                    info.get("keyspace_hits", 0)
                    / max(info.get("keyspace_hits", 0) + info.get("keyspace_misses", 0), 1)
                    * 100,
                    2,
                )
            ),
            "keys": keyspace,
        }
    except Exception as e:
        return {"status": "error", "error": str(e)}
