"""
Redis caching for asset listings.

CACHING STRATEGY
================

What we cache:
  - The serialized responses of GET /assets and GET /assets/available
  - Key pattern: "assets:list:{scope}" with scope in {all, available}

Invalidation:
  - Any asset create/update/delete and any booking register/close/delete
    changes either an availability flag or an embedded booking history,
    so all "assets:list:*" keys are dropped by SCAN.
  - TTL-based expiry as safety net.

Redis is advisory: when it is disabled or unreachable every function here
degrades to a no-op / cache miss and the request is served from the
database.
"""

import json
from typing import Optional

import redis.asyncio as redis

from rentalhub.core.config import get_settings
from rentalhub.core.logging import get_logger
from rentalhub.core.metrics import record_cache_operation

logger = get_logger(__name__)
settings = get_settings()

ASSET_LIST_PREFIX = "assets:list:"

_redis_client: Optional[redis.Redis] = None


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
        await _redis_client.aclose()
        _redis_client = None


def _asset_list_key(scope: str) -> str:
    return f"{ASSET_LIST_PREFIX}{scope}"


async def get_cached_assets(scope: str) -> Optional[list[dict]]:
    client = await get_redis()
    if not client:
        return None

    key = _asset_list_key(scope)
    try:
        data = await client.get(key)
    except Exception as e:
        record_cache_operation("get", "error")
        logger.error("cache_get_error", key=key, error=str(e))
        return None

    if data is None:
        record_cache_operation("get", "miss")
        return None
    record_cache_operation("get", "hit")
    return json.loads(data)


async def set_cached_assets(scope: str, data: list[dict]) -> None:
    client = await get_redis()
    if not client:
        return

    key = _asset_list_key(scope)
    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(data, default=str))
        record_cache_operation("set", "ok")
    except Exception as e:
        record_cache_operation("set", "error")
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_asset_cache() -> None:
    """Drop every cached asset listing."""
    client = await get_redis()
    if not client:
        return

    try:
        deleted = 0
        async for key in client.scan_iter(match=f"{ASSET_LIST_PREFIX}*", count=100):
            await client.delete(key)
            deleted += 1
        record_cache_operation("invalidate", "ok")
        logger.info("cache_invalidated", keys_deleted=deleted)
    except Exception as e:
        record_cache_operation("invalidate", "error")
        logger.error("cache_invalidation_error", error=str(e))


async def get_cache_stats() -> dict:
    """Redis cache statistics for the health endpoint."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
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
