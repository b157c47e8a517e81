"""
Redis Cache for Commute Lookups

Geocoding and transit routing are paid, slow external calls, so their
results are cached in two layers:
- Geocode Cache (24hr TTL): address -> coordinates
- Transit Cache (6hr TTL): origin/destination pair -> commute result

Cache Key Patterns:
    - geo:{address_hash} - Geocoded coordinates
    - transit:{origin}:{destination} - Commute results, coordinates
      rounded to 3 decimals so nearby points share an entry

The cache degrades gracefully: when Redis is unavailable every lookup is
a miss and every write is a no-op, so a commute is never failed by it.

Usage:
    cache = await get_cache()

    coords = await cache.get_geocode("123 Main St, Orlando, FL")
    if coords is None:
        coords = await geocoder.geocode(...)
        await cache.set_geocode("123 Main St, Orlando, FL", coords)
"""

import json
import hashlib
import logging
from enum import Enum
from typing import Any, Dict, Optional

import redis.asyncio as redis

from jobplanner.config import get_settings
from jobplanner.middleware.metrics import record_cache_hit, record_cache_miss
from jobplanner.schemas.listing import Coordinates

logger = logging.getLogger(__name__)


class CacheLayer(Enum):
    """Cache layers with TTL values in seconds."""

    GEOCODE = ("geocode", 86400)   # 24 hours
    TRANSIT = ("transit", 21600)   # 6 hours

    def __init__(self, layer_name: str, ttl: int):
        self.layer_name = layer_name
        self._ttl = ttl

    @property
    def ttl(self) -> int:
        return self._ttl


def hash_content(*args: Any) -> str:
    """
    Generate a 16-character hex hash from content.

    Args:
        *args: Content to hash (will be JSON serialized)

    Returns:
        16-character hex string
    """
    content = json.dumps(args, sort_keys=True, default=str)
    return hashlib.sha256(content.encode()).hexdigest()[:16]


def round_coordinates(coords: Coordinates) -> str:
    return f"{coords.lat:.3f},{coords.lng:.3f}"


def geocode_key(address: str) -> str:
    return f"geo:{hash_content(address.strip().lower())}"


def transit_key(origin: Coordinates, destination: Coordinates) -> str:
    return f"transit:{round_coordinates(origin)}:{round_coordinates(destination)}"


class CommuteCache:
    """
    Redis cache for geocoding and transit routing results.

    Attributes:
        redis: Async Redis client, created lazily on first use
        stats: Hit/miss counts per layer since process start
    """

    def __init__(self, redis_url: str):
        self.redis_url = redis_url
        self.redis: Optional[redis.Redis] = None
        self.stats: Dict[str, Dict[str, int]] = {
            outcome: {layer.layer_name: 0 for layer in CacheLayer}
            for outcome in ("hits", "misses")
        }

    def _client(self) -> redis.Redis:
        if self.redis is None:
            self.redis = redis.from_url(self.redis_url, encoding="utf-8", decode_responses=True)
        return self.redis

    def _count(self, layer: CacheLayer, hit: bool) -> None:
        if hit:
            self.stats["hits"][layer.layer_name] += 1
            record_cache_hit(layer.layer_name)
        else:
            self.stats["misses"][layer.layer_name] += 1
            record_cache_miss(layer.layer_name)

    async def _read(self, layer: CacheLayer, key: str) -> Optional[Any]:
        try:
            raw = await self._client().get(key)
        except (redis.RedisError, OSError) as e:
            logger.warning(f"{layer.layer_name} cache read failed, treating as miss: {e}")
            raw = None
        self._count(layer, hit=bool(raw))
        return json.loads(raw) if raw else None

    async def _write(self, layer: CacheLayer, key: str, value: Any) -> bool:
        try:
            await self._client().setex(key, layer.ttl, json.dumps(value))
        except (redis.RedisError, OSError) as e:
            logger.warning(f"{layer.layer_name} cache write skipped: {e}")
            return False
        return True

    async def get_geocode(self, address: str) -> Optional[Coordinates]:
        data = await self._read(CacheLayer.GEOCODE, geocode_key(address))
        return Coordinates(**data) if data else None

    async def set_geocode(self, address: str, coords: Coordinates) -> bool:
        return await self._write(CacheLayer.GEOCODE, geocode_key(address), coords.model_dump())

    async def get_route(self, origin: Coordinates, destination: Coordinates) -> Optional[Dict[str, Any]]:
        """Cached commute as a dict of minutes, route_ids and summary, or None."""
        return await self._read(CacheLayer.TRANSIT, transit_key(origin, destination))

    async def set_route(self, origin: Coordinates, destination: Coordinates, result: Dict[str, Any]) -> bool:
        return await self._write(CacheLayer.TRANSIT, transit_key(origin, destination), result)

    async def health_check(self) -> bool:
        try:
            await self._client().ping()
        except (redis.RedisError, OSError) as e:
            logger.warning(f"Redis health check failed: {e}")
            return False
        return True

    def get_stats(self) -> Dict[str, Dict[str, Any]]:
        report = {}
        for layer in CacheLayer:
            name = layer.layer_name
            hits, misses = self.stats["hits"][name], self.stats["misses"][name]
            lookups = hits + misses
            report[name] = {
                "hits": hits,
                "misses": misses,
                "total": lookups,
                "hit_rate": hits / lookups if lookups else 0.0,
            }
        return report

    async def close(self) -> None:
        if self.redis is not None:
            await self.redis.close()
            self.redis = None


_cache_instance: Optional[CommuteCache] = None


async def get_cache(redis_url: Optional[str] = None) -> CommuteCache:
    """Process-wide cache, built from settings on first call."""
    global _cache_instance

    if _cache_instance is None:
        _cache_instance = CommuteCache(redis_url=redis_url or get_settings().redis_url)
    return _cache_instance
