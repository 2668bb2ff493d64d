"""
Catalogue Cache
===============
Read-through cache for game listings and single-game lookups, backed by Redis.

Keys:
- games:all   -> serialized JSON listing of every game
- games:<id>  -> serialized JSON of one game

Both use the same fixed TTL (300 seconds by default). Writers never refresh
entries; they delete them and let the next read repopulate.

Reads and writes are best-effort: a Redis failure is logged and treated as a
miss. Invalidation raises, so the projection dispatcher can log it with
context.

Usage:
    cache = GameCache(redis.from_url(url, decode_responses=True))

    payload = cache.get(GAMES_ALL_KEY)
    if payload is None:
        payload = build_listing()
        cache.set(GAMES_ALL_KEY, payload)

    cache.invalidate(GAMES_ALL_KEY, game_key(42))
"""
from typing import Optional
import logging
import os

import redis

logger = logging.getLogger(__name__)

# TTL constants (in seconds)
TTL_GAMES = int(os.getenv("GAMES_CACHE_TTL", "300"))

# Key prefixes
PREFIX_GAME = "games:"
GAMES_ALL_KEY = f"{PREFIX_GAME}all"


def game_key(game_id: int) -> str:
    """Cache key for a single game payload."""
    return f"{PREFIX_GAME}{game_id}"


class GameCache:
    """
    Thin wrapper over a Redis client holding serialized catalogue payloads.
    Tracks hit/miss counters per process for the admin status endpoint.
    """

    def __init__(self, client: redis.Redis, ttl: int = TTL_GAMES):
        """
        Args:
            client: Redis client created with decode_responses=True
            ttl: Time to live in seconds for every entry
        """
        self._client = client
        self._ttl = ttl
        self._hits = 0
        self._misses = 0

    @classmethod
    def from_url(cls, url: str) -> "GameCache":
        client = redis.from_url(
            url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
        )
        return cls(client)

    def ping(self) -> None:
        self._client.ping()

    def get(self, key: str) -> Optional[str]:
        """
        Get a cached payload.

        Returns:
            The stored JSON string, or None on miss or Redis failure
        """
        try:
            value = self._client.get(key)
        except redis.RedisError as e:
            logger.warning(f"Cache read failed for {key}: {e}")
            self._misses += 1
            return None

        if value is None:
            self._misses += 1
            return None

        self._hits += 1
        return value

    def set(self, key: str, payload: str) -> None:
        """Store a payload with the configured TTL. Failures are logged only."""
        try:
            self._client.setex(key, self._ttl, payload)
        except redis.RedisError as e:
            logger.warning(f"Cache write failed for {key}: {e}")

    def invalidate(self, *keys: str) -> None:
        """Delete the given keys."""
        if keys:
            self._client.delete(*keys)
            logger.debug(f"Invalidated cache keys: {', '.join(keys)}")

    def get_stats(self) -> dict:
        total_requests = self._hits + self._misses
        hit_rate = (self._hits / total_requests * 100) if total_requests > 0 else 0

        return {
            'ttl': self._ttl,
            'hits': self._hits,
            'misses': self._misses,
            'hit_rate': f"{hit_rate:.2f}%"
        }

    def close(self) -> None:
        self._client.close()
