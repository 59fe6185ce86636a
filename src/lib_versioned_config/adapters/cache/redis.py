"""Redis implementation of the distributed cache port.

Purpose
-------
Share resolved configuration documents between worker processes. Values are
stored as JSON under ``<prefix>:<cache_key>`` with a TTL; every key is also
added to the Redis set ``<prefix>:tag:<tag>`` so a tag flush can delete all
members at once.

Failure policy
--------------
Read failures raise :class:`~lib_versioned_config.domain.errors.CacheUnavailable`
so the resolution cache falls back to the filesystem. Failures while storing a
freshly computed value are logged and the value is returned anyway.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Sequence

import redis

from ...domain.errors import CacheUnavailable
from ...observability import log_debug, log_error

DEFAULT_PREFIX = "lib_versioned_config"


class RedisTagCache:
    """Tag-aware cache on top of a synchronous :class:`redis.Redis` client."""

    def __init__(self, client: redis.Redis, *, prefix: str = DEFAULT_PREFIX, enabled: bool = True) -> None:
        """Initialize the cache.

        Args:
            client: Redis client instance
            prefix: Namespace prepended to every Redis key
            enabled: Switch allowing deployments to turn caching off
        """
        self._client = client
        self._prefix = prefix
        self.enabled = enabled

    @classmethod
    def from_url(cls, url: str, *, prefix: str = DEFAULT_PREFIX, enabled: bool = True) -> RedisTagCache:
        """Build a cache from a ``redis://`` URL."""
        return cls(redis.Redis.from_url(url), prefix=prefix, enabled=enabled)

    def _key(self, cache_key: str) -> str:
        return f"{self._prefix}:{cache_key}"

    def _tag_key(self, tag: str) -> str:
        return f"{self._prefix}:tag:{tag}"

    def is_enabled(self) -> bool:
        """Return ``True`` when switched on and the server answers ``PING``."""
        if not self.enabled:
            return False
        try:
            return bool(self._client.ping())
        except redis.RedisError as exc:
            log_error("redis_ping_failed", error=str(exc))
            return False

    def get_or_compute(
        self,
        cache_key: str,
        ttl: int,
        tags: Sequence[str],
        compute: Callable[[], Any],
    ) -> Any:
        redis_key = self._key(cache_key)
        try:
            raw = self._client.get(redis_key)
        except redis.RedisError as exc:
            log_error("redis_get_error", cache_key=cache_key, error=str(exc))
            raise CacheUnavailable(f"Failed to read {cache_key} from Redis: {exc}") from exc

        if raw is not None:
            try:
                value = json.loads(raw)
            except (json.JSONDecodeError, UnicodeDecodeError) as exc:
                raise CacheUnavailable(f"Corrupt cache entry for {cache_key}: {exc}") from exc
            log_debug("cache_entry_hit", cache_key=cache_key)
            return value

        value = compute()
        try:
            pipeline = self._client.pipeline()
            pipeline.set(redis_key, json.dumps(value), ex=ttl)
            for tag in tags:
                tag_key = self._tag_key(tag)
                pipeline.sadd(tag_key, redis_key)
                pipeline.expire(tag_key, ttl)
            pipeline.execute()
        except redis.RedisError as exc:
            log_error("redis_set_error", cache_key=cache_key, error=str(exc))
            return value
        log_debug("cache_entry_stored", cache_key=cache_key, ttl=ttl, tags=list(tags))
        return value

    def invalidate_tag(self, tag: str) -> None:
        """Delete every key registered under *tag*, then the tag set itself."""
        tag_key = self._tag_key(tag)
        try:
            members = self._client.smembers(tag_key)
            if members:
                self._client.delete(*members)
            self._client.delete(tag_key)
        except redis.RedisError as exc:
            log_error("redis_invalidate_error", tag=tag, error=str(exc))
            raise CacheUnavailable(f"Failed to invalidate tag {tag}: {exc}") from exc
        log_debug("cache_tag_invalidated", tag=tag, keys=len(members or ()))
