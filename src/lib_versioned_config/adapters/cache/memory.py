"""Process-local implementation of the distributed cache port.

Useful for single-process deployments and as the reference behaviour the Redis
adapter is tested against: entries expire after their TTL and are indexed by
tag so one write can invalidate every cached document.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Sequence

from ...domain.tree import deepcopy_tree
from ...observability import log_debug


class InMemoryTagCache:
    """Dictionary-backed cache with TTL and tag invalidation.

    Examples
    --------
    >>> cache = InMemoryTagCache()
    >>> cache.get_or_compute("config.mailer", 60, ["config"], lambda: {"a": 1})
    {'a': 1}
    >>> cache.get_or_compute("config.mailer", 60, ["config"], lambda: {"a": 2})
    {'a': 1}
    >>> cache.invalidate_tag("config")
    >>> cache.get_or_compute("config.mailer", 60, ["config"], lambda: {"a": 2})
    {'a': 2}
    """

    def __init__(self, *, enabled: bool = True, clock: Callable[[], float] = time.monotonic) -> None:
        self.enabled = enabled
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}
        self._tags: dict[str, set[str]] = {}
        self._lock = threading.Lock()

    def is_enabled(self) -> bool:
        return self.enabled

    def get_or_compute(
        self,
        cache_key: str,
        ttl: int,
        tags: Sequence[str],
        compute: Callable[[], Any],
    ) -> Any:
        """Return the live entry for *cache_key* or store ``compute()`` under it."""

        with self._lock:
            entry = self._entries.get(cache_key)
            if entry is not None and entry[0] > self._clock():
                log_debug("cache_entry_hit", cache_key=cache_key)
                return deepcopy_tree(entry[1])
            self._entries.pop(cache_key, None)

        value = compute()
        with self._lock:
            self._entries[cache_key] = (self._clock() + ttl, deepcopy_tree(value))
            for tag in tags:
                self._tags.setdefault(tag, set()).add(cache_key)
        log_debug("cache_entry_stored", cache_key=cache_key, ttl=ttl, tags=list(tags))
        return value

    def invalidate_tag(self, tag: str) -> None:
        with self._lock:
            for cache_key in self._tags.pop(tag, set()):
                self._entries.pop(cache_key, None)
        log_debug("cache_tag_invalidated", tag=tag)

    def __contains__(self, cache_key: object) -> bool:
        with self._lock:
            entry = self._entries.get(cache_key)  # type: ignore[arg-type]
            return entry is not None and entry[0] > self._clock()
