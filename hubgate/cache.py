"""
Cache collaborator contract and an in-memory implementation.

Callers hand the cache a key, a compute function and the
:class:`~hubgate.offline.CachePolicy` derived from the current offline mode.
"""

import threading
import time
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import Any, Protocol

from hubgate.logging import get_logger
from hubgate.offline import CachePolicy

_logger = get_logger("cache")


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()
"""Returned by cache-only lookups when nothing is cached."""

DEFAULT_TTLS: dict[str, float] = {
    "repository": 3600.0,
}
DEFAULT_TTL = 600.0


class CacheStore(Protocol):
    def get(
        self,
        key: Hashable,
        compute: Callable[[], Any],
        policy: CachePolicy,
    ) -> Any: ...


@dataclass
class CacheEntry:
    value: Any
    stored_at: float


@dataclass
class CacheStats:
    hit: int = 0
    miss: int = 0
    write: int = 0


class MemoryCache:
    """
    Thread-safe in-memory cache with per-data-class expiry.

    Keys are tuples whose first element names the data class (see
    :meth:`RepositoryIdentity.cache_key`); the class selects the TTL.

    - ``BYPASS``: always compute, store the result
    - ``EXPIRE``: serve entries younger than their TTL, otherwise compute
    - ``CACHE_ONLY`` / ``CACHE_ONLY_ANY_AGE``: never compute; serve any
      entry regardless of age, else :data:`MISSING`
    """

    def __init__(
        self,
        ttls: dict[str, float] | None = None,
        default_ttl: float = DEFAULT_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttls = dict(DEFAULT_TTLS if ttls is None else ttls)
        self.default_ttl = default_ttl
        self.clock = clock
        self.stats = CacheStats()
        self._entries: dict[Hashable, CacheEntry] = {}
        self._mu = threading.Lock()

    def get(
        self,
        key: Hashable,
        compute: Callable[[], Any],
        policy: CachePolicy,
    ) -> Any:
        if policy is not CachePolicy.BYPASS:
            with self._mu:
                entry = self._entries.get(key)
                if entry is not None and self._usable(key, entry, policy):
                    self.stats.hit += 1
                    return entry.value
                self.stats.miss += 1
            if policy in (CachePolicy.CACHE_ONLY, CachePolicy.CACHE_ONLY_ANY_AGE):
                _logger.debug("cache-only miss for %r", key)
                return MISSING
        else:
            with self._mu:
                self.stats.miss += 1

        # computed outside the lock; concurrent misses may compute twice
        value = compute()
        self.put(key, value)
        return value

    def peek(self, key: Hashable) -> Any:
        """Cached value of any age, or :data:`MISSING`."""
        with self._mu:
            entry = self._entries.get(key)
        return MISSING if entry is None else entry.value

    def put(self, key: Hashable, value: Any) -> None:
        with self._mu:
            self._entries[key] = CacheEntry(value=value, stored_at=self.clock())
            self.stats.write += 1

    def invalidate(self, key: Hashable) -> None:
        with self._mu:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._mu:
            self._entries.clear()

    def ttl_for(self, key: Hashable) -> float:
        data_class = key[0] if isinstance(key, tuple) and key else None
        return self.ttls.get(data_class, self.default_ttl) if isinstance(data_class, str) else self.default_ttl

    def _usable(self, key: Hashable, entry: CacheEntry, policy: CachePolicy) -> bool:
        if policy in (CachePolicy.CACHE_ONLY, CachePolicy.CACHE_ONLY_ANY_AGE):
            return True
        return self.clock() - entry.stored_at < self.ttl_for(key)
