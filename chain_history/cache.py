"""
In-memory TTL cache with size-bounded eviction.

BoundedTTLCache is a generic key -> value store. Entries are immutable
CacheEntry records; set() replaces, never merges. When full, the single
oldest entry (by creation time) is evicted.

QueryCache stores paginated transaction results keyed by a canonical
string of (network, normalized address, pagination options) and keeps a
per-address key index so one address can be invalidated without
clearing everything.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar, Union

from chain_history.models import (
    CacheEntry,
    Network,
    PaginatedResponse,
    PaginationOptions,
    Transaction,
)
from chain_history.validation import normalize_address


logger = logging.getLogger(__name__)

K = TypeVar("K")
V = TypeVar("V")


class BoundedTTLCache(Generic[K, V]):
    """
    TTL cache bounded by entry count.

    Expired entries are purged lazily on every read and write; no entry
    is ever returned at or past its expiry.
    """

    DEFAULT_TTL = 30.0
    DEFAULT_MAX_SIZE = 100

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL,
        max_size: int = DEFAULT_MAX_SIZE,
        clock: Callable[[], float] = time.monotonic,
        on_remove: Optional[Callable[[K], None]] = None,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        if default_ttl <= 0:
            raise ValueError("default_ttl must be > 0")
        self.default_ttl = default_ttl
        self.max_size = max_size
        self._clock = clock
        self._on_remove = on_remove
        self._store: dict[K, CacheEntry[V]] = {}
        self._hits = 0
        self._misses = 0

    def get(self, key: K) -> Optional[V]:
        self._purge_expired()
        entry = self._store.get(key)
        if entry is None:
            self._misses += 1
            return None
        self._hits += 1
        return entry.value

    def set(self, key: K, value: V, ttl: Optional[float] = None) -> None:
        """Store value, evicting the oldest entry if at capacity."""
        self._purge_expired()
        if key in self._store:
            self._remove(key)
        elif len(self._store) >= self.max_size:
            self._evict_oldest()

        now = self._clock()
        self._store[key] = CacheEntry(
            value=value,
            created_at=now,
            expires_at=now + (ttl if ttl is not None else self.default_ttl),
        )

    def has(self, key: K) -> bool:
        self._purge_expired()
        return key in self._store

    def delete(self, key: K) -> bool:
        if key not in self._store:
            return False
        self._remove(key)
        return True

    def clear(self) -> None:
        for key in list(self._store):
            self._remove(key)

    def size(self) -> int:
        self._purge_expired()
        return len(self._store)

    def keys(self) -> list[K]:
        self._purge_expired()
        return list(self._store)

    def stats(self) -> dict[str, Any]:
        return {
            "size": self.size(),
            "max_size": self.max_size,
            "default_ttl": self.default_ttl,
            "hits": self._hits,
            "misses": self._misses,
        }

    def _purge_expired(self) -> None:
        now = self._clock()
        expired = [k for k, entry in self._store.items() if entry.is_expired(now)]
        for key in expired:
            self._remove(key)

    def _evict_oldest(self) -> None:
        if not self._store:
            return
        oldest = min(self._store, key=lambda k: self._store[k].created_at)
        self._remove(oldest)

    def _remove(self, key: K) -> None:
        del self._store[key]
        if self._on_remove is not None:
            self._on_remove(key)

    def __len__(self) -> int:
        return self.size()


@dataclass(frozen=True)
class TransactionCacheKey:
    """Cache identity of a transaction query."""
    network: Network
    address: str
    limit: int
    page: int
    cursor: Optional[str]
    start_time: Optional[int]
    end_time: Optional[int]

    @classmethod
    def build(
        cls,
        network: Network,
        address: str,
        options: Union[PaginationOptions, dict[str, Any], None] = None,
    ) -> "TransactionCacheKey":
        opts = PaginationOptions.coerce(options)
        opts.validate()
        return cls(
            network=network,
            address=normalize_address(address, network),
            limit=opts.limit,
            page=opts.page if opts.page is not None else 1,
            cursor=opts.cursor,
            start_time=opts.start_time,
            end_time=opts.end_time,
        )

    def to_string(self) -> str:
        """Fixed field order, so option presentation order never matters."""
        parts = [
            "tx",
            self.network.value,
            self.address,
            str(self.limit),
            str(self.page),
            self.cursor or "",
            "" if self.start_time is None else str(self.start_time),
            "" if self.end_time is None else str(self.end_time),
        ]
        return ":".join(parts)


class QueryCache:
    """Paginated transaction results keyed by query."""

    def __init__(
        self,
        default_ttl: float = BoundedTTLCache.DEFAULT_TTL,
        max_size: int = BoundedTTLCache.DEFAULT_MAX_SIZE,
        clock: Callable[[], float] = time.monotonic,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._logger = logger or logging.getLogger(__name__)
        self._owners: dict[str, tuple[Network, str]] = {}
        self._by_address: dict[tuple[Network, str], set[str]] = {}
        self._cache: BoundedTTLCache[str, PaginatedResponse[Transaction]] = BoundedTTLCache(
            default_ttl=default_ttl,
            max_size=max_size,
            clock=clock,
            on_remove=self._forget,
        )

    def get(
        self,
        network: Network,
        address: str,
        options: Union[PaginationOptions, dict[str, Any], None] = None,
    ) -> Optional[PaginatedResponse[Transaction]]:
        key = TransactionCacheKey.build(network, address, options).to_string()
        value = self._cache.get(key)
        self._logger.debug(f"[query_cache] {'Hit' if value is not None else 'Miss'}: {key}")
        return value

    def set(
        self,
        network: Network,
        address: str,
        options: Union[PaginationOptions, dict[str, Any], None],
        value: PaginatedResponse[Transaction],
        ttl: Optional[float] = None,
    ) -> None:
        cache_key = TransactionCacheKey.build(network, address, options)
        key = cache_key.to_string()
        self._cache.set(key, value, ttl)
        owner = (cache_key.network, cache_key.address)
        self._owners[key] = owner
        self._by_address.setdefault(owner, set()).add(key)

    def invalidate(self, network: Network, address: str) -> int:
        """Remove every cached query for one address. Returns the count removed."""
        owner = (network, normalize_address(address, network))
        keys = list(self._by_address.get(owner, ()))
        for key in keys:
            self._cache.delete(key)
        if keys:
            self._logger.debug(
                f"[query_cache] Invalidated {len(keys)} entries for {network.value}:{owner[1]}"
            )
        return len(keys)

    def clear(self) -> None:
        self._cache.clear()

    def size(self) -> int:
        return self._cache.size()

    def stats(self) -> dict[str, Any]:
        data = self._cache.stats()
        data["addresses"] = len(self._by_address)
        return data

    def _forget(self, key: str) -> None:
        owner = self._owners.pop(key, None)
        if owner is None:
            return
        keys = self._by_address.get(owner)
        if keys is not None:
            keys.discard(key)
            if not keys:
                del self._by_address[owner]
