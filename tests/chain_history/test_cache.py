"""
Cache Tests.

TEST CATEGORIES:
- BoundedTTLCache expiry and eviction (fake clock)
- TransactionCacheKey canonicalization
- QueryCache per-address invalidation
"""

import pytest

from chain_history import (
    BoundedTTLCache,
    Network,
    PaginatedResponse,
    PaginationMetadata,
    PaginationOptions,
    QueryCache,
    TransactionCacheKey,
    ValidationError,
)
from tests.chain_history.mocks import ETH_ADDRESS, SOL_PUBLIC_KEY


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def page(marker: str = "x") -> PaginatedResponse:
    return PaginatedResponse(data=(), pagination=PaginationMetadata(has_more=False, next_cursor=marker))


# ============================================================
# BOUNDED TTL CACHE
# ============================================================

class TestBoundedTTLCache:
    """Tests for BoundedTTLCache."""

    def test_set_then_get(self):
        cache = BoundedTTLCache(default_ttl=30, max_size=10, clock=FakeClock())
        value = {"a": 1}
        cache.set("k", value)
        assert cache.get("k") is value
        assert cache.has("k")

    def test_expires_at_ttl(self):
        """Test an entry is absent once its TTL has elapsed."""
        clock = FakeClock()
        cache = BoundedTTLCache(default_ttl=30, max_size=10, clock=clock)
        cache.set("k", "v")

        clock.now = 29.9
        assert cache.get("k") == "v"

        clock.now = 30.0
        assert cache.get("k") is None
        assert not cache.has("k")

    def test_per_entry_ttl(self):
        clock = FakeClock()
        cache = BoundedTTLCache(default_ttl=30, max_size=10, clock=clock)
        cache.set("short", 1, ttl=5)
        cache.set("long", 2)

        clock.now = 6
        assert cache.get("short") is None
        assert cache.get("long") == 2

    def test_size_excludes_expired(self):
        clock = FakeClock()
        cache = BoundedTTLCache(default_ttl=10, max_size=10, clock=clock)
        cache.set("a", 1)
        clock.now = 5
        cache.set("b", 2)

        clock.now = 10
        assert cache.size() == 1
        assert len(cache) == 1

    def test_evicts_oldest(self):
        """Test inserting beyond max_size evicts exactly the oldest entry."""
        clock = FakeClock()
        cache = BoundedTTLCache(default_ttl=100, max_size=3, clock=clock)
        for i, key in enumerate(["a", "b", "c"]):
            clock.now = float(i)
            cache.set(key, i)

        clock.now = 3.0
        cache.set("d", 3)

        assert cache.keys() == ["b", "c", "d"]
        assert cache.get("a") is None

    def test_overwrite_does_not_evict(self):
        """Test replacing an existing key keeps the other entries."""
        clock = FakeClock()
        cache = BoundedTTLCache(default_ttl=100, max_size=2, clock=clock)
        cache.set("a", 1)
        cache.set("b", 2)
        clock.now = 1.0
        cache.set("a", 10)

        assert cache.get("a") == 10
        assert cache.get("b") == 2

    def test_expired_purged_before_eviction(self):
        """Test expired entries make room before a live entry is evicted."""
        clock = FakeClock()
        cache = BoundedTTLCache(default_ttl=100, max_size=2, clock=clock)
        cache.set("old", 1, ttl=1)
        cache.set("live", 2)

        clock.now = 2.0
        cache.set("new", 3)
        assert cache.get("live") == 2
        assert cache.get("new") == 3

    def test_delete_and_clear(self):
        cache = BoundedTTLCache(clock=FakeClock())
        cache.set("a", 1)
        cache.set("b", 2)

        assert cache.delete("a")
        assert not cache.delete("a")
        cache.clear()
        assert cache.size() == 0

    def test_on_remove_hook(self):
        """Test every removal path reports the key."""
        removed = []
        clock = FakeClock()
        cache = BoundedTTLCache(default_ttl=10, max_size=1, clock=clock, on_remove=removed.append)

        cache.set("a", 1)
        cache.set("b", 2)        # eviction
        cache.delete("b")        # delete
        cache.set("c", 3)
        clock.now = 11
        cache.get("c")           # expiry
        assert removed == ["a", "b", "c"]

    def test_stats(self):
        cache = BoundedTTLCache(default_ttl=30, max_size=5, clock=FakeClock())
        cache.set("a", 1)
        cache.get("a")
        cache.get("missing")

        stats = cache.stats()
        assert stats == {
            "size": 1,
            "max_size": 5,
            "default_ttl": 30,
            "hits": 1,
            "misses": 1,
        }

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            BoundedTTLCache(max_size=0)


# ============================================================
# CACHE KEYS
# ============================================================

class TestTransactionCacheKey:
    """Tests for key canonicalization."""

    def test_case_insensitive_hex_address(self):
        upper = TransactionCacheKey.build(Network.ETHEREUM_MAINNET, ETH_ADDRESS, {"limit": 10})
        lower = TransactionCacheKey.build(Network.ETHEREUM_MAINNET, ETH_ADDRESS.lower(), {"limit": 10})
        assert upper.to_string() == lower.to_string()

    def test_option_order_irrelevant(self):
        a = TransactionCacheKey.build(
            Network.ETHEREUM_MAINNET, ETH_ADDRESS, {"limit": 10, "page": 2, "start_time": 5}
        )
        b = TransactionCacheKey.build(
            Network.ETHEREUM_MAINNET, ETH_ADDRESS, {"start_time": 5, "page": 2, "limit": 10}
        )
        assert a.to_string() == b.to_string()

    def test_default_page_equivalent(self):
        """Test page=None and page=1 address the same query."""
        a = TransactionCacheKey.build(Network.ETHEREUM_MAINNET, ETH_ADDRESS, None)
        b = TransactionCacheKey.build(Network.ETHEREUM_MAINNET, ETH_ADDRESS, PaginationOptions(page=1))
        assert a == b

    def test_solana_case_preserved(self):
        key = TransactionCacheKey.build(Network.SOLANA_MAINNET, SOL_PUBLIC_KEY)
        assert SOL_PUBLIC_KEY in key.to_string()

    def test_distinct_options_distinct_keys(self):
        a = TransactionCacheKey.build(Network.SOLANA_MAINNET, SOL_PUBLIC_KEY, {"cursor": "abc"})
        b = TransactionCacheKey.build(Network.SOLANA_MAINNET, SOL_PUBLIC_KEY, {"cursor": "abd"})
        assert a.to_string() != b.to_string()

    def test_format(self):
        key = TransactionCacheKey.build(Network.ETHEREUM_MAINNET, ETH_ADDRESS, {"limit": 5})
        assert key.to_string() == f"tx:ethereum-mainnet:{ETH_ADDRESS.lower()}:5:1:::"

    def test_invalid_address(self):
        with pytest.raises(ValidationError):
            TransactionCacheKey.build(Network.ETHEREUM_MAINNET, "0xinvalid")

    def test_float_bound_rejected(self):
        """Test 1000.0 cannot produce a key distinct from 1000."""
        key = TransactionCacheKey.build(Network.ETHEREUM_MAINNET, ETH_ADDRESS, {"start_time": 1000})
        assert key.to_string().endswith(":1000:")

        with pytest.raises(ValidationError):
            TransactionCacheKey.build(Network.ETHEREUM_MAINNET, ETH_ADDRESS, {"start_time": 1000.0})


# ============================================================
# QUERY CACHE
# ============================================================

class TestQueryCache:
    """Tests for QueryCache."""

    def test_roundtrip_identical_value(self):
        cache = QueryCache(clock=FakeClock())
        value = page()
        cache.set(Network.ETHEREUM_MAINNET, ETH_ADDRESS, {"limit": 10}, value)

        assert cache.get(Network.ETHEREUM_MAINNET, ETH_ADDRESS.lower(), {"limit": 10}) is value
        assert cache.get(Network.ETHEREUM_MAINNET, ETH_ADDRESS, {"limit": 20}) is None

    def test_ttl(self):
        clock = FakeClock()
        cache = QueryCache(default_ttl=30, clock=clock)
        cache.set(Network.SOLANA_MAINNET, SOL_PUBLIC_KEY, None, page())

        clock.now = 30
        assert cache.get(Network.SOLANA_MAINNET, SOL_PUBLIC_KEY) is None

    def test_invalidate_one_address(self):
        """Test invalidation removes only the target address's pages."""
        cache = QueryCache(clock=FakeClock())
        cache.set(Network.ETHEREUM_MAINNET, ETH_ADDRESS, {"page": 1}, page("1"))
        cache.set(Network.ETHEREUM_MAINNET, ETH_ADDRESS, {"page": 2}, page("2"))
        cache.set(Network.SOLANA_MAINNET, SOL_PUBLIC_KEY, None, page("s"))

        removed = cache.invalidate(Network.ETHEREUM_MAINNET, ETH_ADDRESS.lower())

        assert removed == 2
        assert cache.get(Network.ETHEREUM_MAINNET, ETH_ADDRESS, {"page": 1}) is None
        assert cache.get(Network.SOLANA_MAINNET, SOL_PUBLIC_KEY) is not None
        assert cache.size() == 1

    def test_index_follows_eviction(self):
        """Test evicted keys leave the address index."""
        clock = FakeClock()
        cache = QueryCache(max_size=1, clock=clock)
        cache.set(Network.ETHEREUM_MAINNET, ETH_ADDRESS, None, page())
        clock.now = 1
        cache.set(Network.SOLANA_MAINNET, SOL_PUBLIC_KEY, None, page())

        assert cache.invalidate(Network.ETHEREUM_MAINNET, ETH_ADDRESS) == 0
        assert cache.stats()["addresses"] == 1

    def test_clear(self):
        cache = QueryCache(clock=FakeClock())
        cache.set(Network.SOLANA_MAINNET, SOL_PUBLIC_KEY, None, page())
        cache.clear()

        assert cache.size() == 0
        assert cache.stats()["addresses"] == 0
