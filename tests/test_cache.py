"""Tests for ResultCache."""

from catalog_admin.core.cache import CATALOG_SNAPSHOT_KEY, ResultCache


class TestResultCache:
    """Lazy-expiry behaviour of ResultCache."""

    def test_get_returns_stored_value(self, cache: ResultCache) -> None:
        cache.set("k", [1, 2, 3])

        assert cache.has("k")
        assert cache.get("k") == [1, 2, 3]

    def test_missing_key_is_absent(self, cache: ResultCache) -> None:
        assert not cache.has("nope")
        assert cache.get("nope") is None

    def test_entry_expires_after_ttl(self, cache: ResultCache, clock) -> None:
        cache.set("k", "v", ttl=0.1)
        clock.advance(0.15)

        assert cache.has("k") is False
        assert cache.get("k") is None

    def test_entry_still_live_at_exact_ttl(self, cache: ResultCache, clock) -> None:
        cache.set("k", "v", ttl=10)
        clock.advance(10)

        assert cache.get("k") == "v"

    def test_entries_keep_their_own_ttl(self, cache: ResultCache, clock) -> None:
        cache.set("short", 1, ttl=1)
        cache.set("long", 2, ttl=100)
        clock.advance(5)

        assert cache.get("short") is None
        assert cache.get("long") == 2

    def test_expired_key_can_be_set_again(self, cache: ResultCache, clock) -> None:
        cache.set("k", "old", ttl=1)
        clock.advance(5)
        cache.get("k")

        cache.set("k", "new", ttl=1)

        assert cache.get("k") == "new"

    def test_default_ttl_applies_when_omitted(self, clock) -> None:
        cache = ResultCache(default_ttl=30, clock=clock)
        cache.set("k", "v")

        clock.advance(29)
        assert cache.has("k")

        clock.advance(2)
        assert not cache.has("k")

    def test_empty_payload_is_a_hit(self, cache: ResultCache) -> None:
        cache.set(CATALOG_SNAPSHOT_KEY, [])

        assert cache.has(CATALOG_SNAPSHOT_KEY)
        assert cache.get(CATALOG_SNAPSHOT_KEY) == []

    def test_invalidate_removes_entry(self, cache: ResultCache) -> None:
        cache.set(CATALOG_SNAPSHOT_KEY, ["item"])
        cache.invalidate(CATALOG_SNAPSHOT_KEY)

        assert cache.get(CATALOG_SNAPSHOT_KEY) is None

    def test_invalidate_unknown_key_is_noop(self, cache: ResultCache) -> None:
        cache.invalidate("unknown")

        assert not cache.has("unknown")
