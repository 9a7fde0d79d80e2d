"""
Tests for the read-through query cache
"""
from unittest.mock import MagicMock

from django.core.cache.backends.locmem import LocMemCache

from services.cache import QueryCache


def _cache() -> QueryCache:
    return QueryCache(LocMemCache("test-query-cache", {}), ttl=60, namespace="test")


class TestQueryCache:
    """Test QueryCache"""

    def test_digest_is_order_independent(self):
        assert QueryCache.digest({"a": 1, "b": 2}) == QueryCache.digest({"b": 2, "a": 1})
        assert QueryCache.digest({"a": 1}) != QueryCache.digest({"a": 2})
        assert QueryCache.digest(None) == "all"

    def test_digest_is_sha256_hex(self):
        digest = QueryCache.digest({"type": "coconut"})
        assert len(digest) == 64
        assert int(digest, 16) >= 0

    def test_get_or_load_calls_loader_once(self):
        cache = _cache()
        loader = MagicMock(return_value=["row"])

        assert cache.get_or_load("projects", {"limit": 20}, loader) == ["row"]
        assert cache.get_or_load("projects", {"limit": 20}, loader) == ["row"]
        assert loader.call_count == 1

    def test_different_params_are_separate_entries(self):
        cache = _cache()
        cache.set("projects", {"limit": 1}, "one")
        cache.set("projects", {"limit": 2}, "two")

        assert cache.get("projects", {"limit": 1}) == "one"
        assert cache.get("projects", {"limit": 2}) == "two"

    def test_cached_none_is_a_hit(self):
        cache = _cache()
        loader = MagicMock(return_value=None)

        cache.get_or_load("project", {"slug": "x"}, loader)
        cache.get_or_load("project", {"slug": "x"}, loader)

        assert loader.call_count == 1

    def test_invalidate_hides_every_key_under_prefix(self):
        cache = _cache()
        cache.set("projects", {"limit": 1}, "one")
        cache.set("projects", {"limit": 2}, "two")
        cache.set("blog", None, "posts")

        cache.invalidate(["projects"])

        assert cache.get("projects", {"limit": 1}) is None
        assert cache.get("projects", {"limit": 2}) is None
        assert cache.get("blog") == "posts"

    def test_clear_invalidates_all_seen_prefixes(self):
        cache = _cache()
        cache.set("projects", None, "list")
        cache.set("testimonials", None, "list")

        cache.clear()

        assert cache.get("projects") is None
        assert cache.get("testimonials") is None

    def test_backend_failure_is_a_miss(self):
        backend = MagicMock()
        backend.get.side_effect = ConnectionError("redis down")
        backend.add.side_effect = ConnectionError("redis down")
        cache = QueryCache(backend, ttl=60)
        loader = MagicMock(return_value="fresh")

        assert cache.get_or_load("projects", None, loader) == "fresh"
        assert cache.get_or_load("projects", None, loader) == "fresh"
        assert loader.call_count == 2

    def test_invalidate_failure_is_swallowed(self):
        backend = MagicMock()
        backend.incr.side_effect = ConnectionError("redis down")
        cache = QueryCache(backend, ttl=60)

        cache.invalidate(["projects"])
