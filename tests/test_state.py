"""Tests for the visited registry and content store."""

import asyncio

from crawly.state import ContentStore, VisitedRegistry


class TestVisitedRegistry:
    async def test_claim_new_url(self):
        registry = VisitedRegistry(max_pages=10, max_depth=2)
        assert await registry.try_claim("http://a.test/", 0) is True
        # Claimed but not yet visited
        assert "http://a.test/" not in registry
        assert len(registry) == 0

    async def test_rejects_claimed_url(self):
        """A URL in flight cannot be claimed by another branch."""
        registry = VisitedRegistry(max_pages=10, max_depth=2)
        await registry.try_claim("http://a.test/", 0)
        assert await registry.try_claim("http://a.test/", 1) is False

    async def test_rejects_visited_url(self):
        registry = VisitedRegistry(max_pages=10, max_depth=2)
        await registry.try_claim("http://a.test/", 0)
        await registry.mark_visited("http://a.test/")
        assert "http://a.test/" in registry
        assert await registry.try_claim("http://a.test/", 1) is False

    async def test_rejects_beyond_max_depth(self):
        registry = VisitedRegistry(max_pages=10, max_depth=2)
        assert await registry.try_claim("http://a.test/deep", 2) is True
        assert await registry.try_claim("http://a.test/deeper", 3) is False

    async def test_rejects_when_full(self):
        """Admission stops once max_pages URLs are visited."""
        registry = VisitedRegistry(max_pages=2, max_depth=5)
        for url in ("http://a.test/1", "http://a.test/2"):
            await registry.try_claim(url, 0)
        assert await registry.mark_visited("http://a.test/1") is False
        assert await registry.mark_visited("http://a.test/2") is True
        assert registry.is_full()
        assert await registry.try_claim("http://a.test/3", 0) is False

    async def test_release_makes_url_claimable_again(self):
        registry = VisitedRegistry(max_pages=10, max_depth=2)
        await registry.try_claim("http://a.test/", 0)
        await registry.release("http://a.test/")
        assert await registry.try_claim("http://a.test/", 0) is True

    async def test_concurrent_claims_admit_one(self):
        """Only one of many simultaneous claims on a URL succeeds."""
        registry = VisitedRegistry(max_pages=100, max_depth=2)
        results = await asyncio.gather(*[
            registry.try_claim("http://a.test/", 0) for _ in range(20)
        ])
        assert results.count(True) == 1

    async def test_visited_snapshot(self):
        registry = VisitedRegistry(max_pages=10, max_depth=2)
        await registry.try_claim("http://a.test/", 0)
        await registry.mark_visited("http://a.test/")
        assert registry.visited() == frozenset({"http://a.test/"})


class TestContentStore:
    async def test_keeps_insertion_order(self):
        store = ContentStore()
        await store.add("http://a.test/2", "two")
        await store.add("http://a.test/1", "one")
        assert list(store.snapshot()) == ["http://a.test/2", "http://a.test/1"]

    async def test_does_not_overwrite(self):
        """A URL is stored at most once."""
        store = ContentStore()
        assert await store.add("http://a.test/", "first") is True
        assert await store.add("http://a.test/", "second") is False
        assert store.snapshot() == {"http://a.test/": "first"}
        assert len(store) == 1

    async def test_snapshot_is_a_copy(self):
        store = ContentStore()
        await store.add("http://a.test/", "page")
        snapshot = store.snapshot()
        snapshot["http://a.test/other"] = "x"
        assert "http://a.test/other" not in store
