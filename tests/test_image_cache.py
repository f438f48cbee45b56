"""
Unit tests for the image decode cache.

Images are served by an in-memory httpx transport, so no network
access is needed.
"""

import asyncio
from concurrent.futures import ThreadPoolExecutor

from catalog_studio.image_cache import ImageDecodeCache, ImageStatus, NO_IMAGE
from tests.conftest import make_png


URL = "https://images.test/img/a.png"


class TestImageDecodeCache:
    """Test fetching, decoding, de-duplication and eviction."""

    def test_fetches_and_decodes(self, image_cache):
        """Test an HTTP image is fetched and decoded to RGBA."""
        result = asyncio.run(image_cache.get(URL))

        assert result.ready
        assert result.image.mode == 'RGBA'
        assert result.image.size == (64, 48)
        assert image_cache.state(URL) == 'ready'

    def test_concurrent_requests_share_one_fetch(self, image_cache, image_server):
        """Test concurrent requests for one URL share a single fetch."""
        async def load():
            return await asyncio.gather(*(image_cache.get(URL) for _ in range(5)))

        results = asyncio.run(load())

        assert all(r.ready for r in results)
        assert image_cache.fetch_count == 1
        assert len(image_server.requests) == 1

    def test_cached_across_event_loops(self, image_cache, image_server):
        """Test a decoded image is reused by a later event loop."""
        asyncio.run(image_cache.get(URL))
        asyncio.run(image_cache.get(URL))

        assert len(image_server.requests) == 1

    def test_missing_url(self, image_cache):
        """Test absent URLs resolve to NO_IMAGE without fetching."""
        assert asyncio.run(image_cache.get(None)) is NO_IMAGE
        assert asyncio.run(image_cache.get("  ")) is NO_IMAGE
        assert image_cache.fetch_count == 0

    def test_http_error_is_failure_not_exception(self, image_cache):
        """Test HTTP errors become a FAILED marker."""
        result = asyncio.run(image_cache.get("https://images.test/missing.png"))

        assert result.status is ImageStatus.FAILED
        assert result.error

    def test_undecodable_bytes_fail(self, image_cache):
        """Test bytes Pillow cannot decode become a FAILED marker."""
        result = asyncio.run(image_cache.get("https://images.test/broken/x.png"))

        assert result.status is ImageStatus.FAILED

    def test_failures_are_retried(self, image_cache, image_server):
        """Test failed fetches are not cached."""
        url = "https://images.test/missing.png"
        asyncio.run(image_cache.get(url))

        assert image_cache.state(url) is None

        asyncio.run(image_cache.get(url))
        assert len(image_server.requests) == 2

    def test_unsupported_scheme(self, image_cache):
        """Test unknown URL schemes fail without raising."""
        result = asyncio.run(image_cache.get("ftp://images.test/a.png"))

        assert result.status is ImageStatus.FAILED

    def test_local_file(self, image_cache, tmp_path):
        """Test local file paths are loaded."""
        path = tmp_path / "local.png"
        path.write_bytes(make_png(size=(10, 20)))

        result = asyncio.run(image_cache.get(str(path)))
        assert result.ready
        assert result.image.size == (10, 20)

        from_uri = asyncio.run(image_cache.get(path.as_uri()))
        assert from_uri.ready

    def test_lru_eviction(self, image_transport):
        """Test the least recently used entry is evicted first."""
        cache = ImageDecodeCache(max_entries=2, transport=image_transport)
        urls = [f"https://images.test/img/{n}.png" for n in ('a', 'b', 'c')]

        async def load():
            for url in urls:
                await cache.get(url)

        asyncio.run(load())

        assert len(cache) == 2
        assert cache.state(urls[0]) is None
        assert cache.state(urls[2]) == 'ready'

    def test_recently_used_survives_eviction(self, image_transport):
        """Test a cache hit refreshes the entry's recency."""
        cache = ImageDecodeCache(max_entries=2, transport=image_transport)
        a, b, c = (f"https://images.test/img/{n}.png" for n in ('a', 'b', 'c'))

        async def load():
            await cache.get(a)
            await cache.get(b)
            await cache.get(a)
            await cache.get(c)

        asyncio.run(load())

        assert cache.state(a) == 'ready'
        assert cache.state(b) is None

    def test_clear(self, image_cache):
        """Test clearing drops every entry."""
        asyncio.run(image_cache.get(URL))
        image_cache.clear()

        assert len(image_cache) == 0
        assert image_cache.state(URL) is None

    def test_threads_share_cache_under_eviction(self, image_transport):
        """Test request threads hitting a tiny cache always get a result."""
        cache = ImageDecodeCache(max_entries=2, transport=image_transport)
        urls = [f"https://images.test/img/{n}.png" for n in 'abcdef']

        def worker(_):
            async def load():
                return [await cache.get(url) for url in urls * 3]
            return asyncio.run(load())

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = [r for batch in pool.map(worker, range(8)) for r in batch]

        assert len(results) == 8 * 18
        assert all(r.status is ImageStatus.READY for r in results)
        assert len(cache) <= 2
