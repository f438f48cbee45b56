"""
Image decode cache for product pictures.

Fetches images over HTTP(S) or from local paths, decodes them with
Pillow and keeps the decoded rasters in a bounded LRU. Concurrent
requests for the same URL share a single in-flight fetch. Failures
never raise: callers get a FAILED marker and draw a placeholder.
"""

import asyncio
import io
import threading
from collections import OrderedDict
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Optional
from urllib.parse import urlparse, unquote

import httpx
from PIL import Image
from loguru import logger


class ImageStatus(Enum):
    READY = "ready"
    FAILED = "failed"
    MISSING = "missing"


@dataclass(frozen=True)
class CachedImage:
    """Outcome of an image request."""
    url: Optional[str]
    status: ImageStatus
    image: Optional[Image.Image] = None
    error: Optional[str] = None

    @property
    def ready(self) -> bool:
        return self.status is ImageStatus.READY


NO_IMAGE = CachedImage(url=None, status=ImageStatus.MISSING)


class ImageDecodeCache:
    """URL -> decoded RGBA image, with request de-duplication."""

    def __init__(self,
                 max_entries: int = 256,
                 timeout: float = 10.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.max_entries = max_entries
        self.timeout = timeout
        self.transport = transport
        self.fetch_count = 0

        self._entries: "OrderedDict[str, CachedImage]" = OrderedDict()
        self._in_flight: Dict[str, asyncio.Task] = {}
        # request threads each run their own event loop against one cache
        self._lock = threading.Lock()

    async def get(self, url: Optional[str]) -> CachedImage:
        """
        Resolve a URL to a decoded image or a failure marker.

        Absent or blank URLs resolve to NO_IMAGE without any fetch.
        """
        if not url or not url.strip():
            return NO_IMAGE
        url = url.strip()

        loop = asyncio.get_running_loop()
        with self._lock:
            cached = self._entries.pop(url, None)
            if cached is not None:
                self._entries[url] = cached
                return cached

            task = self._in_flight.get(url)
            if task is None or task.get_loop() is not loop:
                task = loop.create_task(self._load(url))
                self._in_flight[url] = task
                task.add_done_callback(lambda done, key=url: self._forget(key, done))

        # shield so one cancelled waiter does not cancel the shared fetch
        return await asyncio.shield(task)

    def state(self, url: Optional[str]) -> Optional[str]:
        """pending | ready | None (never requested, evicted or failed)."""
        if not url:
            return None
        url = url.strip()
        with self._lock:
            entry = self._entries.get(url)
            if entry is not None:
                return entry.status.value
            if url in self._in_flight:
                return "pending"
        return None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    async def _load(self, url: str) -> CachedImage:
        self.fetch_count += 1
        try:
            data = await self._fetch(url)
            image = await asyncio.to_thread(_decode, data)
        except Exception as e:
            logger.warning(f"Image unavailable {url}: {e}")
            # failures are not retained; a later request retries
            return CachedImage(url=url, status=ImageStatus.FAILED, error=str(e))

        entry = CachedImage(url=url, status=ImageStatus.READY, image=image)
        self._store(url, entry)
        logger.debug(f"Decoded image {url} ({image.size})")
        return entry

    async def _fetch(self, url: str) -> bytes:
        parsed = urlparse(url)
        if parsed.scheme in ('http', 'https'):
            async with httpx.AsyncClient(timeout=self.timeout,
                                         transport=self.transport,
                                         follow_redirects=True) as client:
                response = await client.get(url)
                response.raise_for_status()
                return response.content

        if parsed.scheme == 'file':
            path = Path(unquote(parsed.path))
        elif parsed.scheme == '' or len(parsed.scheme) == 1:
            # bare paths, including Windows drive letters
            path = Path(url)
        else:
            raise ValueError(f"Unsupported image URL scheme: {parsed.scheme}")
        return await asyncio.to_thread(path.read_bytes)

    def _forget(self, url: str, task: asyncio.Task) -> None:
        with self._lock:
            if self._in_flight.get(url) is task:
                del self._in_flight[url]

    def _store(self, url: str, entry: CachedImage) -> None:
        with self._lock:
            self._entries.pop(url, None)
            self._entries[url] = entry
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Evicted image {evicted}")


def _decode(data: bytes) -> Image.Image:
    with Image.open(io.BytesIO(data)) as img:
        img.load()
        return img.convert('RGBA')


def create_image_cache(config=None) -> ImageDecodeCache:
    """Factory function to create an ImageDecodeCache from app configuration."""
    if config is None:
        from .config import get_config
        config = get_config()
    return ImageDecodeCache(
        max_entries=config.IMAGE_CACHE_MAX_ENTRIES,
        timeout=config.IMAGE_FETCH_TIMEOUT,
    )
