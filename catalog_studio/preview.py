"""
Interactive preview of the current catalog page.

render() is a pure function of a snapshot. The Debouncer is the timer
that decides when to call it, so rapid edits collapse into one render.
"""

import asyncio
import io
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional

from PIL import Image
from loguru import logger

from .composer import PageComposer
from .pagination import clamp_page_index
from .workspace import CatalogSnapshot, CatalogWorkspace


@dataclass(frozen=True)
class PreviewResult:
    """A rendered preview page. Zero-sized when nothing is selected."""
    image: Image.Image
    page_index: int
    total_pages: int

    @property
    def empty(self) -> bool:
        return self.image.width == 0 or self.image.height == 0

    def to_png(self) -> bytes:
        buffer = io.BytesIO()
        if self.empty:
            # a 0x0 image cannot be encoded; hosts get a 1x1 transparent pixel
            Image.new('RGBA', (1, 1), (0, 0, 0, 0)).save(buffer, format='PNG')
        else:
            self.image.save(buffer, format='PNG', compress_level=6)
        return buffer.getvalue()


class Debouncer:
    """Run an async callback once, delay seconds after the last trigger."""

    def __init__(self, delay: float, callback: Callable[..., Awaitable[Any]]):
        self.delay = delay
        self.callback = callback
        self._task: Optional[asyncio.Task] = None

    def trigger(self, *args: Any) -> None:
        """Restart the timer. Must be called from within the running event loop."""
        self.cancel()
        self._task = asyncio.ensure_future(self._run(args))

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    async def flush(self) -> None:
        """Wait for the pending call, if any, to finish."""
        task = self._task
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            # superseded by a newer trigger
            if self._task is not None and self._task is not task:
                await self.flush()

    async def _run(self, args) -> None:
        await asyncio.sleep(self.delay)
        await self.callback(*args)


class PreviewRenderer:
    """Low-resolution renders of the current page for interactive display."""

    def __init__(self,
                 composer: PageComposer,
                 preview_scale: float = 0.5,
                 render_scale: float = 1.0,
                 debounce_seconds: float = 0.22):
        self.composer = composer
        self.preview_scale = preview_scale
        self.render_scale = render_scale
        self.latest: Optional[PreviewResult] = None
        self.render_count = 0
        self._listeners: List[Callable[[PreviewResult], None]] = []
        self._debouncer = Debouncer(debounce_seconds, self._render_and_publish)

    async def render(self, snapshot: CatalogSnapshot) -> PreviewResult:
        """Render the snapshot's current page, clamped into range."""
        pages = snapshot.total_pages
        if pages == 0:
            return PreviewResult(image=Image.new('RGB', (0, 0)), page_index=0, total_pages=0)

        page_index = clamp_page_index(snapshot.page_index, pages)
        full = await self.composer.compose(snapshot, page_index, self.render_scale)

        size = self.composer.page_size(self.preview_scale)
        image = full if full.size == size else full.resize(size, Image.Resampling.LANCZOS)
        self.render_count += 1
        return PreviewResult(image=image, page_index=page_index, total_pages=pages)

    # Debounced updates

    def subscribe(self, callback: Callable[[PreviewResult], None]) -> None:
        self._listeners.append(callback)

    def schedule(self, snapshot: CatalogSnapshot) -> None:
        self._debouncer.trigger(snapshot)

    def attach(self, workspace: CatalogWorkspace) -> None:
        """Re-render, debounced, whenever the workspace changes."""
        workspace.subscribe(lambda ws: self.schedule(ws.snapshot()))

    async def flush(self) -> Optional[PreviewResult]:
        await self._debouncer.flush()
        return self.latest

    def cancel(self) -> None:
        self._debouncer.cancel()

    async def _render_and_publish(self, snapshot: CatalogSnapshot) -> None:
        result = await self.render(snapshot)
        self.latest = result
        logger.debug(f"Preview updated: page {result.page_index + 1}/{result.total_pages}")
        for callback in list(self._listeners):
            callback(result)


def create_preview_renderer(composer: PageComposer, config=None) -> PreviewRenderer:
    """Factory function to create a PreviewRenderer from app configuration."""
    if config is None:
        from .config import get_config
        config = get_config()
    return PreviewRenderer(
        composer,
        preview_scale=config.PREVIEW_SCALE,
        render_scale=config.PREVIEW_RENDER_SCALE,
        debounce_seconds=config.PREVIEW_DEBOUNCE_SECONDS,
    )
