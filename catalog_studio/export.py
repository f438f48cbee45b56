"""
Document exporter: renders every catalog page at print resolution and
assembles them into one multi-page PDF.

State machine: IDLE -> GENERATING(progress) -> COMPLETE | FAILED -> IDLE.
The export works from a snapshot taken before its first suspension
point, so edits made while it runs never reach the document.
"""

import asyncio
import io
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Union

from PIL import Image
from loguru import logger
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from .composer import PageComposer
from .errors import ExportCancelledError, ExportError, ExportInProgressError
from .pricing import round_half_up
from .workspace import CatalogSnapshot, CatalogWorkspace


class ExportState(Enum):
    IDLE = "idle"
    GENERATING = "generating"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass(frozen=True)
class ExportArtifact:
    """The finished document, ready for download."""
    filename: str
    data: bytes
    page_count: int
    mimetype: str = 'application/pdf'

    def save(self, directory: Union[str, Path]) -> Path:
        path = Path(directory)
        path.mkdir(parents=True, exist_ok=True)
        target = path / self.filename
        target.write_bytes(self.data)
        logger.info(f"Saved catalog: {target} ({len(self.data):,} bytes)")
        return target


@dataclass(frozen=True)
class ExportStatus:
    state: ExportState = ExportState.IDLE
    progress: int = 0
    error: Optional[str] = None
    artifact: Optional[ExportArtifact] = None

    def to_dict(self) -> dict:
        return {
            'state': self.state.value,
            'progress': self.progress,
            'error': self.error,
            'filename': self.artifact.filename if self.artifact else None,
        }


class DocumentExporter:
    """Exports catalog snapshots to PDF, one page at a time."""

    def __init__(self,
                 composer: PageComposer,
                 scale: float = 4.0,
                 jpeg_quality: int = 95,
                 page_size: Optional[Tuple[float, float]] = None,
                 clock: Callable[[], float] = time.time,
                 filename_prefix: str = 'catalogo_profesional'):
        self.composer = composer
        self.scale = scale
        self.jpeg_quality = jpeg_quality
        self.page_size = page_size or (composer.page_width, composer.page_height)
        self.clock = clock
        self.filename_prefix = filename_prefix

        self._status = ExportStatus()
        self._listeners: List[Callable[[ExportStatus], None]] = []
        self._cancel_requested = False

    @property
    def status(self) -> ExportStatus:
        return self._status

    @property
    def state(self) -> ExportState:
        return self._status.state

    @property
    def progress(self) -> int:
        return self._status.progress

    def subscribe(self, callback: Callable[[ExportStatus], None]) -> None:
        """Get called on every state or progress change."""
        self._listeners.append(callback)

    def cancel(self) -> bool:
        """Ask a running export to stop at the next page boundary."""
        if self.state is not ExportState.GENERATING:
            return False
        self._cancel_requested = True
        logger.info("Export cancellation requested")
        return True

    def reset(self) -> None:
        """Return from COMPLETE or FAILED to IDLE."""
        if self.state is ExportState.GENERATING:
            raise ExportInProgressError()
        self._set(ExportStatus())

    def filename(self) -> str:
        return f"{self.filename_prefix}_{int(self.clock() * 1000)}.pdf"

    async def export(self, source: Union[CatalogWorkspace, CatalogSnapshot]) -> ExportArtifact:
        """
        Render all pages and assemble the document.

        Raises ExportError (and ends in FAILED) if any page cannot be
        rendered or the document cannot be assembled; no partial
        document is delivered in that case.
        """
        if self.state is ExportState.GENERATING:
            raise ExportInProgressError()

        # Snapshot before the first await
        snapshot = source.snapshot() if isinstance(source, CatalogWorkspace) else source
        pages = snapshot.total_pages
        self._cancel_requested = False
        self._set(ExportStatus(state=ExportState.GENERATING, progress=0))
        logger.info(f"Export started: {len(snapshot.items)} items, {pages} pages, "
                    f"template {snapshot.template.id}")

        completed = 0
        try:
            if pages == 0:
                raise ExportError("no items selected", 0, 0)

            buffer = io.BytesIO()
            document = canvas.Canvas(buffer, pagesize=self.page_size)
            document.setTitle("Catálogo")
            page_w, page_h = self.page_size

            for index in range(pages):
                if self._cancel_requested:
                    raise ExportCancelledError(completed, pages)

                image = await self.composer.compose(snapshot, index, self.scale)
                document.drawImage(ImageReader(self._to_jpeg(image)), 0, 0, width=page_w, height=page_h)
                document.showPage()

                completed += 1
                self._set(ExportStatus(state=ExportState.GENERATING,
                                       progress=round_half_up(completed / pages * 100)))
                # yield so the host can repaint progress between pages
                await asyncio.sleep(0)

            document.save()
        except ExportError as e:
            self._fail(e)
            raise
        except Exception as e:
            error = ExportError(str(e) or type(e).__name__, completed, pages)
            self._fail(error)
            raise error from e

        artifact = ExportArtifact(filename=self.filename(), data=buffer.getvalue(), page_count=pages)
        self._set(ExportStatus(state=ExportState.COMPLETE, progress=100, artifact=artifact))
        logger.info(f"Export complete: {artifact.filename} ({pages} pages, {len(artifact.data):,} bytes)")
        return artifact

    def _to_jpeg(self, image: Image.Image) -> io.BytesIO:
        buffer = io.BytesIO()
        image.convert('RGB').save(buffer, format='JPEG', quality=self.jpeg_quality)
        buffer.seek(0)
        return buffer

    def _fail(self, error: ExportError) -> None:
        logger.error(f"Export failed: {error.message}")
        self._set(ExportStatus(state=ExportState.FAILED, progress=self._status.progress,
                               error=error.message))

    def _set(self, status: ExportStatus) -> None:
        self._status = status
        for callback in list(self._listeners):
            callback(status)


def create_document_exporter(composer: PageComposer, config=None) -> DocumentExporter:
    """Factory function to create a DocumentExporter from app configuration."""
    if config is None:
        from .config import get_config
        config = get_config()
    return DocumentExporter(
        composer,
        scale=config.EXPORT_SCALE,
        jpeg_quality=config.EXPORT_JPEG_QUALITY,
    )
