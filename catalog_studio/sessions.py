"""
In-memory catalog sessions and the services they share.

One CatalogServices instance lives on the Flask app. It owns the
product source, the template registry and the image cache, which all
sessions share, plus the registry of per-user CatalogSessions.
"""

import threading
import uuid
from dataclasses import dataclass, field
from typing import Dict, Optional

import httpx
from loguru import logger

from .composer import PageComposer, create_page_composer
from .config import AppConfig
from .elements import default_elements
from .errors import SessionNotFoundError
from .export import DocumentExporter, create_document_exporter
from .image_cache import ImageDecodeCache, create_image_cache
from .item_source import JsonItemSource, create_item_source
from .preview import PreviewRenderer, create_preview_renderer
from .templates import TemplateRegistry, create_template_registry, get_style_presets
from .workspace import CatalogWorkspace


@dataclass
class CatalogSession:
    """One user's catalog: editing state plus its own export state machine."""
    id: str
    workspace: CatalogWorkspace
    exporter: DocumentExporter

    def to_dict(self) -> dict:
        ws = self.workspace
        with ws.lock:
            return {
                'session_id': self.id,
                'items': [item.model_dump() for item in ws.effective_items()],
                'overrides': {item_id: o.model_dump() for item_id, o in ws.prices.items()},
                'template': ws.template.model_dump(),
                'style': ws.style.model_dump(),
                'elements': [element.model_dump() for element in ws.elements],
                'current_page': ws.current_page,
                'total_pages': ws.total_pages,
                'max_selection': ws.selection.max_size,
                'stats': ws.stats().to_dict(),
                'export': self.exporter.status.to_dict(),
            }


@dataclass
class CatalogServices:
    config: AppConfig
    items: JsonItemSource
    templates: TemplateRegistry
    presets: Dict[str, Dict[str, str]]
    images: ImageDecodeCache
    composer: PageComposer
    preview: PreviewRenderer
    sessions: Dict[str, CatalogSession] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def create_session(self) -> CatalogSession:
        workspace = CatalogWorkspace(
            registry=self.templates,
            max_selection=self.config.MAX_SELECTION,
            elements=default_elements(),
            presets=self.presets,
        )
        session = CatalogSession(
            id=uuid.uuid4().hex,
            workspace=workspace,
            exporter=create_document_exporter(self.composer, self.config),
        )
        with self._lock:
            self.sessions[session.id] = session
        logger.info(f"Session {session.id} created")
        return session

    def get_session(self, session_id: str) -> CatalogSession:
        with self._lock:
            session = self.sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def close_session(self, session_id: str) -> None:
        with self._lock:
            session = self.sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFoundError(session_id)
        logger.info(f"Session {session_id} closed")


def create_services(config: AppConfig,
                    transport: Optional[httpx.AsyncBaseTransport] = None) -> CatalogServices:
    """Factory function wiring the shared services from app configuration."""
    images = create_image_cache(config)
    images.transport = transport
    composer = create_page_composer(images, config)
    return CatalogServices(
        config=config,
        items=create_item_source(config),
        templates=create_template_registry(),
        presets=get_style_presets(),
        images=images,
        composer=composer,
        preview=create_preview_renderer(composer, config),
    )
