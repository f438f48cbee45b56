"""
Pytest configuration and fixtures for Catalog Studio tests.

Provides sample products, an in-memory image server, rendering
services and a Flask test client shared across the test modules.
"""

import io
import json
from pathlib import Path
from typing import Dict, List

import httpx
import pytest
from PIL import Image

from catalog_studio import create_app
from catalog_studio.composer import PageComposer
from catalog_studio.image_cache import ImageDecodeCache
from catalog_studio.models import Item
from catalog_studio.surface import Surface, Box
from catalog_studio.workspace import CatalogWorkspace


def make_png(size=(64, 48), color=(200, 40, 40)) -> bytes:
    buffer = io.BytesIO()
    Image.new('RGB', size, color).save(buffer, format='PNG')
    return buffer.getvalue()


class ImageServer:
    """Serves generated PNGs for /img/<name>.png and 404 for anything else."""

    def __init__(self):
        self.requests: List[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(str(request.url))
        path = request.url.path
        if path.startswith('/img/') and path.endswith('.png'):
            return httpx.Response(200, content=make_png(), headers={'content-type': 'image/png'})
        if path.startswith('/broken/'):
            return httpx.Response(200, content=b'not an image')
        return httpx.Response(404)


class RecordingSurface(Surface):
    """Surface that records drawing calls instead of rasterising them."""

    def __init__(self, width: int = 595, height: int = 842):
        self.width = width
        self.height = height
        self.calls: List[tuple] = []

    def fill_gradient(self, start, end, kind='linear'):
        self.calls.append(('gradient', start, end, kind))

    def fill_rect(self, box, fill):
        self.calls.append(('rect', box, fill))

    def rounded_rect(self, box, radius, fill=None, outline=None, width=0):
        self.calls.append(('rounded_rect', box, fill, outline))

    def draw_image_fit(self, image, box):
        self.calls.append(('image', box))
        return box

    def text(self, xy, text, font, fill, anchor='ls'):
        self.calls.append(('text', xy, text, font, fill, anchor))

    def text_width(self, text, font):
        # fixed-pitch measurement keeps layout assertions simple
        return len(text) * font.size * 0.5

    def line(self, start, end, fill, width=1):
        self.calls.append(('line', start, end))

    def texts(self) -> List[str]:
        return [call[2] for call in self.calls if call[0] == 'text']

    def of_kind(self, kind: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == kind]


def build_items(count: int, with_images: bool = True) -> List[Item]:
    items = []
    for i in range(1, count + 1):
        items.append(Item(
            id=f"p{i:02d}",
            name=f"Producto {i}",
            description=f"Descripción del producto {i}",
            category='Tecnología' if i % 2 else 'Hogar',
            price=1000 * i,
            original_price=1250 * i if i % 3 == 0 else None,
            image_url=f"https://images.test/img/p{i:02d}.png" if with_images else None,
            source='digital' if i % 2 else 'physical',
        ))
    return items


@pytest.fixture
def sample_items() -> List[Item]:
    """Ten products, every third one discounted."""
    return build_items(10)


@pytest.fixture
def discounted_item() -> Item:
    return Item(id='d1', name='Audífonos', description='Bluetooth', category='audio',
                price=75000, original_price=100000, image_url=None)


@pytest.fixture
def image_server() -> ImageServer:
    return ImageServer()


@pytest.fixture
def image_transport(image_server) -> httpx.MockTransport:
    return httpx.MockTransport(image_server)


@pytest.fixture
def image_cache(image_transport) -> ImageDecodeCache:
    return ImageDecodeCache(max_entries=32, timeout=2.0, transport=image_transport)


@pytest.fixture
def composer(image_cache) -> PageComposer:
    return PageComposer(image_cache)


@pytest.fixture
def workspace() -> CatalogWorkspace:
    return CatalogWorkspace()


@pytest.fixture
def filled_workspace(workspace, sample_items) -> CatalogWorkspace:
    for item in sample_items:
        workspace.select(item)
    return workspace


@pytest.fixture
def recording_surface() -> RecordingSurface:
    return RecordingSurface()


@pytest.fixture
def product_files(tmp_path) -> Dict[str, str]:
    """Digital and physical product files in the admin screens' formats."""
    digital = tmp_path / 'products.json'
    physical = tmp_path / 'products-f.json'
    digital.write_text(json.dumps([
        {'id': 'd-2', 'title': 'Plantillas', 'finalPrice': 35000, 'image': 'https://images.test/img/d2.png'},
        {'id': 'd-1', 'name': 'Curso', 'description': 'Fotografía', 'price': 89000,
         'originalPrice': 120000, 'imageUrl': 'https://images.test/img/d1.png'},
    ]), encoding='utf-8')
    physical.write_text(json.dumps([
        {'id': 'f-1', 'name': 'Termo', 'category': 'Hogar', 'price': 59900, 'inStock': False},
    ]), encoding='utf-8')
    return {'digital': str(digital), 'physical': str(physical)}


@pytest.fixture
def app(tmp_path, product_files, image_transport):
    """Create and configure a test Flask application."""
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-key',
        'EXPORT_FOLDER': str(tmp_path / 'exports'),
        'LOG_FILE': str(tmp_path / 'logs' / 'app.log'),
        'ITEM_SOURCES': product_files,
        'EXPORT_SCALE': 1.0,
        'MAX_SELECTION': 20,
    }, transport=image_transport)

    yield app


@pytest.fixture
def client(app):
    """Create a test client for the Flask application."""
    return app.test_client()


@pytest.fixture
def session_id(client) -> str:
    response = client.post('/api/sessions')
    return response.get_json()['session_id']
