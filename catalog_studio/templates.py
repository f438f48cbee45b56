"""
Layout template registry and style presets.

Templates and colour presets ship with built-in defaults and can be
replaced from config/templates.yaml and config/styles.yaml.
"""

from typing import Dict, List, Optional

from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from .config import load_template_config, load_style_presets
from .errors import InvalidTemplateError, UnknownPresetError
from .models import LayoutTemplate, StyleConfiguration


BUILTIN_TEMPLATES: List[Dict] = [
    {'id': '1', 'name': '1 Producto (Showcase)', 'items_per_page': 1, 'kind': 'showcase', 'columns': 1, 'rows': 1},
    {'id': '2', 'name': '2 Productos (Vertical)', 'items_per_page': 2, 'kind': 'grid', 'columns': 1, 'rows': 2},
    {'id': '3', 'name': '2 Productos (Horizontal)', 'items_per_page': 2, 'kind': 'grid', 'columns': 2, 'rows': 1},
    {'id': '4', 'name': '4 Productos (Grid)', 'items_per_page': 4, 'kind': 'grid', 'columns': 2, 'rows': 2},
    {'id': '6', 'name': '6 Productos (Compacto)', 'items_per_page': 6, 'kind': 'grid', 'columns': 3, 'rows': 2},
    {'id': '8', 'name': '8 Productos (Lista)', 'items_per_page': 8, 'kind': 'list', 'columns': 1, 'rows': 8},
    {'id': '9', 'name': '9 Productos (Grid)', 'items_per_page': 9, 'kind': 'grid', 'columns': 3, 'rows': 3},
    {'id': '12', 'name': '12 Productos (Catálogo)', 'items_per_page': 12, 'kind': 'minimal', 'columns': 4, 'rows': 3},
]

DEFAULT_TEMPLATE_ID = '4'

BUILTIN_PRESETS: Dict[str, Dict[str, str]] = {
    'modern': {'primary': '#6366f1', 'secondary': '#8b5cf6', 'accent': '#f59e0b',
               'text': '#ffffff', 'background': '#1e293b', 'card_background': '#334155'},
    'elegant': {'primary': '#1f2937', 'secondary': '#374151', 'accent': '#d97706',
                'text': '#f9fafb', 'background': '#111827', 'card_background': '#1f2937'},
    'vibrant': {'primary': '#ef4444', 'secondary': '#f97316', 'accent': '#eab308',
                'text': '#ffffff', 'background': '#7c2d12', 'card_background': '#dc2626'},
    'minimal': {'primary': '#64748b', 'secondary': '#94a3b8', 'accent': '#06b6d4',
                'text': '#1e293b', 'background': '#f8fafc', 'card_background': '#ffffff'},
    'luxury': {'primary': '#7c3aed', 'secondary': '#a855f7', 'accent': '#fbbf24',
               'text': '#ffffff', 'background': '#581c87', 'card_background': '#6b21a8'},
    'nature': {'primary': '#16a34a', 'secondary': '#22c55e', 'accent': '#eab308',
               'text': '#ffffff', 'background': '#14532d', 'card_background': '#166534'},
}

PRESET_FIELDS = ('primary', 'secondary', 'accent', 'text', 'background', 'card_background')

FONT_FAMILIES = [
    'Arial, sans-serif',
    'Georgia, serif',
    'Helvetica, sans-serif',
    'Times New Roman, serif',
    'Trebuchet MS, sans-serif',
    'Verdana, sans-serif',
]


class TemplateRegistry:
    """Fixed, ordered catalog of layout templates."""

    def __init__(self, definitions: List[Dict] = None, default_id: str = DEFAULT_TEMPLATE_ID):
        self._templates: Dict[str, LayoutTemplate] = {}
        for definition in definitions if definitions is not None else BUILTIN_TEMPLATES:
            try:
                template = LayoutTemplate(**definition)
            except PydanticValidationError as e:
                raise InvalidTemplateError(
                    f"Invalid layout template {definition.get('id', 'unknown')}: {e}",
                    details={'template': definition}
                )
            self._templates[template.id] = template

        if not self._templates:
            raise InvalidTemplateError("No layout templates defined")
        self.default_id = default_id if default_id in self._templates else next(iter(self._templates))

    def get(self, template_id: str) -> LayoutTemplate:
        try:
            return self._templates[template_id]
        except KeyError:
            raise InvalidTemplateError(
                f"Unknown layout template: {template_id}",
                details={'template_id': template_id, 'available': list(self._templates)}
            )

    def default(self) -> LayoutTemplate:
        return self._templates[self.default_id]

    def all(self) -> List[LayoutTemplate]:
        return list(self._templates.values())

    def __contains__(self, template_id: str) -> bool:
        return template_id in self._templates

    def __len__(self) -> int:
        return len(self._templates)


def create_template_registry() -> TemplateRegistry:
    """Factory function: templates from YAML, or the built-in set."""
    definitions = load_template_config()
    if not definitions:
        logger.info("Using built-in layout templates")
        return TemplateRegistry()
    return TemplateRegistry(definitions)


def get_style_presets() -> Dict[str, Dict[str, str]]:
    """Colour presets from YAML, or the built-in set."""
    return load_style_presets() or dict(BUILTIN_PRESETS)


def apply_preset(style: StyleConfiguration, preset: str,
                 presets: Optional[Dict[str, Dict[str, str]]] = None) -> StyleConfiguration:
    """Return a copy of style with the preset's colours; other settings are kept."""
    presets = presets if presets is not None else BUILTIN_PRESETS
    if preset not in presets:
        raise UnknownPresetError(preset, sorted(presets))
    colors = {k: v for k, v in presets[preset].items() if k in PRESET_FIELDS}
    return StyleConfiguration.model_validate({**style.model_dump(), **colors})
