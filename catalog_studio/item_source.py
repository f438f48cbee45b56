"""
Item source: loads the two product collections the catalog picks from.

Records come from loosely-structured JSON or YAML files written by
different admin screens, so every field has a list of accepted names.
"""

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import yaml
from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from .errors import ItemSourceError, UnknownItemError
from .models import Item


NAME_FIELDS = ('name', 'title', 'productName')
DESCRIPTION_FIELDS = ('description', 'shortDescription', 'desc', 'longDescription')
CATEGORY_FIELDS = ('category', 'categoryName')
PRICE_FIELDS = ('price', 'finalPrice', 'salePrice')
ORIGINAL_PRICE_FIELDS = ('originalPrice', 'regularPrice', 'price')
DISCOUNT_FIELDS = ('discount', 'discountPercent')
IMAGE_FIELDS = ('imageUrl', 'image', 'img', 'productImage', 'thumbnail')

DEFAULT_NAME = 'Producto'
DEFAULT_CATEGORIES = {'digital': 'Digital', 'physical': 'Físico'}


def _first(record: Mapping[str, Any], fields: Sequence[str]) -> Any:
    for field in fields:
        value = record.get(field)
        if value is not None and value != '':
            return value
    return None


def _number(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def normalize_record(record: Mapping[str, Any], source: str, item_id: Optional[str] = None) -> Item:
    """Map one raw record onto an Item, applying field fallbacks and defaults."""
    if not isinstance(record, Mapping):
        raise ItemSourceError(
            f"Product record must be a mapping, got {type(record).__name__}",
            details={'source': source}
        )
    record_id = item_id if item_id is not None else record.get('id')
    if record_id is None or str(record_id).strip() == '':
        raise ItemSourceError(
            "Product record has no id",
            details={'source': source, 'record': dict(record)}
        )

    price = _number(_first(record, PRICE_FIELDS))
    available = record.get('inStock') is not False and record.get('available') is not False

    try:
        return Item(
            id=str(record_id),
            name=str(_first(record, NAME_FIELDS) or DEFAULT_NAME),
            description=_first(record, DESCRIPTION_FIELDS),
            category=str(_first(record, CATEGORY_FIELDS) or DEFAULT_CATEGORIES.get(source, '')),
            price=price if price is not None else 0.0,
            original_price=_number(_first(record, ORIGINAL_PRICE_FIELDS)),
            discount=_number(_first(record, DISCOUNT_FIELDS)),
            image_url=_first(record, IMAGE_FIELDS),
            in_stock=available,
            source=source,
        )
    except PydanticValidationError as e:
        raise ItemSourceError(
            f"Invalid product record {record_id}: {e}",
            details={'source': source, 'id': str(record_id)}
        )


def search(items: Iterable[Item], text: str) -> List[Item]:
    """Case-insensitive match on name, description and category."""
    needle = (text or '').strip().lower()
    if not needle:
        return list(items)
    return [
        item for item in items
        if any(needle in (value or '').lower() for value in (item.name, item.description, item.category))
    ]


class JsonItemSource:
    """
    Product catalog backed by one JSON or YAML file per origin.

    Each file holds either a list of records or a mapping of id to
    record. Items are sorted by name within each origin, and origins
    appear in the order they were configured.
    """

    def __init__(self, paths: Mapping[str, Any]):
        self.paths = {source: Path(path) for source, path in paths.items()}
        self._items: Optional[List[Item]] = None

    def fetch_all_items(self, reload: bool = False) -> List[Item]:
        if self._items is None or reload:
            items: List[Item] = []
            seen = set()
            for source, path in self.paths.items():
                for item in sorted(self._load(source, path), key=lambda i: i.name.lower()):
                    if item.id in seen:
                        logger.warning(f"Duplicate product id {item.id} in {path}, skipped")
                        continue
                    seen.add(item.id)
                    items.append(item)
            self._items = items
            logger.info(f"Loaded {len(items)} products from {len(self.paths)} sources")
        return list(self._items)

    def get(self, item_id: str) -> Item:
        for item in self.fetch_all_items():
            if item.id == item_id:
                return item
        raise UnknownItemError(item_id)

    def search(self, text: str) -> List[Item]:
        return search(self.fetch_all_items(), text)

    def _load(self, source: str, path: Path) -> List[Item]:
        if not path.exists():
            logger.warning(f"Product file not found: {path}")
            return []

        try:
            with open(path, 'r', encoding='utf-8') as f:
                if path.suffix.lower() in ('.yaml', '.yml'):
                    data = yaml.safe_load(f)
                else:
                    data = json.load(f)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ItemSourceError(
                f"Could not read products from {path}: {e}",
                details={'source': source, 'path': str(path)},
                suggestions=["Check that the file is valid JSON or YAML"]
            )

        if data is None:
            return []
        if isinstance(data, dict):
            records = [normalize_record(record, source, item_id=key) for key, record in data.items()]
        elif isinstance(data, list):
            records = [normalize_record(record, source) for record in data]
        else:
            raise ItemSourceError(
                f"Products file {path} must hold a list or a mapping",
                details={'source': source, 'path': str(path)}
            )
        logger.debug(f"Read {len(records)} {source} products from {path}")
        return records


def create_item_source(config=None) -> JsonItemSource:
    """Factory function to create the item source from app configuration."""
    if config is None:
        from .config import get_config
        config = get_config()
    return JsonItemSource(config.ITEM_SOURCES)
