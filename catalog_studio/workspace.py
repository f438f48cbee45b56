"""
Session-scoped catalog state and immutable snapshots of it.

The workspace owns everything the user edits: selection, price
overrides, template, style, custom elements and the previewed page.
Rendering never reads the workspace directly; it works from a
CatalogSnapshot taken in one synchronous step.
"""

import threading
from dataclasses import asdict, dataclass
from types import MappingProxyType
from typing import Any, Callable, List, Mapping, Optional, Set, Tuple

from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from .elements import CustomElementList
from .errors import UnknownItemError, ValidationError
from .models import CustomElement, EffectiveItem, Item, LayoutTemplate, PriceOverride, StyleConfiguration
from .pagination import clamp_page_index, page_items, total_pages
from .pricing import PriceOverrideStore
from .selection import Selection, DEFAULT_MAX_SELECTION
from .templates import TemplateRegistry, apply_preset, BUILTIN_PRESETS


@dataclass(frozen=True)
class Page:
    """One page of the paginated selection."""
    index: int
    items: Tuple[EffectiveItem, ...]
    template: LayoutTemplate
    style: StyleConfiguration


@dataclass(frozen=True)
class CatalogSnapshot:
    """Everything needed to render the catalog, frozen at one instant."""
    items: Tuple[EffectiveItem, ...]
    overrides: Mapping[str, PriceOverride]
    template: LayoutTemplate
    style: StyleConfiguration
    elements: Tuple[CustomElement, ...]
    page_index: int = 0

    @property
    def total_pages(self) -> int:
        return total_pages(len(self.items), self.template.items_per_page)

    def page(self, index: int) -> Page:
        return Page(
            index=index,
            items=tuple(page_items(self.items, index, self.template.items_per_page)),
            template=self.template,
            style=self.style,
        )


@dataclass(frozen=True)
class CatalogStats:
    """Totals shown beside the catalog editor."""
    total_items: int
    total_pages: int
    total_value: float
    total_profit: float
    custom_prices: int

    def to_dict(self) -> dict:
        return asdict(self)


class CatalogWorkspace:
    """
    Mutable editing state for one catalog session.

    Every mutation and snapshot() hold the workspace lock, so a snapshot
    taken on one request thread never observes another thread's edit
    half applied.
    """

    def __init__(self,
                 registry: TemplateRegistry = None,
                 max_selection: int = DEFAULT_MAX_SELECTION,
                 style: StyleConfiguration = None,
                 elements: List[CustomElement] = None,
                 presets: Optional[Mapping[str, Mapping[str, str]]] = None):
        self.registry = registry or TemplateRegistry()
        self.selection = Selection(max_selection)
        self.prices = PriceOverrideStore()
        self.template = self.registry.default()
        self.style = style or StyleConfiguration()
        self.elements = CustomElementList(elements)
        self.presets = presets if presets is not None else BUILTIN_PRESETS
        self.current_page = 0
        self.lock = threading.RLock()
        # ids selected at any point; overrides may only reference these
        self._known_ids: Set[str] = set()
        self._listeners: List[Callable[["CatalogWorkspace"], None]] = []

    # Change notification

    def subscribe(self, callback: Callable[["CatalogWorkspace"], None]) -> None:
        self._listeners.append(callback)

    def _changed(self, what: str) -> None:
        self.current_page = clamp_page_index(self.current_page, self.total_pages)
        logger.debug(f"Workspace changed: {what}")
        for callback in list(self._listeners):
            callback(self)

    # Selection

    def select(self, item: Item) -> bool:
        with self.lock:
            added = self.selection.add(item)
            if added:
                self._known_ids.add(item.id)
                self._changed('selection')
            return added

    def deselect(self, item_id: str) -> bool:
        with self.lock:
            removed = self.selection.remove(item_id)
            if removed:
                self._changed('selection')
            return removed

    def toggle(self, item: Item) -> bool:
        with self.lock:
            selected = self.selection.toggle(item)
            if selected:
                self._known_ids.add(item.id)
            self._changed('selection')
            return selected

    def is_known(self, item_id: str) -> bool:
        """True when the item is or ever was selected in this workspace."""
        return item_id in self._known_ids

    # Prices

    def set_price(self, item_id: str, price: float, original_price: Optional[float] = None) -> PriceOverride:
        with self.lock:
            if item_id not in self._known_ids:
                raise UnknownItemError(item_id)
            override = self.prices.set_override(item_id, price, original_price)
            self._changed('prices')
            return override

    def reset_price(self, item_id: str) -> bool:
        with self.lock:
            reset = self.prices.reset_override(item_id)
            if reset:
                self._changed('prices')
            return reset

    def reset_all_prices(self) -> None:
        with self.lock:
            self.prices.reset_all()
            self._changed('prices')

    def apply_markup(self, percent: float) -> None:
        """Mark up every selected item from its base price."""
        with self.lock:
            self.prices.apply_markup(self.selection, percent)
            self._changed('prices')

    # Layout and style

    def set_template(self, template_id: str) -> LayoutTemplate:
        with self.lock:
            self.template = self.registry.get(template_id)
            self._changed('template')
            return self.template

    def update_style(self, **changes: Any) -> StyleConfiguration:
        with self.lock:
            try:
                self.style = StyleConfiguration.model_validate({**self.style.model_dump(), **changes})
            except PydanticValidationError as e:
                raise ValidationError(f"Invalid style settings: {e}", details={'changes': changes})
            self._changed('style')
            return self.style

    def apply_style_preset(self, preset: str) -> StyleConfiguration:
        with self.lock:
            self.style = apply_preset(self.style, preset, self.presets)
            self._changed('style')
            return self.style

    # Custom elements

    def add_text_element(self) -> CustomElement:
        with self.lock:
            element = self.elements.add_text(self.style.text)
            self._changed('elements')
            return element

    def add_element(self, element: CustomElement) -> CustomElement:
        with self.lock:
            self.elements.add(element)
            self._changed('elements')
            return element

    def update_element(self, element_id: str, **changes: Any) -> CustomElement:
        with self.lock:
            element = self.elements.update(element_id, **changes)
            self._changed('elements')
            return element

    def remove_element(self, element_id: str) -> None:
        with self.lock:
            self.elements.remove(element_id)
            self._changed('elements')

    # Pages

    @property
    def total_pages(self) -> int:
        return total_pages(len(self.selection), self.template.items_per_page)

    def set_page(self, page_index: int) -> int:
        with self.lock:
            self.current_page = clamp_page_index(page_index, self.total_pages)
            self._changed('page')
            return self.current_page

    def effective_items(self) -> Tuple[EffectiveItem, ...]:
        with self.lock:
            return tuple(self.prices.effective(item) for item in self.selection)

    def stats(self) -> CatalogStats:
        """Item and page counts, catalog value and profit over base prices."""
        with self.lock:
            selected = list(self.selection)
            effective = [self.prices.effective(item) for item in selected]
            return CatalogStats(
                total_items=len(selected),
                total_pages=self.total_pages,
                total_value=sum(e.price for e in effective),
                total_profit=sum(e.price - item.price for e, item in zip(effective, selected)),
                custom_prices=len(self.prices),
            )

    def snapshot(self) -> CatalogSnapshot:
        """Copy all render inputs. Later edits never reach the snapshot."""
        with self.lock:
            return CatalogSnapshot(
                items=self.effective_items(),
                overrides=MappingProxyType(dict(self.prices.items())),
                template=self.template,
                style=self.style,
                elements=self.elements.snapshot(),
                page_index=self.current_page,
            )
