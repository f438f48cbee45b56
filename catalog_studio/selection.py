"""
Ordered, bounded selection of catalog items
"""

from typing import Iterator, List, Tuple

from loguru import logger

from .errors import SelectionLimitError, ValidationError
from .models import Item


DEFAULT_MAX_SELECTION = 20


class Selection:
    """Ordered list of distinct items, capped at max_size."""

    def __init__(self, max_size: int = DEFAULT_MAX_SELECTION, items: List[Item] = None):
        if max_size <= 0:
            raise ValidationError(f"Selection maximum must be positive, got {max_size}")
        self.max_size = max_size
        self._items: List[Item] = []
        for item in items or []:
            self.add(item)

    def add(self, item: Item) -> bool:
        """
        Append an item.

        Returns False if the item is already selected. Raises
        SelectionLimitError, leaving the selection unchanged, when it is full.
        """
        if item.id in self:
            return False
        if len(self._items) >= self.max_size:
            logger.warning(f"Rejected {item.id}: selection already holds {self.max_size} items")
            raise SelectionLimitError(self.max_size)
        self._items.append(item)
        return True

    def remove(self, item_id: str) -> bool:
        before = len(self._items)
        self._items = [item for item in self._items if item.id != item_id]
        return len(self._items) != before

    def toggle(self, item: Item) -> bool:
        """Remove the item if selected, otherwise add it. Returns True if now selected."""
        if self.remove(item.id):
            return False
        self.add(item)
        return True

    def clear(self) -> None:
        self._items = []

    def snapshot(self) -> Tuple[Item, ...]:
        return tuple(self._items)

    def __contains__(self, item_id: str) -> bool:
        return any(item.id == item_id for item in self._items)

    def __iter__(self) -> Iterator[Item]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)
