"""
Price overrides and price arithmetic for catalog items.

The store maps item ids to custom prices. It is plain data: no I/O and
no knowledge of the selection, so an override survives removing its
item and comes back when the item is selected again.
"""

import math
from typing import Dict, Iterable, Iterator, Optional, Tuple

from loguru import logger

from .errors import InvalidMarkupError
from .models import Item, EffectiveItem, PriceOverride


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (-2.5 -> -2, 2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def discount_percent(price: float, original_price: Optional[float]) -> Optional[int]:
    """
    Percentage shown on the discount badge.

    Returns None when there is no discount to show, i.e. when the
    original price is missing or not above the current price.
    """
    if original_price is None or original_price <= 0 or original_price <= price:
        return None
    return round_half_up((original_price - price) / original_price * 100)


def format_price(value: float, symbol: str = "$", thousands_separator: str = ".",
                 decimal_separator: Optional[str] = None) -> str:
    """
    Format a price with grouped thousands, e.g. $12.345 or $19,99

    Whole amounts print without decimals. Anything else keeps two decimal
    places, separated by whichever of "," and "." is not grouping thousands.
    """
    if decimal_separator is None:
        decimal_separator = "," if thousands_separator == "." else "."
    cents = round_half_up(value * 100)
    whole, fraction = divmod(abs(cents), 100)
    grouped = f"{whole:,}".replace(",", thousands_separator)
    sign = "-" if cents < 0 else ""
    if fraction:
        return f"{sign}{symbol}{grouped}{decimal_separator}{fraction:02d}"
    return f"{sign}{symbol}{grouped}"


class PriceOverrideStore:
    """Per-item price overrides, at most one per item id."""

    def __init__(self, overrides: Dict[str, PriceOverride] = None):
        self._overrides: Dict[str, PriceOverride] = dict(overrides or {})

    def set_override(self, item_id: str, price: float, original_price: Optional[float] = None) -> PriceOverride:
        """Replace the override for an item. Negative prices are clamped to 0."""
        override = PriceOverride(price=max(0.0, float(price)), original_price=original_price)
        self._overrides[item_id] = override
        logger.debug(f"Price override for {item_id}: {override.price} (original {override.original_price})")
        return override

    def reset_override(self, item_id: str) -> bool:
        """Remove an item's override. Returns True if one existed."""
        return self._overrides.pop(item_id, None) is not None

    def reset_all(self) -> None:
        count = len(self._overrides)
        self._overrides.clear()
        logger.debug(f"Cleared {count} price overrides")

    def apply_markup(self, items: Iterable[Item], percent: float) -> Dict[str, PriceOverride]:
        """
        Mark every item up (or down, for negative percent) from its base price.

        Each item gets price = round(base * (1 + percent / 100)) and
        original price = base. Either every item is updated or, on
        invalid input, none is.
        """
        targets = list(items)
        if not targets:
            raise InvalidMarkupError("No items to apply the markup to")
        if not math.isfinite(percent):
            raise InvalidMarkupError(
                f"Markup must be a finite percentage, got {percent}",
                details={'percent': percent}
            )

        planned = [
            (item.id, round_half_up(item.price * (1 + percent / 100)), item.price)
            for item in targets
        ]
        applied = {
            item_id: self.set_override(item_id, price, original)
            for item_id, price, original in planned
        }
        logger.info(f"Applied {percent}% markup to {len(applied)} items")
        return applied

    def get(self, item_id: str) -> Optional[PriceOverride]:
        return self._overrides.get(item_id)

    def effective(self, item: Item) -> EffectiveItem:
        """Apply the item's override, if any."""
        override = self._overrides.get(item.id)
        data = item.model_dump()
        if override is None:
            return EffectiveItem(**data)
        data['price'] = override.price
        data['original_price'] = (
            override.original_price if override.original_price is not None else item.price
        )
        return EffectiveItem(**data, has_override=True)

    def copy(self) -> "PriceOverrideStore":
        return PriceOverrideStore(self._overrides)

    def items(self) -> Iterator[Tuple[str, PriceOverride]]:
        return iter(list(self._overrides.items()))

    def __contains__(self, item_id: str) -> bool:
        return item_id in self._overrides

    def __len__(self) -> int:
        return len(self._overrides)
