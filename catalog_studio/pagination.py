"""
Pagination arithmetic for the catalog selection
"""

from typing import Sequence, TypeVar

from .errors import PageIndexError, ValidationError


T = TypeVar('T')


def total_pages(selection_size: int, items_per_page: int) -> int:
    """ceil(selection_size / items_per_page), 0 for an empty selection."""
    if items_per_page <= 0:
        raise ValidationError(
            f"Items per page must be positive, got {items_per_page}",
            details={'items_per_page': items_per_page}
        )
    if selection_size <= 0:
        return 0
    return -(-selection_size // items_per_page)


def page_items(items: Sequence[T], page_index: int, items_per_page: int) -> Sequence[T]:
    """
    The slice of items shown on one page.

    Every page but the last holds exactly items_per_page items. Raises
    PageIndexError for indices outside 0..total_pages-1.
    """
    pages = total_pages(len(items), items_per_page)
    if page_index < 0 or page_index >= pages:
        raise PageIndexError(page_index, pages)
    start = page_index * items_per_page
    return items[start:min(start + items_per_page, len(items))]


def clamp_page_index(page_index: int, pages: int) -> int:
    """Clamp into 0 <= index < max(pages, 1)."""
    return max(0, min(page_index, max(pages, 1) - 1))
