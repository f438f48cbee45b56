"""
Page composer: draws one full catalog page.

Draw order is the z-order: gradient background, custom elements in
list order, then the item grid row by row.
"""

import asyncio
from typing import List

from PIL import Image
from loguru import logger

from .card import CardRenderer
from .image_cache import ImageDecodeCache
from .models import CustomElement, LayoutTemplate, StyleConfiguration
from .surface import Box, FontSpec, PillowSurface, Surface
from .workspace import CatalogSnapshot


PAGE_WIDTH = 595
PAGE_HEIGHT = 842
HEADER_HEIGHT = 100
FOOTER_HEIGHT = 80

ANCHORS = {'left': 'ls', 'center': 'ms', 'right': 'rs'}
PLACEHOLDER_FILL = (255, 255, 255, 38)
PLACEHOLDER_OUTLINE = (255, 255, 255, 140)


class PageComposer:
    """Composes catalog pages at any scale from a snapshot."""

    def __init__(self,
                 images: ImageDecodeCache,
                 page_width: int = PAGE_WIDTH,
                 page_height: int = PAGE_HEIGHT,
                 header_height: int = HEADER_HEIGHT,
                 footer_height: int = FOOTER_HEIGHT,
                 currency_symbol: str = '$',
                 thousands_separator: str = '.'):
        self.images = images
        self.page_width = page_width
        self.page_height = page_height
        self.header_height = header_height
        self.footer_height = footer_height
        self.currency_symbol = currency_symbol
        self.thousands_separator = thousands_separator

    def page_size(self, scale: float):
        """Pixel size of a page at the given scale."""
        return (round(self.page_width * scale), round(self.page_height * scale))

    async def compose(self, snapshot: CatalogSnapshot, page_index: int, scale: float) -> Image.Image:
        """
        Render one page of the snapshot.

        Image requests for the page are issued together and awaited
        first; the drawing that follows is synchronous, so identical
        inputs always give identical pixels.
        """
        page = snapshot.page(page_index)
        style = snapshot.style
        template = snapshot.template

        resolved = await asyncio.gather(*(self.images.get(item.image_url) for item in page.items))

        width, height = self.page_size(scale)
        surface = PillowSurface(width, height, style.background)
        surface.fill_gradient(style.primary, style.secondary, style.gradient)

        for element in snapshot.elements:
            self.draw_element(surface, element, style, scale)

        cards = CardRenderer(style, self.images, self.currency_symbol, self.thousands_separator)
        cells = self.grid_cells(template, style, scale)
        for item, cell, image in zip(page.items, cells, resolved):
            cards.draw_resolved(surface, item, cell, scale, image, template.kind)

        logger.info(f"Composed page {page_index + 1}/{snapshot.total_pages} "
                    f"({len(page.items)} items, {width}x{height})")
        return surface.image

    def grid_cells(self, template: LayoutTemplate, style: StyleConfiguration, scale: float) -> List[Box]:
        """Cell boxes in row-major order, between the header and footer bands."""
        width, height = self.page_width * scale, self.page_height * scale
        header = self.header_height * scale
        footer = self.footer_height * scale
        padding = style.spacing * scale

        content_w = width - padding * 2
        content_h = (height - header - footer) - padding * 2
        cols, rows = template.columns, template.rows
        cell_w = (content_w - padding * (cols - 1)) / cols
        cell_h = (content_h - padding * (rows - 1)) / rows

        cells = []
        for i in range(template.items_per_page):
            row, col = divmod(i, cols)
            cells.append(Box(
                padding + col * (cell_w + padding),
                header + padding + row * (cell_h + padding),
                cell_w,
                cell_h,
            ))
        return cells

    def draw_element(self, surface: Surface, element: CustomElement,
                     style: StyleConfiguration, scale: float) -> None:
        """Draw one custom element; non-text kinds are drawn as labelled placeholders."""
        pos = element.position
        text_style = element.style

        if element.kind != 'text':
            box = Box(pos.x * scale, pos.y * scale, pos.width * scale, pos.height * scale)
            surface.rounded_rect(box, 4 * scale, fill=PLACEHOLDER_FILL,
                                 outline=PLACEHOLDER_OUTLINE, width=1 * scale)
            label = element.content or element.kind.upper()
            surface.text((box.center_x, box.center_y), label,
                         FontSpec(style.font_family, 10 * scale), text_style.color, anchor='mm')
            return

        if text_style.text_align == 'center':
            anchor_x = pos.x + pos.width / 2
        elif text_style.text_align == 'right':
            anchor_x = pos.x + pos.width
        else:
            anchor_x = pos.x

        # baseline sits one font size below the element's top edge
        baseline = pos.y + text_style.font_size
        font = FontSpec(style.font_family, text_style.font_size * scale,
                        bold=(text_style.font_weight == 'bold'))
        surface.text((anchor_x * scale, baseline * scale), element.content, font,
                     text_style.color, anchor=ANCHORS[text_style.text_align])


def create_page_composer(images: ImageDecodeCache, config=None) -> PageComposer:
    """Factory function to create a PageComposer from app configuration."""
    if config is None:
        from .config import get_config
        config = get_config()
    return PageComposer(
        images,
        page_width=config.PAGE_WIDTH,
        page_height=config.PAGE_HEIGHT,
        header_height=config.HEADER_HEIGHT,
        footer_height=config.FOOTER_HEIGHT,
        currency_symbol=config.CURRENCY_SYMBOL,
        thousands_separator=config.THOUSANDS_SEPARATOR,
    )
