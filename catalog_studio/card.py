"""
Card renderer: draws one item's card into a box on a drawing surface.

All geometry below is in design units and is multiplied by the render
scale, so the same routine produces the preview and the print export.
"""

from typing import Optional

from loguru import logger

from .image_cache import CachedImage, ImageDecodeCache, ImageStatus
from .models import EffectiveItem, StyleConfiguration
from .pricing import discount_percent, format_price
from .surface import Box, FontSpec, Surface
from .text_layout import wrap_text, truncate_chars


PADDING = 10
IMAGE_FRACTION = 0.6
LINE_HEIGHT = 16
STROKE_WIDTH = 2

CATEGORY_SIZE = 10
NAME_SIZE = 14
DESCRIPTION_SIZE = 10
PRICE_SIZE = 16
ORIGINAL_PRICE_SIZE = 12
PLACEHOLDER_SIZE = 12
BADGE_TEXT_SIZE = 10

NAME_MAX_LINES = 2
DESCRIPTION_MAX_CHARS = 50

BADGE_COLOR = '#e74c3c'
BADGE_TEXT_COLOR = '#ffffff'
PLACEHOLDER_FILL = (255, 255, 255, 26)
DESCRIPTION_COLOR = (255, 255, 255, 217)
ORIGINAL_PRICE_COLOR = (255, 255, 255, 153)

NO_IMAGE_LABEL = 'Sin imagen'
FAILED_IMAGE_LABEL = 'Imagen no disponible'

# list cards: image column, text column, price column
LIST_IMAGE_FRACTION = 0.35
LIST_PRICE_FRACTION = 0.25
LIST_TWO_LINE_MIN_HEIGHT = 100


class CardRenderer:
    """Draws item cards using one style configuration."""

    def __init__(self,
                 style: StyleConfiguration,
                 images: ImageDecodeCache,
                 currency_symbol: str = '$',
                 thousands_separator: str = '.'):
        self.style = style
        self.images = images
        self.currency_symbol = currency_symbol
        self.thousands_separator = thousands_separator

    async def draw(self, surface: Surface, item: EffectiveItem, box: Box,
                   scale: float, kind: str = 'grid') -> None:
        """Acquire the item's image, then draw the card synchronously."""
        image = await self.images.get(item.image_url)
        self.draw_resolved(surface, item, box, scale, image, kind)

    def draw_resolved(self, surface: Surface, item: EffectiveItem, box: Box,
                      scale: float, image: CachedImage, kind: str = 'grid') -> None:
        """Draw a card whose image request has already resolved."""
        if kind == 'list':
            self._draw_list_card(surface, item, box, scale, image)
        else:
            self._draw_vertical_card(surface, item, box, scale, image, stroke=(kind != 'minimal'))
        logger.debug(f"Drew {kind} card for {item.id} at {box}")

    # Card layouts

    def _draw_vertical_card(self, surface: Surface, item: EffectiveItem, box: Box,
                            scale: float, image: CachedImage, stroke: bool = True) -> None:
        style = self.style
        padding = PADDING * scale
        line_height = LINE_HEIGHT * scale

        self._draw_background(surface, box, scale, stroke)

        image_height = box.height * IMAGE_FRACTION
        image_box = Box(box.x + padding, box.y + padding,
                        box.width - 2 * padding, image_height - padding)
        self._draw_image(surface, image_box, image, scale)

        text_x = box.x + padding
        max_width = box.width - 2 * padding
        current_y = box.y + image_height + padding

        current_y = self._draw_text_block(surface, item, text_x, current_y, max_width,
                                          scale, NAME_MAX_LINES)

        if (style.show_description and item.description
                and current_y + line_height * 2 < box.bottom - 30 * scale):
            surface.text((text_x, current_y), truncate_chars(item.description, DESCRIPTION_MAX_CHARS),
                         self._font(DESCRIPTION_SIZE, scale), DESCRIPTION_COLOR)

        # Price block anchored to the bottom of the card
        price_y = box.bottom - 25 * scale
        surface.text((text_x, price_y), self._price(item.price),
                     self._font(PRICE_SIZE, scale, bold=True), style.accent)

        percent = self._visible_discount(item)
        if percent is not None:
            original_font = self._font(ORIGINAL_PRICE_SIZE, scale)
            original_text = self._price(item.original_price)
            original_width = surface.text_width(original_text, original_font)
            original_x = box.right - padding - original_width
            surface.text((original_x, price_y - 20 * scale), original_text,
                         original_font, ORIGINAL_PRICE_COLOR)
            strike_y = price_y - 25 * scale
            surface.line((original_x, strike_y), (original_x + original_width, strike_y),
                         ORIGINAL_PRICE_COLOR, 1 * scale)
            self._draw_badge(surface, Box(box.right - 50 * scale, box.y + 5 * scale,
                                          40 * scale, 20 * scale), percent, scale)

    def _draw_list_card(self, surface: Surface, item: EffectiveItem, box: Box,
                        scale: float, image: CachedImage) -> None:
        style = self.style
        padding = PADDING * scale

        self._draw_background(surface, box, scale, stroke=True)

        image_box = Box(box.x + padding, box.y + padding,
                        box.width * LIST_IMAGE_FRACTION - padding, box.height - 2 * padding)
        self._draw_image(surface, image_box, image, scale)

        text_x = box.x + box.width * LIST_IMAGE_FRACTION + padding
        price_column = box.width * LIST_PRICE_FRACTION
        max_width = box.right - price_column - text_x
        max_lines = NAME_MAX_LINES if box.height >= LIST_TWO_LINE_MIN_HEIGHT * scale else 1
        current_y = box.y + padding + NAME_SIZE * scale

        current_y = self._draw_text_block(surface, item, text_x, current_y, max_width,
                                          scale, max_lines)

        if (style.show_description and item.description
                and current_y <= box.bottom - padding):
            surface.text((text_x, current_y), truncate_chars(item.description, DESCRIPTION_MAX_CHARS),
                         self._font(DESCRIPTION_SIZE, scale), DESCRIPTION_COLOR)

        price_x = box.right - padding
        price_y = box.center_y + 8 * scale
        surface.text((price_x, price_y), self._price(item.price),
                     self._font(PRICE_SIZE, scale, bold=True), style.accent, anchor='rs')

        percent = self._visible_discount(item)
        if percent is not None:
            original_font = self._font(ORIGINAL_PRICE_SIZE, scale)
            original_text = self._price(item.original_price)
            original_width = surface.text_width(original_text, original_font)
            original_y = price_y - 20 * scale
            surface.text((price_x, original_y), original_text, original_font,
                         ORIGINAL_PRICE_COLOR, anchor='rs')
            strike_y = original_y - 4 * scale
            surface.line((price_x - original_width, strike_y), (price_x, strike_y),
                         ORIGINAL_PRICE_COLOR, 1 * scale)
            # badge sits on the image so it never covers the price column
            self._draw_badge(surface, Box(box.x + 5 * scale, box.y + 5 * scale,
                                          40 * scale, 20 * scale), percent, scale)

    # Shared pieces

    def _draw_background(self, surface: Surface, box: Box, scale: float, stroke: bool) -> None:
        surface.rounded_rect(
            box,
            self.style.border_radius * scale,
            fill=self.style.card_background,
            outline=self.style.accent if stroke else None,
            width=STROKE_WIDTH * scale,
        )

    def _draw_image(self, surface: Surface, image_box: Box, image: CachedImage, scale: float) -> None:
        if image.ready:
            surface.draw_image_fit(image.image, image_box)
            return

        label = FAILED_IMAGE_LABEL if image.status is ImageStatus.FAILED else NO_IMAGE_LABEL
        surface.fill_rect(image_box, PLACEHOLDER_FILL)
        surface.text((image_box.center_x, image_box.center_y), label,
                     self._font(PLACEHOLDER_SIZE, scale), self.style.text, anchor='mm')

    def _draw_text_block(self, surface: Surface, item: EffectiveItem, text_x: float,
                         current_y: float, max_width: float, scale: float, max_lines: int) -> float:
        """Category label and wrapped name. Returns the next baseline."""
        line_height = LINE_HEIGHT * scale

        if self.style.show_category and item.category:
            surface.text((text_x, current_y), item.category.upper(),
                         self._font(CATEGORY_SIZE, scale, bold=True), self.style.accent)
            current_y += line_height

        name_font = self._font(NAME_SIZE, scale, bold=True)
        lines = wrap_text(item.name, max_width,
                          lambda s: surface.text_width(s, name_font), max_lines)
        for line in lines:
            surface.text((text_x, current_y), line, name_font, self.style.text)
            current_y += line_height
        return current_y

    def _draw_badge(self, surface: Surface, badge: Box, percent: int, scale: float) -> None:
        surface.fill_rect(badge, BADGE_COLOR)
        surface.text((badge.center_x, badge.y + 12 * scale), f"-{percent}%",
                     self._font(BADGE_TEXT_SIZE, scale, bold=True), BADGE_TEXT_COLOR, anchor='ms')

    def _visible_discount(self, item: EffectiveItem) -> Optional[int]:
        if not self.style.show_discount:
            return None
        return discount_percent(item.price, item.original_price)

    def _price(self, value: float) -> str:
        return format_price(value, self.currency_symbol, self.thousands_separator)

    def _font(self, size: float, scale: float, bold: bool = False) -> FontSpec:
        return FontSpec(self.style.font_family, size * scale, bold)
