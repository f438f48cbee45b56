"""
Drawing surface for catalog pages.

This module handles:
- Boxes in pixel space
- Font lookup for the catalog font families
- Gradient backgrounds
- The primitive drawing operations cards and pages are built from
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Tuple, Union

import numpy as np
from PIL import Image, ImageColor, ImageDraw, ImageFont
from loguru import logger


Color = Union[str, Tuple[int, ...]]


class Box:
    """Represents a position and size on the surface, in pixels."""

    def __init__(self, x: float, y: float, width: float, height: float):
        self.x = x
        self.y = y
        self.width = width
        self.height = height

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def as_ints(self) -> Tuple[int, int, int, int]:
        """(left, top, right, bottom) rounded to whole pixels."""
        return (round(self.x), round(self.y), round(self.right), round(self.bottom))

    def __eq__(self, other) -> bool:
        if not isinstance(other, Box):
            return NotImplemented
        return (self.x, self.y, self.width, self.height) == (other.x, other.y, other.width, other.height)

    def __repr__(self) -> str:
        return f"Box({self.x}, {self.y}, {self.width}, {self.height})"


@dataclass(frozen=True)
class FontSpec:
    family: str
    size: float
    bold: bool = False


# regular and bold file candidates per family, first hit wins
FONT_FILES = {
    'arial': (['arial.ttf', 'Arial.ttf', 'LiberationSans-Regular.ttf'],
              ['arialbd.ttf', 'Arial Bold.ttf', 'LiberationSans-Bold.ttf']),
    'helvetica': (['Helvetica.ttc', 'LiberationSans-Regular.ttf', 'arial.ttf'],
                  ['Helvetica-Bold.ttf', 'LiberationSans-Bold.ttf', 'arialbd.ttf']),
    'georgia': (['georgia.ttf', 'Georgia.ttf', 'DejaVuSerif.ttf'],
                ['georgiab.ttf', 'Georgia Bold.ttf', 'DejaVuSerif-Bold.ttf']),
    'times new roman': (['times.ttf', 'Times New Roman.ttf', 'LiberationSerif-Regular.ttf'],
                        ['timesbd.ttf', 'Times New Roman Bold.ttf', 'LiberationSerif-Bold.ttf']),
    'trebuchet ms': (['trebuc.ttf', 'Trebuchet MS.ttf', 'DejaVuSans.ttf'],
                     ['trebucbd.ttf', 'Trebuchet MS Bold.ttf', 'DejaVuSans-Bold.ttf']),
    'verdana': (['verdana.ttf', 'Verdana.ttf', 'DejaVuSans.ttf'],
                ['verdanab.ttf', 'Verdana Bold.ttf', 'DejaVuSans-Bold.ttf']),
}
FALLBACK_FILES = (['DejaVuSans.ttf'], ['DejaVuSans-Bold.ttf'])


@lru_cache(maxsize=256)
def load_font(family: str, size: int, bold: bool = False) -> ImageFont.FreeTypeFont:
    """Resolve a CSS-like family list ('Georgia, serif') to a TrueType font."""
    size = max(1, size)
    primary = family.split(',')[0].strip().strip('\'"').lower()
    regular, bold_files = FONT_FILES.get(primary, FALLBACK_FILES)
    candidates = (bold_files if bold else regular) + (FALLBACK_FILES[1] if bold else FALLBACK_FILES[0])

    for filename in candidates:
        try:
            return ImageFont.truetype(filename, size)
        except OSError:
            continue

    logger.debug(f"No TrueType file for {family!r}, using bundled font")
    return ImageFont.load_default(size=size)


def gradient_array(width: int, height: int, start: Color, end: Color, kind: str = 'linear') -> np.ndarray:
    """
    RGB pixels for a two-stop gradient.

    linear and diagonal run from the top-left to the bottom-right corner;
    radial is centred with radius width / 1.5.
    """
    start_rgb = np.array(_rgb(start), dtype=np.float64)
    end_rgb = np.array(_rgb(end), dtype=np.float64)

    xs = np.arange(width, dtype=np.float64) + 0.5
    ys = np.arange(height, dtype=np.float64) + 0.5
    x, y = np.meshgrid(xs, ys)

    if kind == 'radial':
        t = np.hypot(x - width / 2, y - height / 2) / (width / 1.5)
    elif kind == 'horizontal':
        t = x / width
    elif kind == 'vertical':
        t = y / height
    else:
        t = (x * width + y * height) / float(width * width + height * height)

    t = np.clip(t, 0.0, 1.0)[..., np.newaxis]
    pixels = start_rgb * (1.0 - t) + end_rgb * t
    return np.rint(pixels).astype(np.uint8)


def _rgb(color: Color) -> Tuple[int, int, int]:
    if isinstance(color, str):
        return ImageColor.getrgb(color)[:3]
    return tuple(color[:3])


class Surface:
    """
    Primitive 2D operations used by the card renderer and page composer.

    Coordinates are pixels. Implementations must be deterministic:
    the same calls in the same order produce the same output.
    """

    width: int
    height: int

    def fill_gradient(self, start: Color, end: Color, kind: str = 'linear') -> None:
        raise NotImplementedError

    def fill_rect(self, box: Box, fill: Color) -> None:
        raise NotImplementedError

    def rounded_rect(self, box: Box, radius: float, fill: Color = None,
                     outline: Color = None, width: float = 0) -> None:
        raise NotImplementedError

    def draw_image_fit(self, image: Image.Image, box: Box) -> Box:
        raise NotImplementedError

    def text(self, xy: Tuple[float, float], text: str, font: FontSpec,
             fill: Color, anchor: str = 'ls') -> None:
        raise NotImplementedError

    def text_width(self, text: str, font: FontSpec) -> float:
        raise NotImplementedError

    def line(self, start: Tuple[float, float], end: Tuple[float, float],
             fill: Color, width: float = 1) -> None:
        raise NotImplementedError


class PillowSurface(Surface):
    """Surface backed by a Pillow RGB image with alpha-blended drawing."""

    def __init__(self, width: int, height: int, background: Color = '#000000'):
        self.width = width
        self.height = height
        self.image = Image.new('RGB', (width, height), background)
        self._draw = ImageDraw.Draw(self.image, 'RGBA')

    def fill_gradient(self, start: Color, end: Color, kind: str = 'linear') -> None:
        if self.width <= 0 or self.height <= 0:
            return
        pixels = gradient_array(self.width, self.height, start, end, kind)
        self.image.paste(Image.fromarray(pixels), (0, 0))

    def fill_rect(self, box: Box, fill: Color) -> None:
        if box.width <= 0 or box.height <= 0:
            return
        left, top, right, bottom = box.as_ints()
        self._draw.rectangle([left, top, right - 1, bottom - 1], fill=fill)

    def rounded_rect(self, box: Box, radius: float, fill: Color = None,
                     outline: Color = None, width: float = 0) -> None:
        if box.width <= 0 or box.height <= 0:
            return
        left, top, right, bottom = box.as_ints()
        radius = min(round(radius), (right - left) // 2, (bottom - top) // 2)
        self._draw.rounded_rectangle(
            [left, top, right - 1, bottom - 1],
            radius=max(0, radius),
            fill=fill,
            outline=outline,
            width=round(width) if outline is not None else 0,
        )

    def draw_image_fit(self, image: Image.Image, box: Box) -> Box:
        """Scale image to fit inside box, keeping aspect ratio, centred (letterbox)."""
        if box.width < 1 or box.height < 1 or image.width == 0 or image.height == 0:
            return Box(box.x, box.y, 0, 0)

        img_ratio = image.width / image.height
        box_ratio = box.width / box.height
        if img_ratio > box_ratio:
            # Image is wider than the box, fit to width
            draw_w = box.width
            draw_h = box.width / img_ratio
            draw_x = box.x
            draw_y = box.y + (box.height - draw_h) / 2
        else:
            # Image is taller than the box, fit to height
            draw_h = box.height
            draw_w = box.height * img_ratio
            draw_x = box.x + (box.width - draw_w) / 2
            draw_y = box.y

        size = (max(1, round(draw_w)), max(1, round(draw_h)))
        resized = image.resize(size, Image.Resampling.LANCZOS)
        position = (round(draw_x), round(draw_y))
        if resized.mode == 'RGBA':
            self.image.paste(resized, position, resized)
        else:
            self.image.paste(resized.convert('RGB'), position)
        return Box(draw_x, draw_y, draw_w, draw_h)

    def text(self, xy: Tuple[float, float], text: str, font: FontSpec,
             fill: Color, anchor: str = 'ls') -> None:
        if not text:
            return
        self._draw.text(xy, text, font=self._font(font), fill=fill, anchor=anchor)

    def text_width(self, text: str, font: FontSpec) -> float:
        if not text:
            return 0.0
        return self._draw.textlength(text, font=self._font(font))

    def line(self, start: Tuple[float, float], end: Tuple[float, float],
             fill: Color, width: float = 1) -> None:
        self._draw.line([start, end], fill=fill, width=max(1, round(width)))

    @staticmethod
    def _font(spec: FontSpec) -> ImageFont.FreeTypeFont:
        return load_font(spec.family, round(spec.size), spec.bold)
