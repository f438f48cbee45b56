"""
Data model for the catalog generator.

Items, templates, styles and custom elements are immutable values; the
mutable session state lives in the workspace and only ever swaps whole
values in and out, which keeps export snapshots cheap and safe.
"""

from typing import Optional, Literal
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from PIL import ImageColor


ItemSource = Literal['digital', 'physical']
LayoutKind = Literal['grid', 'list', 'showcase', 'magazine', 'minimal']
GradientKind = Literal['linear', 'radial', 'diagonal', 'horizontal', 'vertical']
ElementKind = Literal['text', 'logo', 'qr', 'decoration']
TextAlign = Literal['left', 'center', 'right']
FontWeight = Literal['normal', 'bold']


def _check_color(value: str) -> str:
    try:
        ImageColor.getrgb(value)
    except ValueError:
        raise ValueError(f"not a colour: {value!r}")
    return value


class Item(BaseModel):
    """A product as loaded from one of the two backing catalogs."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    price: float
    original_price: Optional[float] = None
    discount: Optional[float] = None
    image_url: Optional[str] = None
    in_stock: bool = True
    source: ItemSource = 'digital'


class PriceOverride(BaseModel):
    """Custom price for one item."""
    model_config = ConfigDict(frozen=True)

    price: float = Field(ge=0)
    original_price: Optional[float] = None


class EffectiveItem(Item):
    """An item with any price override applied. Derived, never stored."""

    has_override: bool = False


class LayoutTemplate(BaseModel):
    """A named page layout fixing items per page and the grid shape."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    items_per_page: int = Field(gt=0)
    columns: int = Field(gt=0)
    rows: int = Field(gt=0)
    kind: LayoutKind = 'grid'

    @model_validator(mode='after')
    def _check_grid(self):
        cells = self.columns * self.rows
        if self.kind in ('showcase', 'list'):
            # these kinds may leave cells empty but must fit every item
            if cells < self.items_per_page:
                raise ValueError(
                    f"{self.columns}x{self.rows} grid cannot hold {self.items_per_page} items"
                )
        elif cells != self.items_per_page:
            raise ValueError(
                f"{self.columns}x{self.rows} grid does not match {self.items_per_page} items per page"
            )
        return self


class StyleConfiguration(BaseModel):
    """Colour palette, typography and visibility toggles for a catalog."""
    model_config = ConfigDict(frozen=True)

    primary: str = '#6366f1'
    secondary: str = '#8b5cf6'
    accent: str = '#f59e0b'
    text: str = '#ffffff'
    background: str = '#1e293b'
    card_background: str = '#334155'
    font_family: str = 'Arial, sans-serif'
    border_radius: float = Field(default=8, ge=0)
    spacing: float = Field(default=16, ge=0)
    show_discount: bool = True
    show_description: bool = True
    show_category: bool = True
    gradient: GradientKind = 'linear'

    @field_validator('primary', 'secondary', 'accent', 'text', 'background', 'card_background')
    @classmethod
    def _valid_color(cls, value: str) -> str:
        return _check_color(value)


class Rect(BaseModel):
    """Position and size in page design units."""
    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    width: float = Field(ge=0)
    height: float = Field(ge=0)


class TextStyle(BaseModel):
    model_config = ConfigDict(frozen=True)

    font_size: float = Field(default=16, gt=0)
    color: str = '#ffffff'
    font_weight: FontWeight = 'normal'
    text_align: TextAlign = 'left'

    @field_validator('color')
    @classmethod
    def _valid_color(cls, value: str) -> str:
        return _check_color(value)


class CustomElement(BaseModel):
    """A user-placed overlay drawn identically on every page."""
    model_config = ConfigDict(frozen=True)

    id: str
    kind: ElementKind = 'text'
    content: str = ''
    position: Rect
    style: TextStyle = TextStyle()
