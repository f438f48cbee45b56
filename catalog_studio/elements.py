"""
User-authored overlays (titles, contact lines, logos) drawn on every page
"""

import itertools
from typing import Dict, Any, Iterator, List, Tuple

from pydantic import ValidationError as PydanticValidationError

from .errors import UnknownElementError, ValidationError
from .models import CustomElement, Rect, TextStyle


def default_elements() -> List[CustomElement]:
    """Title and contact line every new catalog starts with."""
    return [
        CustomElement(
            id='title',
            kind='text',
            content='CATÁLOGO DIGITAL',
            position=Rect(x=50, y=30, width=400, height=60),
            style=TextStyle(font_size=32, color='#ffffff', font_weight='bold', text_align='center'),
        ),
        CustomElement(
            id='contact',
            kind='text',
            content='WhatsApp: +57 300 000 0000',
            position=Rect(x=50, y=750, width=300, height=40),
            style=TextStyle(font_size=18, color='#ffffff', font_weight='normal', text_align='left'),
        ),
    ]


class CustomElementList:
    """Ordered, mutable list of custom elements. List order is draw order."""

    def __init__(self, elements: List[CustomElement] = None):
        self._elements: List[CustomElement] = list(elements if elements is not None else default_elements())
        self._counter = itertools.count(1)

    def add(self, element: CustomElement) -> CustomElement:
        if self._index(element.id) is not None:
            raise ValidationError(
                f"Custom element {element.id} already exists",
                details={'element_id': element.id}
            )
        self._elements.append(element)
        return element

    def add_text(self, color: str = '#ffffff') -> CustomElement:
        """Append a placeholder text element with the given colour."""
        element_id = f"element_{next(self._counter)}"
        while self._index(element_id) is not None:
            element_id = f"element_{next(self._counter)}"
        return self.add(CustomElement(
            id=element_id,
            kind='text',
            content='Nuevo texto',
            position=Rect(x=50, y=100, width=200, height=40),
            style=TextStyle(font_size=16, color=color, font_weight='normal', text_align='left'),
        ))

    def update(self, element_id: str, **changes: Any) -> CustomElement:
        """
        Merge changes into an element and validate the result.

        Nested 'position' and 'style' dicts are merged field by field,
        so {'style': {'color': '#000'}} keeps the other style settings.
        """
        index = self._index(element_id)
        if index is None:
            raise UnknownElementError(element_id)

        data: Dict[str, Any] = self._elements[index].model_dump()
        for key, value in changes.items():
            if key in ('position', 'style') and isinstance(value, dict):
                data[key] = {**data[key], **value}
            else:
                data[key] = value
        data['id'] = element_id

        try:
            updated = CustomElement.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(
                f"Invalid update for custom element {element_id}: {e}",
                details={'element_id': element_id}
            )
        self._elements[index] = updated
        return updated

    def remove(self, element_id: str) -> None:
        index = self._index(element_id)
        if index is None:
            raise UnknownElementError(element_id)
        del self._elements[index]

    def get(self, element_id: str) -> CustomElement:
        index = self._index(element_id)
        if index is None:
            raise UnknownElementError(element_id)
        return self._elements[index]

    def snapshot(self) -> Tuple[CustomElement, ...]:
        return tuple(self._elements)

    def _index(self, element_id: str):
        for i, element in enumerate(self._elements):
            if element.id == element_id:
                return i
        return None

    def __iter__(self) -> Iterator[CustomElement]:
        return iter(list(self._elements))

    def __len__(self) -> int:
        return len(self._elements)
