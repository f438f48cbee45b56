"""
Error types for the catalog generator.

Provides specific exception types for the failure modes of catalog
editing and export, with enough context for the host UI to tell the
user what happened and what to try next.
"""

from typing import Dict, List, Any


class CatalogError(Exception):
    """Base exception for all catalog errors."""

    def __init__(self, message: str, details: Dict[str, Any] = None, suggestions: List[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.suggestions = suggestions or []

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for JSON serialization."""
        return {
            'error_type': self.__class__.__name__,
            'message': self.message,
            'details': self.details,
            'suggestions': self.suggestions
        }


class ValidationError(CatalogError):
    """Raised when a mutation is rejected; prior state is left untouched."""
    pass


class ConfigurationError(CatalogError):
    """Raised when configuration is invalid or missing."""
    pass


class ItemSourceError(CatalogError):
    """Raised when an item collection cannot be read."""
    pass


class RenderError(CatalogError):
    """Raised when page rendering or document assembly fails."""
    pass


class SessionNotFoundError(CatalogError):
    """Raised when a catalog session id is unknown or has expired."""

    def __init__(self, session_id: str):
        super().__init__(
            f"Catalog session not found: {session_id}",
            details={'session_id': session_id},
            suggestions=["Create a new session and try again"]
        )


# Validation failures

class SelectionLimitError(ValidationError):
    """Raised when adding an item would exceed the selection maximum."""

    def __init__(self, limit: int):
        super().__init__(
            f"Selection is full: at most {limit} items per catalog",
            details={'limit': limit},
            suggestions=[
                "Remove an item before adding another one",
                "Split the items across two catalogs"
            ]
        )


class InvalidMarkupError(ValidationError):
    """Raised when a markup cannot be applied."""
    pass


class InvalidTemplateError(ValidationError):
    """Raised when a layout template is malformed or unknown."""
    pass


class PageIndexError(ValidationError):
    """Raised when a page index falls outside the paginated selection."""

    def __init__(self, page_index: int, total_pages: int):
        super().__init__(
            f"Page {page_index} is out of range (catalog has {total_pages} pages)",
            details={'page_index': page_index, 'total_pages': total_pages}
        )


class UnknownItemError(ValidationError):
    """Raised when an item id is not known to the item source."""

    def __init__(self, item_id: str):
        super().__init__(
            f"Unknown item: {item_id}",
            details={'item_id': item_id}
        )


class UnknownElementError(ValidationError):
    """Raised when a custom element id does not exist."""

    def __init__(self, element_id: str):
        super().__init__(
            f"Unknown custom element: {element_id}",
            details={'element_id': element_id}
        )


class UnknownPresetError(ValidationError):
    """Raised when a style preset name does not exist."""

    def __init__(self, preset: str, available: List[str]):
        super().__init__(
            f"Unknown style preset: {preset}",
            details={'preset': preset, 'available': available},
            suggestions=[f"Use one of: {', '.join(available)}"]
        )


# Export failures

class ExportError(RenderError):
    """Raised when the catalog document could not be produced."""

    def __init__(self, message: str, pages_completed: int = 0, total_pages: int = 0):
        super().__init__(
            f"Catalog export did not complete: {message}",
            details={
                'pages_completed': pages_completed,
                'total_pages': total_pages
            },
            suggestions=[
                "No document was produced; start the export again",
                "Reduce the number of items if the problem persists"
            ]
        )
        self.reason = message


class ExportInProgressError(RenderError):
    """Raised when an export is requested while another one is running."""

    def __init__(self):
        super().__init__(
            "An export is already in progress",
            suggestions=["Wait for the current export to finish"]
        )


class ExportCancelledError(ExportError):
    """Raised when an export is cancelled at a page boundary."""

    def __init__(self, pages_completed: int, total_pages: int):
        super().__init__("cancelled by user", pages_completed, total_pages)
