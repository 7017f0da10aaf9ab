"""
Error handling for Gift Composer.

Provides specific exception types for the composition pipeline so the
HTTP layer can tell a broken template apart from a bad customer upload.
"""

from typing import Dict, List, Any


class GiftComposerError(Exception):
    """Base exception for all Gift Composer errors."""

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


class ValidationError(GiftComposerError):
    """Raised when caller input validation fails."""
    pass


class ProcessingError(GiftComposerError):
    """Raised when the composition pipeline fails."""
    pass


class RenderError(ProcessingError):
    """Raised when image rendering fails."""
    pass


class CompositeError(RenderError):
    """Raised when flattening or encoding the layers fails."""
    pass


# Specific error classes for common failure modes

class BaseImageMissingError(RenderError):
    """Raised when the base template image cannot be accessed."""

    def __init__(self, base_image_path: str):
        super().__init__(
            f"Base image not found: {base_image_path}",
            details={'base_image_path': str(base_image_path)},
            suggestions=[
                "Check that the layout template image was uploaded",
                "Verify TEMPLATES_DIR points at the template storage",
            ]
        )


class ImageDimensionError(RenderError):
    """Raised when the width/height of an image cannot be read."""

    def __init__(self, image_path: str, reason: str = None):
        super().__init__(
            f"Could not read image dimensions: {image_path}",
            details={
                'image_path': str(image_path),
                'reason': reason
            },
            suggestions=[
                "Ensure the file is a supported image format",
                "Ensure the file is not truncated or corrupted",
            ]
        )


class SlotDefinitionError(ValidationError):
    """Raised when a layout template carries an invalid slot."""

    def __init__(self, message: str, slot_id: str = None):
        super().__init__(
            message,
            details={'slot_id': slot_id},
            suggestions=[
                "Slot x and y must be between 0 and 100",
                "Slot width and height must be greater than 0 and at most 100",
            ]
        )


class LayoutNotFoundError(ValidationError):
    """Raised when a request names a layout template that is not loaded."""

    def __init__(self, layout_id: str):
        super().__init__(
            f"Layout template not found: {layout_id}",
            details={'layout_id': layout_id},
            suggestions=["Check config/layouts.yaml for the available layout ids"]
        )
