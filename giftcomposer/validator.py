"""
Image quality validation for customer uploads.

Run before an upload is accepted so that oversized or undersized images
never reach the compositor. The validator never raises: every outcome,
including unexpected I/O failures, comes back as a ValidationResult.
"""

import os
from typing import Optional

from loguru import logger

from .models import ValidationResult
from .probe import probe_dimensions

# Hard ceiling protecting the compositor; callers cannot raise it.
MAX_MEGAPIXELS = 20.0

DEFAULT_MAX_SIZE_MB = 20.0


def validate_image(image_path,
                   max_size_mb: float = DEFAULT_MAX_SIZE_MB,
                   min_width: Optional[int] = None,
                   min_height: Optional[int] = None) -> ValidationResult:
    """
    Check file size, minimum dimensions and resolution of an image.

    Args:
        image_path: Path of the image on disk
        max_size_mb: Largest accepted file size in megabytes
        min_width: Smallest accepted width in pixels, unchecked when falsy
        min_height: Smallest accepted height in pixels, unchecked when falsy

    Returns:
        ValidationResult with valid=False and a readable error on rejection
    """
    try:
        size_mb = os.path.getsize(image_path) / (1024 * 1024)
        if size_mb > max_size_mb:
            return _reject(image_path, f"Image too large: {size_mb:.2f}MB (maximum: {max_size_mb}MB)")

        try:
            width, height = probe_dimensions(image_path)
        except Exception as e:
            logger.debug(f"Dimension probe failed for {image_path}: {e}")
            return _reject(image_path, "Could not read image dimensions")

        if min_width and width < min_width:
            return _reject(image_path, f"Width too small: {width}px (minimum: {min_width}px)")

        if min_height and height < min_height:
            return _reject(image_path, f"Height too small: {height}px (minimum: {min_height}px)")

        megapixels = (width * height) / 1_000_000
        if megapixels > MAX_MEGAPIXELS:
            return _reject(image_path, f"Resolution too high: {megapixels:.1f}MP (maximum: {MAX_MEGAPIXELS:g}MP)")

        logger.debug(f"Image accepted: {image_path} ({width}x{height}, {size_mb:.2f}MB)")
        return ValidationResult(valid=True)

    except Exception as e:
        return _reject(image_path, f"Error validating image: {e}")


def _reject(image_path, error: str) -> ValidationResult:
    logger.info(f"Image rejected: {image_path} - {error}")
    return ValidationResult(valid=False, error=error)
