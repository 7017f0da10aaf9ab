"""
Slot image preparation for Gift Composer.

This module handles:
- Loading customer images as RGBA
- Scaling and center-cropping images to fill a slot (cover)
- Scaling and letterboxing images with transparency (contain)
- Rotating the fitted image about its own center
"""

import math
from typing import Union

from PIL import Image
from loguru import logger

from .errors import ImageDimensionError
from .layout import round_half_up
from .models import FitMode, Rotation
from .probe import probe_dimensions

TRANSPARENT = (0, 0, 0, 0)


def load_source_image(image_path) -> Image.Image:
    """Decode an image from disk into a detached RGBA copy."""
    try:
        with Image.open(image_path) as img:
            img.load()
            return img.convert('RGBA')
    except FileNotFoundError:
        raise
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise ImageDimensionError(str(image_path), str(e)) from e


def cover_fit(image: Image.Image, target_width: int, target_height: int) -> Image.Image:
    """
    Scale the image until it covers the target, then crop the centre.

    The scaled size is rounded up, so the crop never leaves an empty
    margin; overflow is discarded evenly from both sides.
    """
    src_width, src_height = image.size
    scale = max(target_width / src_width, target_height / src_height)

    # round() first so float noise like 10.000000000000002 does not ceil to 11
    scaled_width = math.ceil(round(src_width * scale, 6))
    scaled_height = math.ceil(round(src_height * scale, 6))
    scaled = image.resize((scaled_width, scaled_height), Image.Resampling.LANCZOS)

    offset_x = max(0, (scaled_width - target_width) // 2)
    offset_y = max(0, (scaled_height - target_height) // 2)
    return scaled.crop((offset_x, offset_y, offset_x + target_width, offset_y + target_height))


def contain_fit(image: Image.Image, target_width: int, target_height: int) -> Image.Image:
    """Scale the image to fit inside the target and pad with transparency."""
    src_width, src_height = image.size
    scale = min(target_width / src_width, target_height / src_height)

    fitted_width = min(target_width, max(1, round_half_up(src_width * scale)))
    fitted_height = min(target_height, max(1, round_half_up(src_height * scale)))
    fitted = image.resize((fitted_width, fitted_height), Image.Resampling.LANCZOS)

    canvas = Image.new('RGBA', (target_width, target_height), TRANSPARENT)
    canvas.paste(fitted, ((target_width - fitted_width) // 2, (target_height - fitted_height) // 2))
    return canvas


def rotate_about_center(image: Image.Image, rotation: Rotation) -> Image.Image:
    """
    Rotate clockwise, growing the canvas so no corner is cut off.

    The returned image may be larger than the input; newly exposed corners
    are transparent.
    """
    # PIL rotates counter-clockwise for positive angles
    return image.rotate(
        -rotation.degrees,
        resample=Image.Resampling.BICUBIC,
        expand=True,
        fillcolor=TRANSPARENT,
    )


def resample_slot_image(image_path,
                        target_width: int,
                        target_height: int,
                        fit: Union[FitMode, str] = FitMode.COVER,
                        rotation: Union[Rotation, float] = Rotation()) -> Image.Image:
    """
    Produce an RGBA buffer for one slot.

    Args:
        image_path: Customer image on disk
        target_width: Slot width in pixels
        target_height: Slot height in pixels
        fit: cover (fill and crop) or contain (fit and pad)
        rotation: Clockwise angle applied after fitting

    Returns:
        Image of exactly target size, or larger when rotated

    Raises:
        ImageDimensionError: if the source dimensions cannot be read
        ValueError: if the target size is not positive
    """
    if target_width <= 0 or target_height <= 0:
        raise ValueError(f"Target size must be positive, got {target_width}x{target_height}")

    fit = FitMode(fit)
    if not isinstance(rotation, Rotation):
        rotation = Rotation(float(rotation))

    src_width, src_height = probe_dimensions(image_path)
    source = load_source_image(image_path)

    if fit is FitMode.COVER:
        result = cover_fit(source, target_width, target_height)
    else:
        result = contain_fit(source, target_width, target_height)

    if not rotation.is_zero:
        result = rotate_about_center(result, rotation)

    logger.debug(f"Resampled {image_path} ({src_width}x{src_height}) -> "
                 f"{result.width}x{result.height} fit={fit.value} rotation={rotation.degrees}")
    return result
