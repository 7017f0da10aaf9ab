"""Natural size lookup for source images."""

from typing import Tuple

from PIL import Image

from .errors import ImageDimensionError


def probe_dimensions(image_path) -> Tuple[int, int]:
    """
    Read width/height from the image header without decoding pixels.

    A missing file raises FileNotFoundError unchanged so callers can tell
    "not there" apart from "not an image".
    """
    try:
        with Image.open(image_path) as img:
            width, height = img.size
    except FileNotFoundError:
        raise
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise ImageDimensionError(str(image_path), str(e)) from e

    if not width or not height:
        raise ImageDimensionError(str(image_path), "image reports zero width or height")

    return width, height
