"""
Preview rendering for Gift Composer
Renders the same layout at a reduced width for fast customer feedback
"""

from typing import Iterable, Optional, Tuple

from loguru import logger

from .composite import AssignmentLike, CompositionEngine, SlotLike, composition_engine
from .config import get_config
from .layout import round_half_up
from .models import CompositionResult


def preview_dimensions(base_width: int, base_height: int, max_width: int) -> Tuple[int, int]:
    """Scale the canvas down to max_width, never up."""
    scale = min(1.0, max_width / base_width)
    return round_half_up(base_width * scale), round_half_up(base_height * scale)


def render_preview(base_image_path,
                   base_width: int,
                   base_height: int,
                   slots: Iterable[SlotLike],
                   assignments: Iterable[AssignmentLike],
                   max_width: Optional[int] = None,
                   engine: Optional[CompositionEngine] = None) -> CompositionResult:
    """
    Compose a downscaled preview.

    Slots are percentage based, so they are passed through untouched and
    land in the same relative position as in the full-size render.
    """
    if max_width is None:
        max_width = get_config().PREVIEW_MAX_WIDTH
    engine = engine or composition_engine

    preview_width, preview_height = preview_dimensions(base_width, base_height, max_width)
    logger.debug(f"Preview {base_width}x{base_height} -> {preview_width}x{preview_height}")

    return engine.compose(base_image_path, preview_width, preview_height, slots, assignments)


def generate_preview(base_image_path,
                     base_width: int,
                     base_height: int,
                     slots: Iterable[SlotLike],
                     assignments: Iterable[AssignmentLike],
                     max_width: Optional[int] = None,
                     engine: Optional[CompositionEngine] = None) -> bytes:
    """Compose a downscaled preview and return only the encoded bytes."""
    return render_preview(base_image_path, base_width, base_height, slots, assignments,
                          max_width=max_width, engine=engine).buffer
