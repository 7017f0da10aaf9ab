"""
Slot geometry for Gift Composer.

Slots are stored as percentages of the base canvas so that one template
serves both full-size production renders and downscaled previews.
"""

import math

from .models import PixelRect, SlotDefinition


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves towards positive infinity."""
    return int(math.floor(value + 0.5))


def percent_to_pixels(percent: float, dimension: int) -> int:
    return round_half_up(percent / 100 * dimension)


def resolve_slot_rect(slot: SlotDefinition, base_width: int, base_height: int) -> PixelRect:
    """
    Convert a percentage slot into a pixel rectangle on the base canvas.

    Each edge is rounded on its own, so neighbouring slots may drift by a
    pixel. Nothing is clamped: out-of-range percentages produce negative or
    off-canvas pixels that the compositor clips.
    """
    return PixelRect(
        x=percent_to_pixels(slot.x, base_width),
        y=percent_to_pixels(slot.y, base_height),
        width=percent_to_pixels(slot.width, base_width),
        height=percent_to_pixels(slot.height, base_height),
    )
