"""
Composite module for Gift Composer.

This module handles:
- Resizing the layout base image to the requested canvas
- Ordering slots by z-index and placing each customer image
- Alpha-blending every layer onto the base in a single pass
- Encoding the flattened result as PNG
"""

import io
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Union

from PIL import Image, ImageOps
from loguru import logger

from .config import AppConfig
from .errors import BaseImageMissingError, CompositeError, ImageDimensionError, ValidationError
from .layout import resolve_slot_rect
from .models import CompositionResult, ImageSlotAssignment, PixelRect, SlotDefinition
from .render import TRANSPARENT, resample_slot_image

SlotLike = Union[SlotDefinition, Dict[str, Any]]
AssignmentLike = Union[ImageSlotAssignment, Dict[str, Any]]


class CompositeSettings:
    """Settings for composite operations."""

    def __init__(self,
                 compress_level: int = 9,
                 max_workers: int = 1):
        self.compress_level = compress_level
        self.max_workers = max_workers

    @classmethod
    def from_config(cls, config: AppConfig) -> 'CompositeSettings':
        return cls(compress_level=config.PNG_COMPRESS_LEVEL,
                   max_workers=config.COMPOSE_MAX_WORKERS)


@dataclass
class SlotJob:
    """A slot whose image exists and whose rectangle has been resolved."""
    slot: SlotDefinition
    image_path: str
    rect: PixelRect


@dataclass
class Placement:
    """A resampled layer anchored at its slot's top-left pixel."""
    slot_id: str
    image: Image.Image
    x: int
    y: int


class CompositionEngine:
    """Layers customer images onto a layout base image.

    The engine keeps no state between calls, so one instance can be shared.
    """

    def __init__(self, settings: CompositeSettings = None):
        self.settings = settings or CompositeSettings()

    def compose(self,
                base_image_path,
                base_width: int,
                base_height: int,
                slots: Iterable[SlotLike],
                assignments: Iterable[AssignmentLike]) -> CompositionResult:
        """
        Compose the final image from a base template and customer images.

        Slots without an assignment are skipped silently. Slots whose image
        file is missing are skipped with a warning and reported in
        ``skipped_slot_ids``. A missing or unreadable base image, or an
        unreadable slot image, aborts the whole composition.
        """
        if base_width <= 0 or base_height <= 0:
            raise ValidationError(
                f"Canvas size must be positive, got {base_width}x{base_height}",
                details={'width': base_width, 'height': base_height}
            )

        if not os.path.exists(base_image_path):
            raise BaseImageMissingError(str(base_image_path))

        canvas, keep_alpha = self.prepare_base(base_image_path, base_width, base_height)

        slot_defs = [_as_slot(slot) for slot in slots]
        lookup: Dict[str, ImageSlotAssignment] = {}
        for assignment in assignments:
            assignment = _as_assignment(assignment)
            lookup.setdefault(assignment.slot_id, assignment)

        # sorted() is stable, so equal z-index keeps template order
        ordered = sorted(slot_defs, key=lambda s: s.z_index)

        jobs: List[SlotJob] = []
        skipped: List[str] = []
        for slot in ordered:
            assignment = lookup.get(slot.id)
            if assignment is None:
                continue

            if not os.path.exists(assignment.image_path):
                logger.warning(f"Image not found for slot {slot.id}: {assignment.image_path}")
                skipped.append(slot.id)
                continue

            rect = resolve_slot_rect(slot, base_width, base_height)
            if rect.width <= 0 or rect.height <= 0:
                logger.warning(f"Slot {slot.id} resolves to an empty rectangle {rect}, skipping")
                continue

            jobs.append(SlotJob(slot=slot, image_path=assignment.image_path, rect=rect))

        placements = self.resample_all(jobs)
        flattened = self.flatten(canvas, placements)
        if not keep_alpha:
            flattened = flattened.convert('RGB')

        buffer = self.encode(flattened)
        logger.info(f"Composed {len(placements)} layers onto {base_width}x{base_height} base "
                    f"({len(buffer):,} bytes, {len(skipped)} skipped)")

        return CompositionResult(
            buffer=buffer,
            width=base_width,
            height=base_height,
            skipped_slot_ids=skipped,
        )

    def prepare_base(self, base_image_path, base_width: int, base_height: int):
        """Load the base image and cover-fit it to the canvas size.

        Returns the RGBA canvas and whether the base carried transparency.
        """
        try:
            with Image.open(base_image_path) as img:
                img.load()
                keep_alpha = img.mode in ('RGBA', 'LA', 'PA') or 'transparency' in img.info
                base = img.convert('RGBA')
        except FileNotFoundError:
            raise BaseImageMissingError(str(base_image_path))
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            raise ImageDimensionError(str(base_image_path), str(e)) from e

        if base.size != (base_width, base_height):
            base = ImageOps.fit(base, (base_width, base_height),
                                method=Image.Resampling.LANCZOS,
                                centering=(0.5, 0.5))

        logger.debug(f"Prepared base {base_image_path} at {base_width}x{base_height}")
        return base, keep_alpha

    def resample_all(self, jobs: List[SlotJob]) -> List[Placement]:
        """Resample every slot job, preserving job order in the result."""
        if self.settings.max_workers > 1 and len(jobs) > 1:
            with ThreadPoolExecutor(max_workers=self.settings.max_workers) as pool:
                return list(pool.map(self._resample_job, jobs))
        return [self._resample_job(job) for job in jobs]

    def _resample_job(self, job: SlotJob) -> Placement:
        image = resample_slot_image(
            job.image_path,
            job.rect.width,
            job.rect.height,
            job.slot.fit,
            job.slot.rotation,
        )
        # Rotated layers grow past the slot but stay anchored at its top-left
        return Placement(slot_id=job.slot.id, image=image, x=job.rect.x, y=job.rect.y)

    def flatten(self, canvas: Image.Image, placements: List[Placement]) -> Image.Image:
        """Alpha-blend the placements over the canvas in order."""
        result = canvas
        for placement in placements:
            # Full-size overlay lets paste() clip negative and off-canvas offsets
            overlay = Image.new('RGBA', result.size, TRANSPARENT)
            overlay.paste(placement.image, (placement.x, placement.y))
            result = Image.alpha_composite(result, overlay)
            logger.debug(f"Composited slot {placement.slot_id} at ({placement.x}, {placement.y})")
        return result

    def encode(self, image: Image.Image) -> bytes:
        """Encode the flattened image as PNG."""
        buffer = io.BytesIO()
        try:
            image.save(buffer, format='PNG', compress_level=self.settings.compress_level)
        except (OSError, ValueError) as e:
            raise CompositeError(f"Failed to encode composite image: {e}") from e
        return buffer.getvalue()


def _as_slot(slot: SlotLike) -> SlotDefinition:
    if isinstance(slot, SlotDefinition):
        return slot
    return SlotDefinition.model_validate(slot)


def _as_assignment(assignment: AssignmentLike) -> ImageSlotAssignment:
    if isinstance(assignment, ImageSlotAssignment):
        return assignment
    return ImageSlotAssignment.model_validate(assignment)


def create_composition_engine(config: Optional[AppConfig] = None) -> CompositionEngine:
    """Factory function to create a CompositionEngine from configuration."""
    if config is None:
        return CompositionEngine()
    return CompositionEngine(CompositeSettings.from_config(config))


# Default shared instance
composition_engine = CompositionEngine()


def compose_image(base_image_path,
                  base_width: int,
                  base_height: int,
                  slots: Iterable[SlotLike],
                  assignments: Iterable[AssignmentLike]) -> CompositionResult:
    """Compose with the default engine."""
    return composition_engine.compose(base_image_path, base_width, base_height, slots, assignments)
