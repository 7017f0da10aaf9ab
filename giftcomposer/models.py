"""
Value types for the composition pipeline.

Slot definitions and assignments arrive from the catalog as plain JSON
(camelCase keys), so they are pydantic models that accept both the wire
aliases and the Python field names.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


class FitMode(str, Enum):
    """How a source image is fitted into its slot rectangle."""
    COVER = "cover"
    CONTAIN = "contain"


@dataclass(frozen=True)
class Rotation:
    """Clockwise rotation in degrees."""
    degrees: float = 0.0

    @property
    def is_zero(self) -> bool:
        return self.degrees % 360 == 0

    def __float__(self) -> float:
        return float(self.degrees)


class SlotDefinition(BaseModel):
    """One percentage-positioned placement region on a layout template."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    x: float
    y: float
    width: float
    height: float
    rotation: Rotation = Rotation()
    z_index: int = Field(default=0, alias="zIndex")
    fit: FitMode = FitMode.COVER

    @field_validator("rotation", mode="before")
    @classmethod
    def _coerce_rotation(cls, value: Any) -> Any:
        if value is None:
            return Rotation()
        if isinstance(value, (int, float)):
            return Rotation(float(value))
        return value

    @field_validator("z_index", mode="before")
    @classmethod
    def _coerce_z_index(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("fit", mode="before")
    @classmethod
    def _coerce_fit(cls, value: Any) -> Any:
        return FitMode.COVER if value is None else value

    @field_serializer("rotation")
    def _serialize_rotation(self, rotation: Rotation) -> float:
        return rotation.degrees


class ImageSlotAssignment(BaseModel):
    """Pairs a slot id with the path of the customer image placed in it."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    slot_id: str = Field(alias="slotId")
    image_path: str = Field(alias="imagePath")


class PixelRect(NamedTuple):
    """Absolute pixel rectangle on the base canvas."""
    x: int
    y: int
    width: int
    height: int


@dataclass
class CompositionResult:
    """Flattened, encoded output of one composition call."""
    buffer: bytes
    width: int
    height: int
    skipped_slot_ids: List[str] = field(default_factory=list)


@dataclass
class ValidationResult:
    """Verdict of the image quality validator."""
    valid: bool
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {'valid': self.valid}
        if self.error is not None:
            result['error'] = self.error
        return result
