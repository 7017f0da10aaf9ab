"""
Layout template catalog for Gift Composer.

Templates live in config/layouts.yaml:

    layouts:
      - id: mug-duo
        name: Mug with two photos
        image_path: mug_base.png
        width: 2000
        height: 800
        slots:
          - {id: left, x: 5, y: 10, width: 40, height: 80, fit: cover}
          - {id: right, x: 55, y: 10, width: 40, height: 80, zIndex: 1}

Slot percentages are checked here, when a template enters the catalog.
The compositor itself trusts whatever slots it is given.
"""

from pathlib import Path
from typing import Any, Dict, List

from pydantic import BaseModel, ValidationError as PydanticValidationError
from loguru import logger

from .config import load_yaml_config
from .errors import SlotDefinitionError
from .models import SlotDefinition


class LayoutTemplate(BaseModel):
    """A base image plus the slots customers fill in."""
    id: str
    name: str
    image_path: str
    width: int
    height: int
    slots: List[SlotDefinition] = []


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _slot_value(slot: Any, key: str) -> Any:
    if isinstance(slot, dict):
        return slot.get(key)
    return getattr(slot, key, None)


def validate_slots(slots: Any) -> None:
    """
    Check slot ids and percentage ranges.

    Accepts raw dicts or SlotDefinition objects. An empty list is valid,
    since slots are optional.

    Raises:
        SlotDefinitionError: on the first invalid slot
    """
    if not isinstance(slots, list):
        raise SlotDefinitionError("Slots must be a list (may be empty)")

    for slot in slots:
        slot_id = _slot_value(slot, 'id')
        if not slot_id or not isinstance(slot_id, str):
            raise SlotDefinitionError("Each slot must have a string 'id'")

        for key in ('x', 'y'):
            value = _slot_value(slot, key)
            if not _is_number(value) or value < 0 or value > 100:
                raise SlotDefinitionError(
                    f"Slot '{slot_id}': '{key}' must be a number between 0 and 100", slot_id)

        for key in ('width', 'height'):
            value = _slot_value(slot, key)
            if not _is_number(value) or value <= 0 or value > 100:
                raise SlotDefinitionError(
                    f"Slot '{slot_id}': '{key}' must be a number greater than 0 and at most 100", slot_id)


def load_layout_templates(file_path: str = "config/layouts.yaml") -> Dict[str, LayoutTemplate]:
    """Load layout templates from YAML, dropping invalid entries"""
    config_data = load_yaml_config(file_path)
    templates = {}

    for item in config_data.get("layouts", []) or []:
        if not isinstance(item, dict):
            logger.error(f"Skipping malformed layout entry: {item!r}")
            continue
        try:
            validate_slots(item.get("slots", []))
            template = LayoutTemplate(**item)
            templates[template.id] = template
        except (SlotDefinitionError, PydanticValidationError) as e:
            logger.error(f"Error loading layout template {item.get('id', 'unknown')}: {e}")

    logger.info(f"Loaded {len(templates)} layout templates")
    return templates


def resolve_template_image(template: LayoutTemplate, templates_dir: str) -> Path:
    """Resolve a template's base image path against the templates directory."""
    path = Path(template.image_path)
    if path.is_absolute():
        return path
    return Path(templates_dir) / path


def missing_base_images(templates: Dict[str, LayoutTemplate], templates_dir: str) -> List[str]:
    """Ids of templates whose base image is not on disk."""
    return [
        template.id for template in templates.values()
        if not resolve_template_image(template, templates_dir).exists()
    ]
