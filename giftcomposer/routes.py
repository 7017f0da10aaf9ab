"""
Flask routes for Gift Composer
Thin HTTP adapter over the validator, compositor and preview renderer
"""

import base64
import shutil
import uuid
from pathlib import Path
from flask import Blueprint, Response, request, current_app, jsonify
from pydantic import ValidationError as PydanticValidationError
from werkzeug.utils import safe_join, secure_filename
from loguru import logger

from .composite import CompositeSettings, CompositionEngine
from .errors import GiftComposerError, LayoutNotFoundError, RenderError, ValidationError
from .models import ImageSlotAssignment, SlotDefinition
from .preview import render_preview
from .templates import load_layout_templates, resolve_template_image
from .validator import validate_image


bp = Blueprint('main', __name__)


@bp.errorhandler(ValidationError)
def handle_validation_error(e):
    logger.warning(f"Rejected request: {e}")
    return jsonify(e.to_dict()), 400


@bp.errorhandler(RenderError)
def handle_render_error(e):
    # Broken templates are server faults, not caller faults
    logger.error(f"Composition failed: {e}")
    return jsonify(e.to_dict()), 500


@bp.errorhandler(GiftComposerError)
def handle_generic_error(e):
    logger.error(f"Unhandled Gift Composer error: {e}")
    return jsonify(e.to_dict()), 500


@bp.route('/layouts', methods=['GET'])
def list_layouts():
    """List the loaded layout templates"""
    templates = load_layout_templates(current_app.config['LAYOUTS_FILE'])
    return jsonify([template.model_dump(mode='json', by_alias=True) for template in templates.values()])


@bp.route('/images/validate', methods=['POST'])
def validate_upload():
    """Validate an uploaded customer image before it is accepted"""
    if 'image' not in request.files or request.files['image'].filename == '':
        raise ValidationError("No image file uploaded")

    upload = request.files['image']
    work_dir = Path(current_app.config['TEMP_FOLDER']) / str(uuid.uuid4())
    work_dir.mkdir(parents=True, exist_ok=True)

    try:
        image_path = work_dir / (secure_filename(upload.filename) or 'upload')
        upload.save(image_path)

        verdict = validate_image(
            image_path,
            max_size_mb=current_app.config.get('MAX_UPLOAD_SIZE_MB', 20.0),
            min_width=request.form.get('min_width', type=int),
            min_height=request.form.get('min_height', type=int),
        )
    finally:
        cleanup_work_dir(work_dir)

    return jsonify(verdict.to_dict()), 200 if verdict.valid else 400


@bp.route('/compose', methods=['POST'])
def compose():
    """Compose the full-size image and return it as PNG"""
    job = parse_composition_request(request.get_json(silent=True))

    result = _engine().compose(
        job['base_image_path'], job['width'], job['height'], job['slots'], job['images']
    )

    headers = {'X-Skipped-Slots': ','.join(result.skipped_slot_ids)}
    return Response(result.buffer, mimetype='image/png', headers=headers)


@bp.route('/preview/compose', methods=['POST'])
def preview_compose():
    """Compose a downscaled preview and return it as a data URL"""
    payload = request.get_json(silent=True)
    job = parse_composition_request(payload)

    max_width = preview_width_limit(payload)

    result = render_preview(
        job['base_image_path'], job['width'], job['height'], job['slots'], job['images'],
        max_width=max_width, engine=_engine()
    )

    encoded = base64.b64encode(result.buffer).decode('ascii')
    return jsonify({
        'previewUrl': f"data:image/png;base64,{encoded}",
        'skippedSlots': result.skipped_slot_ids,
    })


def preview_width_limit(payload):
    """Read the preview's maximum width from a request body.

    ``max_width`` always names the limit. In a catalog request ``width`` is
    accepted too, since there it cannot be the canvas width.
    """
    field = 'max_width'
    value = payload.get('max_width')
    if value is None and not is_ad_hoc(payload):
        field = 'width'
        value = payload.get('width')
    if value is None:
        return current_app.config.get('PREVIEW_MAX_WIDTH', 800)

    try:
        value = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Field '{field}' must be an integer", details={field: value})
    if value <= 0:
        raise ValidationError(f"Field '{field}' must be positive", details={field: value})
    return value


def is_ad_hoc(payload):
    return not (payload.get('layout_id') or payload.get('layoutBaseId'))


def confine_path(root, path, field):
    """Resolve a caller-supplied path and require it to stay under root.

    Relative paths are joined onto root; absolute paths are accepted only
    when they already point inside it.
    """
    root = Path(root).resolve()
    candidate = Path(path)
    if candidate.is_absolute():
        try:
            candidate = candidate.resolve().relative_to(root)
        except ValueError:
            candidate = None

    joined = safe_join(str(root), str(candidate)) if candidate is not None else None
    if joined is None:
        raise ValidationError(
            f"Field '{field}' points outside the allowed directory",
            details={field: str(path)},
            suggestions=["Use a path relative to the upload or template storage"]
        )
    return joined


def parse_composition_request(payload):
    """Turn a JSON body into base image, canvas size, slots and assignments.

    The body names either a catalog layout (``layout_id``) or an ad-hoc
    layout (``base_image_path``, ``width``, ``height``, ``slots``).
    """
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")

    images = payload.get('images')
    if not isinstance(images, list):
        raise ValidationError("Required fields: layout_id or base_image_path, images (array)")

    upload_root = current_app.config['UPLOAD_FOLDER']
    try:
        assignments = [ImageSlotAssignment.model_validate(item) for item in images]
        assignments = [
            a.model_copy(update={'image_path': confine_path(upload_root, a.image_path, 'imagePath')})
            for a in assignments
        ]

        layout_id = payload.get('layout_id') or payload.get('layoutBaseId')
        if layout_id:
            templates = load_layout_templates(current_app.config['LAYOUTS_FILE'])
            template = templates.get(layout_id)
            if template is None:
                raise LayoutNotFoundError(layout_id)
            return {
                'base_image_path': resolve_template_image(template, current_app.config['TEMPLATES_DIR']),
                'width': template.width,
                'height': template.height,
                'slots': template.slots,
                'images': assignments,
            }

        for key in ('base_image_path', 'width', 'height'):
            if payload.get(key) is None:
                raise ValidationError(f"Missing required field: {key}")

        return {
            'base_image_path': confine_path(
                current_app.config['TEMPLATES_DIR'], payload['base_image_path'], 'base_image_path'),
            'width': int(payload['width']),
            'height': int(payload['height']),
            'slots': [SlotDefinition.model_validate(slot) for slot in payload.get('slots') or []],
            'images': assignments,
        }
    except PydanticValidationError as e:
        errors = e.errors(include_url=False, include_context=False, include_input=False)
        raise ValidationError("Invalid slot or image definition", details={'errors': errors})
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid composition request: {e}")


def _engine():
    settings = CompositeSettings(
        compress_level=current_app.config.get('PNG_COMPRESS_LEVEL', 9),
        max_workers=current_app.config.get('COMPOSE_MAX_WORKERS', 1),
    )
    return CompositionEngine(settings)


def cleanup_work_dir(work_dir):
    """Clean up a per-request working directory"""
    shutil.rmtree(work_dir, ignore_errors=True)
    logger.debug(f"Cleaned up work directory {work_dir}")
