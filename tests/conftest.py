"""
Pytest configuration and fixtures for Gift Composer tests.

Provides synthetic images written with Pillow, a configured Flask
application, and helpers for inspecting composed PNG buffers.
"""

import io
from pathlib import Path

import numpy as np
import pytest
import yaml
from PIL import Image

from giftcomposer import create_app


RED = (255, 0, 0)
BLUE = (0, 0, 255)
GREEN = (0, 255, 0)
WHITE = (255, 255, 255)


def make_image(path: Path, size, color, mode='RGB', fmt=None) -> Path:
    """Write a solid-color image and return its path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new(mode, size, color).save(path, fmt)
    return path


def decode(buffer: bytes) -> Image.Image:
    """Decode an encoded buffer into a loaded image."""
    image = Image.open(io.BytesIO(buffer))
    image.load()
    return image


def assert_color_close(actual, expected, tolerance=2):
    """Compare the RGB part of a pixel with a small per-channel tolerance."""
    for a, e in zip(actual[:3], expected):
        assert abs(a - e) <= tolerance, f"{actual} is not close to {expected}"


def color_bbox(image: Image.Image, color, tolerance=10):
    """Bounding box (left, top, right, bottom) of pixels matching a color."""
    pixels = np.asarray(image.convert('RGB')).astype(int)
    mask = np.all(np.abs(pixels - np.array(color)) <= tolerance, axis=-1)
    ys, xs = np.nonzero(mask)
    if len(xs) == 0:
        return None
    return int(xs.min()), int(ys.min()), int(xs.max()) + 1, int(ys.max()) + 1


@pytest.fixture
def image_factory(tmp_path):
    """Create solid-color images inside the test's temp directory."""
    def factory(name, size=(200, 200), color=RED, mode='RGB', fmt=None):
        return make_image(tmp_path / name, size, color, mode, fmt)
    return factory


@pytest.fixture
def white_base(image_factory):
    """A square opaque white base template."""
    return image_factory('base.png', size=(1000, 1000), color=WHITE)


@pytest.fixture(scope='session')
def asset_dir(tmp_path_factory):
    """Session-wide templates, uploads and layout catalog."""
    root = tmp_path_factory.mktemp('assets')
    templates_dir = root / 'templates'
    uploads_dir = root / 'uploads'

    make_image(templates_dir / 'square_base.png', (600, 600), WHITE)
    make_image(uploads_dir / 'red.png', (300, 300), RED)
    make_image(uploads_dir / 'blue.png', (300, 300), BLUE)

    layouts = {
        'layouts': [
            {
                'id': 'square-duo',
                'name': 'Square with two photos',
                'image_path': 'square_base.png',
                'width': 1000,
                'height': 1000,
                'slots': [
                    {'id': 'left', 'x': 0, 'y': 0, 'width': 50, 'height': 50, 'fit': 'cover'},
                    {'id': 'right', 'x': 25, 'y': 25, 'width': 50, 'height': 50,
                     'fit': 'cover', 'zIndex': 1},
                ],
            },
            {
                'id': 'broken-base',
                'name': 'Template whose base image is missing',
                'image_path': 'does_not_exist.png',
                'width': 400,
                'height': 400,
                'slots': [],
            },
        ]
    }
    layouts_file = root / 'layouts.yaml'
    layouts_file.write_text(yaml.safe_dump(layouts), encoding='utf-8')

    return {
        'root': root,
        'templates_dir': templates_dir,
        'uploads_dir': uploads_dir,
        'layouts_file': layouts_file,
    }


@pytest.fixture(scope='session')
def app(asset_dir):
    """Create and configure a test Flask application."""
    root = asset_dir['root']
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-key',
        'TEMP_FOLDER': str(root / 'tmp'),
        'UPLOAD_FOLDER': str(asset_dir['uploads_dir']),
        'TEMPLATES_DIR': str(asset_dir['templates_dir']),
        'LAYOUTS_FILE': str(asset_dir['layouts_file']),
        'LOG_FILE': str(root / 'logs' / 'test.log'),
    })
    yield app


@pytest.fixture
def client(app):
    """Create a test client for the Flask application."""
    return app.test_client()
