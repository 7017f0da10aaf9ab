"""
Tests for preview rendering.
"""

import pytest

from giftcomposer.composite import CompositeSettings, CompositionEngine
from giftcomposer.models import ImageSlotAssignment, SlotDefinition
from giftcomposer.preview import generate_preview, preview_dimensions, render_preview

from .conftest import BLUE, RED, WHITE, assert_color_close, color_bbox, decode, make_image


class TestPreviewDimensions:

    @pytest.mark.parametrize('base, max_width, expected', [
        ((1000, 500), 800, (800, 400)),
        ((500, 300), 800, (500, 300)),
        ((1001, 333), 800, (800, 266)),
        ((2000, 2000), 800, (800, 800)),
    ])
    def test_scaling(self, base, max_width, expected):
        assert preview_dimensions(base[0], base[1], max_width) == expected


class TestGeneratePreview:

    @pytest.fixture
    def scene(self, tmp_path):
        base = make_image(tmp_path / 'base.png', (1000, 500), WHITE)
        red = make_image(tmp_path / 'red.png', (300, 200), RED)
        blue = make_image(tmp_path / 'blue.png', (200, 200), BLUE)
        slots = [
            SlotDefinition(id='photo', x=20, y=20, width=30, height=40),
            SlotDefinition(id='badge', x=70, y=10, width=10, height=20, zIndex=1, fit='contain'),
        ]
        assignments = [
            ImageSlotAssignment(slot_id='photo', image_path=str(red)),
            ImageSlotAssignment(slot_id='badge', image_path=str(blue)),
        ]
        return base, slots, assignments

    def test_returns_downscaled_png(self, scene):
        base, slots, assignments = scene

        buffer = generate_preview(base, 1000, 500, slots, assignments, max_width=400)

        assert isinstance(buffer, bytes)
        assert decode(buffer).size == (400, 200)

    def test_never_upscales(self, scene):
        base, slots, assignments = scene

        result = render_preview(base, 1000, 500, slots, assignments, max_width=4000)

        assert (result.width, result.height) == (1000, 500)

    def test_slots_keep_relative_position(self, scene):
        base, slots, assignments = scene

        full = decode(CompositionEngine().compose(base, 1000, 500, slots, assignments).buffer)
        small = decode(generate_preview(base, 1000, 500, slots, assignments, max_width=400))

        for color in (RED, BLUE):
            full_box = color_bbox(full, color)
            small_box = color_bbox(small, color)
            scale = 400 / 1000
            for full_edge, small_edge in zip(full_box, small_box):
                assert abs(full_edge * scale - small_edge) <= 1

        assert_color_close(small.getpixel((100, 60)), RED)

    def test_uses_given_engine(self, scene):
        base, slots, assignments = scene
        engine = CompositionEngine(CompositeSettings(compress_level=1))

        fast = generate_preview(base, 1000, 500, slots, assignments, max_width=400, engine=engine)
        default = generate_preview(base, 1000, 500, slots, assignments, max_width=400)

        assert decode(fast).tobytes() == decode(default).tobytes()
