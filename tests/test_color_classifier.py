import numpy as np
import pytest

from mockup.errors import InvalidImageError
from mockup.imaging.color_classifier import ColorClassifier
from mockup.models import HSVColor
from mockup.settings import COLOR_PRESETS, ColorRange
from tests.utils import GREEN, RED, create_canvas, draw_rect, to_buffer

STANDARD = COLOR_PRESETS["standard"]


def test_rgb_to_hsv_pure_green():
    assert ColorClassifier.rgb_to_hsv(0, 255, 0) == HSVColor(120.0, 100.0, 100.0)


def test_classify_marks_only_target_pixels():
    img = draw_rect(create_canvas(20, 10), 5, 2, 4, 3)
    mask = ColorClassifier.classify(to_buffer(img), STANDARD, 10)
    assert mask.dtype == np.uint8
    assert mask.shape == (10, 20)
    assert set(np.unique(mask)) == {0, 255}
    assert int((mask == 255).sum()) == 12
    assert mask[2, 5] == 255 and mask[0, 0] == 0


def test_black_and_white_are_never_target():
    img = create_canvas(4, 1)
    img[0, 0] = (0, 0, 0, 255)
    mask = ColorClassifier.classify(to_buffer(img), STANDARD, 30)
    assert not mask.any()


def test_opacity_floor_excludes_translucent_pixels():
    img = create_canvas(3, 1, GREEN)
    img[0, 0, 3] = 127
    img[0, 1, 3] = 128
    img[0, 2, 3] = 0
    mask = ColorClassifier.classify(to_buffer(img), STANDARD, 10)
    assert mask[0].tolist() == [0, 255, 0]


def test_fully_transparent_image_gives_empty_mask():
    img = create_canvas(8, 8, (0, 255, 0, 0))
    assert not ColorClassifier.classify(to_buffer(img), STANDARD, 10).any()


def test_tolerance_widens_hue_band():
    # hue ~170 degrees, just outside the standard 80..160 band
    img = create_canvas(1, 1, (0, 255, 212, 255))
    assert not ColorClassifier.classify(to_buffer(img), STANDARD, 0).any()
    assert ColorClassifier.classify(to_buffer(img), STANDARD, 10).all()


def test_wrapped_hue_range_through_red():
    reds = ColorRange(340, 20, 50, 100, 50, 100)
    img = create_canvas(2, 1, RED)
    img[0, 1] = GREEN
    mask = ColorClassifier.classify(to_buffer(img), reds, 0)
    assert mask[0].tolist() == [255, 0]


def test_hue_bounds_scale_tolerance_to_degrees():
    lo, hi = ColorClassifier.hue_bounds(STANDARD, 10)
    assert lo == pytest.approx(44.0)
    assert hi == pytest.approx(196.0)


def test_classify_rejects_raw_arrays():
    with pytest.raises(InvalidImageError):
        ColorClassifier.classify(create_canvas(2, 2), STANDARD, 10)
