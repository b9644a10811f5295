import cv2
import numpy as np
import pytest

from mockup import api
from mockup.errors import ImageLoadError, LogoDecodeError
from mockup.imaging.image_io import ImageIO
from mockup.imaging.logo_compositor import LogoCompositor
from mockup.imaging.logo_decoder import DecodeStatus, LogoDecoder
from mockup.imaging.logo_fitter import LogoFitter
from mockup.models import LogoPlacement
from tests.utils import (
    RED, create_canvas, data_url, encode_png, scenario_template, solid_logo, to_buffer,
)

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def test_oversized_request_is_clamped_and_fit_by_width():
    logo = encode_png(solid_logo(300, 100))
    result = LogoCompositor.compose(to_buffer(create_canvas()), logo,
                                    LogoPlacement(50, 50, 500, 100))
    assert result.placement == LogoPlacement(50, 50, 160, 53)
    assert not result.used_fallback

    out = ImageIO.decode_rgba(result.png_bytes)
    assert out.shape == (400, 400, 4)
    assert tuple(out[76, 130]) == RED
    assert tuple(out[200, 300]) == (255, 255, 255, 255)


@pytest.mark.parametrize("requested", [
    LogoPlacement(390, 390, 200, 200),
    LogoPlacement(0, 0, 1000, 1000),
    LogoPlacement(-40, 380, 30, 30),
])
def test_placement_stays_inside_canvas_and_under_cap(requested):
    final = LogoFitter.fit_placement(200, 100, requested, 400, 400)
    assert 0 <= final.x and final.x + final.width <= 400
    assert 0 <= final.y and final.y + final.height <= 400
    assert final.width <= 160 and final.height <= 160


@pytest.mark.parametrize("logo_w, logo_h", [(200, 100), (37, 91), (512, 512), (1200, 400)])
def test_logo_aspect_is_preserved(logo_w, logo_h):
    final = LogoFitter.fit_placement(logo_w, logo_h, LogoPlacement(10, 10, 150, 150), 400, 400)
    assert final.width / final.height == pytest.approx(logo_w / logo_h, rel=0.01)


def test_undecodable_logo_falls_back_to_placeholder():
    result = LogoCompositor.compose(to_buffer(create_canvas()), b"not an image",
                                    LogoPlacement(10, 10, 100, 100))
    assert result.used_fallback
    assert result.logo.status is DecodeStatus.FALLBACK
    assert result.png_bytes.startswith(PNG_SIGNATURE)
    assert result.placement == LogoPlacement(10, 10, 100, 100)


def test_fallback_disabled_raises():
    with pytest.raises(LogoDecodeError):
        LogoCompositor.compose(to_buffer(create_canvas()), b"not an image",
                               LogoPlacement(10, 10, 100, 100), allow_fallback=False)


def test_unreadable_background_raises(tmp_path):
    logo = encode_png(solid_logo())
    with pytest.raises(ImageLoadError):
        LogoCompositor.compose(b"\x00\x01garbage", logo, LogoPlacement(0, 0, 50, 50))
    with pytest.raises(ImageLoadError):
        LogoCompositor.compose(str(tmp_path / "missing.png"), logo, LogoPlacement(0, 0, 50, 50))


def test_placeholder_glyph():
    img = LogoDecoder.placeholder()
    assert img.size == (100, 100)
    assert img.mode == "RGBA"
    assert img.getpixel((0, 0)) == (0, 0, 0, 128)


def test_decode_data_url_logo():
    decoded = LogoDecoder.decode(data_url(solid_logo(30, 10)))
    assert decoded.status is DecodeStatus.DECODED
    assert decoded.image.size == (30, 10)


def test_composite_to_smaller_canvas():
    png = api.composite(scenario_template(), encode_png(solid_logo()),
                        LogoPlacement(20, 20, 60, 60), canvas_w=200, canvas_h=100)
    assert png.startswith(PNG_SIGNATURE)
    assert ImageIO.decode_rgba(png).shape == (100, 200, 4)


def test_translucent_logo_is_blended():
    logo = encode_png(create_canvas(40, 40, (255, 0, 0, 128)))
    result = LogoCompositor.compose(create_canvas(100, 100), logo, LogoPlacement(0, 0, 40, 40))
    px = ImageIO.decode_rgba(result.png_bytes)[20, 20]
    assert px[0] == 255
    assert 100 < px[1] < 160
    assert px[3] == 255


def test_background_array_is_not_modified():
    background = create_canvas(100, 100)
    before = background.copy()
    LogoCompositor.compose(background, encode_png(solid_logo(20, 20)), LogoPlacement(0, 0, 20, 20))
    assert np.array_equal(background, before)


def test_background_upscale_uses_linear_interpolation():
    rng = np.random.default_rng(7)
    background = create_canvas(10, 10)
    background[:, :, :3] = rng.integers(0, 256, (10, 10, 3), dtype=np.uint8)
    result = LogoCompositor.compose(background, encode_png(solid_logo(2, 2)),
                                    LogoPlacement(0, 0, 2, 2), canvas_w=20, canvas_h=20)
    out = ImageIO.decode_rgba(result.png_bytes)
    expected = cv2.resize(background, (20, 20), interpolation=cv2.INTER_LINEAR)
    assert np.array_equal(out[10:, 10:], expected[10:, 10:])
