import base64

import cv2
import numpy as np
import pytest
from PIL import Image

from mockup.errors import InvalidImageError, UnsupportedFormatError
from mockup.imaging.image_io import ImageIO
from mockup.imaging.logo_decoder import DecodeStatus, LogoDecoder
from mockup.imaging.pixel_buffer import PixelBuffer
from tests.utils import GREEN, create_canvas, data_url, encode_png


def test_pixel_buffer_validates_length():
    with pytest.raises(InvalidImageError):
        PixelBuffer(2, 2, b"\x00" * 15)
    with pytest.raises(InvalidImageError):
        PixelBuffer(0, 2, b"")
    assert PixelBuffer(1, 1, bytearray(4)).data == b"\x00" * 4


def test_pixel_buffer_from_rgb_array_adds_opaque_alpha():
    buf = PixelBuffer.from_array(np.zeros((3, 5, 3), dtype=np.uint8))
    assert (buf.width, buf.height) == (5, 3)
    arr = buf.as_array()
    assert arr.shape == (3, 5, 4)
    assert (arr[:, :, 3] == 255).all()
    assert not arr.flags.writeable


def test_pixel_buffer_from_encoded_roundtrips_pixels():
    img = create_canvas(6, 4, GREEN)
    img[0, 0] = (10, 20, 30, 40)
    buf = PixelBuffer.from_encoded(encode_png(img))
    assert np.array_equal(buf.as_array(), img)


def test_load_rgba_from_path_and_data_url(tmp_path):
    img = create_canvas(8, 8, GREEN)
    path = tmp_path / "g.png"
    path.write_bytes(encode_png(img))
    assert np.array_equal(ImageIO.load_rgba(path), img)
    assert np.array_equal(ImageIO.load_rgba(data_url(img)), img)


@pytest.mark.parametrize("url, exc", [
    ("data:image/png;base64,", InvalidImageError),
    ("data:image/png;base64", InvalidImageError),
    ("data:image/svg+xml,<svg/>", UnsupportedFormatError),
    ("data:image/png;base64,@@@@", InvalidImageError),
])
def test_bad_data_urls(url, exc):
    with pytest.raises(exc):
        ImageIO.parse_data_url(url)


def test_decode_rejects_non_images():
    with pytest.raises(InvalidImageError):
        ImageIO.decode_rgba(b"")
    with pytest.raises(UnsupportedFormatError):
        ImageIO.decode_rgba(base64.b64decode("aGVsbG8gd29ybGQ="))


def test_safe_slug():
    assert ImageIO.safe_slug("Acme Corp / 2024!") == "Acme_Corp_2024"
    assert ImageIO.safe_slug("???") == "untitled"


def test_decompression_bomb_is_an_invalid_image(monkeypatch):
    png = encode_png(create_canvas(10, 10, GREEN))
    # force the Pillow decode path and make any 10x10 image a bomb
    monkeypatch.setattr(cv2, "imdecode", lambda *args: None)
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 10)
    with pytest.raises(InvalidImageError, match="too large"):
        ImageIO.decode_rgba(png)

    decoded = LogoDecoder.decode(png)
    assert decoded.status is DecodeStatus.FALLBACK
    assert decoded.image.size == (100, 100)
