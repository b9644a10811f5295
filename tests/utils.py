import base64

import cv2
import numpy as np

from mockup.imaging.pixel_buffer import PixelBuffer
from mockup.models import BoundingBox, DetectedRegion, Point

GREEN = (0, 255, 0, 255)
RED = (255, 0, 0, 255)
WHITE = (255, 255, 255, 255)


def create_canvas(width=400, height=400, color=WHITE):
    """RGBA canvas filled with a single color."""
    img = np.zeros((height, width, 4), dtype=np.uint8)
    img[:, :] = color
    return img


def draw_rect(img, x, y, w, h, color=GREEN):
    img[y:y + h, x:x + w] = color
    return img


def scenario_template(width=400, height=400):
    """White canvas with a 100x50 green marker at (150, 125)."""
    return draw_rect(create_canvas(width, height), 150, 125, 100, 50)


def to_buffer(img):
    return PixelBuffer.from_array(img)


def encode_png(img):
    ok, buf = cv2.imencode(".png", cv2.cvtColor(img, cv2.COLOR_RGBA2BGRA))
    assert ok
    return buf.tobytes()


def write_png(path, img):
    path.write_bytes(encode_png(img))
    return path


def data_url(img):
    return "data:image/png;base64," + base64.b64encode(encode_png(img)).decode("ascii")


def solid_logo(width=300, height=100, color=RED):
    return create_canvas(width, height, color)


def make_region(x, y, w, h, image_w=400, image_h=400, confidence=1.0, pixel_count=None):
    """A fully filled rectangular region with derived stats."""
    count = w * h if pixel_count is None else pixel_count
    return DetectedRegion(
        pixel_count=count,
        bbox=BoundingBox(x, y, w, h),
        percentage=round(count / float(image_w * image_h) * 100.0, 2),
        centroid=Point(x + (w - 1) / 2.0, y + (h - 1) / 2.0),
        aspect_ratio=round(w / float(h), 4),
        confidence=confidence,
        fill_ratio=round(count / float(w * h), 4),
    )
