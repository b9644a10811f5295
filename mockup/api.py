"""In-process entry points of the detection and compositing pipeline.

Every call takes its configuration explicitly and owns its buffers, so
independent calls can run in parallel threads or processes without locking.
"""
from __future__ import annotations
import logging
import time
from concurrent.futures import TimeoutError as FuturesTimeout
from typing import Optional, Sequence, Union

from mockup.constraints.metrics import MetricsCalculator
from mockup.constraints.validator import ConstraintValidator
from mockup.errors import DetectionCancelled, InvalidImageError
from mockup.imaging.color_classifier import ColorClassifier
from mockup.imaging.image_io import ImageSource
from mockup.imaging.logo_compositor import BackgroundSource, CompositeResult, LogoCompositor
from mockup.imaging.morphology import MorphologyFilter
from mockup.imaging.pixel_buffer import PixelBuffer
from mockup.imaging.region_extractor import RegionExtractor
from mockup.models import (
    ConstraintMetrics, DetectedRegion, DetectionResult, LogoPlacement, ValidationResult,
)
from mockup.services.deadline import Deadline
from mockup.services.result_cache import ResultCache
from mockup.settings import ConstraintDimensions, DetectionSettings

logger = logging.getLogger(__name__)


def detect(image: PixelBuffer, settings: Optional[DetectionSettings] = None,
           deadline: Optional[Deadline] = None) -> DetectionResult:
    """Find marker-colored regions in `image`, largest first.

    An image without target pixels gives an empty result, not an error.
    """
    if not isinstance(image, PixelBuffer):
        raise InvalidImageError(f"Expected PixelBuffer, got {type(image).__name__}")
    settings = settings or DetectionSettings()
    deadline = deadline or Deadline.never()
    start = time.perf_counter()

    raw = ColorClassifier.classify(image, settings.color_range, settings.tolerance,
                                   settings.opacity_floor)
    deadline.check("classification")
    refined = MorphologyFilter.apply(raw, settings.noise_reduction, settings.edge_smoothing)
    deadline.check("morphology")
    regions = RegionExtractor.extract(refined, settings.min_area, settings.max_area, deadline)
    dominant = RegionExtractor.dominant_colors(image.as_array(), settings.opacity_floor)

    elapsed_ms = (time.perf_counter() - start) * 1000.0
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("Detection %dx%d: raw=%d filtered=%d regions=%d in %.1fms",
                     image.width, image.height, MorphologyFilter.area(raw),
                     MorphologyFilter.area(refined), len(regions), elapsed_ms)
    if not regions:
        return DetectionResult.empty(image.width, image.height, dominant, elapsed_ms)

    total = sum(r.pixel_count for r in regions)
    return DetectionResult(
        regions=tuple(regions),
        total_area=total,
        average_confidence=round(sum(r.confidence for r in regions) / len(regions), 4),
        has_target_color=True,
        dominant_colors=dominant,
        image_width=image.width,
        image_height=image.height,
        processing_time_ms=elapsed_ms,
    )


def validate(region: DetectedRegion, dims: ConstraintDimensions, image_w: int, image_h: int,
             placement_type="horizontal", fragment_count: int = 1) -> ValidationResult:
    return ConstraintValidator.validate(region, dims, image_w, image_h,
                                        placement_type, fragment_count)


def metrics(regions: Union[DetectedRegion, Sequence[DetectedRegion], None],
            image_w: int, image_h: int) -> ConstraintMetrics:
    return MetricsCalculator.calculate(regions, image_w, image_h)


def composite(background: BackgroundSource, logo: ImageSource, placement: LogoPlacement,
              canvas_w: Optional[int] = None, canvas_h: Optional[int] = None) -> bytes:
    """Render `logo` onto `background` and return PNG bytes."""
    return LogoCompositor.compose(background, logo, placement, canvas_w, canvas_h).png_bytes


def detect_cached(cache: ResultCache, image: PixelBuffer,
                  settings: Optional[DetectionSettings] = None,
                  deadline: Optional[Deadline] = None) -> DetectionResult:
    settings = settings or DetectionSettings()
    key = ResultCache.make_key("detect", image.width, image.height, image.data,
                               settings.cache_key())
    deadline = deadline or Deadline.never()
    try:
        return cache.get_or_compute(key, lambda: detect(image, settings, deadline),
                                    timeout=deadline.remaining())
    except FuturesTimeout as e:
        raise DetectionCancelled("Deadline exceeded waiting for in-flight detection") from e


def composite_cached(cache: ResultCache, background: BackgroundSource, logo: ImageSource,
                     placement: LogoPlacement, canvas_w: Optional[int] = None,
                     canvas_h: Optional[int] = None) -> CompositeResult:
    """Memoized `LogoCompositor.compose`; path/URL logos are keyed by reference, bytes by content."""
    base = LogoCompositor.load_background(background)
    logo_key = bytes(logo) if isinstance(logo, (bytes, bytearray)) else str(logo)
    key = ResultCache.make_key("composite", base.shape, base.tobytes(), logo_key, placement,
                               canvas_w, canvas_h)
    return cache.get_or_compute(
        key, lambda: LogoCompositor.compose(base, logo, placement, canvas_w, canvas_h)
    )
