from __future__ import annotations
import logging
import threading
import warnings
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from mockup import api
from mockup.config import Config
from mockup.constraints.validator import ConstraintValidator
from mockup.errors import ConstraintViolationWarning, MockupError
from mockup.imaging.image_io import ImageIO
from mockup.imaging.logo_compositor import LogoCompositor
from mockup.imaging.logo_decoder import LogoDecodeResult, LogoDecoder
from mockup.imaging.logo_fitter import LogoFitter
from mockup.imaging.pixel_buffer import PixelBuffer
from mockup.layout.layout import Layout
from mockup.models import DetectionResult, LogoPlacement, ValidationResult
from mockup.services.csv_service import CSVService, LogoRow
from mockup.services.deadline import Deadline
from mockup.services.result_cache import ResultCache
from mockup.settings import PlacementType

logger = logging.getLogger(__name__)


@dataclass
class RowOutcome:
    index: int
    status: str  # "ok" | "skipped" | "blocked" | "failed"
    out_path: Optional[Path] = None
    used_fallback: bool = False
    error: Optional[str] = None


@dataclass
class PipelineSummary:
    total: int = 0
    ok: int = 0
    skipped: int = 0
    blocked: int = 0
    failed: int = 0
    fallbacks: int = 0
    outputs: List[Path] = field(default_factory=list)

    def add(self, outcome: RowOutcome):
        setattr(self, outcome.status, getattr(self, outcome.status) + 1)
        if outcome.used_fallback:
            self.fallbacks += 1
        if outcome.out_path is not None:
            self.outputs.append(outcome.out_path)


class MockupPipeline:
    """Detects the placement zone of one template and renders a mockup per CSV logo row."""

    def __init__(self, cfg: Config, cache: Optional[ResultCache] = None):
        self.cfg = cfg
        self.csv = CSVService(cfg.CSV_PATH, cfg.CSV_KEYS)
        self.cache = cache or ResultCache()
        self.settings = cfg.detection_settings()
        self.dims = cfg.constraint_dimensions()
        self._validations: Dict[PlacementType, ValidationResult] = {}
        self._lock = threading.Lock()

    def detect_template(self, template: PixelBuffer) -> Optional[DetectionResult]:
        if not self.cfg.DETECT_REGION:
            return None
        deadline = Deadline(self.cfg.DETECT_TIMEOUT_S)
        detection = api.detect_cached(self.cache, template, self.settings, deadline)
        m = api.metrics(detection.regions, template.width, template.height)
        logger.info("Template %dx%d: %d region(s), largest=%s, compactness=%.2f, edges=%s",
                    template.width, template.height, m.fragment_count,
                    detection.largest.bbox.as_tuple() if detection.largest else None,
                    m.compactness, m.edge_distances.as_dict())
        return detection

    def validation_for(self, detection: DetectionResult, placement: PlacementType) -> ValidationResult:
        # One validation per placement type; rows sharing a type reuse it.
        with self._lock:
            if placement in self._validations:
                return self._validations[placement]
            result = api.validate(detection.largest, self.dims, detection.image_width,
                                  detection.image_height, placement, len(detection.regions))
            if not result.is_valid:
                warnings.warn(
                    f"Template placement zone is not valid for {placement.value} placement: "
                    f"{', '.join(result.warnings)}",
                    ConstraintViolationWarning,
                )
            logger.debug("%s", ConstraintValidator.build_report(result))
            self._validations[placement] = result
            return result

    def placement_zone(self, template: PixelBuffer, detection: Optional[DetectionResult],
                       validation: Optional[ValidationResult]) -> LogoPlacement:
        if detection is None:
            box_px = Layout.to_px(self.cfg.FALLBACK_BOX_PERC, template.width, template.height)
            return Layout.placement_from_px(box_px)
        return Layout.placement_for(validation, self.dims)

    def resolve_logo(self, source: str) -> str:
        """Relative logo paths are looked up next to the CSV file."""
        if ImageIO.is_data_url(source) or source.startswith(("http://", "https://")):
            return source
        candidate = Path(source)
        if not candidate.is_absolute() and not candidate.exists():
            beside_csv = self.cfg.CSV_PATH.parent / candidate
            if beside_csv.exists():
                return str(beside_csv)
        return source

    def decode_logo(self, source: str) -> LogoDecodeResult:
        source = self.resolve_logo(source)
        key = ResultCache.make_key("logo", source)
        return self.cache.get_or_compute(key, lambda: LogoDecoder.decode(source))

    def output_path(self, index: int, name: str) -> Path:
        use_name = self.cfg.NAMING_MODE == "name" and name
        base_name = ImageIO.safe_slug(name) if use_name else str(index)
        return self.cfg.OUT_DIR / f"{base_name}_mockup.png"

    def render_row(self, job: LogoRow, template: PixelBuffer,
                   detection: Optional[DetectionResult]) -> RowOutcome:
        index = job.index
        if not job.logo:
            return RowOutcome(index, "skipped", error="no logo")

        placement_type = PlacementType.parse(job.placement_type or self.cfg.PLACEMENT_TYPE)
        validation = None
        if detection is not None:
            validation = self.validation_for(detection, placement_type)
            if self.cfg.BLOCK_ON_INVALID and not validation.is_valid:
                return RowOutcome(index, "blocked", error=", ".join(validation.warnings))

        zone = self.placement_zone(template, detection, validation)
        logo = self.decode_logo(job.logo)
        logo_img = logo.require_image()
        fitted = LogoFitter.fit_placement(logo_img.width, logo_img.height, zone,
                                          template.width, template.height)
        placement = Layout.center_in(fitted, zone)

        result = LogoCompositor.compose(template, logo, placement)
        out_path = self.output_path(index, job.name)
        out_path.write_bytes(result.png_bytes)
        return RowOutcome(index, "ok", out_path=out_path, used_fallback=result.used_fallback)

    def _safe_render(self, job: LogoRow, template: PixelBuffer,
                     detection: Optional[DetectionResult]) -> RowOutcome:
        try:
            return self.render_row(job, template, detection)
        except (MockupError, OSError, ValueError) as e:
            return RowOutcome(job.index, "failed", error=f"{type(e).__name__}: {e}")

    def run(self) -> PipelineSummary:
        if not self.cfg.TEMPLATE_PATH.is_file():
            raise FileNotFoundError(f"Template not found: {self.cfg.TEMPLATE_PATH}")
        if not self.cfg.CSV_PATH.is_file():
            raise FileNotFoundError(f"CSV not found: {self.cfg.CSV_PATH}")

        self.cfg.OUT_DIR.mkdir(parents=True, exist_ok=True)

        template = PixelBuffer.load(self.cfg.TEMPLATE_PATH)
        detection = self.detect_template(template)
        if detection is not None and not detection.has_target_color:
            logger.warning("No placement zone detected in %s; using default position",
                           self.cfg.TEMPLATE_PATH)

        jobs = self.csv.read_jobs()
        summary = PipelineSummary(total=len(jobs))

        with ThreadPoolExecutor(max_workers=self.cfg.MAX_WORKERS,
                                thread_name_prefix="mockup") as pool:
            futures = [
                pool.submit(self._safe_render, job, template, detection)
                for job in jobs
            ]
            for future in as_completed(futures):
                outcome = future.result()
                summary.add(outcome)
                prefix = f"[{outcome.index}/{summary.total}]"
                if outcome.status == "ok":
                    note = " (placeholder logo)" if outcome.used_fallback else ""
                    logger.info("%s OK -> %s%s", prefix, outcome.out_path.name, note)
                elif outcome.status == "failed":
                    logger.error("%s FAIL: %s", prefix, outcome.error)
                else:
                    logger.info("%s %s (%s)", prefix, outcome.status, outcome.error)

        logger.info("Done. %d ok, %d skipped, %d blocked, %d failed. Results saved in %s",
                    summary.ok, summary.skipped, summary.blocked, summary.failed,
                    self.cfg.OUT_DIR.resolve())
        return summary
