"""Result types shared by detection, validation and compositing."""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class BoundingBox:
    x: int
    y: int
    width: int
    height: int

    def __post_init__(self):
        # numpy integers from OpenCV stats leak in otherwise
        for name in ("x", "y", "width", "height"):
            object.__setattr__(self, name, int(getattr(self, name)))

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def contains(self, other: "BoundingBox") -> bool:
        return (self.x <= other.x and self.y <= other.y
                and other.right <= self.right and other.bottom <= self.bottom)

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return self.x, self.y, self.width, self.height


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class HSVColor:
    h: float
    s: float
    v: float


@dataclass(frozen=True)
class DetectedRegion:
    """One connected component of target-colored pixels."""
    pixel_count: int
    bbox: BoundingBox
    percentage: float
    centroid: Point
    aspect_ratio: float
    confidence: float
    fill_ratio: float

    def __post_init__(self):
        if self.pixel_count > self.bbox.area:
            raise ValueError(
                f"pixel_count {self.pixel_count} exceeds bounding box area {self.bbox.area}"
            )
        if not (0.0 <= self.confidence <= 1.0):
            raise ValueError(f"confidence must be in [0, 1], got {self.confidence}")

    @property
    def center(self) -> Point:
        """Centroid in edge coordinates: pixel i spans [i, i + 1), so its center is i + 0.5."""
        return Point(self.centroid.x + 0.5, self.centroid.y + 0.5)


@dataclass(frozen=True)
class DetectionResult:
    regions: Tuple[DetectedRegion, ...]
    total_area: int
    average_confidence: float
    has_target_color: bool
    dominant_colors: Tuple[HSVColor, ...]
    image_width: int
    image_height: int
    processing_time_ms: float = field(default=0.0, compare=False)

    @property
    def largest(self) -> Optional[DetectedRegion]:
        return self.regions[0] if self.regions else None

    @classmethod
    def empty(cls, width: int, height: int, dominant_colors=(),
              processing_time_ms: float = 0.0) -> "DetectionResult":
        return cls(
            regions=(), total_area=0, average_confidence=0.0, has_target_color=False,
            dominant_colors=tuple(dominant_colors), image_width=width, image_height=height,
            processing_time_ms=processing_time_ms,
        )


@dataclass(frozen=True)
class UsableArea:
    bounds: BoundingBox
    pixels: int
    percentage: float


@dataclass(frozen=True)
class ValidationIssue:
    code: str
    message: str
    recommendation: str
    penalty: float
    blocking: bool = False


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    score: float
    warnings: Tuple[str, ...]
    recommendations: Tuple[str, ...]
    usable_area: Optional[UsableArea]
    issues: Tuple[ValidationIssue, ...] = ()

    def has_warning(self, code: str) -> bool:
        return code in self.warnings


@dataclass(frozen=True)
class EdgeDistances:
    top: int
    right: int
    bottom: int
    left: int

    def as_dict(self):
        return {"top": self.top, "right": self.right, "bottom": self.bottom, "left": self.left}


@dataclass(frozen=True)
class ConstraintMetrics:
    edge_distances: EdgeDistances
    center_offset: Point
    compactness: float
    fragment_count: int
    total_area: int
    aspect_ratio: float


@dataclass(frozen=True)
class LogoPlacement:
    x: int
    y: int
    width: int
    height: int

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Placement size must be positive, got {self.width}x{self.height}")
