from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from mockup.errors import ConfigurationError
from mockup.models import LogoPlacement, ValidationResult
from mockup.settings import ConstraintDimensions


@dataclass(frozen=True)
class PercentBox:
    """Box given as fractions of the canvas: left, top, right, bottom."""
    left: float
    top: float
    right: float
    bottom: float

    def __post_init__(self):
        if not (0.0 <= self.left < self.right <= 1.0 and 0.0 <= self.top < self.bottom <= 1.0):
            raise ConfigurationError(
                f"Percent box must satisfy 0 <= left < right <= 1 and 0 <= top < bottom <= 1, "
                f"got {(self.left, self.top, self.right, self.bottom)}"
            )

    def pixels(self, canvas_w: int, canvas_h: int) -> Tuple[int, int, int, int]:
        return (int(self.left * canvas_w), int(self.top * canvas_h),
                int(self.right * canvas_w), int(self.bottom * canvas_h))


class Layout:
    """Turns percentage boxes and validation results into logo placements."""

    @staticmethod
    def to_px(box: Sequence[float], canvas_w: int, canvas_h: int) -> Tuple[int, int, int, int]:
        return PercentBox(*box).pixels(canvas_w, canvas_h)

    @staticmethod
    def placement_from_px(box_px: Tuple[int, int, int, int]) -> LogoPlacement:
        left, top, right, bottom = box_px
        return LogoPlacement(left, top, max(1, right - left), max(1, bottom - top))

    @staticmethod
    def placement_for(validation: Optional[ValidationResult],
                      dims: ConstraintDimensions) -> LogoPlacement:
        """Usable area when there is one, else the constraint default position at minimum size."""
        if validation is not None and validation.usable_area is not None:
            b = validation.usable_area.bounds
            return LogoPlacement(b.x, b.y, b.width, b.height)
        return LogoPlacement(dims.default_x, dims.default_y,
                             max(1, dims.min_width), max(1, dims.min_height))

    @staticmethod
    def center_in(inner: LogoPlacement, outer: LogoPlacement) -> LogoPlacement:
        x = outer.x + (outer.width - inner.width) // 2
        y = outer.y + (outer.height - inner.height) // 2
        return LogoPlacement(x, y, inner.width, inner.height)
