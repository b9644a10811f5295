from __future__ import annotations
import json
from dataclasses import dataclass, field, asdict, replace
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from mockup.errors import ConfigurationError


def _check_range(name: str, value, low, high):
    if not (low <= value <= high):
        raise ConfigurationError(f"{name} must be in [{low}, {high}], got {value!r}")


class PlacementType(str, Enum):
    """Placement style of a product constraint; picks the expected aspect band."""
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"
    ALL_OVER = "all_over"

    @classmethod
    def parse(cls, value: Union[str, "PlacementType", None]) -> "PlacementType":
        if value is None or value == "":
            return cls.HORIZONTAL
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace("-", "_")
        try:
            return cls(key)
        except ValueError:
            raise ConfigurationError(f"Unknown placement type: {value!r}") from None


@dataclass(frozen=True)
class ColorRange:
    """HSV bounds; hue in degrees (0-360), saturation/value in percent (0-100)."""
    h_min: float
    h_max: float
    s_min: float
    s_max: float
    v_min: float
    v_max: float

    def __post_init__(self):
        _check_range("h_min", self.h_min, 0, 360)
        _check_range("h_max", self.h_max, 0, 360)
        for name in ("s_min", "s_max", "v_min", "v_max"):
            _check_range(name, getattr(self, name), 0, 100)
        if self.s_min > self.s_max or self.v_min > self.v_max:
            raise ConfigurationError("ColorRange minimum exceeds maximum")


COLOR_PRESETS: Dict[str, ColorRange] = {
    "strict": ColorRange(105, 135, 60, 100, 50, 100),
    "standard": ColorRange(80, 160, 15, 100, 15, 100),
    "wide": ColorRange(70, 170, 10, 100, 10, 100),
    "vivid_green": ColorRange(100, 140, 50, 100, 40, 100),
    "dark_green": ColorRange(80, 120, 30, 100, 20, 60),
    "light_green": ColorRange(110, 150, 20, 70, 60, 100),
    "all_green": ColorRange(80, 160, 15, 100, 15, 100),
}
DEFAULT_PRESET = "standard"


def color_preset(name: str) -> ColorRange:
    try:
        return COLOR_PRESETS[name.strip().lower()]
    except KeyError:
        known = ", ".join(sorted(COLOR_PRESETS))
        raise ConfigurationError(f"Unknown color preset {name!r} (known: {known})") from None


@dataclass(frozen=True)
class NoiseReduction:
    enabled: bool = True
    kernel_size: int = 3
    iterations: int = 1

    def __post_init__(self):
        _check_range("kernel_size", self.kernel_size, 3, 9)
        if self.kernel_size % 2 == 0:
            raise ConfigurationError(f"kernel_size must be odd, got {self.kernel_size}")
        _check_range("iterations", self.iterations, 1, 3)


@dataclass(frozen=True)
class EdgeSmoothing:
    enabled: bool = True
    blur_radius: int = 1
    threshold: int = 128

    def __post_init__(self):
        _check_range("blur_radius", self.blur_radius, 1, 5)
        _check_range("threshold", self.threshold, 64, 192)


@dataclass(frozen=True)
class DetectionSettings:
    """Per-call detection configuration. Build variants with `from_overrides`."""
    color_range: ColorRange = field(default_factory=lambda: COLOR_PRESETS[DEFAULT_PRESET])
    tolerance: float = 10
    min_area: int = 50
    max_area: int = 50000
    noise_reduction: NoiseReduction = field(default_factory=NoiseReduction)
    edge_smoothing: EdgeSmoothing = field(default_factory=EdgeSmoothing)
    opacity_floor: int = 128

    def __post_init__(self):
        _check_range("tolerance", self.tolerance, 0, 30)
        _check_range("opacity_floor", self.opacity_floor, 1, 255)
        if self.min_area < 0:
            raise ConfigurationError(f"min_area must be >= 0, got {self.min_area}")
        if self.min_area >= self.max_area:
            raise ConfigurationError(
                f"min_area ({self.min_area}) must be smaller than max_area ({self.max_area})"
            )

    @classmethod
    def from_overrides(cls, base: Optional["DetectionSettings"] = None,
                       overrides: Optional[Mapping[str, Any]] = None,
                       **kwargs) -> "DetectionSettings":
        """Merge overrides onto `base` (or the defaults) and validate the result.

        Accepts flat keys (``tolerance=12``), a ``preset`` name or a
        ``color_range`` (ColorRange or mapping), and partial mappings for
        ``noise_reduction`` / ``edge_smoothing``.
        """
        base = base or cls()
        merged: Dict[str, Any] = dict(overrides or {})
        merged.update(kwargs)

        changes: Dict[str, Any] = {}
        preset = merged.pop("preset", None)
        if preset is not None:
            changes["color_range"] = color_preset(preset)

        for key, value in merged.items():
            if key == "color_range":
                changes[key] = _merge_nested(base.color_range, value)
            elif key == "noise_reduction":
                changes[key] = _merge_nested(base.noise_reduction, value)
            elif key == "edge_smoothing":
                changes[key] = _merge_nested(base.edge_smoothing, value)
            elif key in ("tolerance", "min_area", "max_area", "opacity_floor"):
                changes[key] = value
            else:
                raise ConfigurationError(f"Unknown detection setting: {key!r}")
        try:
            return replace(base, **changes)
        except TypeError as e:
            raise ConfigurationError(str(e)) from e

    def cache_key(self) -> str:
        return json.dumps(asdict(self), sort_keys=True)


def _merge_nested(current, value):
    if isinstance(value, type(current)):
        return value
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"Expected a mapping for {type(current).__name__}, got {value!r}")
    try:
        return replace(current, **dict(value))
    except TypeError as e:
        raise ConfigurationError(str(e)) from e


@dataclass(frozen=True)
class ConstraintDimensions:
    """Caller size rules for a logo placement, in pixels."""
    min_width: int = 20
    min_height: int = 20
    max_width: int = 1000
    max_height: int = 1000
    default_x: int = 0
    default_y: int = 0

    def __post_init__(self):
        if self.min_width < 0 or self.min_height < 0:
            raise ConfigurationError("Minimum dimensions must be non-negative")
        if self.min_width > self.max_width:
            raise ConfigurationError(
                f"min_width ({self.min_width}) exceeds max_width ({self.max_width})"
            )
        if self.min_height > self.max_height:
            raise ConfigurationError(
                f"min_height ({self.min_height}) exceeds max_height ({self.max_height})"
            )
