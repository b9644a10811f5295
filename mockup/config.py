from __future__ import annotations
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple

from mockup.errors import ConfigurationError
from mockup.settings import ConstraintDimensions, DetectionSettings, PlacementType

# Short environment names for the most common fields; the rest use MOCKUP_<FIELD>.
ENV_ALIASES = {
    "TEMPLATE_PATH": "MOCKUP_TEMPLATE",
    "CSV_PATH": "MOCKUP_CSV",
}

@dataclass(frozen=True)
class Config:
    # Paths
    TEMPLATE_PATH: Path = Path("./templates/product.png")
    CSV_PATH: Path = Path("./logos/logos.csv")
    OUT_DIR: Path = Path("./mockups")

    # CSV keys map
    CSV_KEYS: Dict[str, List[str]] = None
    NAMING_MODE: str = "index"  # "index" | "name"

    # Placement zone
    DETECT_REGION: bool = True
    FALLBACK_BOX_PERC: Tuple[float, float, float, float] = (0.30, 0.30, 0.70, 0.70)  # l, t, r, b
    BLOCK_ON_INVALID: bool = False

    # Detection
    PRESET: str = "standard"
    TOLERANCE: float = 10.0
    MIN_AREA: int = 50
    MAX_AREA: int = 50000

    # Constraint rules (pixels)
    PLACEMENT_TYPE: str = "horizontal"
    MIN_WIDTH: int = 20
    MIN_HEIGHT: int = 20
    MAX_WIDTH: int = 1000
    MAX_HEIGHT: int = 1000

    # Runtime
    MAX_WORKERS: int = 4
    DETECT_TIMEOUT_S: Optional[float] = 30.0
    LOG_LEVEL: str = "INFO"

    def __post_init__(self):
        if self.CSV_KEYS is None:
            object.__setattr__(self, "CSV_KEYS", {
                "logo": ["logo", "logo_url", "logo_image"],
                "name": ["name", "brand"],
                "placement_type": ["placement_type"],
            })
        if self.NAMING_MODE not in ("index", "name"):
            raise ConfigurationError(f"NAMING_MODE must be 'index' or 'name', got {self.NAMING_MODE!r}")
        if self.MAX_WORKERS < 1:
            raise ConfigurationError("MAX_WORKERS must be >= 1")
        PlacementType.parse(self.PLACEMENT_TYPE)

    def detection_settings(self) -> DetectionSettings:
        return DetectionSettings.from_overrides(
            preset=self.PRESET, tolerance=self.TOLERANCE,
            min_area=self.MIN_AREA, max_area=self.MAX_AREA,
        )

    def constraint_dimensions(self) -> ConstraintDimensions:
        return ConstraintDimensions(
            min_width=self.MIN_WIDTH, min_height=self.MIN_HEIGHT,
            max_width=self.MAX_WIDTH, max_height=self.MAX_HEIGHT,
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "Config":
        """Config with `MOCKUP_<FIELD>` environment values applied, then explicit overrides."""
        environ = os.environ if environ is None else environ
        values = {}
        for f in fields(cls):
            raw = environ.get(ENV_ALIASES.get(f.name, f"MOCKUP_{f.name}"))
            if raw is None or f.name == "CSV_KEYS":
                continue
            values[f.name] = _coerce(f.name, raw, getattr(cls, f.name))
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def _coerce(name: str, raw: str, default):
    raw = raw.strip()
    try:
        if isinstance(default, bool):
            return raw.lower() in ("1", "true", "yes", "on")
        if isinstance(default, Path):
            return Path(raw)
        if isinstance(default, int):
            return int(raw)
        if isinstance(default, float) or default is None:
            return float(raw) if raw else None
        if isinstance(default, tuple):
            return tuple(float(p) for p in raw.split(","))
    except ValueError as e:
        raise ConfigurationError(f"Invalid value for MOCKUP_{name}: {raw!r}") from e
    return raw
