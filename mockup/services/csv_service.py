import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List

from mockup.errors import ConfigurationError

logger = logging.getLogger(__name__)

LOGO_FIELDS = ("logo", "name", "placement_type")


@dataclass(frozen=True)
class LogoRow:
    index: int
    logo: str
    name: str = ""
    placement_type: str = ""


class CSVService:
    """Reads the logo CSV; each column role may be filled by any of several header aliases."""
    def __init__(self, csv_path: Path, keys_map: Dict[str, List[str]]):
        self.csv_path = csv_path
        self.keys_map = keys_map
        if not keys_map.get("logo"):
            raise ConfigurationError("CSV key map needs at least one column name for 'logo'")

    def read_rows(self) -> List[dict]:
        with open(self.csv_path, "r", encoding="utf-8-sig", newline="") as f:
            reader = csv.DictReader(f)
            header = reader.fieldnames or []
            if not any(k in header for k in self.keys_map["logo"]):
                logger.warning("%s has no logo column (looked for %s)",
                               self.csv_path, ", ".join(self.keys_map["logo"]))
            return list(reader)

    @staticmethod
    def _first_non_empty(row: dict, keys: List[str]) -> str:
        for k in keys:
            v = (row.get(k) or "").strip()
            if v:
                return v
        return ""

    def extract_fields(self, row: dict) -> Dict[str, str]:
        return {f: self._first_non_empty(row, self.keys_map.get(f, [])) for f in LOGO_FIELDS}

    def read_jobs(self) -> List[LogoRow]:
        """Rows as numbered `LogoRow`s (1-based), including rows with an empty logo cell."""
        return [LogoRow(i, **self.extract_fields(row))
                for i, row in enumerate(self.read_rows(), start=1)]
