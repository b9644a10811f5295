from __future__ import annotations
import threading
import time
from typing import Optional

from mockup.errors import DetectionCancelled


class Deadline:
    """Cooperative cancellation: a time budget plus an external cancel switch."""

    def __init__(self, seconds: Optional[float] = None):
        self._expires_at = None if seconds is None else time.monotonic() + seconds
        self._cancelled = threading.Event()

    @classmethod
    def never(cls) -> "Deadline":
        return cls(None)

    def cancel(self):
        self._cancelled.set()

    @property
    def expired(self) -> bool:
        if self._cancelled.is_set():
            return True
        return self._expires_at is not None and time.monotonic() >= self._expires_at

    def remaining(self) -> Optional[float]:
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - time.monotonic())

    def check(self, stage: str = ""):
        if self.expired:
            where = f" during {stage}" if stage else ""
            raise DetectionCancelled(f"Deadline exceeded{where}")
