from __future__ import annotations
import hashlib
import logging
import threading
from collections import OrderedDict
from concurrent.futures import Future
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


class ResultCache:
    """Content-hash memo for detection and compositing results.

    Entries are write-once. Concurrent requests for the same key share one
    in-flight computation; failures are propagated to every waiter and not cached.
    """

    def __init__(self, max_entries: int = 256):
        self.max_entries = max_entries
        self._entries: "OrderedDict[str, Any]" = OrderedDict()
        self._inflight: Dict[str, Future] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    @staticmethod
    def make_key(kind: str, *parts) -> str:
        h = hashlib.sha256(kind.encode("utf-8"))
        for part in parts:
            if isinstance(part, str):
                part = part.encode("utf-8")
            elif not isinstance(part, (bytes, bytearray, memoryview)):
                part = repr(part).encode("utf-8")
            h.update(len(part).to_bytes(8, "big"))
            h.update(part)
        return h.hexdigest()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            return self._entries.get(key)

    def __len__(self):
        with self._lock:
            return len(self._entries)

    def get_or_compute(self, key: str, compute: Callable[[], Any],
                       timeout: Optional[float] = None) -> Any:
        with self._lock:
            if key in self._entries:
                self.hits += 1
                return self._entries[key]
            future = self._inflight.get(key)
            owner = future is None
            if owner:
                self.misses += 1
                future = Future()
                self._inflight[key] = future
            else:
                self.hits += 1

        if not owner:
            logger.debug("Waiting on in-flight computation %s", key[:12])
            return future.result(timeout)

        try:
            value = compute()
        except BaseException as e:
            with self._lock:
                self._inflight.pop(key, None)
            future.set_exception(e)
            raise

        with self._lock:
            self._entries.setdefault(key, value)
            value = self._entries[key]
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)
            self._inflight.pop(key, None)
        future.set_result(value)
        return value
