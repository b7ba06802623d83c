"""In-process fixed-window request limiter keyed by client address."""

import threading
import time
from typing import Callable


class RateLimiter:
    """Allow at most ``limit`` hits per key in each ``window`` seconds."""

    def __init__(self, limit: int, window: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.limit = limit
        self.window = window
        self._clock = clock
        self._lock = threading.Lock()
        self._hits: dict[str, tuple[float, int]] = {}

    def hit(self, key: str) -> bool:
        """Record one request for *key*; False once the window is exhausted."""
        now = self._clock()
        with self._lock:
            started, count = self._hits.get(key, (now, 0))
            if now - started >= self.window:
                started, count = now, 0
            count += 1
            self._hits[key] = (started, count)
            if len(self._hits) > 10_000:
                self._prune(now)
        return count <= self.limit

    def remaining(self, key: str) -> int:
        now = self._clock()
        with self._lock:
            started, count = self._hits.get(key, (now, 0))
        if now - started >= self.window:
            return self.limit
        return max(self.limit - count, 0)

    def _prune(self, now: float) -> None:
        expired = [k for k, (started, _) in self._hits.items() if now - started >= self.window]
        for key in expired:
            del self._hits[key]
