"""Per-client request limiting for the ``/api`` routes.

Fixed windows keyed by client address: each client may make ``max_requests``
calls per ``window_seconds``. Counters live in process memory, so every
worker process limits independently.
"""

import threading
import time
from typing import Dict, Optional, Tuple


class RateLimiter:
    """Fixed-window request counter."""

    def __init__(self, max_requests: int, window_seconds: int):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._windows: Dict[str, Tuple[float, int]] = {}
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self.max_requests > 0 and self.window_seconds > 0

    def hit(self, key: str, now: Optional[float] = None) -> Tuple[bool, int]:
        """Count one request for ``key``.

        Returns ``(allowed, retry_after_seconds)``; ``retry_after`` is 0
        when the request is allowed.
        """
        now = time.monotonic() if now is None else now
        with self._lock:
            started, count = self._windows.get(key, (now, 0))
            if now - started >= self.window_seconds:
                started, count = now, 0

            if count >= self.max_requests:
                self._windows[key] = (started, count)
                return False, max(1, int(started + self.window_seconds - now))

            self._windows[key] = (started, count + 1)
            self._prune(now)
            return True, 0

    def _prune(self, now: float) -> None:
        if len(self._windows) < 10000:
            return
        expired = [k for k, (started, _) in self._windows.items() if now - started >= self.window_seconds]
        for k in expired:
            del self._windows[k]
