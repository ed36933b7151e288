"""
Per-client admission control: one scan per client identity per window.
This is a fixed window, not a token bucket; after an admission every
request from the same identity is refused until the window has passed.
"""

import logging
import threading
import time
from typing import Callable, Dict, Optional

from core.config import settings

log = logging.getLogger(__name__)


class RateLimiter:
    def __init__(
        self,
        window_s: Optional[float] = None,
        ttl_s: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.window_s = settings.rate_limit_window_s if window_s is None else window_s
        ttl = settings.rate_limit_ttl_s if ttl_s is None else ttl_s
        self.ttl_s = max(ttl, self.window_s)
        self._clock = clock
        self._lock = threading.Lock()
        self._last_admitted: Dict[str, float] = {}
        self._last_sweep = clock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._last_admitted)

    def admit(self, client_id: str) -> bool:
        now = self._clock()
        with self._lock:
            if now - self._last_sweep >= self.window_s:
                self._sweep(now)
            last = self._last_admitted.get(client_id)
            if last is not None and now - last < self.window_s:
                return False
            self._last_admitted[client_id] = now
            return True

    def retry_after(self, client_id: str) -> float:
        """Seconds until client_id may be admitted again (0 when it may now)."""
        now = self._clock()
        with self._lock:
            last = self._last_admitted.get(client_id)
        if last is None:
            return 0.0
        return max(0.0, self.window_s - (now - last))

    def evict_stale(self) -> int:
        with self._lock:
            return self._sweep(self._clock())

    def _sweep(self, now: float) -> int:
        # caller holds the lock
        stale = [cid for cid, ts in self._last_admitted.items() if now - ts >= self.ttl_s]
        for cid in stale:
            del self._last_admitted[cid]
        self._last_sweep = now
        if stale:
            log.debug("evicted %d stale rate-limit entries", len(stale))
        return len(stale)
