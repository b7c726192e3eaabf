import time
import threading
import logging
from typing import Callable, Optional

import config

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Allows at most one action per interval, measured from the start of the
    last allowed action. Refused requests are dropped, not queued.
    """

    def __init__(self, interval: Optional[float] = None, clock: Optional[Callable[[], float]] = None):
        self.interval = config.REGENERATE_INTERVAL if interval is None else interval
        self._clock = clock or time.monotonic
        self._last_start: Optional[float] = None
        self._lock = threading.Lock()

    def try_acquire(self) -> bool:
        with self._lock:
            now = self._clock()
            if self._last_start is not None and now - self._last_start < self.interval:
                logger.debug(f"RATE: dropped ({now - self._last_start:.2f}s < {self.interval}s)")
                return False
            self._last_start = now
            return True

    def remaining(self) -> float:
        """Seconds until the next action would be allowed."""
        with self._lock:
            if self._last_start is None:
                return 0.0
            return max(0.0, self.interval - (self._clock() - self._last_start))

    def reset(self) -> None:
        with self._lock:
            self._last_start = None
