"""Per-run request throttling."""

from __future__ import annotations

import logging
import time
from collections import deque
from typing import Callable, Deque, Optional

from devdocs.config import settings

logger = logging.getLogger(__name__)

_WINDOW = 60.0


class RateLimiter:
    """Allow at most *per_minute* request starts in any 60-second window.

    Consecutive requests are additionally spaced at least *min_interval*
    seconds apart.  *clock* and *sleep* are injectable for tests.
    """

    def __init__(
        self,
        per_minute: int,
        min_interval: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if per_minute < 1:
            raise ValueError("per_minute must be at least 1")
        self.per_minute = per_minute
        self.min_interval = settings.min_request_interval if min_interval is None else min_interval
        self._clock = clock
        self._sleep = sleep
        self._starts: Deque[float] = deque()

    def wait(self) -> float:
        """Block until the next request may start.  Returns the time slept."""
        now = self._clock()
        while self._starts and now - self._starts[0] >= _WINDOW:
            self._starts.popleft()

        delay = 0.0
        if len(self._starts) >= self.per_minute:
            delay = _WINDOW - (now - self._starts[0])
            logger.info("Rate limit of %d/min reached, waiting %.1fs", self.per_minute, delay)
        if self._starts:
            delay = max(delay, self.min_interval - (now - self._starts[-1]))

        if delay > 0:
            self._sleep(delay)
            now = self._clock()
            while self._starts and now - self._starts[0] >= _WINDOW:
                self._starts.popleft()
        else:
            delay = 0.0

        self._starts.append(now)
        return delay
