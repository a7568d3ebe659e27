from __future__ import annotations

import time
from collections import defaultdict, deque
from typing import Callable


class SlidingWindowRateLimiter:
    """Allows at most ``max_calls`` per key within any ``window_seconds`` span."""

    def __init__(
        self,
        max_calls: int,
        window_seconds: float,
        clock: Callable[[], float] = time.time,
    ):
        self.max_calls = max_calls
        self.window_seconds = window_seconds
        self._clock = clock
        self._calls: dict[int, deque[float]] = defaultdict(deque)

    def _prune(self, user_id: int, now: float) -> deque[float]:
        calls = self._calls[user_id]
        while calls and now - calls[0] > self.window_seconds:
            calls.popleft()
        return calls

    def allow(self, user_id: int) -> bool:
        now = self._clock()
        calls = self._prune(user_id, now)
        if len(calls) >= self.max_calls:
            return False
        calls.append(now)
        return True

    def retry_after(self, user_id: int) -> float:
        """Seconds until the next call would be allowed, 0 if it already is."""
        now = self._clock()
        calls = self._prune(user_id, now)
        if len(calls) < self.max_calls:
            return 0.0
        return max(0.0, calls[0] + self.window_seconds - now)
