"""Rate limiter using a fixed window counter."""

import logging
import math
import threading
import time
from typing import Callable, Optional


class RateLimitExceeded(Exception):
    """Exception raised when rate limit is exceeded."""

    def __init__(self, retry_after_ms: int, message: Optional[str] = None):
        self.retry_after_ms = retry_after_ms
        self.message = message or (
            f"Rate limit exceeded. Please wait {math.ceil(retry_after_ms / 1000)} seconds."
        )
        super().__init__(self.message)

    @property
    def retry_after(self) -> float:
        """Wait hint in seconds."""
        return self.retry_after_ms / 1000


class FixedWindowRateLimiter:
    """Fixed window rate limiter for model calls.

    The window restarts once the limiter's own window has elapsed, so up to
    twice ``max_calls`` requests can be admitted around a window boundary.
    """

    def __init__(
        self,
        max_calls: int,
        time_window: float,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        """Initialize rate limiter with max calls per time window (seconds)."""
        if max_calls <= 0:
            raise ValueError("max_calls must be a positive integer")
        if time_window <= 0:
            raise ValueError("time_window must be a positive number")

        self.max_calls = max_calls
        self.time_window = time_window
        self._clock = clock or time.time
        self._lock = threading.Lock()
        self.count = 0
        self.window_start = self._clock()
        self.logger = logging.getLogger(__name__)
        self.logger.debug(f"Rate limiter initialized: {max_calls} calls per {time_window} seconds")

    def _roll_window(self, now: float) -> None:
        if now - self.window_start >= self.time_window:
            self.count = 0
            self.window_start = now
            self.logger.debug("Rate limit window reset")

    def admit(self) -> None:
        """Record one call, raising RateLimitExceeded if the window is full."""
        with self._lock:
            now = self._clock()
            self._roll_window(now)

            if self.count >= self.max_calls:
                # Bounded to [0, time_window] even if the wall clock steps backwards
                remaining = self.time_window - (now - self.window_start)
                remaining = min(self.time_window, max(0.0, remaining))
                retry_after_ms = math.ceil(remaining * 1000)
                self.logger.info(f"Rate limit exceeded. Window resets in {retry_after_ms} ms.")
                raise RateLimitExceeded(retry_after_ms)

            self.count += 1
            self.logger.debug(f"API call permitted. Calls in window: {self.count}/{self.max_calls}")

    def get_remaining_calls(self) -> int:
        """Get number of API calls remaining in current window."""
        with self._lock:
            self._roll_window(self._clock())
            return max(0, self.max_calls - self.count)

    def reset(self) -> None:
        """Reset rate limiter by starting a fresh window."""
        with self._lock:
            self.count = 0
            self.window_start = self._clock()
        self.logger.debug("Rate limiter reset - window cleared")
