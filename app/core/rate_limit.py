"""Fixed-window rate limiting per client address.

In-memory counters (reset on restart), guarded by a lock so concurrent requests in the
threadpool see consistent counts.
"""

import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from starlette.requests import Request


@dataclass
class Window:
    """Hit count for one client inside the current window."""

    started_at: float
    hits: int


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    retry_after: int


class FixedWindowRateLimiter:
    """
    Allow at most `max_requests` hits per `window_seconds` for each key.

    The window for a key starts at its first hit and is replaced by a fresh one once
    it has elapsed.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        message: str,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_requests <= 0:
            raise ValueError("max_requests must be positive")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.message = message
        self._clock = clock
        self._windows: dict[str, Window] = {}
        self._lock = threading.Lock()

    def _current_window(self, key: str, now: float) -> Window:
        window = self._windows.get(key)
        if window is None or now - window.started_at >= self.window_seconds:
            window = Window(started_at=now, hits=0)
            self._windows[key] = window
        return window

    def hit(self, key: str) -> RateLimitResult:
        """Record one hit for key and report whether it is within the limit."""
        with self._lock:
            now = self._clock()
            window = self._current_window(key, now)
            if window.hits >= self.max_requests:
                retry_after = self.window_seconds - (now - window.started_at)
                return RateLimitResult(
                    allowed=False,
                    limit=self.max_requests,
                    remaining=0,
                    retry_after=max(1, math.ceil(retry_after)),
                )
            window.hits += 1
            return RateLimitResult(
                allowed=True,
                limit=self.max_requests,
                remaining=self.max_requests - window.hits,
                retry_after=0,
            )

    def refund(self, key: str) -> None:
        """Give back one hit (used when successful requests should not count)."""
        with self._lock:
            window = self._windows.get(key)
            if window is not None and window.hits > 0:
                window.hits -= 1

    def clear(self) -> None:
        with self._lock:
            self._windows.clear()


def get_client_ip(request: Request) -> str:
    """First X-Forwarded-For hop if present, else the socket peer address."""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    if request.client is not None:
        return request.client.host
    return "unknown"
