import threading
from collections import deque
from time import time


class RateLimiter:
    """
    Per-client sliding window limiter.

    Each client keeps a deque of request timestamps inside the current
    window. Clients whose window has emptied are evicted, at most once per
    window, so memory stays bounded by the clients seen recently.
    """

    def __init__(self, max_requests: int = 100, window_seconds: int = 900):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._requests: dict[str, deque[float]] = {}
        self._lock = threading.Lock()
        self._last_prune = time()

    @property
    def tracked_clients(self) -> int:
        return len(self._requests)

    async def check_rate_limit(self, ip_address: str) -> tuple[bool, int | None]:
        """
        Record a request from ip_address if it fits in the window.

        Returns:
            (is_allowed, retry_after_seconds)
        """
        # No await inside: the whole check runs under one short critical section
        with self._lock:
            current_time = time()
            self._prune_stale(current_time)

            timestamps = self._requests.setdefault(ip_address, deque())
            self._expire(timestamps, current_time)

            if len(timestamps) < self.max_requests:
                timestamps.append(current_time)
                return True, None

            retry_after = int(self.window_seconds - (current_time - timestamps[0])) + 1
            return False, retry_after

    def reset(self) -> None:
        with self._lock:
            self._requests.clear()
            self._last_prune = time()

    def _expire(self, timestamps: deque[float], current_time: float) -> None:
        cutoff = current_time - self.window_seconds
        while timestamps and timestamps[0] <= cutoff:
            timestamps.popleft()

    def _prune_stale(self, current_time: float) -> None:
        """Drop clients with no requests left in the window."""
        if current_time - self._last_prune < self.window_seconds:
            return
        self._last_prune = current_time

        for ip_address in list(self._requests):
            timestamps = self._requests[ip_address]
            self._expire(timestamps, current_time)
            if not timestamps:
                del self._requests[ip_address]
