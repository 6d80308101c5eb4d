"""
Client-side sliding-window rate gate.
"""

import threading
import time
from collections import deque
from typing import Callable, Deque

from shared.utils.logging import get_logger

DEFAULT_MAX_REQUESTS = 50
DEFAULT_WINDOW_SECONDS = 60.0


class SlidingWindowRateLimiter:
    """
    Admit at most ``max_requests`` calls per ``window_seconds``.
    
    ``wait_and_record`` holds a single lock across prune, check, wait and
    record, so concurrent callers can never be admitted past the cap.
    A waiting caller blocks everyone queued behind it.
    """

    def __init__(self,
                 max_requests: int = DEFAULT_MAX_REQUESTS,
                 window_seconds: float = DEFAULT_WINDOW_SECONDS,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        if max_requests <= 0:
            raise ValueError("max_requests must be positive")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._sleep = sleep
        self._requests: Deque[float] = deque()
        self._lock = threading.Lock()

    def wait_and_record(self) -> float:
        """
        Block until a slot is free, then record this request.
        
        Returns:
            The number of seconds spent waiting
        """
        waited = 0.0
        with self._lock:
            self._prune()
            if len(self._requests) >= self.max_requests:
                wait_time = self._requests[0] + self.window_seconds - self._clock()
                if wait_time > 0:
                    get_logger().debug_if_verbose(f"Rate gate full, waiting {wait_time:.2f}s")
                    self._sleep(wait_time)
                    waited = wait_time
                self._prune()
                # The oldest entry has expired by now, whatever the clock granularity says.
                while len(self._requests) >= self.max_requests:
                    self._requests.popleft()
            self._requests.append(self._clock())
        return waited

    @property
    def in_window(self) -> int:
        with self._lock:
            self._prune()
            return len(self._requests)

    def reset(self) -> None:
        with self._lock:
            self._requests.clear()

    def _prune(self) -> None:
        cutoff = self._clock() - self.window_seconds
        while self._requests and self._requests[0] <= cutoff:
            self._requests.popleft()
