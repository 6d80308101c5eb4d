"""
Observer hooks and in-process metrics.

Hooks are pure notifications: their return values are ignored and any
exception they raise is logged and swallowed so a faulty observer can never
break a translation.
"""

from __future__ import annotations

import threading
import time
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from shared.utils.logging import get_logger


class TranslationMetrics:
    """Thread-safe accumulator for call counts, durations and errors."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.reset()

    def reset(self) -> None:
        with self._lock:
            self.total_calls = 0
            self.total_characters = 0
            self.total_duration = 0.0
            self.rate_limits_hit = 0
            self.errors_count = 0
            self.batches_completed = 0
            self.calls_by_language: Dict[str, int] = defaultdict(int)

    def record_start(self, source: Optional[str], target: Optional[str], length: int) -> None:
        with self._lock:
            self.total_calls += 1
            self.total_characters += length
            self.calls_by_language[f"{source}->{target}"] += 1

    def record_complete(self, duration: float) -> None:
        with self._lock:
            self.total_duration += duration

    def record_error(self) -> None:
        with self._lock:
            self.errors_count += 1

    def record_rate_limit(self) -> None:
        with self._lock:
            self.rate_limits_hit += 1

    def record_batch(self) -> None:
        with self._lock:
            self.batches_completed += 1

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            calls = self.total_calls
            return {
                "total_calls": calls,
                "total_characters": self.total_characters,
                "total_duration": round(self.total_duration, 3),
                "rate_limits_hit": self.rate_limits_hit,
                "errors_count": self.errors_count,
                "batches_completed": self.batches_completed,
                "calls_by_language": dict(self.calls_by_language),
                "average_call_time": round(self.total_duration / calls, 3) if calls else 0,
                "average_characters_per_call": round(self.total_characters / calls) if calls else 0,
                "error_rate": round(self.errors_count / calls * 100, 2) if calls else 0,
            }


@dataclass
class TranslationHooks:
    """Optional callbacks fired at the documented transition points."""

    on_call_start: Optional[Callable[[str, str, int, datetime], Any]] = None
    on_call_complete: Optional[Callable[[str, str, int, int, float], Any]] = None
    on_call_error: Optional[Callable[[str, str, Exception, int, datetime], Any]] = None
    on_rate_limit: Optional[Callable[[str, str, float, int, datetime], Any]] = None
    on_batch_complete: Optional[Callable[[int, float, int, int], Any]] = None
    metrics: Optional[TranslationMetrics] = field(default=None)

    @classmethod
    def with_metrics(cls, **callbacks) -> "TranslationHooks":
        return cls(metrics=TranslationMetrics(), **callbacks)

    def call_start(self, source, target, length: int) -> None:
        if self.metrics:
            self.metrics.record_start(source, target, length)
        self._fire("on_call_start", source, target, length, datetime.now())

    def call_complete(self, source, target, original_length: int, result_length: int, duration: float) -> None:
        if self.metrics:
            self.metrics.record_complete(duration)
        self._fire("on_call_complete", source, target, original_length, result_length, duration)

    def call_error(self, source, target, error: Exception, attempt: int) -> None:
        if self.metrics:
            self.metrics.record_error()
        self._fire("on_call_error", source, target, error, attempt, datetime.now())

    def rate_limit(self, source, target, wait_time: float, attempt: int) -> None:
        if self.metrics:
            self.metrics.record_rate_limit()
        self._fire("on_rate_limit", source, target, wait_time, attempt, datetime.now())

    def batch_complete(self, size: int, duration: float, success_count: int, error_count: int) -> None:
        if self.metrics:
            self.metrics.record_batch()
        self._fire("on_batch_complete", size, duration, success_count, error_count)

    def metrics_snapshot(self) -> Dict[str, Any]:
        return self.metrics.snapshot() if self.metrics else {}

    def _fire(self, name: str, *args) -> None:
        callback = getattr(self, name)
        if callback is None:
            return
        try:
            callback(*args)
        except Exception as exc:
            get_logger().warn(f"Hook {name} failed: {exc}")


def logging_hooks(metrics: bool = False) -> TranslationHooks:
    """Hooks that report every transition through the library logger."""
    log = get_logger()

    def on_start(source, target, length, _timestamp):
        log.info(f"Starting {source}->{target} ({length} chars)")

    def on_complete(source, target, _original_length, _result_length, duration):
        log.info(f"Completed {source}->{target} in {duration:.2f}s")

    def on_error(source, target, error, attempt, _timestamp):
        log.error(f"Error {source}->{target} (attempt {attempt}): {error}", sensitive=True)

    def on_rate_limit(source, target, wait_time, attempt, _timestamp):
        log.warn(f"Rate limit {source}->{target}, waiting {wait_time}s (attempt {attempt})")

    def on_batch(size, duration, success_count, error_count):
        log.info(f"Batch of {size} finished in {duration:.2f}s ({success_count} ok, {error_count} failed)")

    return TranslationHooks(
        on_call_start=on_start,
        on_call_complete=on_complete,
        on_call_error=on_error,
        on_rate_limit=on_rate_limit,
        on_batch_complete=on_batch,
        metrics=TranslationMetrics() if metrics else None,
    )


def elapsed_since(started: float) -> float:
    return time.monotonic() - started
