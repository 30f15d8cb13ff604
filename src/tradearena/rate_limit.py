from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from threading import Lock
from time import monotonic


@dataclass(slots=True)
class _Window:
    timestamps: deque[float] = field(default_factory=deque)


class RequestThrottle:
    """Sliding one-minute request budget, tracked per model id."""

    def __init__(self, limit_per_minute: int, window_seconds: float = 60.0) -> None:
        if limit_per_minute <= 0:
            raise ValueError("limit_per_minute must be greater than zero")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be greater than zero")
        self.limit_per_minute = limit_per_minute
        self.window_seconds = window_seconds
        self._windows: dict[str, _Window] = {}
        self._lock = Lock()

    def allow(self, key: str, now: float | None = None) -> tuple[bool, float]:
        current = monotonic() if now is None else now
        with self._lock:
            window = self._windows.setdefault(key, _Window())
            cutoff = current - self.window_seconds
            while window.timestamps and window.timestamps[0] <= cutoff:
                window.timestamps.popleft()

            if len(window.timestamps) >= self.limit_per_minute:
                retry_after = max(0.0, self.window_seconds - (current - window.timestamps[0]))
                return False, retry_after

            window.timestamps.append(current)
            return True, 0.0

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()
