"""Sliding window counter for per-key event timestamps.

Used by the rate limiter to track requests per client address.  Each key
owns a deque of millisecond timestamps: O(1) append, amortized O(1)
eviction from the left.  State is in-memory only; a restart forgets every
window, which is acceptable for heuristic throttling.
"""

import threading
import time
from collections import deque


def now_ms() -> int:
    """Current wall-clock time in milliseconds since the epoch."""
    return int(time.time() * 1000)


class SlidingWindowCounter:
    __slots__ = ("window_ms", "_logs", "_lock")

    def __init__(self, window_ms: int):
        self.window_ms = window_ms
        self._logs: dict[str, deque[int]] = {}
        # One lock over the whole map.  Per-key read-modify-write must not
        # interleave or a burst can slip through an undercounted window.
        self._lock = threading.Lock()

    def add(self, key: str, now: int | None = None) -> int:
        """Record one event for *key* at *now*. Returns the in-window count."""
        if now is None:
            now = now_ms()
        with self._lock:
            log = self._logs.get(key)
            if log is None:
                log = self._logs[key] = deque()
            self._evict(log, now)
            log.append(now)
            return len(log)

    def recent(self, key: str, now: int | None = None) -> list[int]:
        """Timestamps for *key* still inside the window (oldest first)."""
        if now is None:
            now = now_ms()
        with self._lock:
            log = self._logs.get(key)
            if log is None:
                return []
            self._evict(log, now)
            return list(log)

    def count(self, key: str, now: int | None = None) -> int:
        return len(self.recent(key, now))

    def reset(self, key: str) -> None:
        with self._lock:
            self._logs.pop(key, None)

    def sweep(self, now: int | None = None) -> int:
        """Prune every key and drop the ones left empty. Returns keys dropped."""
        if now is None:
            now = now_ms()
        with self._lock:
            stale = []
            for key, log in self._logs.items():
                self._evict(log, now)
                if not log:
                    stale.append(key)
            for key in stale:
                del self._logs[key]
            return len(stale)

    def _evict(self, log: deque[int], now: int) -> None:
        # Keep t only while now - t < window_ms.  Logs are appended in
        # non-decreasing order, so eviction stops at the first fresh entry.
        while log and now - log[0] >= self.window_ms:
            log.popleft()

    def __contains__(self, key: str) -> bool:
        return key in self._logs

    def __len__(self) -> int:
        return len(self._logs)
