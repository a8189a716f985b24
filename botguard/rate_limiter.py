"""Per-address rate limiter with a temporary blocklist.

An address that reaches ``rate_limit`` requests inside the trailing
window is blocked for ``block_duration_ms``.  While blocked, every request
is refused without touching the request log.  Expiry is checked lazily on
the next access (and by the periodic sweep) instead of scheduling a timer
per block, so a sustained attack cannot accumulate pending timers.
"""

import threading

from botguard import metrics
from botguard.sliding_window import SlidingWindowCounter, now_ms

RATE_LIMIT = 100  # requests per window
WINDOW_MS = 60_000
BLOCK_DURATION_MS = 3_600_000  # 1 hour


class RateLimiter:

    def __init__(self, rate_limit: int = RATE_LIMIT, window_ms: int = WINDOW_MS,
                 block_duration_ms: int = BLOCK_DURATION_MS):
        self.rate_limit = rate_limit
        self.block_duration_ms = block_duration_ms
        self._requests = SlidingWindowCounter(window_ms)
        # address -> expiry (ms).  Present iff currently blocked.
        self._blocked: dict[str, int] = {}
        self._lock = threading.Lock()

    @property
    def window_ms(self) -> int:
        return self._requests.window_ms

    def check_request(self, address: str, now: int | None = None) -> bool:
        """Return True if the request is allowed, False if refused."""
        if now is None:
            now = now_ms()
        with self._lock:
            if self._is_blocked(address, now):
                return False

            recent = self._requests.recent(address, now)
            if len(recent) >= self.rate_limit:
                self._block(address, now)
                return False

            self._requests.add(address, now)
            return True

    def is_blocked(self, address: str, now: int | None = None) -> bool:
        if now is None:
            now = now_ms()
        with self._lock:
            return self._is_blocked(address, now)

    def blocked_until(self, address: str) -> int | None:
        with self._lock:
            return self._blocked.get(address)

    def sweep(self, now: int | None = None) -> tuple[int, int]:
        """Drop expired blocks and idle request logs.

        Returns (expired_blocks, dropped_logs).
        """
        if now is None:
            now = now_ms()
        with self._lock:
            expired = [a for a, until in self._blocked.items() if now >= until]
            for address in expired:
                self._unblock(address)
            dropped = self._requests.sweep(now)
            metrics.blocked_addresses.set(len(self._blocked))
        return len(expired), dropped

    def stats(self) -> dict:
        with self._lock:
            return {
                "blocked_addresses": len(self._blocked),
                "tracked_addresses": len(self._requests),
            }

    # -- internals (caller holds self._lock) ---------------------------------

    def _is_blocked(self, address: str, now: int) -> bool:
        until = self._blocked.get(address)
        if until is None:
            return False
        if now >= until:
            self._unblock(address)
            return False
        return True

    def _block(self, address: str, now: int) -> None:
        until = now + self.block_duration_ms
        self._blocked[address] = until
        metrics.blocks_total.inc()
        metrics.blocked_addresses.set(len(self._blocked))
        print(f"BLOCK  address={address}  until={until}  "
              f"limit={self.rate_limit}/{self.window_ms}ms")

    def _unblock(self, address: str) -> None:
        # Expiry clears membership and starts the address with a fresh window.
        del self._blocked[address]
        self._requests.reset(address)
