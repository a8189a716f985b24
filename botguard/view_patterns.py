"""View-bot detection over per-(item, viewer) view timestamps.

Every recorded view appends to the pattern for its (item, viewer) pair.
The verdict is computed from the timestamps as they stand, then the
pattern is pruned to the trailing window.  ``session_count`` is a lifetime
total kept for reporting; it never feeds the verdict and is never pruned.

State: dict[(item_id, viewer_id), ViewPattern], guarded by one lock.
"""

import threading
from dataclasses import dataclass, field

from botguard import metrics
from botguard.rules import Rule, view_rules
from botguard.sliding_window import now_ms

VIEW_THRESHOLD = 30
VIEW_PATTERN_WINDOW_MS = 300_000  # 5 minutes
UNIFORMITY_TOLERANCE_MS = 100


@dataclass
class ViewPattern:
    timestamps: list[int] = field(default_factory=list)
    session_count: int = 0

    def prune(self, now: int, window_ms: int) -> None:
        self.timestamps = [t for t in self.timestamps if now - t < window_ms]


class ViewPatternAnalyzer:

    def __init__(self, view_threshold: int = VIEW_THRESHOLD,
                 window_ms: int = VIEW_PATTERN_WINDOW_MS,
                 uniformity_tolerance_ms: int = UNIFORMITY_TOLERANCE_MS,
                 rules: list[Rule] | None = None):
        self.window_ms = window_ms
        if rules is None:
            rules = view_rules(view_threshold, uniformity_tolerance_ms)
        self.rules = rules
        self._patterns: dict[tuple[str, str], ViewPattern] = {}
        self._lock = threading.Lock()

    def record_view(self, item_id: str, viewer_id: str, now: int | None = None) -> bool:
        """Record one view. Returns True if the viewer looks like a bot."""
        if now is None:
            now = now_ms()
        key = (item_id, viewer_id)
        with self._lock:
            pattern = self._patterns.get(key)
            if pattern is None:
                pattern = self._patterns[key] = ViewPattern()
            pattern.timestamps.append(now)
            pattern.session_count += 1

            fired = [r for r in self.rules if r.trigger(pattern.timestamps)]
            if fired:
                evidence = {}
                for rule in fired:
                    evidence.update(rule.evidence(pattern.timestamps))

            pattern.prune(now, self.window_ms)

        if fired:
            metrics.view_flags_total.inc()
            print(f"FLAG  item={item_id}  viewer={viewer_id}  "
                  f"rules={','.join(r.id for r in fired)}  evidence={evidence}")
        return bool(fired)

    def pattern(self, item_id: str, viewer_id: str) -> ViewPattern | None:
        """Snapshot of the pattern for one (item, viewer) pair."""
        with self._lock:
            pattern = self._patterns.get((item_id, viewer_id))
            if pattern is None:
                return None
            return ViewPattern(list(pattern.timestamps), pattern.session_count)

    def sweep(self, now: int | None = None) -> int:
        """Prune every pattern and drop the empty ones. Returns keys dropped."""
        if now is None:
            now = now_ms()
        with self._lock:
            stale = []
            for key, pattern in self._patterns.items():
                pattern.prune(now, self.window_ms)
                if not pattern.timestamps:
                    stale.append(key)
            for key in stale:
                del self._patterns[key]
            return len(stale)

    def __len__(self) -> int:
        return len(self._patterns)
