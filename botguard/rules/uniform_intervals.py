"""Uniform intervals — views arriving on a metronome.

Organic viewing is irregular.  A scripted viewer that reloads every N
milliseconds produces inter-arrival intervals that all sit within
``tolerance_ms`` of their mean.  Needs more than five views so a handful
of coincidentally even gaps does not fire.
"""

from botguard.rules import Rule


def _intervals(timestamps) -> list[int]:
    ordered = sorted(timestamps)
    return [b - a for a, b in zip(ordered, ordered[1:])]


class UniformIntervals(Rule):
    id = "uniform_intervals"
    name = "Uniform View Intervals"
    severity = "high"

    def __init__(self, tolerance_ms: int = 100):
        self.tolerance_ms = tolerance_ms

    def trigger(self, timestamps):
        if len(timestamps) <= 5:
            return False
        intervals = _intervals(timestamps)
        mean = sum(intervals) / len(intervals)
        return all(abs(i - mean) < self.tolerance_ms for i in intervals)

    def evidence(self, timestamps):
        intervals = _intervals(timestamps)
        if not intervals:
            return {}
        mean = sum(intervals) / len(intervals)
        return {
            "mean_interval_ms": round(mean, 1),
            "max_deviation_ms": round(max(abs(i - mean) for i in intervals), 1),
        }
