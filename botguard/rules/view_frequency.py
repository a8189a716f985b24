"""View frequency — too many views of one item from one viewer.

Fires when a viewer has more than ``threshold`` views of the same item
in the current pattern window (5 minutes by default).
"""

from botguard.rules import Rule


class ViewFrequency(Rule):
    id = "view_frequency"
    name = "Rapid Repeat Views"
    severity = "high"

    def __init__(self, threshold: int = 30):
        self.threshold = threshold

    def trigger(self, timestamps):
        return len(timestamps) > self.threshold

    def evidence(self, timestamps):
        span = max(timestamps) - min(timestamps) if len(timestamps) > 1 else 0
        return {"view_count": len(timestamps), "span_ms": span}
