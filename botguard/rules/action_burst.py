"""Action burst — many actions packed into under a second.

Tokens are expected to carry millisecond timestamps as numeric strings.
The first and last token bound the sequence's span; more than five actions
inside ``threshold_ms`` is faster than a person clicks.  Tokens that do not
parse as integers make the rule a non-match rather than an error.
"""

from botguard.rules import Rule


def _span(actions) -> int | None:
    try:
        return int(actions[-1]) - int(actions[0])
    except (TypeError, ValueError):
        return None


class ActionBurst(Rule):
    id = "action_burst"
    name = "Action Burst"
    severity = "high"

    def __init__(self, threshold_ms: int = 1000):
        self.threshold_ms = threshold_ms

    def trigger(self, actions):
        if len(actions) <= 5:
            return False
        span = _span(actions)
        return span is not None and span < self.threshold_ms

    def evidence(self, actions):
        return {"span_ms": _span(actions) if actions else None}
