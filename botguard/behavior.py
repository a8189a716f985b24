"""Classifier over an ordered sequence of action tokens.

Flags a sequence when any sequence rule fires: a long run of one
identical token, or a burst of numeric-timestamp tokens spanning less than
a second.  Total over its input: a malformed token never raises, it just
fails to match.
"""

from botguard.rules import Rule, SEQUENCE_RULES


class BehaviorSequenceAnalyzer:

    def __init__(self, rules: list[Rule] | None = None):
        self.rules = SEQUENCE_RULES if rules is None else rules

    def is_suspicious(self, actions) -> bool:
        actions = list(actions)
        return any(rule.trigger(actions) for rule in self.rules)

    def fired_rules(self, actions) -> list[str]:
        actions = list(actions)
        return [rule.id for rule in self.rules if rule.trigger(actions)]
