"""Repeated actions — a long run of one identical action token.

Humans vary what they do; a client that sends the same action more than
ten times in a row is replaying a script.
"""

from botguard.rules import Rule


class RepeatedActions(Rule):
    id = "repeated_actions"
    name = "Repeated Identical Actions"
    severity = "high"

    def __init__(self, min_length: int = 10):
        self.min_length = min_length

    def trigger(self, actions):
        return len(actions) > self.min_length and len(set(actions)) == 1

    def evidence(self, actions):
        return {
            "sequence_length": len(actions),
            "distinct_actions": len(set(actions)),
        }
