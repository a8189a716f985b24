"""Spam classifier for free-text content such as comments.

Stateless: the verdict is the logical OR of every text rule.  Anything
that is not a string is treated as clean.
"""

from botguard.rules import Rule, TEXT_RULES

SPAM = "spam"
CLEAN = "clean"


class TextPatternMatcher:

    def __init__(self, rules: list[Rule] | None = None):
        self.rules = TEXT_RULES if rules is None else rules

    def is_spam_text(self, text: str) -> bool:
        if not isinstance(text, str):
            return False
        return any(rule.trigger(text) for rule in self.rules)

    def classify(self, text: str) -> str:
        return SPAM if self.is_spam_text(text) else CLEAN

    def evidence(self, text: str) -> dict:
        """Merged evidence from all rules plus the ids of the ones that fired."""
        if not isinstance(text, str):
            return {"fired_rules": []}
        summary = {"fired_rules": [r.id for r in self.rules if r.trigger(text)]}
        for rule in self.rules:
            summary.update(rule.evidence(text))
        return summary
