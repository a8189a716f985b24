"""Spam phrases — self-promotion and reciprocal-subscription solicitation.

Matches phrases like "check out my channel" or "sub4sub" anywhere in the
text, case-insensitive, with arbitrary filler between the tokens.
"""

import re

from botguard.rules import Rule

DEFAULT_PATTERNS = (
    r"check.+my.+channel",
    r"subscribe.+back",
    r"sub4sub",
    r"follow.+me",
    r"want.+free.+subscribers",
)


class SpamPhrases(Rule):
    id = "spam_phrases"
    name = "Spam Phrase"
    severity = "medium"

    def __init__(self, patterns=None):
        self.patterns = tuple(patterns or DEFAULT_PATTERNS)
        self._compiled = [re.compile(p, re.IGNORECASE) for p in self.patterns]

    def trigger(self, text):
        return any(p.search(text) for p in self._compiled)

    def evidence(self, text):
        return {
            "matched_patterns": [p.pattern for p in self._compiled if p.search(text)],
        }
