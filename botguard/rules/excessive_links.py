"""Excessive links — more than a couple of URLs in one comment."""

import re

from botguard.rules import Rule

_LINK = re.compile(r"https?://")


class ExcessiveLinks(Rule):
    id = "excessive_links"
    name = "Excessive Links"
    severity = "medium"

    def __init__(self, max_links: int = 2):
        self.max_links = max_links

    def trigger(self, text):
        return len(_LINK.findall(text)) > self.max_links

    def evidence(self, text):
        return {"link_count": len(_LINK.findall(text))}
