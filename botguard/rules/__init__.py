# Detection heuristics as small Python classes.
#
# Each rule owns one condition and its evidence summary.  The analyzers
# (text matcher, behavior analyzer, view-pattern analyzer) OR their rules
# together, so adding a heuristic is a new file plus one registry entry.


class Rule:
    """Base heuristic. Subclass and implement trigger()."""

    id: str
    name: str
    severity: str  # low | medium | high | critical

    def trigger(self, subject) -> bool:
        """Return True if *subject* (text, action list, timestamps) is abusive."""
        raise NotImplementedError

    def evidence(self, subject) -> dict:
        """Rule-specific statistics explaining the verdict, for reporting."""
        return {}


from botguard.rules.spam_phrases import SpamPhrases
from botguard.rules.excessive_links import ExcessiveLinks
from botguard.rules.repeated_actions import RepeatedActions
from botguard.rules.action_burst import ActionBurst
from botguard.rules.view_frequency import ViewFrequency
from botguard.rules.uniform_intervals import UniformIntervals


def text_rules(spam_patterns=None, max_links: int = 2) -> list[Rule]:
    return [SpamPhrases(spam_patterns), ExcessiveLinks(max_links)]


def sequence_rules(repeat_threshold: int = 10, burst_threshold_ms: int = 1000) -> list[Rule]:
    return [RepeatedActions(repeat_threshold), ActionBurst(burst_threshold_ms)]


def view_rules(view_threshold: int = 30, tolerance_ms: int = 100) -> list[Rule]:
    return [ViewFrequency(view_threshold), UniformIntervals(tolerance_ms)]


TEXT_RULES = text_rules()
SEQUENCE_RULES = sequence_rules()
