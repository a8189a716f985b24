"""Tests for the analyzers — text matcher, behavior sequences, view patterns."""

from unittest.mock import patch

import pytest

from botguard.behavior import BehaviorSequenceAnalyzer
from botguard.rules import text_rules
from botguard.text_matcher import TextPatternMatcher, SPAM, CLEAN
from botguard.view_patterns import ViewPatternAnalyzer, ViewPattern

T0 = 1_700_000_000_000


def _irregular(i):
    """Timestamps with intervals alternating 1300/1300/400 ms — never uniform."""
    return T0 + i * 1000 + (i % 3) * 300


# ---------------------------------------------------------------------------
# TextPatternMatcher
# ---------------------------------------------------------------------------

class TestTextPatternMatcher:
    def setup_method(self):
        self.matcher = TextPatternMatcher()

    def test_spam_comment(self):
        assert self.matcher.is_spam_text("Check out my channel! Sub4Sub!")
        assert self.matcher.classify("Check out my channel! Sub4Sub!") == SPAM

    def test_clean_comment(self):
        assert not self.matcher.is_spam_text("Great video, thanks!")
        assert self.matcher.classify("Great video, thanks!") == CLEAN

    def test_link_count_alone_is_spam(self):
        text = "sources: http://a.example http://b.example http://c.example"
        assert self.matcher.is_spam_text(text)

    @pytest.mark.parametrize("value", [None, 42, ["sub4sub"]])
    def test_non_string_is_clean(self, value):
        assert not self.matcher.is_spam_text(value)

    def test_empty_string_is_clean(self):
        assert self.matcher.classify("") == CLEAN

    def test_evidence_merges_rules(self):
        ev = self.matcher.evidence("sub4sub http://a http://b http://c")
        assert ev["fired_rules"] == ["spam_phrases", "excessive_links"]
        assert ev["link_count"] == 3
        assert ev["matched_patterns"] == ["sub4sub"]

    def test_configured_link_limit(self):
        matcher = TextPatternMatcher(text_rules(max_links=0))
        assert matcher.is_spam_text("see http://a.example")


# ---------------------------------------------------------------------------
# BehaviorSequenceAnalyzer
# ---------------------------------------------------------------------------

class TestBehaviorSequenceAnalyzer:
    def setup_method(self):
        self.analyzer = BehaviorSequenceAnalyzer()

    def test_eleven_identical_tokens(self):
        assert self.analyzer.is_suspicious(["click"] * 11)

    def test_ten_identical_tokens(self):
        assert not self.analyzer.is_suspicious(["click"] * 10)

    def test_timestamp_burst(self):
        seq = [str(T0 + i * 50) for i in range(6)]
        assert self.analyzer.is_suspicious(seq)
        assert self.analyzer.fired_rules(seq) == ["action_burst"]

    def test_single_comment_description(self):
        assert not self.analyzer.is_suspicious(["first!"])

    def test_empty_sequence(self):
        assert not self.analyzer.is_suspicious([])

    def test_accepts_any_iterable(self):
        assert self.analyzer.is_suspicious(iter(["a"] * 12))


# ---------------------------------------------------------------------------
# ViewPatternAnalyzer
# ---------------------------------------------------------------------------

class TestViewFrequency:
    def test_31st_view_is_flagged(self):
        analyzer = ViewPatternAnalyzer()
        results = [analyzer.record_view("vid", "1.2.3.4", _irregular(i)) for i in range(31)]
        assert not any(results[:30])
        assert results[30] is True

    def test_viewers_tracked_separately(self):
        analyzer = ViewPatternAnalyzer()
        for i in range(30):
            analyzer.record_view("vid", "a", _irregular(i))
        assert analyzer.record_view("vid", "b", _irregular(30)) is False

    def test_items_tracked_separately(self):
        analyzer = ViewPatternAnalyzer()
        for i in range(30):
            analyzer.record_view("vid1", "a", _irregular(i))
        assert analyzer.record_view("vid2", "a", _irregular(30)) is False

    def test_stale_views_pruned_after_verdict(self):
        analyzer = ViewPatternAnalyzer(window_ms=60_000)
        for i in range(29):
            analyzer.record_view("vid", "a", _irregular(i))
        assert analyzer.record_view("vid", "a", T0 + 200_000) is False
        assert analyzer.pattern("vid", "a").timestamps == [T0 + 200_000]

    def test_sweep_resets_idle_viewer(self):
        analyzer = ViewPatternAnalyzer(window_ms=60_000)
        for i in range(30):
            analyzer.record_view("vid", "a", _irregular(i))
        analyzer.sweep(T0 + 200_000)
        assert analyzer.record_view("vid", "a", T0 + 200_000) is False


class TestUniformViews:
    def test_metronome_viewer_flagged_on_sixth_view(self):
        analyzer = ViewPatternAnalyzer()
        results = [analyzer.record_view("vid", "bot", T0 + i * 500) for i in range(6)]
        assert results == [False] * 5 + [True]

    def test_metronome_keeps_flagging(self):
        analyzer = ViewPatternAnalyzer()
        results = [analyzer.record_view("vid", "bot", T0 + i * 500) for i in range(10)]
        assert all(results[5:])

    def test_irregular_viewer_not_flagged(self):
        analyzer = ViewPatternAnalyzer()
        offsets = [0, 700, 2900, 3100, 7000, 7400, 12000, 12900]
        results = [analyzer.record_view("vid", "human", T0 + o) for o in offsets]
        assert not any(results)


class TestPatternState:
    def test_session_count_is_lifetime_total(self):
        analyzer = ViewPatternAnalyzer(window_ms=10_000)
        for i in range(5):
            analyzer.record_view("vid", "a", T0 + i * 30_000)
        pattern = analyzer.pattern("vid", "a")
        assert pattern.session_count == 5
        assert pattern.timestamps == [T0 + 120_000]

    def test_verdict_uses_unpruned_sequence(self):
        """The view that pushes old entries out still sees them when judged."""
        analyzer = ViewPatternAnalyzer(window_ms=2_500)
        for i in range(5):
            analyzer.record_view("vid", "a", T0 + i * 500)
        # Sixth view at the same cadence: all six evaluated, then pruned.
        assert analyzer.record_view("vid", "a", T0 + 2_500) is True
        assert len(analyzer.pattern("vid", "a").timestamps) == 5

    def test_pattern_is_a_snapshot(self):
        analyzer = ViewPatternAnalyzer()
        analyzer.record_view("vid", "a", T0)
        snap = analyzer.pattern("vid", "a")
        snap.timestamps.append(0)
        assert analyzer.pattern("vid", "a").timestamps == [T0]

    def test_unknown_pattern(self):
        assert ViewPatternAnalyzer().pattern("vid", "nobody") is None

    def test_prune_is_idempotent(self):
        p = ViewPattern([T0, T0 + 1_000, T0 + 9_000])
        p.prune(T0 + 10_000, 5_000)
        once = list(p.timestamps)
        p.prune(T0 + 10_000, 5_000)
        assert p.timestamps == once == [T0 + 9_000]


class TestSweep:
    def test_sweep_drops_idle_viewers(self):
        analyzer = ViewPatternAnalyzer()
        analyzer.record_view("vid", "gone", T0)
        analyzer.record_view("vid", "here", T0 + 250_000)
        assert analyzer.sweep(T0 + 300_000) == 1
        assert len(analyzer) == 1
        assert analyzer.pattern("vid", "gone") is None

    def test_default_clock_for_views_and_sweep(self):
        analyzer = ViewPatternAnalyzer(window_ms=60_000)
        with patch("botguard.sliding_window.time") as mock_time:
            for i in range(6):
                mock_time.time.return_value = (T0 + i * 500) / 1000
                flagged = analyzer.record_view("vid", "bot")
            assert flagged is True
            assert analyzer.pattern("vid", "bot").timestamps == [T0 + i * 500 for i in range(6)]

            mock_time.time.return_value = (T0 + 70_000) / 1000
            assert analyzer.sweep() == 1
            assert len(analyzer) == 0


# ---------------------------------------------------------------------------
# Explicit rule lists are honoured, even when empty
# ---------------------------------------------------------------------------

class TestExplicitRules:
    def test_empty_text_rules_flag_nothing(self):
        matcher = TextPatternMatcher(rules=[])
        assert matcher.rules == []
        assert not matcher.is_spam_text("sub4sub http://a http://b http://c")

    def test_empty_sequence_rules_flag_nothing(self):
        analyzer = BehaviorSequenceAnalyzer(rules=[])
        assert not analyzer.is_suspicious(["click"] * 20)

    def test_empty_view_rules_flag_nothing(self):
        analyzer = ViewPatternAnalyzer(rules=[])
        results = [analyzer.record_view("vid", "bot", T0 + i * 500) for i in range(40)]
        assert not any(results)
