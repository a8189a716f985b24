"""Abuse coordinator — composes the detectors against a platform collaborator.

Pure detection logic lives in the analyzers; this class owns their
lifecycles, routes inbound events to them, and turns verdicts into
platform actions (reject a comment, moderate an activity, file an abuse
report).

Failure policy: every call to the platform goes through ``_call``, which
enforces a timeout and converts any exception into a recorded
``CollaboratorFailure``.  Nothing raised by the platform reaches the
caller; a failed fetch skips the rest of that polling cycle.

Detectors fail open: malformed input is "not flagged".  The only way a
request is refused is the explicit rate-limit block path.
"""

import sys
import threading
from collections import deque
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from dataclasses import dataclass

from botguard import metrics
from botguard.behavior import BehaviorSequenceAnalyzer
from botguard.config import Settings
from botguard.platform import (
    Activity, Platform, REJECTED, REASON_BOTTING, REASON_ARTIFICIAL_TRAFFIC,
)
from botguard.rate_limiter import RateLimiter
from botguard.rules import sequence_rules, text_rules
from botguard.scheduler import PeriodicTask
from botguard.sliding_window import now_ms
from botguard.text_matcher import TextPatternMatcher
from botguard.view_patterns import ViewPatternAnalyzer

REPORT_COMMENT = "Suspicious view bot activity detected"

_FAILED = object()
_MAX_FAILURES_KEPT = 1000


@dataclass(frozen=True)
class CollaboratorFailure:
    operation: str
    target: str
    error: str
    timestamp: int


class AbuseCoordinator:

    def __init__(self, platform: Platform, settings: Settings | None = None, *,
                 rate_limiter: RateLimiter | None = None,
                 text_matcher: TextPatternMatcher | None = None,
                 behavior: BehaviorSequenceAnalyzer | None = None,
                 view_analyzer: ViewPatternAnalyzer | None = None):
        self.platform = platform
        self.settings = s = settings or Settings()

        # Explicit None checks: an empty analyzer has len() == 0.
        if rate_limiter is None:
            rate_limiter = RateLimiter(
                s.rate_limit, s.request_window_ms, s.block_duration_ms,
            )
        self.rate_limiter = rate_limiter
        if text_matcher is None:
            text_matcher = TextPatternMatcher(text_rules(s.spam_patterns, s.max_links))
        self.text_matcher = text_matcher
        if behavior is None:
            behavior = BehaviorSequenceAnalyzer(
                sequence_rules(burst_threshold_ms=s.burst_threshold_ms),
            )
        self.behavior = behavior
        if view_analyzer is None:
            view_analyzer = ViewPatternAnalyzer(
                s.view_threshold, s.view_pattern_window_ms, s.uniformity_tolerance_ms,
            )
        self.view_analyzer = view_analyzer

        self.failures: deque[CollaboratorFailure] = deque(maxlen=_MAX_FAILURES_KEPT)
        # item_id -> last sampled view count
        self._view_samples: dict[str, int] = {}
        self._samples_lock = threading.Lock()

        self._tasks: dict[str, PeriodicTask] = {}
        self._started = False
        self._executor: ThreadPoolExecutor | None = None
        self._executor_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Inbound events
    # ------------------------------------------------------------------

    def handle_request(self, address: str, now: int | None = None) -> bool:
        """False means reject the request upstream."""
        allowed = self.rate_limiter.check_request(address, now)
        metrics.requests_total.labels(verdict="allowed" if allowed else "blocked").inc()
        return allowed

    def handle_comment(self, comment_id: str, text: str) -> bool:
        """Classify a submitted comment; reject it on the platform if spam."""
        spam = self.text_matcher.is_spam_text(text)
        metrics.comments_total.labels(verdict="spam" if spam else "clean").inc()
        if spam:
            print(f"SPAM  comment={comment_id}  "
                  f"evidence={self.text_matcher.evidence(text)}")
            self._call("set_moderation_status", comment_id,
                       self.platform.set_moderation_status, comment_id, REJECTED)
        return spam

    def handle_view(self, item_id: str, viewer_id: str, now: int | None = None) -> bool:
        return self.view_analyzer.record_view(item_id, viewer_id, now)

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    def is_suspicious_activity(self, activity: Activity, fetched_at: int) -> bool:
        # Published less than burst_threshold_ms before the fetch (or in the
        # future): either a spoofed timestamp or actions too rapid to be human.
        if fetched_at - activity.published_at < self.settings.burst_threshold_ms:
            return True
        return (activity.type == "comment"
                and self.behavior.is_suspicious([activity.description]))

    def poll_activities(self, channel_id: str, now: int | None = None) -> list[str]:
        """Fetch recent activities and reject the suspicious comments.

        Returns the ids whose moderation status was set to rejected.
        """
        limit = self.settings.activity_fetch_limit
        raw = self._call("fetch_recent_activities", channel_id,
                         lambda: list(self.platform.fetch_recent_activities(channel_id, limit)))
        if raw is _FAILED:
            return []
        fetched_at = now if now is not None else now_ms()

        moderated = []
        for record in raw or []:
            try:
                activity = record if isinstance(record, Activity) else Activity.from_dict(record)
            except ValueError as e:
                self._record_failure("validate_activity", channel_id, e)
                continue

            if not self.is_suspicious_activity(activity, fetched_at):
                continue

            # Moderation status only exists for comments.
            if activity.type != "comment":
                print(f"SUSPICIOUS  activity={activity.id}  type={activity.type}  "
                      f"channel={channel_id}  (not moderated)")
                continue

            result = self._call("set_moderation_status", activity.id,
                                self.platform.set_moderation_status, activity.id, REJECTED)
            if result is _FAILED:
                break
            moderated.append(activity.id)
            metrics.activities_moderated_total.inc()
            print(f"REJECT  activity={activity.id}  type={activity.type}  "
                  f"channel={channel_id}")
        return moderated

    def sample_view_count(self, item_id: str) -> bool:
        """Take one view-count sample; report the item if views spiked.

        The first sample for an item only establishes the baseline.  Returns
        True if a spike was detected (whether or not the report succeeded).
        """
        count = self._call("fetch_view_count", item_id,
                           lambda: int(self.platform.fetch_view_count(item_id)))
        if count is _FAILED:
            return False

        with self._samples_lock:
            previous = self._view_samples.get(item_id)
            self._view_samples[item_id] = count

        if previous is None or count - previous <= self.settings.view_threshold:
            return False

        print(f"SPIKE  item={item_id}  views={previous}->{count}  "
              f"threshold={self.settings.view_threshold}")
        result = self._call("file_abuse_report", item_id,
                            self.platform.file_abuse_report, item_id,
                            REASON_BOTTING, REASON_ARTIFICIAL_TRAFFIC, REPORT_COMMENT)
        if result is not _FAILED:
            metrics.abuse_reports_total.inc()
        return True

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def monitor_channel(self, channel_id: str) -> None:
        self._add_task(PeriodicTask(
            f"poll-activities:{channel_id}",
            self.settings.poll_interval_ms / 1000,
            lambda: self.poll_activities(channel_id),
        ))

    def monitor_item(self, item_id: str) -> None:
        # First run immediately so the baseline exists one interval later.
        self._add_task(PeriodicTask(
            f"sample-views:{item_id}",
            self.settings.poll_interval_ms / 1000,
            lambda: self.sample_view_count(item_id),
            run_immediately=True,
        ))

    def run_maintenance(self, now: int | None = None) -> dict:
        if now is None:
            now = now_ms()
        expired, dropped_logs = self.rate_limiter.sweep(now)
        dropped_patterns = self.view_analyzer.sweep(now)
        return {
            "expired_blocks": expired,
            "dropped_request_logs": dropped_logs,
            "dropped_view_patterns": dropped_patterns,
        }

    def start(self) -> None:
        if self._started:
            return
        self._started = True
        self._tasks.setdefault("maintenance", PeriodicTask(
            "maintenance",
            self.settings.maintenance_interval_ms / 1000,
            self.run_maintenance,
        ))
        for task in self._tasks.values():
            task.start()

    def stop(self) -> None:
        """Stop every recurring task and release the call executor. Idempotent."""
        self._started = False
        for task in self._tasks.values():
            task.stop()
        with self._executor_lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=False, cancel_futures=True)

    @property
    def running(self) -> bool:
        return self._started

    def stats(self) -> dict:
        return {
            **self.rate_limiter.stats(),
            "view_patterns": len(self.view_analyzer),
            "monitored_items": len(self._view_samples),
            "tasks": sorted(self._tasks),
            "failures": len(self.failures),
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _add_task(self, task: PeriodicTask) -> None:
        previous = self._tasks.get(task.name)
        if previous is not None:
            previous.stop()
        self._tasks[task.name] = task
        if self._started:
            task.start()

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=4, thread_name_prefix="platform-call",
                )
            return self._executor

    def _call(self, operation: str, target: str, fn, *args):
        """Run one platform call under the timeout. Returns _FAILED on any error."""
        try:
            future = self._get_executor().submit(fn, *args)
            return future.result(timeout=self.settings.call_timeout_s)
        except FutureTimeout:
            future.cancel()
            self._record_failure(
                operation, target,
                TimeoutError(f"no response after {self.settings.call_timeout_s}s"),
            )
        except Exception as e:
            self._record_failure(operation, target, e)
        return _FAILED

    def _record_failure(self, operation: str, target: str, error: Exception) -> None:
        failure = CollaboratorFailure(operation, target, repr(error), now_ms())
        self.failures.append(failure)
        metrics.collaborator_failures_total.labels(operation=operation).inc()
        print(f"Platform call failed  op={operation}  target={target}  "
              f"error={failure.error}", file=sys.stderr)
