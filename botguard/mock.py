"""Mock platform — deterministic in-memory stand-in for the remote service.

Lets the whole engine run end-to-end without API credentials: view counts
and activities are scripted, moderation calls and abuse reports are
recorded for inspection.  Failures can be injected per operation to
exercise the coordinator's fail-and-continue path.
"""

import threading
from collections import defaultdict


class MockPlatform:

    def __init__(self, activities=None, view_counts=None):
        # channel_id -> list of raw activity dicts
        self.activities: dict[str, list] = defaultdict(list, activities or {})
        # item_id -> queue of view counts; the last value repeats once drained
        self.view_counts: dict[str, list[int]] = {
            k: list(v) for k, v in (view_counts or {}).items()
        }
        self.moderated: list[tuple[str, str]] = []
        self.reports: list[dict] = []
        self.calls: list[str] = []
        # operation -> exception to raise on the next call(s)
        self.fail: dict[str, Exception] = {}
        self._lock = threading.Lock()

    def fetch_recent_activities(self, channel_id, limit):
        self._record("fetch_recent_activities")
        return list(self.activities[channel_id][:limit])

    def set_moderation_status(self, activity_id, status):
        self._record("set_moderation_status")
        with self._lock:
            self.moderated.append((activity_id, status))

    def fetch_view_count(self, item_id):
        self._record("fetch_view_count")
        with self._lock:
            counts = self.view_counts.get(item_id)
            if not counts:
                raise KeyError(f"unknown item {item_id}")
            return counts.pop(0) if len(counts) > 1 else counts[0]

    def file_abuse_report(self, item_id, reason_code, secondary_reason_code, comment):
        self._record("file_abuse_report")
        with self._lock:
            self.reports.append({
                "item_id": item_id,
                "reason_code": reason_code,
                "secondary_reason_code": secondary_reason_code,
                "comment": comment,
            })

    def _record(self, operation):
        with self._lock:
            self.calls.append(operation)
            error = self.fail.get(operation)
        if error is not None:
            raise error
