"""Prometheus metrics for the abuse-detection engine.

Each Counter/Gauge below registers itself in the global REGISTRY on
import.  ``main.py --metrics-port`` exposes them with start_http_server();
without it they are simply never scraped.
"""

from prometheus_client import Counter, Gauge

# ---------------------------------------------------------------------------
# Rate limiting
# ---------------------------------------------------------------------------
requests_total = Counter(
    "bg_requests_total",
    "Inbound requests checked by the rate limiter",
    ["verdict"],
)
blocks_total = Counter(
    "bg_blocks_total",
    "Addresses added to the blocklist",
)
blocked_addresses = Gauge(
    "bg_blocked_addresses",
    "Addresses currently on the blocklist",
)

# ---------------------------------------------------------------------------
# Content checks
# ---------------------------------------------------------------------------
comments_total = Counter(
    "bg_comments_total",
    "Comments classified by the text matcher",
    ["verdict"],
)
view_flags_total = Counter(
    "bg_view_flags_total",
    "Views flagged as bot-like",
)

# ---------------------------------------------------------------------------
# Moderation actions
# ---------------------------------------------------------------------------
activities_moderated_total = Counter(
    "bg_activities_moderated_total",
    "Activities whose moderation status was set to rejected",
)
abuse_reports_total = Counter(
    "bg_abuse_reports_total",
    "Abuse reports filed for suspicious view spikes",
)
collaborator_failures_total = Counter(
    "bg_collaborator_failures_total",
    "Failed or timed-out calls to the platform collaborator",
    ["operation"],
)
