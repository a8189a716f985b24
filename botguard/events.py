"""Route inbound platform events to the coordinator.

Event shapes (JSON on the input topic):

    {"event_type": "request", "address": "203.0.113.7"}
    {"event_type": "comment", "comment_id": "c_1", "text": "..."}
    {"event_type": "view", "item_id": "v_1", "viewer_id": "203.0.113.7",
     "timestamp": 1700000000000}

``timestamp`` (ms) is optional everywhere; the engine clock is used when
it is missing.  Unknown event types are ignored.
"""

from botguard.coordinator import AbuseCoordinator

_REQUIRED = {
    "request": ("address",),
    "comment": ("comment_id", "text"),
    "view": ("item_id", "viewer_id"),
}


def dispatch(coordinator: AbuseCoordinator, event: dict) -> dict | None:
    """Feed one event, get back a verdict record if the event was refused or flagged.

    Raises KeyError for a known event type missing a required field, and
    ValueError for a key field that is not a string or a timestamp that is
    not a number.  Nothing reaches the windows until the event is valid.
    """
    event_type = event.get("event_type")
    required = _REQUIRED.get(event_type)
    if required is None:
        return None
    for name in required:
        if name not in event:
            raise KeyError(name)
        if name != "text" and not isinstance(event[name], str):
            raise ValueError(f"'{name}' must be a string, got {event[name]!r}")

    now = event.get("timestamp")
    if now is not None and (isinstance(now, bool) or not isinstance(now, (int, float))):
        raise ValueError(f"'timestamp' must be epoch milliseconds, got {now!r}")
    if event_type == "request":
        if coordinator.handle_request(event["address"], now):
            return None
        return {"event_type": event_type, "verdict": "blocked",
                "address": event["address"]}

    if event_type == "comment":
        if not coordinator.handle_comment(event["comment_id"], event["text"]):
            return None
        return {"event_type": event_type, "verdict": "spam",
                "comment_id": event["comment_id"]}

    if not coordinator.handle_view(event["item_id"], event["viewer_id"], now):
        return None
    return {"event_type": event_type, "verdict": "bot",
            "item_id": event["item_id"], "viewer_id": event["viewer_id"]}
