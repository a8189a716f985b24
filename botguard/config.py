"""Engine settings, with optional overrides from a YAML file.

Every threshold has a fixed default.  A YAML file may override any subset
of them; unknown keys and non-positive numbers are rejected at load time so
a typo cannot silently fall back to the default.

Example ``botguard.yml``::

    rate_limit: 200
    block_duration_ms: 600000
    spam_patterns:
      - "check.+my.+channel"
      - "free.+gift.+card"
"""

from dataclasses import dataclass, field, fields, replace
from pathlib import Path

import yaml

from botguard.rules.spam_phrases import DEFAULT_PATTERNS


@dataclass(frozen=True)
class Settings:
    rate_limit: int = 100
    request_window_ms: int = 60_000
    block_duration_ms: int = 3_600_000
    view_threshold: int = 30
    view_pattern_window_ms: int = 300_000
    poll_interval_ms: int = 60_000
    maintenance_interval_ms: int = 300_000
    uniformity_tolerance_ms: int = 100
    burst_threshold_ms: int = 1000
    max_links: int = 2
    activity_fetch_limit: int = 50
    call_timeout_s: float = 10.0
    spam_patterns: tuple = field(default=DEFAULT_PATTERNS)


_FIELDS = {f.name for f in fields(Settings)}


def load_settings(path: str | Path) -> Settings:
    """Parse *path* and return Settings with its values applied over the defaults."""
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")
    with open(path) as f:
        raw = yaml.safe_load(f) or {}
    return _validate(path.name, raw)


def override(settings: Settings, **values) -> Settings:
    """Apply non-None keyword overrides (e.g. from CLI flags)."""
    values = {k: v for k, v in values.items() if v is not None}
    return _validate("overrides", values, base=settings)


def _validate(source: str, raw, base: Settings | None = None) -> Settings:
    if not isinstance(raw, dict):
        raise ValueError(f"{source}: top level must be a mapping")

    unknown = sorted(set(raw) - _FIELDS)
    if unknown:
        raise ValueError(f"{source}: unknown setting(s) {', '.join(unknown)}")

    values = {}
    for name, value in raw.items():
        if name == "spam_patterns":
            if (not isinstance(value, list) or not value
                    or not all(isinstance(p, str) and p for p in value)):
                raise ValueError(f"{source}: spam_patterns must be a non-empty list of strings")
            values[name] = tuple(value)
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"{source}: '{name}' must be a number")
        if value <= 0:
            raise ValueError(f"{source}: '{name}' must be positive")
        values[name] = value

    return replace(base or Settings(), **values)
