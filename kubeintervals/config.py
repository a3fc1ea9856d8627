"""Configuration loading from environment variables."""

from __future__ import annotations

import os
import re
from datetime import timedelta

from kubeintervals.models.config import (
    KubeIntervalsConfig,
    LogConfig,
    MetricsConfig,
    NormalizerConfig,
    WatchConfig,
)

_RE_TIME_WINDOW = re.compile(r"^([0-9]+)(s|m|h)$")
_UNIT_SECONDS = {"s": 1, "m": 60, "h": 3600}


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"KUBEINTERVALS_{key}", default)


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    val = int(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _validate_time_window(value: str) -> str:
    if not _RE_TIME_WINDOW.match(value):
        raise ValueError(f"Invalid time window format: {value}")
    return value


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def parse_time_window(value: str) -> timedelta:
    """Convert a window string such as ``15m`` or ``2h`` into a timedelta."""
    match = _RE_TIME_WINDOW.match(value)
    if match is None:
        raise ValueError(f"Invalid time window format: {value}")
    return timedelta(seconds=int(match.group(1)) * _UNIT_SECONDS[match.group(2)])


def load_config() -> KubeIntervalsConfig:
    """Load configuration from KUBEINTERVALS_* environment variables."""
    return KubeIntervalsConfig(
        normalizer=NormalizerConfig(
            lookback=_validate_time_window(_env("LOOKBACK", "15m")),
            duplicate_event_threshold=_env_int("DUPLICATE_EVENT_THRESHOLD", 20, min_val=1),
            node_lookup_timeout_seconds=_env_int("NODE_LOOKUP_TIMEOUT", 5, min_val=1, max_val=60),
        ),
        watch=WatchConfig(
            timeout_seconds=_env_int("WATCH_TIMEOUT", 300, min_val=30, max_val=3600),
        ),
        metrics=MetricsConfig(
            port=_env_int("METRICS_PORT", 0, min_val=0, max_val=65535),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "info")),
        ),
    )
