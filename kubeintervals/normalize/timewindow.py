"""Effective event timestamps and the lookback staleness filter.

Event sources may replay events whose effective time is far older than
their delivery time (test harnesses are the usual culprit).  Without the
filter those replays would show up on the timeline as if they had just
happened.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any


def _coerce_dt(value: object) -> datetime | None:
    """Return a tz-aware UTC datetime, or None for anything that is not one."""
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def event_timestamp(event: Any) -> datetime | None:
    """Most authoritative timestamp of an event.

    Precedence: last seen, then first seen (``eventTime`` before
    ``firstTimestamp``), then the object's creation timestamp.  Returns None
    when every candidate is unset.
    """
    metadata = getattr(event, "metadata", None)
    candidates = (
        getattr(event, "last_timestamp", None),
        getattr(event, "event_time", None),
        getattr(event, "first_timestamp", None),
        getattr(metadata, "creation_timestamp", None),
    )
    for candidate in candidates:
        ts = _coerce_dt(candidate)
        if ts is not None:
            return ts
    return None


@dataclass(frozen=True)
class StalenessFilter:
    """Rejects timestamps strictly before a fixed horizon."""

    horizon: datetime

    @classmethod
    def from_lookback(cls, started_at: datetime, lookback: timedelta) -> StalenessFilter:
        started = _coerce_dt(started_at)
        if started is None:
            raise TypeError(f"started_at must be a datetime, got {type(started_at).__name__}")
        return cls(horizon=started - lookback)

    def is_stale(self, ts: datetime | None) -> bool:
        # An event without any timestamp is treated as current, never as ancient.
        if ts is None:
            return False
        return ts < self.horizon


def effective_start(event: Any, now: datetime) -> datetime:
    """Interval start for an event: its timestamp, or ``now`` when it has none."""
    ts = event_timestamp(event)
    return ts if ts is not None else now
