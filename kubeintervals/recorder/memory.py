"""In-memory recorder for observed resources and produced intervals."""

from __future__ import annotations

from typing import Protocol

from kubeintervals.models.intervals import Interval
from kubeintervals.observability.metrics import intervals_recorded_total


class RecorderWriter(Protocol):
    """Sink interface consumed by the event watcher and the interval engine."""

    def record_resource(self, kind: str, obj: object) -> None: ...

    def add_intervals(self, *intervals: Interval) -> None: ...


class InMemoryRecorder:
    """Append-only recorder.

    Not synchronized: it is written from the single watch task that owns it.
    Readers receive copies so later appends never alter a returned list.
    """

    def __init__(self) -> None:
        self._resources: list[tuple[str, object]] = []
        self._intervals: list[Interval] = []

    def record_resource(self, kind: str, obj: object) -> None:
        self._resources.append((kind, obj))

    def add_intervals(self, *intervals: Interval) -> None:
        for interval in intervals:
            intervals_recorded_total.labels(level=interval.level.value).inc()
        self._intervals.extend(intervals)

    def intervals(self) -> list[Interval]:
        return list(self._intervals)

    def resources(self, kind: str | None = None) -> list[object]:
        return [obj for k, obj in self._resources if kind is None or k == kind]
