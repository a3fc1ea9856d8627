"""Cluster-wide v1.Event watcher feeding the interval engine."""

from __future__ import annotations

from typing import Any

from kubernetes_asyncio.client import CoreV1Event

from kubeintervals.collector.watcher import BaseWatcher
from kubeintervals.ledger.dedup import DedupLedger
from kubeintervals.normalize.engine import IntervalEngine
from kubeintervals.observability.metrics import events_observed_total
from kubeintervals.recorder.memory import RecorderWriter

RESOURCE_KIND_EVENTS = "events"


class EventWatcher(BaseWatcher):
    """Dedups v1.Event deliveries and records them.

    Objects from the initial list are archived as resource snapshots only.
    Objects from ADDED/MODIFIED notifications are archived and turned into
    intervals.  Anything that is not a CoreV1Event is skipped.
    """

    def __init__(
        self,
        core_v1: Any,
        ledger: DedupLedger,
        engine: IntervalEngine,
        recorder: RecorderWriter,
        watch_timeout_seconds: int = 300,
    ) -> None:
        super().__init__(core_v1, name="events", watch_timeout_seconds=watch_timeout_seconds)
        self._ledger = ledger
        self._engine = engine
        self._recorder = recorder

    def _list_func(self) -> Any:
        return self._api.list_event_for_all_namespaces

    async def _on_replace(self, items: list[Any]) -> None:
        for obj in items:
            if not isinstance(obj, CoreV1Event):
                continue
            events_observed_total.labels(phase="list").inc()
            if self._ledger.should_process(obj.metadata.uid, obj.metadata.resource_version):
                self._recorder.record_resource(RESOURCE_KIND_EVENTS, obj)

    async def _on_add(self, obj: Any) -> None:
        await self._observe(obj, "add")

    async def _on_update(self, obj: Any) -> None:
        await self._observe(obj, "update")

    async def _observe(self, obj: Any, phase: str) -> None:
        if not isinstance(obj, CoreV1Event):
            return
        events_observed_total.labels(phase=phase).inc()
        if not self._ledger.should_process(obj.metadata.uid, obj.metadata.resource_version):
            return
        self._recorder.record_resource(RESOURCE_KIND_EVENTS, obj)
        await self._engine.process(obj, self._recorder)
