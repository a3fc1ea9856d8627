"""Shared fixtures for kubeintervals integration tests.

Provides a ledger, engine and recorder wired the way the application wires
them, plus a scripted stand-in for the kubernetes-asyncio watch stream so
the full list → watch → dedup → interval pipeline runs without a cluster.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
from datetime import UTC, datetime, timedelta
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from kubernetes_asyncio.client import (
    CoreV1Event,
    CoreV1EventList,
    V1EventSource,
    V1ListMeta,
    V1ObjectMeta,
    V1ObjectReference,
)
from kubernetes_asyncio.client.exceptions import ApiException

from kubeintervals.ledger.dedup import DedupLedger
from kubeintervals.models.intervals import Interval
from kubeintervals.normalize.engine import IntervalEngine
from kubeintervals.normalize.roles import NodeRoleResolver
from kubeintervals.normalize.timewindow import StalenessFilter
from kubeintervals.pathology.matcher import RuleSetOracle
from kubeintervals.recorder.memory import InMemoryRecorder

# ---------------------------------------------------------------------------
# Timestamp helpers
# ---------------------------------------------------------------------------

STARTED_AT = datetime.now(UTC)
ONE_MIN_AGO = STARTED_AT - timedelta(minutes=1)
HOUR_AGO = STARTED_AT - timedelta(hours=1)


# ---------------------------------------------------------------------------
# Event factory helpers
# ---------------------------------------------------------------------------


def make_event(
    uid: str = "uid-1",
    resource_version: str = "100",
    reason: str = "Started",
    message: str = "Started container app",
    kind: str = "Pod",
    name: str = "web-1",
    namespace: str = "default",
    field_path: str | None = None,
    event_type: str = "Normal",
    count: int = 1,
    last_timestamp: datetime | None = None,
    host: str | None = None,
    component: str | None = None,
) -> CoreV1Event:
    """Create a CoreV1Event with sensible defaults for testing."""
    return CoreV1Event(
        metadata=V1ObjectMeta(
            name=f"{name}.{uid}",
            namespace=namespace or "default",
            uid=uid,
            resource_version=resource_version,
        ),
        involved_object=V1ObjectReference(kind=kind, name=name, namespace=namespace or None, field_path=field_path),
        reason=reason,
        message=message,
        type=event_type,
        count=count,
        last_timestamp=last_timestamp or ONE_MIN_AGO,
        source=V1EventSource(host=host, component=component),
    )


def make_event_list(*events: CoreV1Event, resource_version: str = "1000") -> CoreV1EventList:
    return CoreV1EventList(items=list(events), metadata=V1ListMeta(resource_version=resource_version))


# ---------------------------------------------------------------------------
# Scripted watch stream
# ---------------------------------------------------------------------------


class ScriptedWatch:
    """Stand-in for ``kubernetes_asyncio.watch.Watch``.

    Each instantiation serves the next batch of watch notifications from
    ``batches``.  An ERROR notification raises ``ApiException`` the way
    ``Watch.unmarshal_event`` does.  Once the script is exhausted the stream
    blocks until the watcher task is cancelled.
    """

    def __init__(self, batches: list[list[dict[str, Any]]]) -> None:
        self._batches = batches
        self.stream_calls: list[dict[str, Any]] = []

    def __call__(self) -> ScriptedWatch:
        return self

    def stream(self, func: Callable[..., Any], **kwargs: Any) -> ScriptedWatch:
        self.stream_calls.append(kwargs)
        return self

    async def __aenter__(self) -> AsyncIterator[dict[str, Any]]:
        return self._iterate()

    async def __aexit__(self, *exc_info: object) -> None:
        return None

    async def _iterate(self) -> AsyncIterator[dict[str, Any]]:
        if not self._batches:
            await asyncio.Event().wait()
        for notification in self._batches.pop(0):
            if notification["type"] == "ERROR":
                status = notification["raw_object"]
                raise ApiException(status=status["code"], reason=f"{status['reason']}: {status['message']}")
            yield notification


def notification(event_type: str, obj: Any, raw: dict[str, Any] | None = None) -> dict[str, Any]:
    return {"type": event_type, "object": obj, "raw_object": raw or {}}


async def wait_for_intervals(recorder: InMemoryRecorder, count: int, timeout: float = 5.0) -> list[Interval]:
    """Poll the recorder until it holds ``count`` intervals."""

    async def _poll() -> list[Interval]:
        while len(recorder.intervals()) < count:
            await asyncio.sleep(0.01)
        return recorder.intervals()

    return await asyncio.wait_for(_poll(), timeout=timeout)


# ---------------------------------------------------------------------------
# Component fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def recorder() -> InMemoryRecorder:
    return InMemoryRecorder()


@pytest.fixture
def ledger() -> DedupLedger:
    return DedupLedger()


@pytest.fixture
def core_v1() -> MagicMock:
    """CoreV1Api stand-in with list and node read calls."""
    api = MagicMock()
    api.list_event_for_all_namespaces = AsyncMock(return_value=make_event_list())
    api.read_node = AsyncMock(side_effect=Exception("node lookup not configured"))
    return api


@pytest.fixture
def engine(core_v1: MagicMock) -> IntervalEngine:
    return IntervalEngine(
        oracle=RuleSetOracle(),
        staleness=StalenessFilter.from_lookback(STARTED_AT, timedelta(minutes=15)),
        role_resolver=NodeRoleResolver(core_v1, timeout_seconds=1),
        clock=lambda: STARTED_AT,
    )
