"""Interval engine: annotate, classify and bound one Kubernetes event.

For every accepted event the engine decides which annotations the interval
message carries, which level it gets, where it starts and ends, and
whether it is flagged interesting or pathological.  The interval is handed
to the recorder only once it is fully built.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from typing import Any

import structlog

from kubeintervals.models.intervals import (
    AnnotationKey,
    Interval,
    IntervalBuilder,
    IntervalLevel,
    IntervalSource,
    MessageBuilder,
)
from kubeintervals.normalize.extractors import extract_container, extract_image_and_duration, format_duration
from kubeintervals.normalize.locator import locate_event
from kubeintervals.normalize.roles import NodeRoleResolver
from kubeintervals.normalize.timewindow import StalenessFilter, effective_start, event_timestamp
from kubeintervals.observability.metrics import events_dropped_stale_total
from kubeintervals.pathology.matcher import PathologyOracle
from kubeintervals.pathology.topology import TopologyMode
from kubeintervals.recorder.memory import RecorderWriter

_log = structlog.get_logger(component="normalize.engine")

_WARNING_TYPE = "Warning"
_POD_KIND = "Pod"
_NODE_KIND = "Node"
_SANDBOX_MARKER = "pod sandbox"
_OS_UPDATE_REASONS = frozenset({"OSUpdateStaged", "OSUpdateStarted"})

_DISPLAY_WIDTH = timedelta(seconds=1)


class EventReason(StrEnum):
    """Reasons that get reason-specific annotations."""

    KILLING = "Killing"
    PULLING = "Pulling"
    PULLED = "Pulled"
    OTHER = ""

    @classmethod
    def classify(cls, reason: str | None) -> EventReason:
        try:
            return cls(reason or "")
        except ValueError:
            return cls.OTHER


def widen_for_display(start: datetime) -> datetime:
    """End time for intervals that must stay visible on the timeline.

    Timeline rendering drops intervals whose start equals their end, so
    repeated and sandbox events get a nominal one second width.  The width is
    not a measured duration.
    """
    return start + _DISPLAY_WIDTH


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


def _annotate_killing(event: Any, message: MessageBuilder) -> MessageBuilder:
    if event.involved_object.kind != _POD_KIND:
        return message
    container, ok = extract_container(event.involved_object.field_path or "")
    if ok:
        message = message.with_annotation(AnnotationKey.CONTAINER, container)
    return message


def _annotate_image_pull(event: Any, message: MessageBuilder) -> MessageBuilder:
    if event.involved_object.kind != _POD_KIND:
        return message
    container, ok = extract_container(event.involved_object.field_path or "")
    if not ok:
        return message
    image, duration, found = extract_image_and_duration(event.message or "")
    if not found:
        return message
    message = message.with_annotation(AnnotationKey.CONTAINER, container)
    if duration is not None:
        message = message.with_annotation(AnnotationKey.DURATION, format_duration(duration))
    return message.with_annotation(AnnotationKey.IMAGE, image)


def _no_annotations(event: Any, message: MessageBuilder) -> MessageBuilder:
    return message


_REASON_HANDLERS: dict[EventReason, Callable[[Any, MessageBuilder], MessageBuilder]] = {
    EventReason.KILLING: _annotate_killing,
    EventReason.PULLING: _annotate_image_pull,
    EventReason.PULLED: _annotate_image_pull,
    EventReason.OTHER: _no_annotations,
}


class IntervalEngine:
    """Builds intervals from CoreV1Event objects.

    Args:
        oracle:        Pathology oracle deciding whether a pattern is known.
        staleness:     Filter holding the lookback horizon.
        topology:      Cluster topology passed through to the oracle.
        role_resolver: Optional node role lookup for events about Nodes.
        clock:         Source of "now" for events carrying no timestamp.
    """

    def __init__(
        self,
        oracle: PathologyOracle,
        staleness: StalenessFilter,
        topology: TopologyMode = TopologyMode.UNSET,
        role_resolver: NodeRoleResolver | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._oracle = oracle
        self._staleness = staleness
        self._topology = topology
        self._role_resolver = role_resolver
        self._clock = clock

    async def build_interval(self, event: Any) -> Interval | None:
        """Return the interval for ``event``, or None when it is stale."""
        involved = event.involved_object
        reason = event.reason or ""
        count = event.count or 0

        os_update = reason in _OS_UPDATE_REASONS
        if os_update:
            _log.info(
                "os_update_event_received",
                reason=reason,
                involved_object=involved.name,
                last_timestamp=_isoformat(event.last_timestamp),
            )

        message = MessageBuilder().human_message(event.message or "")
        if count > 1:
            message = message.with_annotation(AnnotationKey.COUNT, str(count))

        if involved.kind == _NODE_KIND and self._role_resolver is not None:
            roles = await self._role_resolver.resolve(involved.name or "")
            if roles is not None:
                message = message.with_annotation(AnnotationKey.ROLES, roles)

        if reason:
            message = message.reason(reason)

        message = _REASON_HANDLERS[EventReason.classify(reason)](event, message)

        level = IntervalLevel.WARNING if event.type == _WARNING_TYPE else IntervalLevel.INFO

        ts = event_timestamp(event)
        if self._staleness.is_stale(ts):
            events_dropped_stale_total.inc()
            log_stale = _log.info if os_update else _log.debug
            log_stale(
                "event_dropped_stale",
                reason=reason,
                involved_object=involved.name,
                timestamp=_isoformat(ts),
                horizon=self._staleness.horizon.isoformat(),
            )
            return None
        start = effective_start(event, self._clock())
        end = start

        locator = locate_event(event)
        interesting, _ = self._oracle.matches_any(locator, message.build(), self._topology)

        if count > 1:
            if interesting:
                message = message.with_annotation(AnnotationKey.INTERESTING, "true")
            if count > self._oracle.duplicate_event_threshold:
                message = message.with_annotation(AnnotationKey.PATHOLOGICAL, "true")
            end = widen_for_display(start)
        elif _SANDBOX_MARKER in (event.message or ""):
            message = message.with_annotation(AnnotationKey.INTERESTING, "true")
            end = widen_for_display(start)

        return IntervalBuilder(IntervalSource.KUBE_EVENT, level).locator(locator).message(message).build(start, end)

    async def process(self, event: Any, recorder: RecorderWriter) -> Interval | None:
        """Build the interval for ``event`` and add it to ``recorder``."""
        interval = await self.build_interval(event)
        if interval is None:
            return None
        recorder.add_intervals(interval)
        _log.debug(
            "interval_recorded",
            uid=event.metadata.uid,
            locator=interval.locator,
            message=interval.message.render(),
            level=interval.level.value,
            start=interval.start.isoformat(),
            end=interval.end.isoformat(),
        )
        return interval


def _isoformat(ts: datetime | None) -> str:
    return ts.isoformat() if ts is not None else ""
