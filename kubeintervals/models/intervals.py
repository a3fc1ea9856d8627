"""Interval and message data structures.

An Interval is the unit handed to the recorder: a levelled record with a
locator, an annotated message and a [start, end] time range.  Intervals and
Messages are immutable once built; the builders return new instances on
every call so partially built values can be shared safely.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from types import MappingProxyType


class IntervalLevel(StrEnum):
    """Severity level of an interval."""

    INFO = "Info"
    WARNING = "Warning"


class IntervalSource(StrEnum):
    """Producer of an interval."""

    KUBE_EVENT = "KubeEvent"


class AnnotationKey(StrEnum):
    """Annotation keys attached to interval messages."""

    REASON = "reason"
    COUNT = "count"
    ROLES = "roles"
    CONTAINER = "container"
    IMAGE = "image"
    DURATION = "duration"
    INTERESTING = "interesting"
    PATHOLOGICAL = "pathological"


@dataclass(frozen=True)
class Message:
    """Annotation-bearing interval message.

    ``annotations`` keeps insertion order; ``render()`` emits them in that
    order followed by the human readable text.
    """

    reason: str = ""
    human_message: str = ""
    annotations: Mapping[AnnotationKey, str] = field(default_factory=dict)

    def annotation(self, key: AnnotationKey) -> str | None:
        return self.annotations.get(key)

    def render(self) -> str:
        parts = [f"{key}/{value}" for key, value in self.annotations.items()]
        if self.human_message:
            parts.append(self.human_message)
        return " ".join(parts)


class MessageBuilder:
    """Immutable fluent builder for Message."""

    __slots__ = ("_human_message", "_annotations")

    def __init__(
        self,
        human_message: str = "",
        annotations: tuple[tuple[AnnotationKey, str], ...] = (),
    ) -> None:
        self._human_message = human_message
        self._annotations = annotations

    def human_message(self, text: str) -> MessageBuilder:
        return MessageBuilder(text, self._annotations)

    def with_annotation(self, key: AnnotationKey, value: str) -> MessageBuilder:
        # Re-annotating keeps the original position and replaces the value.
        if any(k == key for k, _ in self._annotations):
            updated = tuple((k, value if k == key else v) for k, v in self._annotations)
        else:
            updated = (*self._annotations, (key, value))
        return MessageBuilder(self._human_message, updated)

    def reason(self, reason: str) -> MessageBuilder:
        return self.with_annotation(AnnotationKey.REASON, reason)

    def build(self) -> Message:
        annotations = dict(self._annotations)
        return Message(
            reason=annotations.get(AnnotationKey.REASON, ""),
            human_message=self._human_message,
            annotations=MappingProxyType(annotations),
        )


@dataclass(frozen=True)
class Interval:
    """A levelled, located, annotated time range.

    Invariant: ``end >= start``.
    """

    source: IntervalSource
    level: IntervalLevel
    locator: str
    message: Message
    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"interval end {self.end.isoformat()} precedes start {self.start.isoformat()}")

    @property
    def duration_seconds(self) -> float:
        return (self.end - self.start).total_seconds()


class IntervalBuilder:
    """Fluent builder mirroring MessageBuilder for Interval."""

    def __init__(self, source: IntervalSource, level: IntervalLevel) -> None:
        self._source = source
        self._level = level
        self._locator = ""
        self._message = Message()

    def locator(self, locator: str) -> IntervalBuilder:
        self._locator = locator
        return self

    def message(self, message: MessageBuilder | Message) -> IntervalBuilder:
        self._message = message.build() if isinstance(message, MessageBuilder) else message
        return self

    def build(self, start: datetime, end: datetime) -> Interval:
        return Interval(
            source=self._source,
            level=self._level,
            locator=self._locator,
            message=self._message,
            start=start,
            end=end,
        )
