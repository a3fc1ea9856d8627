"""Pathological event matchers and the rule-set oracle.

A matcher describes an event pattern that is known and expected, for
example a repeated probe failure during an upgrade.  Every condition a
matcher sets must hold for it to match; unset conditions are ignored.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Protocol

from kubeintervals.models.intervals import Message
from kubeintervals.normalize.locator import parse_locator
from kubeintervals.pathology.topology import TopologyMode

DUPLICATE_EVENT_THRESHOLD = 20


@dataclass(frozen=True)
class PathologicalEventMatcher:
    """Pattern for a known event.

    ``locator_key_regexes`` maps locator keys (``ns``, ``pod``, ``node``...)
    to patterns the corresponding value must match.  ``topology`` restricts
    the matcher to one cluster topology; ``None`` matches any.
    """

    name: str
    locator_key_regexes: Mapping[str, re.Pattern[str]] = field(default_factory=dict)
    message_reason_regex: re.Pattern[str] | None = None
    message_human_regex: re.Pattern[str] | None = None
    topology: TopologyMode | None = None

    def matches(self, locator: str, message: Message, topology: TopologyMode) -> bool:
        if self.topology is not None and self.topology != topology:
            return False
        if self.locator_key_regexes:
            keys = parse_locator(locator)
            for key, pattern in self.locator_key_regexes.items():
                if key not in keys or not pattern.search(keys[key]):
                    return False
        if self.message_reason_regex is not None and not self.message_reason_regex.search(message.reason):
            return False
        if self.message_human_regex is not None and not self.message_human_regex.search(message.human_message):
            return False
        return True


class PathologyOracle(Protocol):
    """Decision oracle consulted by the interval engine."""

    @property
    def duplicate_event_threshold(self) -> int: ...

    def matches_any(
        self, locator: str, message: Message, topology: TopologyMode
    ) -> tuple[bool, PathologicalEventMatcher | None]: ...


class RuleSetOracle:
    """Oracle over steady-state allowances plus upgrade-specific allowances.

    Both lists are consulted together; the first matching rule wins.
    """

    def __init__(
        self,
        steady_state: Iterable[PathologicalEventMatcher] = (),
        upgrade: Iterable[PathologicalEventMatcher] = (),
        duplicate_event_threshold: int = DUPLICATE_EVENT_THRESHOLD,
    ) -> None:
        if duplicate_event_threshold < 1:
            raise ValueError(f"duplicate_event_threshold must be >= 1, got {duplicate_event_threshold}")
        self._matchers: tuple[PathologicalEventMatcher, ...] = (*steady_state, *upgrade)
        self._threshold = duplicate_event_threshold

    @property
    def duplicate_event_threshold(self) -> int:
        return self._threshold

    @property
    def matchers(self) -> tuple[PathologicalEventMatcher, ...]:
        return self._matchers

    def matches_any(
        self, locator: str, message: Message, topology: TopologyMode
    ) -> tuple[bool, PathologicalEventMatcher | None]:
        for matcher in self._matchers:
            if matcher.matches(locator, message, topology):
                return True, matcher
        return False, None
