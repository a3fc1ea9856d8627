"""Pattern extraction from event field paths and messages."""

from __future__ import annotations

import re

_CONTAINER_PREFIXES = ("spec.containers{", "spec.initContainers{")

# First quoted substring, optionally followed by " in <n>s" / " in <n>ms"
# at the very end of the message.
_RE_QUOTED_WITH_DURATION = re.compile(r'"([^"]+)"(?: in (\d+(?:\.\d+)?)(ms|s)$)?')


def extract_container(field_path: str) -> tuple[str, bool]:
    """Return the container name from ``spec.containers{name}`` style paths."""
    if not field_path.endswith("}"):
        return "", False
    trimmed = field_path[:-1]
    for prefix in _CONTAINER_PREFIXES:
        if trimmed.startswith(prefix):
            return trimmed[len(prefix) :], True
    return "", False


def extract_image_and_duration(message: str) -> tuple[str, float | None, bool]:
    """Return ``(image, duration_seconds, ok)`` from an image pull message.

    ``ok`` is False only when the message holds no quoted substring.  A quoted
    substring without a trailing duration clause yields ``duration=None``.
    """
    match = _RE_QUOTED_WITH_DURATION.search(message)
    if match is None:
        return "", None, False
    image, amount, unit = match.group(1), match.group(2), match.group(3)
    if amount is None:
        return image, None, True
    seconds = float(amount)
    if unit == "ms":
        seconds /= 1000.0
    return image, seconds, True


def format_duration(seconds: float) -> str:
    return f"{seconds:.3f}s"
