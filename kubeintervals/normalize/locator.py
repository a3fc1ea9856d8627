"""Locator strings for the object an event concerns."""

from __future__ import annotations

from typing import Any

# Only events reported by the per-node agent carry a meaningful host.
_NODE_AGENT_COMPONENT = "kubelet"


def locate(kind: str, name: str, namespace: str, source_host: str = "", source_component: str = "") -> str:
    """Build the locator for an involved object.

    Namespace and Node kinds are checked before namespace presence: both are
    cluster scoped and would otherwise get the generic ``<kind>/<name>`` form.
    """
    if kind == "Namespace":
        return f"ns/{name}"
    if kind == "Node":
        return f"node/{name}"

    locator = f"{kind.lower()}/{name}"
    if namespace:
        locator = f"ns/{namespace} {locator}"
    if source_host and source_component == _NODE_AGENT_COMPONENT:
        locator = f"{locator} node/{source_host}"
    return locator


def locate_event(event: Any) -> str:
    """Locator for a CoreV1Event."""
    involved = event.involved_object
    source = event.source
    return locate(
        kind=involved.kind or "",
        name=involved.name or "",
        namespace=involved.namespace or "",
        source_host=(source.host or "") if source is not None else "",
        source_component=(source.component or "") if source is not None else "",
    )


def parse_locator(locator: str) -> dict[str, str]:
    """Split ``key/value`` tokens of a locator into a mapping.

    >>> parse_locator("ns/default pod/web-1 node/worker-0")
    {'ns': 'default', 'pod': 'web-1', 'node': 'worker-0'}
    """
    keys: dict[str, str] = {}
    for token in locator.split():
        key, sep, value = token.partition("/")
        if sep:
            keys[key] = value
    return keys
