"""Node role resolution for events about Node objects."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any

import structlog

from kubeintervals.observability.metrics import node_role_lookup_failures_total

_log = structlog.get_logger(component="normalize.roles")

_ROLE_LABEL = "node-role.kubernetes.io"


def node_roles(labels: Mapping[str, str] | None) -> str:
    """Sorted, comma-joined roles from ``node-role.kubernetes.io/<role>`` labels."""
    roles = [label[len(_ROLE_LABEL) + 1 :] for label in (labels or {}) if label.startswith(_ROLE_LABEL)]
    return ",".join(sorted(roles))


class NodeRoleResolver:
    """Looks up node labels with a bounded per-call timeout.

    Any failure (not found, API error, timeout) yields None so the caller
    simply omits the annotation.
    """

    def __init__(self, core_v1: Any, timeout_seconds: float = 5.0) -> None:
        self._core_v1 = core_v1
        self._timeout = timeout_seconds

    async def resolve(self, node_name: str) -> str | None:
        if not node_name:
            return None
        try:
            node = await asyncio.wait_for(self._core_v1.read_node(node_name), timeout=self._timeout)
        except TimeoutError:
            node_role_lookup_failures_total.inc()
            _log.warning("node_role_lookup_timeout", node=node_name, timeout=self._timeout)
            return None
        except Exception as exc:
            node_role_lookup_failures_total.inc()
            _log.debug("node_role_lookup_failed", node=node_name, error=str(exc))
            return None
        metadata = getattr(node, "metadata", None)
        return node_roles(getattr(metadata, "labels", None))
