"""Cluster control-plane topology discovery."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

_INFRA_GROUP = "config.openshift.io"
_INFRA_VERSION = "v1"
_INFRA_PLURAL = "infrastructures"
_INFRA_NAME = "cluster"


class TopologyMode(StrEnum):
    """Control-plane redundancy shape."""

    UNSET = ""
    HIGHLY_AVAILABLE = "HighlyAvailable"
    SINGLE_REPLICA = "SingleReplica"
    EXTERNAL = "External"


async def fetch_topology(custom_api: Any) -> TopologyMode:
    """Read ``status.controlPlaneTopology`` from the cluster Infrastructure object.

    Raises whatever the API client raises; the caller decides whether the
    failure is fatal.  Unknown values map to ``TopologyMode.UNSET``.
    """
    infra = await custom_api.get_cluster_custom_object(_INFRA_GROUP, _INFRA_VERSION, _INFRA_PLURAL, _INFRA_NAME)
    status = infra.get("status", {}) if isinstance(infra, dict) else {}
    value = str(status.get("controlPlaneTopology", "")) if isinstance(status, dict) else ""
    try:
        return TopologyMode(value)
    except ValueError:
        return TopologyMode.UNSET
