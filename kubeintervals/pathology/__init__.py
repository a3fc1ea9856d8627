"""Pathology oracle interface for kubeintervals.

The oracle decides whether an event pattern is known/expected.  Rule
content is supplied by the caller; this package only defines how rules are
matched and how the cluster topology they depend on is discovered.

Submodules:
    matcher  -- PathologicalEventMatcher, PathologyOracle, RuleSetOracle.
    topology -- TopologyMode and fetch_topology().
"""

from kubeintervals.pathology.matcher import (
    DUPLICATE_EVENT_THRESHOLD,
    PathologicalEventMatcher,
    PathologyOracle,
    RuleSetOracle,
)
from kubeintervals.pathology.topology import TopologyMode, fetch_topology

__all__ = [
    "DUPLICATE_EVENT_THRESHOLD",
    "PathologicalEventMatcher",
    "PathologyOracle",
    "RuleSetOracle",
    "TopologyMode",
    "fetch_topology",
]
