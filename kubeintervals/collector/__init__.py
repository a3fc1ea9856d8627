"""Collector package for kubeintervals.

Provides the Kubernetes watch-stream collector that feeds cluster events
into the interval engine.

Submodules
----------
watcher       -- BaseWatcher: list-then-watch transport, reconnect, back-off, 410 relist.
event_watcher -- EventWatcher: cluster-wide v1.Event dedup and interval recording.
"""

from kubeintervals.collector.event_watcher import EventWatcher
from kubeintervals.collector.watcher import BaseWatcher, WatchPhase

__all__ = ["BaseWatcher", "EventWatcher", "WatchPhase"]
