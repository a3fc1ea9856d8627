"""Prometheus counters for the event normalization pipeline.

All metrics live in the default registry so ``start_http_server`` in the
bootstrap exposes them without extra wiring.
"""

from __future__ import annotations

from prometheus_client import Counter

events_observed_total = Counter(
    "kubeintervals_events_observed_total",
    "Event objects delivered by the watch transport, by delivery phase.",
    ["phase"],
)

events_deduplicated_total = Counter(
    "kubeintervals_events_deduplicated_total",
    "Event deliveries skipped because their resource version was already processed.",
)

events_dropped_stale_total = Counter(
    "kubeintervals_events_dropped_stale_total",
    "Events dropped because their effective timestamp predates the lookback horizon.",
)

intervals_recorded_total = Counter(
    "kubeintervals_intervals_recorded_total",
    "Intervals handed to the recorder, by level.",
    ["level"],
)

node_role_lookup_failures_total = Counter(
    "kubeintervals_node_role_lookup_failures_total",
    "Node reads that failed or timed out while resolving role annotations.",
)

watch_restarts_total = Counter(
    "kubeintervals_watch_restarts_total",
    "Watch re-establishments, by reason.",
    ["reason"],
)
