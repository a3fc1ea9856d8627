"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class NormalizerConfig:
    """Event normalization configuration."""

    lookback: str = "15m"
    duplicate_event_threshold: int = 20
    node_lookup_timeout_seconds: int = 5


@dataclass
class WatchConfig:
    """Watch transport configuration."""

    timeout_seconds: int = 300


@dataclass
class MetricsConfig:
    """Prometheus exposition configuration. Port 0 disables the listener."""

    port: int = 0


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass
class KubeIntervalsConfig:
    """Top-level kubeintervals configuration."""

    normalizer: NormalizerConfig = field(default_factory=NormalizerConfig)
    watch: WatchConfig = field(default_factory=WatchConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)
    log: LogConfig = field(default_factory=LogConfig)
