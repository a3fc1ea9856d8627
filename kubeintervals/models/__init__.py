"""Core data structures for kubeintervals."""

from kubeintervals.models.config import KubeIntervalsConfig
from kubeintervals.models.intervals import (
    AnnotationKey,
    Interval,
    IntervalBuilder,
    IntervalLevel,
    IntervalSource,
    Message,
    MessageBuilder,
)

__all__ = [
    "AnnotationKey",
    "Interval",
    "IntervalBuilder",
    "IntervalLevel",
    "IntervalSource",
    "KubeIntervalsConfig",
    "Message",
    "MessageBuilder",
]
