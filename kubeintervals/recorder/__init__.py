"""Write-only sinks for resource snapshots and intervals.

Submodules:
    memory -- RecorderWriter protocol and the in-process InMemoryRecorder.
"""

from kubeintervals.recorder.memory import InMemoryRecorder, RecorderWriter

__all__ = ["InMemoryRecorder", "RecorderWriter"]
