"""Dedup Ledger for kubeintervals.

Remembers the last processed resource version of every event identity so
repeated watch deliveries of an unchanged event are processed once.

Submodules:
    dedup -- DedupLedger keyed by event UID.
"""

from kubeintervals.ledger.dedup import DedupLedger

__all__ = ["DedupLedger"]
