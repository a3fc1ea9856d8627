"""Identity to resource-version ledger gating event processing."""

from __future__ import annotations

import structlog

from kubeintervals.observability.metrics import events_deduplicated_total

_log = structlog.get_logger(component="ledger.dedup")


class DedupLedger:
    """Records the last processed version stamp per event identity.

    An identity is processed again only when its version differs from the
    recorded one; an identity that was never seen is always processed.
    Entries are never evicted, so memory grows with the number of distinct
    identities observed during the process lifetime.

    Not synchronized.  Each watched stream owns its own ledger and calls it
    from a single task.
    """

    def __init__(self) -> None:
        # uid -> last processed resourceVersion
        self._versions: dict[str, str] = {}

    def should_process(self, identity: str, version: str) -> bool:
        """Return True and record ``version`` if it differs from the last one seen."""
        if identity in self._versions and self._versions[identity] == version:
            events_deduplicated_total.inc()
            _log.debug("event_deduplicated", uid=identity, resource_version=version)
            return False
        self._versions[identity] = version
        return True

    def get(self, identity: str) -> str | None:
        return self._versions.get(identity)

    def __len__(self) -> int:
        return len(self._versions)

    def __contains__(self, identity: object) -> bool:
        return identity in self._versions
