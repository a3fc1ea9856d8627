"""Application bootstrap for kubeintervals.

Wires components in dependency order and manages the asyncio lifecycle.
Startup order: config → logging → metrics → K8s client → topology
              → recorder/ledger/engine → event watcher

Shutdown stops components in reverse startup order.  Each component's stop
error is caught and logged independently.
"""

from __future__ import annotations

import asyncio
import signal
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from kubeintervals.config import load_config, parse_time_window
from kubeintervals.models.config import KubeIntervalsConfig
from kubeintervals.observability.logging import get_logger, setup_logging
from kubeintervals.pathology.topology import TopologyMode

if TYPE_CHECKING:
    import structlog

    from kubeintervals.collector.event_watcher import EventWatcher
    from kubeintervals.recorder.memory import InMemoryRecorder

_SHUTDOWN_GRACE_SECONDS = 15


class _ComponentError(Exception):
    """Raised when a mandatory component fails to start."""

    def __init__(self, component: str, cause: Exception) -> None:
        super().__init__(f"Component '{component}' failed to start: {cause}")
        self.component = component
        self.cause = cause


class KubeIntervalsApp:
    """Application root.  Owns every component and coordinates their lifecycle.

    ``stop()`` is safe to call on an app that was never started or has
    already stopped.
    """

    def __init__(self) -> None:
        self.config: KubeIntervalsConfig | None = None
        self.started_at = datetime.now(tz=UTC)
        self.topology = TopologyMode.UNSET
        self.recorder: InMemoryRecorder | None = None

        self._k8s_client: object | None = None
        self._watcher: EventWatcher | None = None

        self._running = False
        self._log: structlog.stdlib.BoundLogger | None = None

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start all components in dependency order.

        Raises _ComponentError if a mandatory component cannot start.
        """
        self.config = load_config()

        setup_logging(self.config.log.level)
        self._log = get_logger("app")
        self._log.info("kubeintervals starting", version=_kubeintervals_version())

        self._start_metrics()
        await self._start_k8s_client()
        await self._fetch_topology()
        await self._start_watcher()

        self._running = True
        self._log.info("kubeintervals started", topology=self.topology.value)

    def _start_metrics(self) -> None:
        """Expose Prometheus metrics when a port is configured.  Non-fatal."""
        assert self._log is not None
        assert self.config is not None
        if not self.config.metrics.port:
            return
        try:
            from prometheus_client import start_http_server

            start_http_server(self.config.metrics.port)
            self._log.info("metrics listener started", port=self.config.metrics.port)
        except OSError as exc:
            self._log.warning("metrics listener failed to start", port=self.config.metrics.port, error=str(exc))

    async def _start_k8s_client(self) -> None:
        """Initialise the kubernetes-asyncio client from in-cluster config or kubeconfig."""
        assert self._log is not None
        self._log.debug("starting k8s client")
        try:
            import kubernetes_asyncio.config as k8s_config

            try:
                k8s_config.load_incluster_config()
                self._log.info("k8s client configured from in-cluster service account")
            except k8s_config.ConfigException:
                await k8s_config.load_kube_config()
                self._log.info("k8s client configured from kubeconfig")

            from kubernetes_asyncio import client as k8s_client

            self._k8s_client = k8s_client.ApiClient()
        except Exception as exc:
            raise _ComponentError("k8s_client", exc) from exc

    async def _fetch_topology(self) -> None:
        """Read the control-plane topology once.  Failure keeps the UNSET default."""
        assert self._log is not None
        from kubernetes_asyncio import client as k8s_client

        from kubeintervals.pathology.topology import fetch_topology

        try:
            self.topology = await fetch_topology(k8s_client.CustomObjectsApi(self._k8s_client))
        except Exception as exc:
            self._log.error("could not fetch cluster infra info", error=str(exc))
            self.topology = TopologyMode.UNSET

    async def _start_watcher(self) -> None:
        """Build ledger, engine and recorder, then start the event watcher."""
        assert self._log is not None
        assert self.config is not None
        self._log.debug("starting event watcher")
        try:
            from kubernetes_asyncio import client as k8s_client

            from kubeintervals.collector.event_watcher import EventWatcher
            from kubeintervals.ledger.dedup import DedupLedger
            from kubeintervals.normalize.engine import IntervalEngine
            from kubeintervals.normalize.roles import NodeRoleResolver
            from kubeintervals.normalize.timewindow import StalenessFilter
            from kubeintervals.pathology.matcher import RuleSetOracle
            from kubeintervals.recorder.memory import InMemoryRecorder

            normalizer = self.config.normalizer
            core_v1 = k8s_client.CoreV1Api(self._k8s_client)
            engine = IntervalEngine(
                oracle=RuleSetOracle(duplicate_event_threshold=normalizer.duplicate_event_threshold),
                staleness=StalenessFilter.from_lookback(self.started_at, parse_time_window(normalizer.lookback)),
                topology=self.topology,
                role_resolver=NodeRoleResolver(core_v1, timeout_seconds=normalizer.node_lookup_timeout_seconds),
            )
            self.recorder = InMemoryRecorder()
            watcher = EventWatcher(
                core_v1,
                ledger=DedupLedger(),
                engine=engine,
                recorder=self.recorder,
                watch_timeout_seconds=self.config.watch.timeout_seconds,
            )
            await watcher.start()
            self._watcher = watcher
            self._log.info("event watcher started", lookback=normalizer.lookback)
        except Exception as exc:
            raise _ComponentError("watcher", exc) from exc

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def stop(self) -> None:
        """Stop the watcher, then close the API client."""
        if not self._running and self._log is None:
            return

        log = self._log or get_logger("app")
        log.info("kubeintervals shutting down")
        self._running = False

        if self._watcher is not None:
            try:
                await asyncio.wait_for(self._watcher.stop(), timeout=_SHUTDOWN_GRACE_SECONDS)
            except TimeoutError:
                log.warning("component stop timed out", component="watcher", timeout=_SHUTDOWN_GRACE_SECONDS)
            self._watcher = None

        await self._stop_k8s_client()
        if self.recorder is not None:
            log.info("kubeintervals stopped", intervals=len(self.recorder.intervals()))
        else:
            log.info("kubeintervals stopped")

    async def _stop_k8s_client(self) -> None:
        """Close the kubernetes-asyncio ApiClient connection pool."""
        if self._k8s_client is None:
            return
        log = self._log or get_logger("app")
        try:
            await self._k8s_client.close()  # type: ignore[attr-defined]
        except Exception as exc:
            log.debug("k8s client close raised (non-fatal)", error=str(exc))
        self._k8s_client = None


def _kubeintervals_version() -> str:
    from kubeintervals import __version__

    return __version__


# ---------------------------------------------------------------------------
# Async entrypoint
# ---------------------------------------------------------------------------


async def main() -> None:
    """Create the app, register OS signals, run until shutdown is requested."""
    app = KubeIntervalsApp()
    loop = asyncio.get_running_loop()
    shutdown = asyncio.Event()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, shutdown.set)

    try:
        await app.start()
        await shutdown.wait()
    except _ComponentError as exc:
        log = get_logger("app")
        log.critical(
            "fatal startup error",
            component=exc.component,
            error=str(exc.cause),
        )
        await app.stop()
        raise SystemExit(1) from exc
    finally:
        if app._running:
            await app.stop()


def run() -> None:
    """Console script entry point."""
    asyncio.run(main())
