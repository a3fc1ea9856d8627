"""List-then-watch transport shared by collectors.

A watcher performs one initial list, hands the snapshot to ``_on_replace``
and then streams ADDED/MODIFIED notifications to ``_on_add`` /
``_on_update`` one at a time, inside a single asyncio task.  DELETED
notifications are not forwarded.  There is no periodic resync: the watcher
lists again only when the API server reports the resource version as
expired (410 Gone).  When the server closes a watch normally it is reopened
from the last seen resource version, after a back-off delay when it
closed quickly without delivering anything.  ERROR lines in the stream
reach the loop as ``ApiException`` raised by ``Watch`` itself.
"""

from __future__ import annotations

import asyncio
import contextlib
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import Any

import structlog
from kubernetes_asyncio import watch
from kubernetes_asyncio.client.exceptions import ApiException

from kubeintervals.observability.metrics import watch_restarts_total

_BACKOFF_MIN_S = 1.0
_BACKOFF_MAX_S = 60.0


class WatchPhase(StrEnum):
    """Lifecycle phase of a watcher."""

    LISTING = "listing"
    WATCHING = "watching"


def _extract_rv(obj: Any, raw: dict[str, Any]) -> str:
    """Resource version from a deserialized object, falling back to the raw dict."""
    metadata = getattr(obj, "metadata", None)
    rv = getattr(metadata, "resource_version", None)
    if rv:
        return str(rv)
    raw_meta = raw.get("metadata") if isinstance(raw, dict) else None
    if isinstance(raw_meta, dict):
        return str(raw_meta.get("resourceVersion", "") or "")
    return ""


class BaseWatcher(ABC):
    """Abstract list/watch loop running as one background task."""

    def __init__(self, api: Any, name: str, watch_timeout_seconds: int = 300) -> None:
        self._api = api
        self._name = name
        self._watch_timeout_seconds = watch_timeout_seconds
        self._log = structlog.get_logger(component=f"collector.{name}")

        self._running = False
        self._task: asyncio.Task[None] | None = None
        self._phase = WatchPhase.LISTING
        self._needs_list = True
        self._resource_version = ""

        self._backoff_s = _BACKOFF_MIN_S
        self._consecutive_failures = 0

    # ------------------------------------------------------------------
    # Subclass contract
    # ------------------------------------------------------------------

    @abstractmethod
    def _list_func(self) -> Callable[..., Awaitable[Any]]:
        """API list function used for both the initial list and the watch."""

    @abstractmethod
    async def _on_replace(self, items: list[Any]) -> None:
        """Handle the full snapshot returned by a list call."""

    @abstractmethod
    async def _on_add(self, obj: Any) -> None:
        """Handle an ADDED notification."""

    @abstractmethod
    async def _on_update(self, obj: Any) -> None:
        """Handle a MODIFIED notification."""

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def phase(self) -> WatchPhase:
        return self._phase

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the background task.  A second call while running is a no-op."""
        if self._task is not None and not self._task.done():
            return
        self._running = True
        self._task = asyncio.create_task(self._run(), name=f"watcher-{self._name}")
        self._log.info("watcher_started")

    async def stop(self) -> None:
        """Cancel the background task and wait for it to exit."""
        self._running = False
        task = self._task
        if task is None:
            return
        if not task.done():
            task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        self._log.info("watcher_stopped")

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        while self._running:
            try:
                if self._needs_list:
                    await self._list()
                opened_at = loop.time()
                received = await self._watch()
                watch_restarts_total.labels(reason="closed").inc()
                # Empty streams closing inside the back-off window wait before reopening.
                if received == 0 and loop.time() - opened_at < self._backoff_s:
                    await self._backoff("closed")
                else:
                    self._reset_backoff()
            except asyncio.CancelledError:
                raise
            except ApiException as exc:
                await self._handle_api_exception(exc)
            except Exception as exc:
                self._consecutive_failures += 1
                self._log.warning(
                    "watch_error",
                    error=str(exc),
                    consecutive_failures=self._consecutive_failures,
                )
                watch_restarts_total.labels(reason="error").inc()
                await self._backoff("error")

    # ------------------------------------------------------------------
    # List / watch
    # ------------------------------------------------------------------

    async def _list(self) -> None:
        self._phase = WatchPhase.LISTING
        result = await self._list_func()()
        metadata = getattr(result, "metadata", None)
        self._resource_version = str(getattr(metadata, "resource_version", "") or "")
        items = list(getattr(result, "items", None) or [])
        self._log.info("list_completed", items=len(items), resource_version=self._resource_version)
        await self._on_replace(items)
        self._needs_list = False
        self._phase = WatchPhase.WATCHING

    async def _watch(self) -> int:
        """Stream one watch until the server closes it.  Returns the notification count."""
        w = watch.Watch()
        kwargs: dict[str, Any] = {"timeout_seconds": self._watch_timeout_seconds}
        if self._resource_version:
            kwargs["resource_version"] = self._resource_version
        received = 0
        async with w.stream(self._list_func(), **kwargs) as stream:
            async for event in stream:
                received += 1
                await self._dispatch(event)
        return received

    async def _dispatch(self, event: dict[str, Any]) -> None:
        event_type = event.get("type", "")
        obj = event.get("object")
        raw = event.get("raw_object") or {}

        rv = _extract_rv(obj, raw)
        if rv:
            self._resource_version = rv

        if event_type == "ADDED":
            await self._on_add(obj)
        elif event_type == "MODIFIED":
            await self._on_update(obj)
        # DELETED and BOOKMARK only advance the resource version.
        self._reset_backoff()

    # ------------------------------------------------------------------
    # Error handling
    # ------------------------------------------------------------------

    async def _handle_api_exception(self, exc: ApiException) -> None:
        if exc.status == 410:
            self._log.info("watch_expired_relisting", resource_version=self._resource_version)
            watch_restarts_total.labels(reason="410").inc()
            self._resource_version = ""
            self._needs_list = True
            return
        self._consecutive_failures += 1
        self._log.warning(
            "watch_api_error",
            status=exc.status,
            reason=exc.reason,
            consecutive_failures=self._consecutive_failures,
        )
        watch_restarts_total.labels(reason=str(exc.status)).inc()
        await self._backoff(f"api_{exc.status}")

    async def _backoff(self, reason: str) -> None:
        delay = self._backoff_s
        self._log.debug("watch_backoff", reason=reason, delay_s=delay)
        await asyncio.sleep(delay)
        self._backoff_s = min(self._backoff_s * 2, _BACKOFF_MAX_S)

    def _reset_backoff(self) -> None:
        self._backoff_s = _BACKOFF_MIN_S
        self._consecutive_failures = 0
