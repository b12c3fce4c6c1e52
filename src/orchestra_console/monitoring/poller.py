"""
orchestra_console.monitoring.poller

Periodic metrics refresh for the monitoring dashboard.

Responsibilities:
- Fetch overview + infra snapshots immediately and then on a fixed interval.
- Stop cleanly when the viewing screen is torn down.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from orchestra_console.gateway.client import ApiGatewayClient
from orchestra_console.gateway.errors import GatewayError, Unauthenticated
from orchestra_console.observability.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class MetricsSnapshot:
    metrics: list[dict[str, Any]] = field(default_factory=list)
    servers: list[dict[str, Any]] = field(default_factory=list)
    clusters: list[dict[str, Any]] = field(default_factory=list)
    applications: list[dict[str, Any]] = field(default_factory=list)


class MetricsPoller:
    """
    Owns one background task. A 401 during a poll has already ended the session
    (see `auth.session`), so the poller stops instead of polling a dead session.
    """

    def __init__(
        self,
        *,
        gateway: ApiGatewayClient,
        interval: float = 30.0,
        on_update: Callable[[MetricsSnapshot], None] | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._gateway = gateway
        self._interval = interval
        self._on_update = on_update
        self._task: asyncio.Task[None] | None = None

        self.latest: MetricsSnapshot | None = None
        self.last_error: str | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="metrics-poller")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def poll_once(self) -> MetricsSnapshot:
        overview, infra = await asyncio.gather(
            self._gateway.monitoring_overview(),
            self._gateway.monitoring_infra(),
        )
        overview = overview or {}
        infra = infra or {}
        snapshot = MetricsSnapshot(
            metrics=list(overview.get("metrics") or []),
            servers=list(infra.get("servers") or []),
            clusters=list(infra.get("clusters") or []),
            applications=list(infra.get("applications") or []),
        )
        self.latest = snapshot
        self.last_error = None
        if self._on_update is not None:
            self._on_update(snapshot)
        return snapshot

    async def _run(self) -> None:
        while True:
            try:
                await self.poll_once()
            except Unauthenticated:
                log.info("metrics_poller_stopped", reason="unauthenticated")
                return
            except GatewayError as e:
                # A failed poll keeps the previous snapshot; the next tick retries.
                self.last_error = e.message
                log.warning("metrics_poll_failed", error=e.message)
            except Exception as e:
                # Malformed payload or a failing `on_update`; the next tick retries.
                self.last_error = str(e) or type(e).__name__
                log.exception("metrics_poll_crashed")
            await asyncio.sleep(self._interval)
