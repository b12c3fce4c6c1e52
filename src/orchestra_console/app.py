"""
orchestra_console.app

Composition root for the console core.

Responsibilities:
- Build the shared infrastructure (HTTP client, storage engine, session context).
- Wire the gateway, session manager, wizard and poller together.
- Dispose resources on shutdown.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx
from sqlalchemy.ext.asyncio import AsyncEngine

from orchestra_console.auth.context import SessionContext
from orchestra_console.auth.session import Navigator, SessionManager
from orchestra_console.auth.store import CredentialStore, SqlCredentialStore
from orchestra_console.deployments.wizard import DeploymentWizard
from orchestra_console.gateway.client import ApiGatewayClient, create_http_client
from orchestra_console.monitoring.poller import MetricsPoller
from orchestra_console.observability.logging import configure_logging, get_logger
from orchestra_console.settings import Settings
from orchestra_console.storage.init_db import init_db
from orchestra_console.storage.session import create_engine, create_sessionmaker

log = get_logger(__name__)


@dataclass(slots=True)
class Console:
    settings: Settings
    gateway: ApiGatewayClient
    session: SessionManager

    def new_wizard(self) -> DeploymentWizard:
        return DeploymentWizard(gateway=self.gateway, settings=self.settings)

    def new_metrics_poller(self, **kwargs) -> MetricsPoller:
        return MetricsPoller(
            gateway=self.gateway,
            interval=self.settings.metrics_refresh_seconds,
            **kwargs,
        )


@asynccontextmanager
async def create_console(
    *,
    settings: Settings,
    navigate: Navigator | None = None,
    http: httpx.AsyncClient | None = None,
    store: CredentialStore | None = None,
) -> AsyncIterator[Console]:
    """
    Yields a console whose session has already been restored.

    `http` and `store` may be injected (tests); otherwise they are built from settings
    and owned by this context manager.
    """

    configure_logging(settings)
    log.info("startup", env=settings.env)

    engine: AsyncEngine | None = None
    if store is None:
        engine = create_engine(settings)
        await init_db(engine)
        store = SqlCredentialStore(create_sessionmaker(engine))

    owns_http = http is None
    if http is None:
        http = create_http_client(settings)

    gateway = ApiGatewayClient(http=http, context=SessionContext())
    session = SessionManager(gateway=gateway, store=store, navigate=navigate)
    try:
        await session.restore()
        yield Console(settings=settings, gateway=gateway, session=session)
    finally:
        if owns_http:
            await http.aclose()
        if engine is not None:
            await engine.dispose()
        log.info("shutdown")


# --- Module Notes -----------------------------------------------------------
# Screens receive `Console.gateway` / `Console.session` explicitly; there is no
# module-level credential.
