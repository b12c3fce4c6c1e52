"""
orchestra_console.gateway.client

HTTP client boundary to the Orchestra backend REST API.

Responsibilities:
- Attach the current credential (if any) as a bearer header on every request.
- Serialize/deserialize JSON bodies.
- Classify failures (network / 401 / domain error) and hand 401s to the session layer.
"""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from orchestra_console.auth.context import SessionContext
from orchestra_console.gateway.errors import (
    NetworkError,
    RequestFailed,
    Unauthenticated,
    extract_error_message,
)
from orchestra_console.observability.context import request_context
from orchestra_console.observability.logging import get_logger
from orchestra_console.settings import Settings

log = get_logger(__name__)

UnauthorizedHandler = Callable[[int], Awaitable[None]]


def create_http_client(settings: Settings, **kwargs: Any) -> httpx.AsyncClient:
    # Callers own the client lifetime (`async with` or explicit `aclose()`).
    return httpx.AsyncClient(
        base_url=settings.api_base_url,
        timeout=settings.request_timeout_seconds,
        **kwargs,
    )


def _decode_body(text: str) -> Any:
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return text


class ApiGatewayClient:
    """
    Every screen talks to the backend through this client.

    The client never writes session state itself: on a 401 it awaits the registered
    unauthorized handler (the session manager) with the credential generation the
    request was sent with, then raises `Unauthenticated`.
    """

    def __init__(
        self,
        *,
        http: httpx.AsyncClient,
        context: SessionContext,
        on_unauthorized: UnauthorizedHandler | None = None,
    ) -> None:
        self._http = http
        self._context = context
        self._on_unauthorized = on_unauthorized

    @property
    def context(self) -> SessionContext:
        return self._context

    def set_unauthorized_handler(self, handler: UnauthorizedHandler | None) -> None:
        self._on_unauthorized = handler

    async def request(
        self,
        method: str,
        path: str,
        *,
        json_body: Any = None,
        params: dict[str, Any] | None = None,
        intercept_unauthorized: bool = True,
    ) -> Any:
        credential, generation = self._context.snapshot()
        headers = {"Content-Type": "application/json"}
        if credential:
            headers["Authorization"] = f"Bearer {credential}"

        with request_context(method=method, path=path) as request_id:
            headers["x-request-id"] = request_id
            try:
                r = await self._http.request(
                    method,
                    path,
                    headers=headers,
                    content=json.dumps(json_body) if json_body is not None else None,
                    params=params,
                )
            except httpx.TransportError as e:
                log.warning("gateway_network_error", error=str(e))
                raise NetworkError(str(e) or type(e).__name__) from e

            if r.status_code == 401 and intercept_unauthorized:
                log.warning("gateway_unauthorized", generation=generation)
                if self._on_unauthorized is not None:
                    # Session teardown completes before the caller sees the error.
                    await self._on_unauthorized(generation)
                raise Unauthenticated()

            text = r.text
            if r.is_error:
                message = extract_error_message(r.status_code, text)
                log.info("gateway_request_failed", status_code=r.status_code)
                raise RequestFailed(status_code=r.status_code, message=message, body=text)

            return _decode_body(text)

    # --- Auth ---------------------------------------------------------------

    async def login(self, *, email: str, password: str) -> dict[str, Any]:
        # A 401 here means "bad credentials", not "session expired".
        return await self.request(
            "POST",
            "/auth/login",
            json_body={"email": email, "password": password},
            intercept_unauthorized=False,
        )

    async def me(self) -> dict[str, Any]:
        return await self.request("GET", "/auth/me")

    async def update_profile(
        self, *, display_name: str | None = None, avatar: str | None = None
    ) -> Any:
        body: dict[str, Any] = {}
        if display_name is not None:
            body["display_name"] = display_name
        if avatar is not None:
            body["avatar"] = avatar
        return await self.request("PATCH", "/auth/me", json_body=body)

    # --- Clusters -----------------------------------------------------------

    async def list_clusters(self) -> dict[str, Any]:
        return await self.request("GET", "/clusters")

    # --- Applications -------------------------------------------------------

    async def list_applications(self, *, cluster_id: int | None = None) -> dict[str, Any]:
        params = {"cluster_id": cluster_id} if cluster_id else None
        return await self.request("GET", "/applications", params=params)

    async def get_application(self, application_id: int) -> dict[str, Any]:
        return await self.request("GET", f"/applications/{application_id}")

    async def create_application(self, payload: dict[str, Any]) -> Any:
        return await self.request("POST", "/applications", json_body=payload)

    async def redeploy_application(self, application_id: int) -> Any:
        return await self.request("POST", f"/applications/{application_id}/redeploy")

    async def delete_application(self, application_id: int) -> Any:
        return await self.request("DELETE", f"/applications/{application_id}")

    async def list_deployments(self) -> Any:
        return await self.request("GET", "/deployments")

    # --- Metadata -----------------------------------------------------------

    async def list_frameworks(self) -> list[dict[str, Any]]:
        return await self.request("GET", "/metadata/frameworks")

    async def list_stacks(self) -> list[dict[str, Any]]:
        return await self.request("GET", "/metadata/stacks")

    # --- Monitoring ---------------------------------------------------------

    async def monitoring_overview(self) -> dict[str, Any]:
        return await self.request("GET", "/monitoring/overview")

    async def monitoring_infra(self) -> dict[str, Any]:
        return await self.request("GET", "/monitoring/infra")


# --- Module Notes -----------------------------------------------------------
# Rejected credentials are never retried here; see `auth.session.SessionManager`
# for the invalidation side effect.
