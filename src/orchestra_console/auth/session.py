"""
orchestra_console.auth.session

Session Manager: owns the credential lifecycle.

Responsibilities:
- Restore a stored session on process start.
- Log in / log out / refresh the cached principal.
- React to credential rejection (401) exactly once: clear state and force the login screen.
"""

from __future__ import annotations

import enum
from collections.abc import Callable
from typing import Any

from orchestra_console.auth.context import SessionContext
from orchestra_console.auth.models import Principal
from orchestra_console.auth.store import CredentialStore
from orchestra_console.gateway.client import ApiGatewayClient
from orchestra_console.gateway.errors import GatewayError, Unauthenticated
from orchestra_console.observability.logging import get_logger

log = get_logger(__name__)


class SessionState(enum.StrEnum):
    uninitialized = "UNINITIALIZED"
    restoring = "RESTORING"
    authenticated = "AUTHENTICATED"
    unauthenticated = "UNAUTHENTICATED"


class Screen(enum.StrEnum):
    login = "login"
    home = "home"


Navigator = Callable[[Screen], None]

_ALLOWED_TRANSITIONS: dict[SessionState, frozenset[SessionState]] = {
    SessionState.uninitialized: frozenset({SessionState.restoring}),
    SessionState.restoring: frozenset(
        {SessionState.authenticated, SessionState.unauthenticated}
    ),
    SessionState.authenticated: frozenset({SessionState.unauthenticated}),
    SessionState.unauthenticated: frozenset({SessionState.authenticated}),
}


class InvalidSessionTransition(RuntimeError):
    def __init__(self, current: SessionState, attempted: SessionState) -> None:
        self.current = current
        self.attempted = attempted
        super().__init__(f"Invalid session transition {current} -> {attempted}")


def ensure_transition(current: SessionState, new: SessionState) -> None:
    if new not in _ALLOWED_TRANSITIONS[current]:
        raise InvalidSessionTransition(current, new)


def _noop_navigator(_: Screen) -> None:
    return None


class SessionManager:
    """
    Single writer of `SessionContext` and of the credential store.

    Constructing the manager registers it as the gateway's unauthorized handler,
    so every 401 seen by the gateway flows through `handle_unauthorized`.
    """

    def __init__(
        self,
        *,
        gateway: ApiGatewayClient,
        store: CredentialStore,
        navigate: Navigator | None = None,
    ) -> None:
        self._gateway = gateway
        self._context: SessionContext = gateway.context
        self._store = store
        self._navigate = navigate or _noop_navigator
        self._state = SessionState.uninitialized
        self._cached_principal: Principal | None = None
        gateway.set_unauthorized_handler(self.handle_unauthorized)

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def loading(self) -> bool:
        return self._state in (SessionState.uninitialized, SessionState.restoring)

    @property
    def is_authenticated(self) -> bool:
        return self._state is SessionState.authenticated

    @property
    def credential(self) -> str | None:
        return self._context.credential

    @property
    def principal(self) -> Principal | None:
        return self._context.principal

    @property
    def cached_principal(self) -> Principal | None:
        """Profile left over from a previous session that has no credential."""
        return self._cached_principal

    def _transition(self, new: SessionState) -> None:
        if new is self._state:
            return
        ensure_transition(self._state, new)
        log.info("session_state", previous=str(self._state), current=str(new))
        self._state = new

    async def restore(self) -> SessionState:
        self._transition(SessionState.restoring)
        stored = await self._store.load()

        if not stored.credential:
            # No credential: nothing to verify. An orphaned profile is kept only as a hint.
            self._cached_principal = stored.principal
            self._transition(SessionState.unauthenticated)
            log.info("session_restored", authenticated=False)
            return self._state

        self._context.set_credential(stored.credential, stored.principal)
        try:
            await self.refresh_principal()
        except Unauthenticated:
            # Already torn down by `handle_unauthorized`.
            pass
        except GatewayError as e:
            log.warning("session_restore_failed", error=e.message)
            await self._teardown()

        if self._context.is_authenticated:
            self._transition(SessionState.authenticated)
        else:
            self._transition(SessionState.unauthenticated)
        log.info("session_restored", authenticated=self.is_authenticated)
        return self._state

    async def login(self, email: str, password: str) -> Principal:
        ensure_transition(self._state, SessionState.authenticated)
        # Errors propagate to the caller for display; the store is untouched on failure.
        res: dict[str, Any] = await self._gateway.login(email=email, password=password)
        credential = str(res.get("token") or "")
        if not credential:
            raise GatewayError("Login response did not include a token")
        principal = Principal.from_payload(res["user"])

        await self._store.save(credential=credential, principal=principal)
        self._context.set_credential(credential, principal)
        self._cached_principal = None
        self._transition(SessionState.authenticated)
        log.info("session_login", principal_id=principal.id)
        self._navigate(Screen.home)
        return principal

    async def logout(self) -> None:
        await self._teardown()
        log.info("session_logout")
        self._navigate(Screen.login)

    async def refresh_principal(self) -> Principal:
        if not self._context.is_authenticated:
            raise Unauthenticated("Not authenticated")
        generation = self._context.generation
        payload = await self._gateway.me()
        principal = Principal.from_payload(payload)
        if generation != self._context.generation:
            # The session ended or was replaced while the request was in flight.
            raise Unauthenticated()
        self._context.set_principal(principal)
        await self._store.save_principal(principal)
        return principal

    async def update_profile(
        self, *, display_name: str | None = None, avatar: str | None = None
    ) -> Principal:
        await self._gateway.update_profile(display_name=display_name, avatar=avatar)
        return await self.refresh_principal()

    async def handle_unauthorized(self, generation: int) -> None:
        """
        Gateway hook for 401 responses. Anonymous rejections also clear the cached
        profile and force the login screen. Only the first rejection per generation
        has any effect; later ones see a newer generation and return.
        """

        if not self._context.invalidate(generation):
            return
        log.warning("session_invalidated")
        await self._store.clear()
        self._cached_principal = None
        if self._state is SessionState.authenticated:
            self._transition(SessionState.unauthenticated)
        self._navigate(Screen.login)

    async def _teardown(self) -> None:
        self._context.clear()
        self._cached_principal = None
        await self._store.clear()
        if self._state in (SessionState.authenticated, SessionState.restoring):
            self._transition(SessionState.unauthenticated)


# --- Module Notes -----------------------------------------------------------
# A rejected credential is never refreshed or retried; every protected screen
# must assume any read can end the session.
