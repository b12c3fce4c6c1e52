"""
orchestra_console.auth.store

Persisted credential + cached principal.

Responsibilities:
- Define the `CredentialStore` interface used by the session manager.
- Provide an in-memory store and a SQL-backed store keyed under fixed identifiers.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from orchestra_console.auth.models import Principal
from orchestra_console.observability.logging import get_logger
from orchestra_console.storage.repositories import ClientStateRepo

log = get_logger(__name__)

TOKEN_KEY = "orchestra_token"
USER_KEY = "orchestra_user"


@dataclass(frozen=True, slots=True)
class StoredSession:
    credential: str | None
    principal: Principal | None


class CredentialStore(Protocol):
    async def load(self) -> StoredSession: ...

    async def save(self, *, credential: str, principal: Principal | None) -> None: ...

    async def save_principal(self, principal: Principal) -> None: ...

    async def clear(self) -> None: ...


def _decode_principal(raw: str | None) -> Principal | None:
    if not raw:
        return None
    try:
        return Principal.from_payload(json.loads(raw))
    except (ValueError, KeyError, TypeError):
        # A corrupt cache entry is treated as "no cached principal".
        log.warning("cached_principal_unreadable")
        return None


class InMemoryCredentialStore:
    """Process-local store; nothing survives a restart of the process."""

    def __init__(self) -> None:
        self._credential: str | None = None
        self._principal: Principal | None = None

    async def load(self) -> StoredSession:
        return StoredSession(credential=self._credential, principal=self._principal)

    async def save(self, *, credential: str, principal: Principal | None) -> None:
        self._credential = credential
        self._principal = principal

    async def save_principal(self, principal: Principal) -> None:
        self._principal = principal

    async def clear(self) -> None:
        self._credential = None
        self._principal = None


class SqlCredentialStore:
    """
    Stores the credential under `orchestra_token` and the principal (JSON) under
    `orchestra_user` in the `client_state` table.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def load(self) -> StoredSession:
        async with self._session_factory() as session:
            values = await ClientStateRepo(session).get_many([TOKEN_KEY, USER_KEY])
        return StoredSession(
            credential=values.get(TOKEN_KEY) or None,
            principal=_decode_principal(values.get(USER_KEY)),
        )

    async def save(self, *, credential: str, principal: Principal | None) -> None:
        async with self._session_factory() as session:
            repo = ClientStateRepo(session)
            await repo.put(TOKEN_KEY, credential)
            if principal is not None:
                await repo.put(USER_KEY, json.dumps(principal.to_payload()))
            else:
                await repo.delete_many([USER_KEY])
            await session.commit()

    async def save_principal(self, principal: Principal) -> None:
        async with self._session_factory() as session:
            await ClientStateRepo(session).put(USER_KEY, json.dumps(principal.to_payload()))
            await session.commit()

    async def clear(self) -> None:
        async with self._session_factory() as session:
            await ClientStateRepo(session).delete_many([TOKEN_KEY, USER_KEY])
            await session.commit()


# --- Module Notes -----------------------------------------------------------
# `clear()` always removes both keys; a logout never leaves a half-cleared store.
