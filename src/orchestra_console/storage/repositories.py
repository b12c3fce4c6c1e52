"""
orchestra_console.storage.repositories

Repository for `ClientStateItem` rows.

Responsibilities:
- Read, upsert and delete fixed-key string values.
"""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from orchestra_console.storage.models import ClientStateItem


class ClientStateRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_many(self, keys: Iterable[str]) -> dict[str, str]:
        stmt = select(ClientStateItem).where(ClientStateItem.key.in_(list(keys)))
        rows = (await self._session.execute(stmt)).scalars().all()
        return {row.key: row.value for row in rows}

    async def put(self, key: str, value: str) -> None:
        row = await self._session.get(ClientStateItem, key)
        if row is None:
            self._session.add(ClientStateItem(key=key, value=value))
        else:
            row.value = value
        await self._session.flush()

    async def delete_many(self, keys: Iterable[str]) -> None:
        await self._session.execute(
            delete(ClientStateItem).where(ClientStateItem.key.in_(list(keys)))
        )


# --- Module Notes -----------------------------------------------------------
# Commit is owned by the caller (`auth.store.SqlCredentialStore`).
