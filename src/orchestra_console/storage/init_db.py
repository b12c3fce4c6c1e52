"""
orchestra_console.storage.init_db

Schema bootstrap for the local client-state database.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine

from orchestra_console.storage.base import Base


async def init_db(engine: AsyncEngine) -> None:
    """
    Create tables if they don't exist. The schema is a single key/value table,
    so there is no migration workflow.
    """

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
