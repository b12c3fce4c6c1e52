"""
orchestra_console.storage.models

Persistence schema for client-side state.

Responsibilities:
- Define `ClientStateItem`: a fixed-key string value (the browser-storage analogue).
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from orchestra_console.storage.base import Base


def _utcnow() -> datetime:
    return datetime.now(tz=UTC).replace(tzinfo=None)


class ClientStateItem(Base):
    __tablename__ = "client_state"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)

    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)


# --- Module Notes -----------------------------------------------------------
# Keys are fixed identifiers chosen by `auth.store`; values are opaque strings.
