"""
orchestra_console.auth.models

Auth domain models.

Responsibilities:
- Define the authenticated identity type (`Principal`) cached alongside the credential.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Authenticated user profile as returned by `/auth/login` and `/auth/me`.
    """

    id: int
    email: str
    display_name: str
    system_role: str

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> Principal:
        return cls(
            id=int(payload["id"]),
            email=str(payload.get("email", "")),
            display_name=str(payload.get("display_name", "")),
            system_role=str(payload.get("system_role", "")),
        )

    def to_payload(self) -> dict[str, Any]:
        return asdict(self)


# --- Module Notes -----------------------------------------------------------
# Wire keys are snake_case (`display_name`, `system_role`) to match the backend contract.
