"""
orchestra_console.auth.context

Explicitly injected session context.

Responsibilities:
- Hold the current credential and principal in memory.
- Track a credential generation so a rejected credential is invalidated exactly once.
"""

from __future__ import annotations

from orchestra_console.auth.models import Principal


class SessionContext:
    """
    Shared, single-writer session state.

    The gateway reads `snapshot()` when it sends a request; the session manager is
    the only component that calls the mutating methods.
    """

    def __init__(self) -> None:
        self._credential: str | None = None
        self._principal: Principal | None = None
        self._generation = 0

    @property
    def credential(self) -> str | None:
        return self._credential

    @property
    def principal(self) -> Principal | None:
        return self._principal

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_authenticated(self) -> bool:
        return self._credential is not None

    def snapshot(self) -> tuple[str | None, int]:
        return self._credential, self._generation

    def set_credential(self, credential: str, principal: Principal | None = None) -> None:
        if not credential:
            raise ValueError("credential must be non-empty")
        self._credential = credential
        self._principal = principal
        self._generation += 1

    def set_principal(self, principal: Principal) -> None:
        # Invariant: a principal is only held while a credential is held.
        if self._credential is None:
            raise ValueError("cannot set principal without a credential")
        self._principal = principal

    def clear(self) -> None:
        self._credential = None
        self._principal = None
        self._generation += 1

    def invalidate(self, generation: int) -> bool:
        """
        Clear the session if nothing changed since `generation` was captured.

        This holds whether or not a credential was attached to the rejected request.
        Returns False when an earlier rejection (or a logout/login) already moved
        the generation on; the caller must then skip its side effects.
        """

        if generation != self._generation:
            return False
        self.clear()
        return True


# --- Module Notes -----------------------------------------------------------
# `invalidate` has no await points, so under a single event loop the
# check-and-clear is atomic with respect to other in-flight responses.
