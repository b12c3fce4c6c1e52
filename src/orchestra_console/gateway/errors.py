"""
orchestra_console.gateway.errors

Failure classification for gateway calls.

Responsibilities:
- Distinguish "no response" (network) from "error response" (domain) from 401.
- Extract the user-visible message from an error body.
"""

from __future__ import annotations

import json


class GatewayError(Exception):
    """Base class for every failure surfaced by the gateway client."""

    @property
    def message(self) -> str:
        return str(self)


class NetworkError(GatewayError):
    """No response was received (connection refused, DNS, timeout...)."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Network error: {detail}")


class Unauthenticated(GatewayError):
    """No credential, or the credential was rejected with a 401."""

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class RequestFailed(GatewayError):
    """A non-2xx response carrying a structured or plain-text error."""

    def __init__(self, *, status_code: int, message: str, body: str = "") -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(message)


def extract_error_message(status_code: int, text: str) -> str:
    """
    Fallback chain shown to the user verbatim:
    JSON `message` -> JSON `error` -> raw body text -> "Request failed: <status>".
    """

    msg = text
    try:
        parsed = json.loads(text)
    except ValueError:
        parsed = None
    if isinstance(parsed, dict):
        msg = parsed.get("message") or parsed.get("error") or text
    return str(msg) if msg else f"Request failed: {status_code}"


# --- Module Notes -----------------------------------------------------------
# `Unauthenticated` is raised only after the session has already been invalidated,
# so callers must not retry it.
