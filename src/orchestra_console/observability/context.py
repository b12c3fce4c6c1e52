"""
orchestra_console.observability.context

Request-scoped logging context for outbound gateway calls.

Responsibilities:
- Generate a request id per outbound call.
- Bind request metadata into structlog contextvars for the duration of the call.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterator
from contextlib import contextmanager

import structlog


@contextmanager
def request_context(*, method: str, path: str) -> Iterator[str]:
    """
    Yields the request id; every log line emitted inside the block carries
    `request_id`, `method` and `path`.
    """

    request_id = str(uuid.uuid4())
    tokens = structlog.contextvars.bind_contextvars(
        request_id=request_id,
        method=method,
        path=path,
    )
    try:
        yield request_id
    finally:
        # Concurrent calls share the event loop; reset only what this call bound.
        structlog.contextvars.reset_contextvars(**tokens)


# --- Module Notes -----------------------------------------------------------
# The request id is also sent as `x-request-id` so backend logs can be correlated.
