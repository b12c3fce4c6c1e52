"""
orchestra_console.observability

Observability package.

Responsibilities:
- Structured logging configuration (structlog).
- Request-scoped logging context for outbound gateway calls.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Other packages import from submodules directly (`observability.logging`, `observability.context`).
