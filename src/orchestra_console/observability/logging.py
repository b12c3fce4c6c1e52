"""
orchestra_console.observability.logging

Structured logging configuration for the console core.

Responsibilities:
- Configure `structlog` once per process from `Settings`.
- Render human-readable lines in dev/test and JSON in prod.
- Keep credentials out of log output.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from orchestra_console.settings import Settings

# Event keys that may carry a bearer token or password.
_SECRET_KEYS = frozenset({"authorization", "credential", "password", "token"})


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _bind_client(settings),
            _redact_secrets,
            structlog.processors.dict_tracebacks,
            _renderer(settings),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def _renderer(settings: Settings) -> Any:
    if settings.env == "prod":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=False)


def _bind_client(settings: Settings):
    # Every line names the console build and the backend it talks to.
    def processor(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("service", settings.service_name)
        event_dict.setdefault("api", settings.api_base_url)
        return event_dict

    return processor


def _redact_secrets(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    for key in _SECRET_KEYS.intersection(event_dict):
        event_dict[key] = "***"
    return event_dict


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


# --- Module Notes -----------------------------------------------------------
# Per-call `request_id`/`method`/`path` are bound in `observability.context`.
