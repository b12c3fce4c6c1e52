"""
orchestra_console.gateway

API Gateway Client package.

Responsibilities:
- HTTP client boundary to the Orchestra backend (`client`).
- Failure taxonomy shared by every caller (`errors`).
"""

from orchestra_console.gateway.client import ApiGatewayClient, create_http_client
from orchestra_console.gateway.errors import (
    GatewayError,
    NetworkError,
    RequestFailed,
    Unauthenticated,
    extract_error_message,
)

__all__ = [
    "ApiGatewayClient",
    "GatewayError",
    "NetworkError",
    "RequestFailed",
    "Unauthenticated",
    "create_http_client",
    "extract_error_message",
]


# --- Module Notes -----------------------------------------------------------
# Screens and controllers depend on this package only through `ApiGatewayClient`.
