"""
tests.test_gateway

Gateway client: headers, body decoding and failure classification.
"""

from __future__ import annotations

import json

import httpx
import pytest
from conftest import mock_gateway

from orchestra_console.gateway.errors import (
    NetworkError,
    RequestFailed,
    Unauthenticated,
    extract_error_message,
)


@pytest.mark.parametrize(
    ("body", "expected"),
    [
        ('{"message": "cluster is busy"}', "cluster is busy"),
        ('{"error": "name taken"}', "name taken"),
        ('{"message": "", "error": "fallback"}', "fallback"),
        ('{"detail": "x"}', '{"detail": "x"}'),
        ("upstream exploded", "upstream exploded"),
        ("", "Request failed: 502"),
    ],
)
def test_error_message_fallback_chain(body: str, expected: str) -> None:
    assert extract_error_message(502, body) == expected


@pytest.mark.asyncio
async def test_bearer_header_attached_only_with_credential() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"clusters": [], "count": 0})

    gw = mock_gateway(handler)
    await gw.list_clusters()
    gw.context.set_credential("tok-1")
    await gw.list_clusters()

    assert "authorization" not in seen[0].headers
    assert seen[1].headers["authorization"] == "Bearer tok-1"
    for request in seen:
        assert request.headers["content-type"] == "application/json"
        assert request.headers["x-request-id"]
    assert seen[0].url.path == "/api/v1/clusters"


@pytest.mark.asyncio
async def test_json_body_is_serialized() -> None:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(201, json={"id": 3})

    gw = mock_gateway(handler)
    assert await gw.create_application({"name": "demo"}) == {"id": 3}
    assert bodies == [{"name": "demo"}]


@pytest.mark.asyncio
async def test_empty_and_plain_text_success_bodies() -> None:
    responses = iter([httpx.Response(204), httpx.Response(200, text="queued")])
    gw = mock_gateway(lambda request: next(responses))

    assert await gw.redeploy_application(1) is None
    assert await gw.redeploy_application(1) == "queued"


@pytest.mark.asyncio
async def test_network_failure_is_distinguished_from_error_response() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    gw = mock_gateway(handler)
    with pytest.raises(NetworkError) as exc:
        await gw.list_clusters()
    assert "connection refused" in exc.value.message


@pytest.mark.asyncio
async def test_domain_error_carries_status_and_message() -> None:
    gw = mock_gateway(lambda request: httpx.Response(409, json={"message": "already exists"}))

    with pytest.raises(RequestFailed) as exc:
        await gw.create_application({"name": "demo"})
    assert exc.value.status_code == 409
    assert exc.value.message == "already exists"


@pytest.mark.asyncio
async def test_401_invokes_handler_with_request_generation() -> None:
    calls: list[int] = []

    async def on_unauthorized(generation: int) -> None:
        calls.append(generation)

    gw = mock_gateway(lambda request: httpx.Response(401, json={"error": "expired"}))
    gw.context.set_credential("tok-1")
    gw.set_unauthorized_handler(on_unauthorized)

    with pytest.raises(Unauthenticated):
        await gw.me()
    assert calls == [gw.context.generation]


@pytest.mark.asyncio
async def test_login_401_is_a_domain_error_not_a_session_rejection() -> None:
    calls: list[int] = []

    async def on_unauthorized(generation: int) -> None:
        calls.append(generation)

    gw = mock_gateway(lambda request: httpx.Response(401, json={"error": "invalid credentials"}))
    gw.set_unauthorized_handler(on_unauthorized)

    with pytest.raises(RequestFailed) as exc:
        await gw.login(email="a@example.com", password="nope")
    assert exc.value.message == "invalid credentials"
    assert calls == []


@pytest.mark.asyncio
async def test_list_applications_filters_by_cluster() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"applications": [], "count": 0})

    gw = mock_gateway(handler)
    await gw.list_applications(cluster_id=7)
    await gw.list_applications()

    assert seen[0].url.params["cluster_id"] == "7"
    assert "cluster_id" not in seen[1].url.params
