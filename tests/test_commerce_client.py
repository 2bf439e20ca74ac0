"""Tests for the CommerceClient — request shaping and error translation."""

from __future__ import annotations

import json

import httpx
import pytest

from otp_auth.errors import UpstreamError
from otp_auth.services.commerce_client import CommerceClient

BASE_URL = "http://commerce.test/api/v1/"


def _recording_transport(seen: list[httpx.Request], response: httpx.Response) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return response

    return httpx.MockTransport(handler)


@pytest.mark.asyncio
async def test_sends_bearer_token():
    seen: list[httpx.Request] = []
    client = CommerceClient(
        base_url=BASE_URL,
        token="secret",
        transport=_recording_transport(seen, httpx.Response(200, json={"items": []})),
    )

    assert await client.list_products({"category": "shoes"}) == {"items": []}

    request = seen[0]
    assert request.method == "GET"
    assert str(request.url) == "http://commerce.test/api/v1/products?category=shoes"
    assert request.headers["Authorization"] == "Bearer secret"


@pytest.mark.asyncio
async def test_omits_empty_token():
    seen: list[httpx.Request] = []
    client = CommerceClient(
        base_url=BASE_URL,
        token="",
        transport=_recording_transport(seen, httpx.Response(200, json={})),
    )

    await client.get_order("o-42")

    assert seen[0].url.path == "/api/v1/orders/o-42"
    assert "Authorization" not in seen[0].headers


@pytest.mark.asyncio
async def test_create_order_posts_json():
    seen: list[httpx.Request] = []
    client = CommerceClient(
        base_url=BASE_URL,
        token="",
        transport=_recording_transport(seen, httpx.Response(201, json={"id": "o1"})),
    )

    assert await client.create_order({"sku": "p1", "qty": 1}) == {"id": "o1"}
    assert seen[0].method == "POST"
    assert json.loads(seen[0].content) == {"sku": "p1", "qty": 1}


@pytest.mark.asyncio
async def test_error_status_raises_upstream_error():
    client = CommerceClient(
        base_url=BASE_URL,
        token="",
        transport=_recording_transport([], httpx.Response(422, json={"message": "bad sku"})),
    )

    with pytest.raises(UpstreamError) as excinfo:
        await client.create_order({"sku": "nope"})

    assert excinfo.value.status_code == 422
    assert excinfo.value.detail == {"message": "bad sku"}


@pytest.mark.asyncio
async def test_non_json_error_body_kept_as_text():
    client = CommerceClient(
        base_url=BASE_URL,
        token="",
        transport=_recording_transport([], httpx.Response(503, text="maintenance")),
    )

    with pytest.raises(UpstreamError) as excinfo:
        await client.list_orders()

    assert excinfo.value.status_code == 503
    assert excinfo.value.detail == "maintenance"


@pytest.mark.asyncio
async def test_connection_error_raises_upstream_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = CommerceClient(base_url=BASE_URL, token="", transport=httpx.MockTransport(handler))

    with pytest.raises(UpstreamError) as excinfo:
        await client.get_product("p1")

    assert excinfo.value.status_code is None
