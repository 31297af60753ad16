"""
Tests for BillbeeClient.

The HTTP layer is mocked with httpx.MockTransport, so these check request
construction and error translation without touching the network.
"""

import asyncio
import base64

import httpx
import pytest

from clients import BillbeeClient
from errors import UpstreamError


def make_client(handler):
    return BillbeeClient(
        base_url="https://billbee.test/api/v1/",
        api_key="test-key",
        username="user@example.com",
        password="secret",
        transport=httpx.MockTransport(handler),
    )


def call(handler, method, *args):
    async def _run():
        async with make_client(handler) as client:
            return await getattr(client, method)(*args)

    return asyncio.run(_run())


def test_requests_carry_api_key_and_basic_auth():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"Paging": {"TotalPages": 1}, "Data": []})

    call(handler, "get_orders_page", 3, 50, {"shopId": 1})

    request = seen[0]
    expected = base64.b64encode(b"user@example.com:secret").decode()
    assert request.url.path == "/api/v1/orders"
    assert request.headers["X-Billbee-Api-Key"] == "test-key"
    assert request.headers["Authorization"] == f"Basic {expected}"
    assert request.url.params["page"] == "3"
    assert request.url.params["pageSize"] == "50"
    assert request.url.params["shopId"] == "1"


def test_http_error_echoes_upstream_message():
    def handler(request):
        return httpx.Response(401, json={"Message": "Authorization has been denied"})

    with pytest.raises(UpstreamError) as excinfo:
        call(handler, "list_orders", {})

    assert excinfo.value.upstream_status == 401
    assert "HTTP error 401" in excinfo.value.message
    assert "Authorization has been denied" in excinfo.value.message


def test_error_payload_with_ok_status_raises():
    def handler(request):
        return httpx.Response(200, json={"ErrorMessage": "Shop not found", "ErrorCode": 2})

    with pytest.raises(UpstreamError, match="Shop not found"):
        call(handler, "list_orders", {})


def test_invalid_json_raises():
    def handler(request):
        return httpx.Response(200, text="<html>maintenance</html>")

    with pytest.raises(UpstreamError, match="Invalid JSON"):
        call(handler, "list_orders", {})


def test_transport_failure_raises():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(UpstreamError, match="connection refused"):
        call(handler, "list_products", {})


def test_timeout_raises():
    def handler(request):
        raise httpx.ReadTimeout("read timed out", request=request)

    with pytest.raises(UpstreamError, match="timed out"):
        call(handler, "list_orders", {})


def test_list_products_returns_raw_body():
    def handler(request):
        assert request.url.path == "/api/v1/products"
        return httpx.Response(200, json={"Data": [{"Id": 5, "SKU": "X-1"}]})

    assert call(handler, "list_products", None) == {"Data": [{"Id": 5, "SKU": "X-1"}]}


def test_client_requires_context_manager():
    client = make_client(lambda request: httpx.Response(200, json={}))

    with pytest.raises(RuntimeError):
        asyncio.run(client.list_orders({}))
