"""
Tests for the timed upstream HTTP client
"""

import asyncio
import json
import pytest
import httpx

from glazionsynth.upstream_client import UpstreamClient, UpstreamError


def make_client(handler) -> UpstreamClient:
    return UpstreamClient(httpx.AsyncClient(transport=httpx.MockTransport(handler)))


@pytest.mark.asyncio
async def test_get_json_returns_body_and_sends_params():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json={"answer": "Use a slow cool.", "success": True})

    client = make_client(handler)
    body = await client.get_json("kb", "http://kb.test/api/ask",
                                 {"question": "crawling", "topK": 5}, 1000)
    await client.close()

    assert body == {"answer": "Use a slow cool.", "success": True}
    assert seen["params"] == {"question": "crawling", "topK": "5"}


@pytest.mark.asyncio
async def test_none_params_are_dropped():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json={})

    client = make_client(handler)
    await client.get_json("conversation", "http://conv.test/api/chat",
                          {"question": "hi", "userId": None}, 1000)
    await client.close()

    assert seen["params"] == {"question": "hi"}


@pytest.mark.asyncio
async def test_timeout_raises_upstream_error():
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(5)
        return httpx.Response(200, json={})

    client = make_client(handler)
    with pytest.raises(UpstreamError) as exc_info:
        await client.get_json("kb", "http://kb.test", {}, 50)
    await client.close()

    assert exc_info.value.is_timeout
    assert exc_info.value.upstream == "kb"
    assert client.get_stats()["error_count"] == 1


@pytest.mark.asyncio
async def test_network_error_raises_upstream_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = make_client(handler)
    with pytest.raises(UpstreamError) as exc_info:
        await client.get_json("kb", "http://kb.test", {}, 1000)
    await client.close()

    assert exc_info.value.reason == "network"
    assert not exc_info.value.is_timeout


@pytest.mark.asyncio
async def test_error_status_raises_upstream_error():
    client = make_client(lambda request: httpx.Response(503, json={"error": "down"}))
    with pytest.raises(UpstreamError) as exc_info:
        await client.get_json("conversation", "http://conv.test", {}, 1000)
    await client.close()

    assert exc_info.value.reason == "http_status"
    assert "503" in exc_info.value.detail


@pytest.mark.asyncio
async def test_non_json_body_raises_upstream_error():
    client = make_client(lambda request: httpx.Response(200, text="<html>oops</html>"))
    with pytest.raises(UpstreamError) as exc_info:
        await client.get_json("kb", "http://kb.test", {}, 1000)
    await client.close()

    assert exc_info.value.reason == "bad_body"


@pytest.mark.asyncio
async def test_non_object_body_raises_upstream_error():
    client = make_client(
        lambda request: httpx.Response(200, content=json.dumps(["a", "b"]).encode())
    )
    with pytest.raises(UpstreamError) as exc_info:
        await client.get_json("kb", "http://kb.test", {}, 1000)
    await client.close()

    assert exc_info.value.reason == "bad_body"
    assert client.get_stats()["total_requests"] == 1


@pytest.mark.asyncio
async def test_transport_timeout_is_reported_as_timeout():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("read timed out", request=request)

    client = make_client(handler)
    with pytest.raises(UpstreamError) as exc_info:
        await client.get_json("conversation", "http://conv.test", {}, 10_000)
    await client.close()

    assert exc_info.value.is_timeout
    assert exc_info.value.reason == "timeout"


@pytest.mark.asyncio
async def test_configured_timeout_reaches_the_transport():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["timeout"] = request.extensions["timeout"]
        return httpx.Response(200, json={})

    client = make_client(handler)
    await client.get_json("kb", "http://kb.test", {}, 10_000)
    await client.close()

    assert seen["timeout"]["read"] == 10.0
    assert seen["timeout"]["connect"] == 10.0


@pytest.mark.asyncio
async def test_default_client_has_no_shorter_timeout():
    client = UpstreamClient()
    timeout = client._client.timeout
    await client.close()

    assert timeout.read is None
    assert timeout.connect is None
