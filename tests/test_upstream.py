"""
Tests for the aiohttp upstream forwarder against a local aiohttp server.
"""

import asyncio

import pytest
from aiohttp import web

from openfinance_mcp.core.exceptions import (
    UpstreamError,
    UpstreamResponseError,
    UpstreamTimeoutError,
)
from openfinance_mcp.proxy.upstream import UpstreamClient


async def _echo(request):
    body = await request.read()
    return web.Response(body=body, status=200, content_type="application/json")


async def _html(request):
    return web.Response(text="<html>gateway down</html>", status=503, content_type="text/html")


async def _slow(request):
    await asyncio.sleep(2)
    return web.json_response({"late": True})


@pytest.fixture
async def upstream_url():
    app = web.Application()
    app.router.add_post("/mcp", _echo)
    app.router.add_post("/html", _html)
    app.router.add_post("/slow", _slow)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", 0)
    await site.start()
    host, port = runner.addresses[0][:2]
    yield f"http://{host}:{port}"
    await runner.cleanup()


@pytest.mark.asyncio
async def test_forward_passes_bytes_through(upstream_url):
    raw = b'{"jsonrpc":"2.0","id":1,"method":"tools/list","params":{}}'
    response = await UpstreamClient(f"{upstream_url}/mcp").forward(raw)
    assert response.status == 200
    assert response.body == raw
    assert response.text == raw.decode()


@pytest.mark.asyncio
async def test_non_json_response(upstream_url):
    with pytest.raises(UpstreamResponseError) as exc_info:
        await UpstreamClient(f"{upstream_url}/html").forward(b"{}")
    assert exc_info.value.status == 503
    assert exc_info.value.public_message == "Proxy error: upstream non-JSON response"


@pytest.mark.asyncio
async def test_timeout(upstream_url):
    with pytest.raises(UpstreamTimeoutError):
        await UpstreamClient(f"{upstream_url}/slow", timeout_seconds=0.2).forward(b"{}")


@pytest.mark.asyncio
async def test_connection_refused():
    with pytest.raises(UpstreamError) as exc_info:
        await UpstreamClient("http://127.0.0.1:9/mcp", timeout_seconds=2).forward(b"{}")
    assert exc_info.value.http_status == 502
