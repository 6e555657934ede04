"""
MCP Gateway API
===============
FastAPI application exposing the JSON-RPC 2.0 endpoint.

Endpoints:
    - POST /mcp: one JSON-RPC envelope per request
    - GET /health: liveness probe
    - /metrics: Prometheus exposition

Protocol failures are answered with HTTP 200 and a JSON-RPC ``error``
member; only an unparseable body is rejected at the transport level (400).
"""

import json
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger
from prometheus_client import make_asgi_app
from starlette.middleware.base import BaseHTTPMiddleware

from openfinance_mcp import __version__
from openfinance_mcp.core.config import AppConfig, get_config
from openfinance_mcp.core.exceptions import ParseError
from openfinance_mcp.domain.store import MockDomainStore
from openfinance_mcp.mcp.dispatcher import ToolDispatcher
from openfinance_mcp.mcp.handler import JsonRpcHandler
from openfinance_mcp.mcp.schemas import rpc_error


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Debug-level access log for every inbound request."""

    async def dispatch(self, request: Request, call_next):
        logger.debug(f"HTTP {request.method} {request.url.path}")
        return await call_next(request)


def build_handler(config: AppConfig, store: Optional[MockDomainStore] = None) -> JsonRpcHandler:
    truncate = config.observability.log_truncate
    dispatcher = ToolDispatcher.for_variant(config.gateway.variant, store, log_truncate=truncate)
    return JsonRpcHandler(config.gateway, dispatcher, log_truncate=truncate)


def parse_body(raw: bytes):
    """Decode a request body; raises ParseError when it is not JSON."""
    try:
        return json.loads(raw or b"{}")
    except ValueError as exc:
        raise ParseError(f"Parse error: {exc}") from exc


def parse_error_response(exc: ParseError) -> JSONResponse:
    return JSONResponse(status_code=400, content=rpc_error(None, exc.rpc_code, exc.public_message))


def create_gateway_app(
    config: Optional[AppConfig] = None,
    store: Optional[MockDomainStore] = None,
) -> FastAPI:
    """
    Build the gateway application.

    Args:
        config: application config; the global config is used when omitted
        store: domain store to serve (finance variant); a seeded one by default
    """
    cfg = config or get_config()
    handler = build_handler(cfg, store)

    app = FastAPI(
        title="Open Finance MCP Gateway",
        description="JSON-RPC 2.0 MCP endpoint over an in-memory open-finance mock",
        version=__version__,
    )
    app.state.config = cfg
    app.state.handler = handler

    app.add_middleware(AccessLogMiddleware)
    app.mount("/metrics", make_asgi_app())

    @app.get("/health")
    async def health():
        return {"ok": True}

    @app.post("/mcp")
    async def mcp_endpoint(request: Request):
        try:
            body = parse_body(await request.body())
        except ParseError as exc:
            logger.warning(f"INVALID id=None reason={exc.message}")
            return parse_error_response(exc)
        return JSONResponse(content=request.app.state.handler.handle(body))

    return app
