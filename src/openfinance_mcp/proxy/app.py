"""
MCP Logging Proxy
=================
Passthrough proxy that relays JSON-RPC calls to an upstream gateway and
records one telemetry event per call.

Endpoints:
    - POST /mcp?phase=<tag>: forward the body upstream, relay the answer
    - GET /proxy-log: return and clear the buffered events
    - GET /health: liveness probe
    - /metrics: Prometheus exposition

The ``phase`` query parameter is proxy-local metadata and is never sent
upstream. Upstream failures become HTTP 502 with a ``-32000`` error that
keeps the caller's request id.
"""

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from loguru import logger
from prometheus_client import make_asgi_app

from openfinance_mcp import __version__
from openfinance_mcp.api.gateway import AccessLogMiddleware, parse_body, parse_error_response
from openfinance_mcp.core.config import AppConfig, ProxyConfig, get_config
from openfinance_mcp.core.exceptions import ParseError, UpstreamError
from openfinance_mcp.core.metrics import PROXY_UPSTREAM_LATENCY, record_forward, record_latency
from openfinance_mcp.mcp.schemas import is_valid_id, rpc_error
from openfinance_mcp.proxy.event_log import EventLog, LogEvent
from openfinance_mcp.proxy.upstream import UpstreamClient

_METHOD_COLORS = {
    "tools/call": "cyan",
    "tools/list": "magenta",
    "initialize": "yellow",
}


def snippet(text: str, max_chars: int) -> str:
    return text if len(text) <= max_chars else text[:max_chars] + " …"


def fmt_ms(ms: Optional[float]) -> str:
    if ms is None:
        return "-"
    if ms < 1000:
        return f"{round(ms)} ms"
    return f"{ms / 1000:.3f} s"


def _escape(value: Any) -> str:
    return str(value).replace("<", r"\<")


def _status_color(status: Optional[int]) -> str:
    if status is None:
        return "yellow"
    if 200 <= status < 300:
        return "green"
    if status >= 400:
        return "red"
    return "cyan"


def line_for(ev: LogEvent) -> str:
    """One-line colored summary of an event (loguru markup)."""
    method_color = _METHOD_COLORS.get(ev.method, "dim")
    status_color = _status_color(ev.status)
    parts = [
        f"<bold>#{ev.seq}</bold>",
        f"[{_escape(ev.phase)}]" if ev.phase else "",
        f"<{method_color}>{_escape(ev.method or '-')}</{method_color}>",
        f"<bold>{_escape(ev.tool)}</bold>" if ev.tool else "",
        f"id={_escape(ev.id if ev.id is not None else '-')}",
        f"status=<{status_color}>{ev.status if ev.status is not None else '-'}</{status_color}>",
        f"time=<bold>{fmt_ms(ev.duration_ms)}</bold>",
    ]
    return " ".join(p for p in parts if p)


def banner_lines(cfg: ProxyConfig) -> list:
    lines = [
        "  ".join([
            "MCP logging proxy",
            f"listen=http://{cfg.host}:{cfg.port}/mcp?phase=...",
            f"upstream={cfg.upstream_url}",
            f"verbose={int(cfg.verbose)}",
            f"log_bodies={int(cfg.log_bodies)}",
            f"max_body={cfg.max_body_chars}",
            f"timeout={cfg.timeout_seconds}s",
        ])
    ]
    if cfg.verbose:
        lines += [
            "Examples:",
            f"  curl http://{cfg.host}:{cfg.port}/health",
            f"  curl -s -X POST 'http://{cfg.host}:{cfg.port}/mcp?phase=test' \\",
            "    -H 'Content-Type: application/json' \\",
            "    -d '{\"jsonrpc\":\"2.0\",\"id\":1,\"method\":\"initialize\",\"params\":{}}'",
            f"  curl http://{cfg.host}:{cfg.port}/proxy-log",
        ]
    return lines


class LoggingProxy:
    """Forwarding and telemetry logic, independent of the web framework."""

    def __init__(self, config: ProxyConfig, upstream: UpstreamClient, events: EventLog):
        self.config = config
        self.upstream = upstream
        self.events = events

    def _log(self, ev: LogEvent) -> None:
        logger.opt(colors=True).info(line_for(ev))

    async def handle(self, raw: bytes, phase: Optional[str]) -> Response:
        cfg = self.config
        req_snippet = None
        if cfg.log_bodies:
            req_snippet = snippet(raw.decode("utf-8", errors="replace"), cfg.max_body_chars)

        try:
            body = parse_body(raw)
        except ParseError as exc:
            ev = self.events.start(None, phase=phase, req_snippet=req_snippet)
            ev.complete(400, error="invalid JSON")
            self._log(ev)
            return parse_error_response(exc)

        envelope = body if isinstance(body, dict) else {}
        params = envelope.get("params") if isinstance(envelope.get("params"), dict) else {}
        request_id = envelope.get("id") if is_valid_id(envelope.get("id")) else None
        method = envelope.get("method") if isinstance(envelope.get("method"), str) else None
        tool = params.get("name") if isinstance(params.get("name"), str) else None

        ev = self.events.start(
            request_id,
            method=method,
            tool=tool,
            arguments=params.get("arguments"),
            phase=phase,
            req_snippet=req_snippet,
        )
        self._log(ev)
        if req_snippet:
            logger.info(f"  req: {req_snippet}")

        try:
            with record_latency(PROXY_UPSTREAM_LATENCY, {"method": method or "-"}):
                upstream = await self.upstream.forward(raw)
        except UpstreamError as exc:
            ev.complete(exc.http_status, error=exc.reason)
            record_forward(method, exc.http_status)
            logger.error(f"  error: {exc}")
            self._log(ev)
            return JSONResponse(
                status_code=exc.http_status,
                content=rpc_error(request_id, **exc.to_rpc_error()),
            )

        resp_snippet = snippet(upstream.text, cfg.max_body_chars) if cfg.log_bodies else None
        ev.complete(upstream.status, resp_snippet=resp_snippet)
        record_forward(method, upstream.status)
        self._log(ev)
        if resp_snippet:
            logger.info(f"  res: {resp_snippet}")

        return Response(
            content=upstream.body,
            status_code=upstream.status,
            media_type="application/json",
        )


def create_proxy_app(
    config: Optional[AppConfig] = None,
    upstream: Optional[UpstreamClient] = None,
    events: Optional[EventLog] = None,
) -> FastAPI:
    """
    Build the proxy application.

    Args:
        config: application config; the global config is used when omitted
        upstream: forwarder to use (built from ``config.proxy`` by default)
        events: event buffer (a fresh one by default)
    """
    cfg = config or get_config()
    proxy_cfg = cfg.proxy
    proxy = LoggingProxy(
        proxy_cfg,
        upstream if upstream is not None
        else UpstreamClient(proxy_cfg.upstream_url, proxy_cfg.timeout_seconds),
        events if events is not None else EventLog(),
    )

    app = FastAPI(
        title="Open Finance MCP Logging Proxy",
        description="Passthrough JSON-RPC proxy with per-call telemetry",
        version=__version__,
    )
    app.state.config = cfg
    app.state.proxy = proxy

    app.add_middleware(AccessLogMiddleware)
    app.mount("/metrics", make_asgi_app())

    @app.get("/health")
    async def health():
        return {"ok": True}

    @app.get("/proxy-log")
    async def proxy_log(request: Request):
        return {"ok": True, "events": request.app.state.proxy.events.drain()}

    @app.post("/mcp")
    async def mcp_endpoint(request: Request):
        phase = request.query_params.get("phase") or None
        return await request.app.state.proxy.handle(await request.body(), phase)

    return app
