"""
Open Finance MCP CLI - Main Entry Point

Command-line interface for running and probing the gateway and the proxy.

Usage:
    openfinance-mcp serve --port 3211                        # Run the gateway
    openfinance-mcp serve --variant astro                    # Run the astro mock
    openfinance-mcp proxy --upstream http://127.0.0.1:3211/mcp --log-bodies
    openfinance-mcp health http://127.0.0.1:3211/mcp         # Liveness probe
    openfinance-mcp tools http://127.0.0.1:3211/mcp          # List tools
    openfinance-mcp call http://127.0.0.1:3211/mcp cmf.accounts.list \
        --args '{"customerId": "cust-001"}'
    openfinance-mcp proxy-log http://127.0.0.1:33211/mcp     # Drain proxy events
"""

import dataclasses
import json
import sys
from pathlib import Path
from typing import Optional

import click
from loguru import logger

from openfinance_mcp.client import GatewayClient, GatewayClientError
from openfinance_mcp.cli.formatters import (
    decode_tool_result,
    format_events_table,
    format_tools_table,
)
from openfinance_mcp.core.config import (
    DEFAULT_PROTOCOL_MODE,
    DEFAULT_SERVER_INFO,
    PROTOCOL_MODES,
    VARIANTS,
    AppConfig,
    load_config,
)
from openfinance_mcp.core.exceptions import ConfigurationError
from openfinance_mcp.core.logging_config import configure_logging


def _load(ctx) -> AppConfig:
    path = ctx.obj.get("config_path")
    try:
        return load_config(Path(path) if path else None)
    except ConfigurationError as exc:
        raise click.ClickException(str(exc)) from exc


def _setup_logging(ctx, cfg: AppConfig) -> None:
    level = "DEBUG" if ctx.obj.get("verbose") else cfg.observability.log_level
    configure_logging(level=level, json_format=cfg.observability.log_format == "json")


def _echo_json(data) -> None:
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


def _fail(exc: GatewayClientError) -> None:
    click.echo(f"Error: {exc.message}", err=True)
    sys.exit(1)


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to config.yaml",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable debug logging",
)
@click.pass_context
def cli(ctx, config: Optional[str], verbose: bool):
    """
    Open Finance MCP - JSON-RPC gateway and logging proxy
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config_path"] = config

    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO")


# ============================================================================
# Servers
# ============================================================================

@cli.command()
@click.option("--host", help="Bind address (default from config)")
@click.option("--port", "-p", type=int, help="Listen port (default from config)")
@click.option("--variant", type=click.Choice(VARIANTS), help="Tool set to serve")
@click.option(
    "--protocol-mode",
    type=click.Choice(PROTOCOL_MODES),
    help="initialize behaviour: fixed version or echo the client's",
)
@click.pass_context
def serve(ctx, host: Optional[str], port: Optional[int], variant: Optional[str], protocol_mode: Optional[str]):
    """
    Run the MCP gateway.

    Example:
        openfinance-mcp serve --port 3211
    """
    import uvicorn
    from openfinance_mcp.api.gateway import create_gateway_app

    cfg = _load(ctx)
    gateway = cfg.gateway
    if variant and variant != gateway.variant:
        name, version = DEFAULT_SERVER_INFO[variant]
        gateway = dataclasses.replace(
            gateway,
            variant=variant,
            protocol_mode=DEFAULT_PROTOCOL_MODE[variant],
            server_name=name,
            server_version=version,
        )
    gateway = dataclasses.replace(
        gateway,
        host=host or gateway.host,
        port=port or gateway.port,
        protocol_mode=protocol_mode or gateway.protocol_mode,
    )
    cfg = dataclasses.replace(cfg, gateway=gateway)

    _setup_logging(ctx, cfg)
    base = f"http://{gateway.host}:{gateway.port}"
    logger.info(
        f"{gateway.server_name} (JSON-RPC 2.0) running at {base}/mcp "
        f"variant={gateway.variant} protocol_mode={gateway.protocol_mode}"
    )
    logger.info(
        f"LOG_LEVEL={cfg.observability.log_level} LOG_TRUNCATE={cfg.observability.log_truncate}"
    )
    logger.info(f"Health: curl {base}/health")

    uvicorn.run(create_gateway_app(cfg), host=gateway.host, port=gateway.port, log_config=None)


@cli.command()
@click.option("--host", help="Bind address (default from config)")
@click.option("--port", "-p", type=int, help="Listen port (default from config)")
@click.option("--upstream", "-u", help="Upstream /mcp URL")
@click.option("--log-bodies/--no-log-bodies", default=None, help="Log request/response snippets")
@click.option("--max-body", type=int, help="Snippet length cap")
@click.option("--timeout", type=float, help="Upstream timeout in seconds")
@click.pass_context
def proxy(
    ctx,
    host: Optional[str],
    port: Optional[int],
    upstream: Optional[str],
    log_bodies: Optional[bool],
    max_body: Optional[int],
    timeout: Optional[float],
):
    """
    Run the passthrough logging proxy.

    Example:
        openfinance-mcp proxy --upstream http://127.0.0.1:3211/mcp --log-bodies
    """
    import uvicorn
    from openfinance_mcp.proxy.app import banner_lines, create_proxy_app

    cfg = _load(ctx)
    proxy_cfg = dataclasses.replace(
        cfg.proxy,
        host=host or cfg.proxy.host,
        port=port or cfg.proxy.port,
        upstream_url=upstream or cfg.proxy.upstream_url,
        log_bodies=cfg.proxy.log_bodies if log_bodies is None else log_bodies,
        max_body_chars=max_body or cfg.proxy.max_body_chars,
        timeout_seconds=timeout or cfg.proxy.timeout_seconds,
    )
    cfg = dataclasses.replace(cfg, proxy=proxy_cfg)

    _setup_logging(ctx, cfg)
    for line in banner_lines(proxy_cfg):
        logger.info(line)

    uvicorn.run(create_proxy_app(cfg), host=proxy_cfg.host, port=proxy_cfg.port, log_config=None)


# ============================================================================
# Probes
# ============================================================================

@cli.command()
@click.argument("endpoint")
@click.option("--timeout", type=float, default=5, help="Request timeout in seconds")
def health(endpoint: str, timeout: float):
    """
    Check GET /health on the server behind ENDPOINT.
    """
    try:
        data = GatewayClient(endpoint, timeout_seconds=timeout).health()
    except GatewayClientError as exc:
        _fail(exc)
        return
    if data.get("ok") is True:
        click.echo("ok")
    else:
        click.echo(f"unhealthy: {data}", err=True)
        sys.exit(1)


@cli.command()
@click.argument("endpoint")
@click.option("--phase", help="Phase tag (proxy only)")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def tools(endpoint: str, phase: Optional[str], output_json: bool):
    """
    List the tools advertised by ENDPOINT.
    """
    try:
        items = GatewayClient(endpoint, phase=phase).list_tools()
    except GatewayClientError as exc:
        _fail(exc)
        return
    if output_json:
        _echo_json(items)
    else:
        click.echo(format_tools_table(items))


@cli.command()
@click.argument("endpoint")
@click.argument("tool")
@click.option("--args", "arguments", default="{}", help="Tool arguments as a JSON object")
@click.option("--phase", help="Phase tag (proxy only)")
@click.option("--json", "output_json", is_flag=True, help="Output the raw MCP result")
def call(endpoint: str, tool: str, arguments: str, phase: Optional[str], output_json: bool):
    """
    Invoke TOOL on ENDPOINT and print its payload.

    Example:
        openfinance-mcp call http://127.0.0.1:3211/mcp cmf.tx.search \\
            --args '{"accountId": "acc-001", "from": "2025-10-01", "to": "2025-10-31"}'
    """
    try:
        parsed = json.loads(arguments)
    except json.JSONDecodeError:
        click.echo(f"Error: Invalid JSON arguments: {arguments}", err=True)
        sys.exit(2)

    try:
        result = GatewayClient(endpoint, phase=phase).call_tool(tool, parsed)
    except GatewayClientError as exc:
        _fail(exc)
        return
    _echo_json(result if output_json else decode_tool_result(result))


@cli.command("proxy-log")
@click.argument("endpoint")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def proxy_log(endpoint: str, output_json: bool):
    """
    Drain the telemetry buffered by the proxy behind ENDPOINT.
    """
    try:
        data = GatewayClient(endpoint).drain_proxy_log()
    except GatewayClientError as exc:
        _fail(exc)
        return
    events = data.get("events", [])
    if output_json:
        _echo_json(events)
    else:
        click.echo(format_events_table(events))


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
