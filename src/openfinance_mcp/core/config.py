"""
Open Finance MCP Configuration
==============================
Centralized, validated configuration with environment variable overrides.

Values are read from ``config.yaml`` (top-level key ``openfinance_mcp``)
and then overridden by the environment variables the gateway and proxy
have always honoured (``MCP_PORT``, ``REAL_MCP_URL``, ``LOG_LEVEL``, ...).
Only this module reads the environment; everything else receives the
frozen records below by injection.
"""

import os
from pathlib import Path
from typing import Optional
from dataclasses import dataclass, field

import yaml

from openfinance_mcp.core.exceptions import ConfigurationError


VARIANTS = ("finance", "astro")
PROTOCOL_MODES = ("fixed", "echo")

# initialize behaviour per variant when protocol_mode is not set explicitly
DEFAULT_PROTOCOL_MODE = {"finance": "fixed", "astro": "echo"}
DEFAULT_SERVER_INFO = {
    "finance": ("mcp-open-finance", "0.6.0"),
    "astro": ("mcp-astro", "0.2.0"),
}


@dataclass(frozen=True)
class GatewayConfig:
    host: str = "127.0.0.1"
    port: int = 3211
    variant: str = "finance"
    protocol_mode: str = "fixed"
    protocol_version: str = "2024-11-05"
    server_name: str = "mcp-open-finance"
    server_version: str = "0.6.0"


@dataclass(frozen=True)
class ProxyConfig:
    upstream_url: str = "http://127.0.0.1:3211/mcp"
    host: str = "127.0.0.1"
    port: int = 33211
    verbose: bool = True
    log_bodies: bool = False
    max_body_chars: int = 200
    timeout_seconds: float = 30.0


@dataclass(frozen=True)
class ObservabilityConfig:
    log_level: str = "INFO"
    log_truncate: int = 500
    log_format: str = "text"


@dataclass(frozen=True)
class AppConfig:
    """Root configuration object."""
    gateway: GatewayConfig = field(default_factory=GatewayConfig)
    proxy: ProxyConfig = field(default_factory=ProxyConfig)
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)


def _env_override(key: str, default, *aliases: str):
    """
    Check ``key`` (then each alias) in the environment.

    The returned value is coerced to the type of ``default`` so that YAML
    defaults and string environment values end up with the same type.
    """
    for env_key in (key, *aliases):
        val = os.environ.get(env_key)
        if val is None:
            continue
        if isinstance(default, bool):
            return val.lower() in ("1", "true", "yes", "on")
        if isinstance(default, int):
            try:
                return int(val)
            except ValueError as exc:
                raise ConfigurationError(env_key, f"expected an integer, got {val!r}") from exc
        if isinstance(default, float):
            try:
                return float(val)
            except ValueError as exc:
                raise ConfigurationError(env_key, f"expected a number, got {val!r}") from exc
        return val
    return default


def _require_positive(key: str, value) -> None:
    if value is None or value <= 0:
        raise ConfigurationError(key, f"must be positive, got {value!r}")


def _build_gateway(raw: dict) -> GatewayConfig:
    variant = _env_override("MCP_VARIANT", raw.get("variant", "finance"))
    if variant not in VARIANTS:
        raise ConfigurationError("gateway.variant", f"must be one of {VARIANTS}, got {variant!r}")

    protocol_mode = _env_override(
        "MCP_PROTOCOL_MODE", raw.get("protocol_mode", DEFAULT_PROTOCOL_MODE[variant])
    )
    if protocol_mode not in PROTOCOL_MODES:
        raise ConfigurationError(
            "gateway.protocol_mode", f"must be one of {PROTOCOL_MODES}, got {protocol_mode!r}"
        )

    default_name, default_version = DEFAULT_SERVER_INFO[variant]
    return GatewayConfig(
        host=_env_override("MCP_HOST", raw.get("host", "127.0.0.1")),
        port=_env_override("MCP_PORT", raw.get("port", 3211)),
        variant=variant,
        protocol_mode=protocol_mode,
        protocol_version=raw.get("protocol_version", "2024-11-05"),
        server_name=raw.get("server_name", default_name),
        server_version=raw.get("server_version", default_version),
    )


def _build_proxy(raw: dict) -> ProxyConfig:
    proxy = ProxyConfig(
        upstream_url=_env_override(
            "REAL_MCP_URL", raw.get("upstream_url", "http://127.0.0.1:3211/mcp"), "MCP_UPSTREAM"
        ),
        host=_env_override("MCP_PROXY_HOST", raw.get("host", "127.0.0.1")),
        port=_env_override("MCP_PROXY_PORT", raw.get("port", 33211)),
        verbose=_env_override("MCP_PROXY_VERBOSE", raw.get("verbose", True)),
        log_bodies=_env_override("MCP_PROXY_LOG_BODIES", raw.get("log_bodies", False)),
        max_body_chars=_env_override("MCP_PROXY_MAX_BODY", raw.get("max_body_chars", 200)),
        timeout_seconds=_env_override(
            "MCP_PROXY_TIMEOUT_SECONDS", float(raw.get("timeout_seconds", 30.0))
        ),
    )
    _require_positive("proxy.max_body_chars", proxy.max_body_chars)
    _require_positive("proxy.timeout_seconds", proxy.timeout_seconds)
    return proxy


def _build_observability(raw: dict) -> ObservabilityConfig:
    obs = ObservabilityConfig(
        log_level=_env_override("LOG_LEVEL", raw.get("log_level", "INFO")).upper(),
        log_truncate=_env_override("LOG_TRUNCATE", raw.get("log_truncate", 500)),
        log_format=_env_override("LOG_FORMAT", raw.get("log_format", "text")).lower(),
    )
    _require_positive("observability.log_truncate", obs.log_truncate)
    return obs


def load_config(path: Optional[Path] = None) -> AppConfig:
    """
    Load configuration from YAML file with environment variable overrides.

    Args:
        path: Path to config.yaml. If None, searches ./config.yaml.

    Returns:
        Validated AppConfig instance.
    """
    if path is None:
        candidate = Path("config.yaml")
        path = candidate if candidate.exists() else None
    elif not Path(path).exists():
        raise ConfigurationError("config_path", f"file not found: {path}")

    raw: dict = {}
    if path is not None:
        with open(path) as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise ConfigurationError("config_path", "top level must be a mapping")
        raw = loaded.get("openfinance_mcp") or {}

    return AppConfig(
        gateway=_build_gateway(raw.get("gateway") or {}),
        proxy=_build_proxy(raw.get("proxy") or {}),
        observability=_build_observability(raw.get("observability") or {}),
    )


# Module-level singleton (lazy-loaded)
_CONFIG: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get or initialize the global config singleton."""
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = load_config()
    return _CONFIG


def reset_config():
    """Reset the global config singleton (useful for testing)."""
    global _CONFIG
    _CONFIG = None
