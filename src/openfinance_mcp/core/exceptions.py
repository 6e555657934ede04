"""
Open Finance MCP Exceptions
===========================

Exception hierarchy shared by the gateway and the proxy.

Exception Hierarchy:
    GatewayError (base)
    ├── ConfigurationError
    ├── ProtocolError (reported to the caller as a JSON-RPC error)
    │   ├── ParseError            (-32700)
    │   ├── InvalidRequestError   (-32600)
    │   ├── MethodNotFoundError   (-32601)
    │   └── ToolNotFoundError     (-32601)
    ├── ToolExecutionError        (-32000)
    └── UpstreamError             (-32000, proxy only)
        ├── UpstreamTimeoutError
        └── UpstreamResponseError

Usage Guidelines:
    - Protocol errors never become transport errors: the gateway answers
      them with HTTP 200 and an ``error`` member.
    - ``public_message`` is what leaves the process; ``message`` and
      ``context`` are for server-side logs only.
"""

from typing import Any, Optional


# JSON-RPC 2.0 error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
SERVER_ERROR = -32000


class GatewayError(Exception):
    """
    Base exception for all gateway and proxy errors.

    Attributes:
        message: Human-readable error message (server side)
        context: Additional context about the error
        rpc_code: JSON-RPC error code used when reported to a caller
    """

    rpc_code: int = SERVER_ERROR

    def __init__(self, message: str, context: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            return f"{self.message} | context={self.context}"
        return self.message

    @property
    def public_message(self) -> str:
        return self.message

    def to_rpc_error(self) -> dict:
        """Build the ``error`` member of a JSON-RPC response."""
        return {"code": self.rpc_code, "message": self.public_message}


class ConfigurationError(GatewayError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, config_key: str, reason: str, context: Optional[dict] = None):
        ctx = {"config_key": config_key}
        if context:
            ctx.update(context)
        super().__init__(f"Configuration error for '{config_key}': {reason}", ctx)
        self.config_key = config_key


# =============================================================================
# Protocol Errors
# =============================================================================

class ProtocolError(GatewayError):
    """Base class for errors in the shape or routing of a JSON-RPC call."""


class ParseError(ProtocolError):
    rpc_code = PARSE_ERROR

    def __init__(self, reason: str = "Parse error", context: Optional[dict] = None):
        super().__init__(reason, context)

    @property
    def public_message(self) -> str:
        return "Parse error"


class InvalidRequestError(ProtocolError):
    """Raised when an envelope is not a valid JSON-RPC 2.0 request."""
    rpc_code = INVALID_REQUEST

    def __init__(self, reason: str, context: Optional[dict] = None):
        super().__init__(f"Invalid JSON-RPC envelope: {reason}", context)
        self.reason = reason

    @property
    def public_message(self) -> str:
        return "Invalid Request (JSON-RPC 2.0)"


class MethodNotFoundError(ProtocolError):
    rpc_code = METHOD_NOT_FOUND

    def __init__(self, method: Any, context: Optional[dict] = None):
        super().__init__(f"Method not found: {method}", context)
        self.method = method


class ToolNotFoundError(ProtocolError):
    rpc_code = METHOD_NOT_FOUND

    def __init__(self, tool_name: Any, context: Optional[dict] = None):
        super().__init__(f"Unknown tool: {tool_name}", context)
        self.tool_name = tool_name


# =============================================================================
# Execution Errors
# =============================================================================

class ToolExecutionError(GatewayError):
    """
    Raised when a tool handler fails.

    The original exception is kept for logging; callers only ever see the
    generic "Server error" message.
    """
    rpc_code = SERVER_ERROR

    def __init__(self, tool_name: Any, cause: BaseException, context: Optional[dict] = None):
        ctx = {"tool": tool_name, "exception": type(cause).__name__}
        if context:
            ctx.update(context)
        super().__init__(f"Tool '{tool_name}' failed: {cause}", ctx)
        self.tool_name = tool_name
        self.cause = cause

    @property
    def public_message(self) -> str:
        return "Server error"


# =============================================================================
# Upstream Errors (proxy)
# =============================================================================

class UpstreamError(GatewayError):
    """Raised when the proxy cannot obtain a usable upstream response."""
    rpc_code = SERVER_ERROR
    http_status: int = 502

    def __init__(self, upstream_url: str, reason: str, context: Optional[dict] = None):
        ctx = {"upstream": upstream_url}
        if context:
            ctx.update(context)
        super().__init__(reason, ctx)
        self.upstream_url = upstream_url
        self.reason = reason

    @property
    def public_message(self) -> str:
        return f"Proxy error: {self.reason}"


class UpstreamTimeoutError(UpstreamError):
    def __init__(self, upstream_url: str, timeout_seconds: float, context: Optional[dict] = None):
        ctx = {"timeout_seconds": timeout_seconds}
        if context:
            ctx.update(context)
        super().__init__(upstream_url, f"upstream timed out after {timeout_seconds}s", ctx)
        self.timeout_seconds = timeout_seconds


class UpstreamResponseError(UpstreamError):
    """Raised when the upstream answers with a body that is not JSON."""

    def __init__(self, upstream_url: str, status: int, context: Optional[dict] = None):
        ctx = {"status": status}
        if context:
            ctx.update(context)
        super().__init__(upstream_url, "upstream non-JSON response", ctx)
        self.status = status


__all__ = [
    "PARSE_ERROR",
    "INVALID_REQUEST",
    "METHOD_NOT_FOUND",
    "SERVER_ERROR",
    "GatewayError",
    "ConfigurationError",
    "ProtocolError",
    "ParseError",
    "InvalidRequestError",
    "MethodNotFoundError",
    "ToolNotFoundError",
    "ToolExecutionError",
    "UpstreamError",
    "UpstreamTimeoutError",
    "UpstreamResponseError",
]
