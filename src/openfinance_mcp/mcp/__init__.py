"""
MCP Protocol Layer
==================
JSON-RPC 2.0 envelope handling and tool dispatch.

Supported methods:
    - initialize
    - notifications/initialized
    - tools/list
    - tools/call

Tool results are always MCP text content holding JSON; no output schema is
advertised, so clients accept them without structured-content validation.
"""

from .dispatcher import ToolDispatcher
from .handler import JsonRpcHandler
from .registry import ToolRegistry

__all__ = ["JsonRpcHandler", "ToolDispatcher", "ToolRegistry"]
