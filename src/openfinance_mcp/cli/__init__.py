"""
Open Finance MCP CLI Module

Provides the ``openfinance-mcp`` command.
"""

from .main import cli, main

__all__ = ["cli", "main"]
