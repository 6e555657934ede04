"""
Open Finance MCP
================

A minimal MCP (Model Context Protocol) JSON-RPC 2.0 gateway over an
in-memory open-finance mock, plus a passthrough logging proxy.

Main Packages:
    - core: configuration, exceptions, logging, metrics
    - domain: mock consent/accounts/transactions store, astro helpers
    - mcp: tool registry, tool dispatcher, JSON-RPC envelope handler
    - api: FastAPI gateway application
    - proxy: logging proxy application, event log, upstream forwarder
    - client: synchronous HTTP client for a gateway or proxy
    - cli: command-line interface

Quick Start:
    openfinance-mcp serve --port 3211
    openfinance-mcp proxy --port 33211 --upstream http://127.0.0.1:3211/mcp
    openfinance-mcp call http://127.0.0.1:33211/mcp cmf.accounts.list \
        --args '{"customerId": "cust-001"}'
"""

__version__ = "0.6.0"
