"""
Gateway API Package
===================
FastAPI application serving the MCP JSON-RPC endpoint.

Endpoints:
    - POST /mcp: JSON-RPC 2.0 envelope
    - GET /health: liveness probe
    - GET /metrics: Prometheus metrics
"""
