"""
Observability Metrics
=====================
Central definition of Prometheus metrics and utility helpers.
"""

import time
from contextlib import contextmanager
from typing import Optional

from prometheus_client import Counter, Histogram

# --- Metrics Definitions ---
# Gateway
RPC_REQUEST_COUNT = Counter(
    "ofmcp_rpc_requests_total",
    "JSON-RPC requests handled by the gateway",
    ["method", "outcome"]
)
TOOL_CALL_COUNT = Counter(
    "ofmcp_tool_calls_total",
    "tools/call invocations",
    ["tool", "outcome"]
)
TOOL_CALL_LATENCY = Histogram(
    "ofmcp_tool_call_latency_seconds",
    "Tool handler latency",
    ["tool"]
)

# Proxy
PROXY_FORWARD_COUNT = Counter(
    "ofmcp_proxy_forwards_total",
    "Calls forwarded upstream by the proxy",
    ["method", "status"]
)
PROXY_UPSTREAM_LATENCY = Histogram(
    "ofmcp_proxy_upstream_latency_seconds",
    "Upstream round-trip latency seen by the proxy",
    ["method"]
)


@contextmanager
def record_latency(metric: Histogram, labels: Optional[dict] = None):
    """Observe the wall time of the enclosed block on ``metric``."""
    start_time = time.perf_counter()
    try:
        yield
    finally:
        duration = time.perf_counter() - start_time
        if labels:
            metric.labels(**labels).observe(duration)
        else:
            metric.observe(duration)


def record_rpc(method: Optional[str], outcome: str) -> None:
    RPC_REQUEST_COUNT.labels(method=method or "-", outcome=outcome).inc()


def record_tool_call(tool: Optional[str], outcome: str) -> None:
    TOOL_CALL_COUNT.labels(tool=tool or "-", outcome=outcome).inc()


def record_forward(method: Optional[str], status: int) -> None:
    PROXY_FORWARD_COUNT.labels(method=method or "-", status=str(status)).inc()
