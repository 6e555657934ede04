"""
Gateway Client
==============
Synchronous HTTP client for a gateway or a logging proxy.
"""

import itertools
from typing import Any, Dict, Optional
import urllib.parse

import requests

from openfinance_mcp.core.exceptions import GatewayError


class GatewayClientError(GatewayError):
    """
    Exception raised when talking to a gateway fails.

    Attributes:
        status_code: HTTP status code if available (None for network errors).
        rpc_error: the JSON-RPC ``error`` member, when the gateway sent one.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        rpc_error: Optional[dict] = None,
    ):
        ctx: Dict[str, Any] = {}
        if status_code is not None:
            ctx["status_code"] = status_code
        if rpc_error is not None:
            ctx["rpc_error"] = rpc_error
        super().__init__(message, ctx)
        self.status_code = status_code
        self.rpc_error = rpc_error


class GatewayClient:
    """
    Args:
        endpoint: full URL of the ``/mcp`` endpoint
        timeout_seconds: per-request timeout
        phase: optional phase tag, sent as ``?phase=`` (only meaningful for a proxy)
    """

    def __init__(self, endpoint: str, timeout_seconds: float = 15, phase: Optional[str] = None):
        self.endpoint = endpoint
        self.timeout_seconds = timeout_seconds
        self.phase = phase
        self._ids = itertools.count(1)

        parts = urllib.parse.urlsplit(endpoint)
        self.base_url = urllib.parse.urlunsplit((parts.scheme, parts.netloc, "", "", ""))

    def _endpoint_url(self) -> str:
        if not self.phase:
            return self.endpoint
        separator = "&" if "?" in self.endpoint else "?"
        return f"{self.endpoint}{separator}{urllib.parse.urlencode({'phase': self.phase})}"

    def _request(self, method: str, url: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        try:
            response = requests.request(
                method=method,
                url=url,
                json=payload,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as exc:
            raise GatewayClientError(f"Request failed: {exc}") from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise GatewayClientError(
                "Gateway returned non-JSON response", status_code=response.status_code
            ) from exc

        if response.status_code >= 400:
            rpc_err = data.get("error") if isinstance(data, dict) else None
            raise GatewayClientError(
                f"Gateway error ({response.status_code}): {data}",
                status_code=response.status_code,
                rpc_error=rpc_err if isinstance(rpc_err, dict) else None,
            )
        return data

    # --- JSON-RPC ---

    def rpc(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Send one request and return its ``result``; JSON-RPC errors raise."""
        envelope = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params or {},
        }
        data = self._request("POST", self._endpoint_url(), envelope)
        if isinstance(data, dict) and "error" in data:
            err = data["error"]
            raise GatewayClientError(
                f"JSON-RPC error {err.get('code')}: {err.get('message')}", rpc_error=err
            )
        return data.get("result") if isinstance(data, dict) else None

    def notify_initialized(self) -> Any:
        envelope = {"jsonrpc": "2.0", "method": "notifications/initialized", "params": {}}
        return self._request("POST", self._endpoint_url(), envelope)

    def initialize(self, protocol_version: Optional[str] = None) -> Dict[str, Any]:
        params: Dict[str, Any] = {"clientInfo": {"name": "openfinance-mcp", "version": "0.6.0"}}
        if protocol_version:
            params["protocolVersion"] = protocol_version
        return self.rpc("initialize", params)

    def list_tools(self) -> list:
        return (self.rpc("tools/list") or {}).get("tools", [])

    def call_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self.rpc("tools/call", {"name": name, "arguments": arguments or {}})

    # --- Plain HTTP ---

    def health(self) -> Dict[str, Any]:
        return self._request("GET", f"{self.base_url}/health")

    def drain_proxy_log(self) -> Dict[str, Any]:
        return self._request("GET", f"{self.base_url}/proxy-log")
