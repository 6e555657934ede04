"""
Tests for JSON-RPC envelope validation and method routing.
"""

import json

import pytest

from openfinance_mcp.core.config import GatewayConfig
from openfinance_mcp.mcp.dispatcher import ToolDispatcher
from openfinance_mcp.mcp.handler import JsonRpcHandler


@pytest.fixture
def handler(store):
    return JsonRpcHandler(GatewayConfig(), ToolDispatcher.for_variant("finance", store))


@pytest.fixture
def astro_handler():
    config = GatewayConfig(
        variant="astro", protocol_mode="echo", server_name="mcp-astro", server_version="0.2.0"
    )
    return JsonRpcHandler(config, ToolDispatcher.for_variant("astro"))


def call(handler, method, params=None, request_id=1):
    return handler.handle({"jsonrpc": "2.0", "id": request_id, "method": method, "params": params or {}})


class TestEnvelopeValidation:
    def test_wrong_version(self, handler):
        resp = handler.handle({"jsonrpc": "1.0", "id": 5, "method": "tools/list"})
        assert resp == {
            "jsonrpc": "2.0",
            "id": 5,
            "error": {"code": -32600, "message": "Invalid Request (JSON-RPC 2.0)"},
        }

    def test_missing_method(self, handler):
        resp = handler.handle({"jsonrpc": "2.0", "id": "a"})
        assert resp["error"]["code"] == -32600
        assert resp["id"] == "a"

    def test_non_string_method(self, handler):
        resp = handler.handle({"jsonrpc": "2.0", "id": 1, "method": 42})
        assert resp["error"]["code"] == -32600

    def test_missing_id(self, handler):
        resp = handler.handle({"jsonrpc": "2.0", "method": "tools/list"})
        assert resp["error"]["code"] == -32600
        assert resp["id"] is None

    def test_boolean_id_is_invalid(self, handler):
        resp = handler.handle({"jsonrpc": "2.0", "id": True, "method": "tools/list"})
        assert resp["error"]["code"] == -32600
        assert resp["id"] is None

    def test_object_id_is_invalid(self, handler):
        resp = handler.handle({"jsonrpc": "2.0", "id": {"x": 1}, "method": "tools/list"})
        assert resp["error"]["code"] == -32600
        assert resp["id"] is None

    def test_non_object_body(self, handler):
        resp = handler.handle([1, 2, 3])
        assert resp["error"]["code"] == -32600
        assert resp["id"] is None

    def test_version_is_checked_before_method(self, handler):
        resp = handler.handle({"id": 9, "method": "nope"})
        assert resp["error"]["code"] == -32600

    def test_string_and_float_ids_are_preserved(self, handler):
        assert call(handler, "tools/list", request_id="req-1")["id"] == "req-1"
        assert call(handler, "tools/list", request_id=2.5)["id"] == 2.5


class TestNotification:
    def test_initialized_without_id(self, handler):
        resp = handler.handle({"jsonrpc": "2.0", "method": "notifications/initialized"})
        assert resp == {"jsonrpc": "2.0", "id": None, "result": {}}

    def test_initialized_with_id_still_answers_null(self, handler):
        resp = call(handler, "notifications/initialized", request_id=3)
        assert resp["id"] is None
        assert resp["result"] == {}


class TestInitialize:
    def test_fixed_protocol_version(self, handler):
        resp = call(handler, "initialize", {"protocolVersion": "2099-01-01"})
        assert resp["result"] == {
            "protocolVersion": "2024-11-05",
            "serverInfo": {"name": "mcp-open-finance", "version": "0.6.0"},
            "capabilities": {"tools": {}},
        }

    def test_echo_protocol_version(self, astro_handler):
        resp = call(astro_handler, "initialize", {"protocolVersion": "2025-06-18"})
        assert resp["result"]["protocolVersion"] == "2025-06-18"
        assert resp["result"]["serverInfo"] == {"name": "mcp-astro", "version": "0.2.0"}

    def test_echo_without_version_omits_field(self, astro_handler):
        resp = call(astro_handler, "initialize", {})
        assert "protocolVersion" not in resp["result"]


class TestTools:
    def test_list_is_byte_identical(self, handler):
        first = json.dumps(call(handler, "tools/list"))
        second = json.dumps(call(handler, "tools/list"))
        assert first == second
        assert len(json.loads(first)["result"]["tools"]) == 7

    def test_call(self, handler):
        resp = call(
            handler, "tools/call", {"name": "cmf.accounts.list", "arguments": {"customerId": "cust-001"}}
        )
        text = resp["result"]["content"][0]["text"]
        assert json.loads(text)["accounts"][0]["id"] == "acc-001"

    def test_call_without_arguments(self, handler):
        resp = call(handler, "tools/call", {"name": "cmf.events.subscribe"})
        assert json.loads(resp["result"]["content"][0]["text"]) == {"subscribed": True}

    def test_unknown_tool(self, handler):
        resp = call(handler, "tools/call", {"name": "cmf.nope"}, request_id=11)
        assert resp == {
            "jsonrpc": "2.0",
            "id": 11,
            "error": {"code": -32601, "message": "Unknown tool: cmf.nope"},
        }

    def test_tool_failure_is_generic(self, handler):
        resp = call(
            handler,
            "tools/call",
            {"name": "cmf.cashflow.compute", "arguments": {"horizonDays": "many"}},
            request_id=12,
        )
        assert resp["id"] == 12
        assert resp["error"] == {"code": -32000, "message": "Server error"}


def test_unknown_method(handler):
    resp = call(handler, "resources/list", request_id=4)
    assert resp == {
        "jsonrpc": "2.0",
        "id": 4,
        "error": {"code": -32601, "message": "Method not found: resources/list"},
    }


def test_exposed_methods(handler):
    assert set(handler.methods) == {
        "initialize",
        "notifications/initialized",
        "tools/list",
        "tools/call",
    }


def test_error_envelopes_match_exception_rendering(handler):
    from openfinance_mcp.core.exceptions import ToolNotFoundError

    resp = call(handler, "tools/call", {"name": "cmf.gone"}, request_id=13)
    assert resp["error"] == ToolNotFoundError("cmf.gone").to_rpc_error()
