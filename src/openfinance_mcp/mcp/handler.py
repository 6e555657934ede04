"""
JSON-RPC Envelope Handler
=========================
Validates JSON-RPC 2.0 envelopes and routes them to the MCP methods:

    - notifications/initialized  (one-way, no id required)
    - initialize
    - tools/list
    - tools/call

The handler never raises for protocol problems; every outcome is a
response envelope that preserves the caller's ``id``.
"""

from typing import Any, Callable, Dict, Optional

from loguru import logger

from openfinance_mcp.core.config import GatewayConfig
from openfinance_mcp.core.exceptions import (
    GatewayError,
    InvalidRequestError,
    MethodNotFoundError,
)
from openfinance_mcp.core.logging_config import safe_dumps
from openfinance_mcp.core.metrics import record_rpc
from openfinance_mcp.mcp.dispatcher import ToolDispatcher
from openfinance_mcp.mcp.schemas import (
    JSONRPC_VERSION,
    is_valid_id,
    rpc_error,
    rpc_result,
)

NOTIFICATION_INITIALIZED = "notifications/initialized"

MethodHandler = Callable[[Any, Dict[str, Any]], Dict[str, Any]]


class JsonRpcHandler:
    """
    Stateless per call; all state lives in the dispatcher's store.

    Args:
        config: gateway settings (server info, protocol mode/version)
        dispatcher: tool dispatcher for ``tools/call`` and ``tools/list``
        log_truncate: maximum characters of any body rendered in a log line
    """

    def __init__(self, config: GatewayConfig, dispatcher: ToolDispatcher, log_truncate: int = 500):
        self.config = config
        self.dispatcher = dispatcher
        self._log_truncate = log_truncate
        self._methods: Dict[str, MethodHandler] = {
            NOTIFICATION_INITIALIZED: self._notifications_initialized,
            "initialize": self._initialize,
            "tools/list": self._tools_list,
            "tools/call": self._tools_call,
        }

    @property
    def methods(self):
        return tuple(self._methods)

    def handle(self, body: Any) -> Dict[str, Any]:
        """Turn one parsed JSON value into one response envelope."""
        envelope = body if isinstance(body, dict) else {}
        request_id = envelope.get("id")
        corr = request_id if is_valid_id(request_id) else None
        method = envelope.get("method")

        try:
            self._validate(envelope)
            route = self._methods.get(method)
            if route is None:
                raise MethodNotFoundError(method)
            response = route(request_id, envelope.get("params"))
        except InvalidRequestError as exc:
            logger.warning(
                f"INVALID id={corr} reason={exc.reason} "
                f"body={safe_dumps(body, self._log_truncate)}"
            )
            record_rpc(None, "invalid")
            return rpc_error(corr, **exc.to_rpc_error())
        except GatewayError as exc:
            logger.warning(f"ERROR id={corr} method={method} reason={exc}")
            record_rpc(method if method in self._methods else None, "error")
            return rpc_error(request_id, **exc.to_rpc_error())

        record_rpc(method, "ok")
        return response

    @staticmethod
    def _validate(envelope: Dict[str, Any]) -> None:
        if envelope.get("jsonrpc") != JSONRPC_VERSION:
            raise InvalidRequestError("jsonrpc must be \"2.0\"")
        method = envelope.get("method")
        if not isinstance(method, str):
            raise InvalidRequestError("method must be a string")
        if method != NOTIFICATION_INITIALIZED and not is_valid_id(envelope.get("id")):
            raise InvalidRequestError("id must be a string or number")

    # --- Methods ---

    def _notifications_initialized(self, request_id, params) -> Dict[str, Any]:
        logger.info(
            f"NOTIFY id=null phase={NOTIFICATION_INITIALIZED} "
            f"params={safe_dumps(params, self._log_truncate)}"
        )
        return rpc_result(None, {})

    def _initialize(self, request_id, params) -> Dict[str, Any]:
        logger.info(f"INIT id={request_id} params={safe_dumps(params, self._log_truncate)}")
        result: Dict[str, Any] = {}
        protocol_version = self._negotiate_protocol_version(params)
        if protocol_version:
            result["protocolVersion"] = protocol_version
        result["serverInfo"] = {
            "name": self.config.server_name,
            "version": self.config.server_version,
        }
        result["capabilities"] = {"tools": {}}
        logger.debug(
            f"RESP id={request_id} phase=initialize result={safe_dumps(result, self._log_truncate)}"
        )
        return rpc_result(request_id, result)

    def _negotiate_protocol_version(self, params) -> Optional[Any]:
        if self.config.protocol_mode == "echo":
            return params.get("protocolVersion") if isinstance(params, dict) else None
        return self.config.protocol_version

    def _tools_list(self, request_id, params) -> Dict[str, Any]:
        logger.info(f"LIST id={request_id}")
        tools = self.dispatcher.registry.to_wire()
        logger.debug(f"RESP id={request_id} phase=tools/list tools={len(tools)}")
        return rpc_result(request_id, {"tools": tools})

    def _tools_call(self, request_id, params) -> Dict[str, Any]:
        params = params if isinstance(params, dict) else {}
        name = params.get("name")
        arguments = params.get("arguments")
        if arguments is None:
            arguments = {}
        logger.info(
            f"CALL id={request_id} tool={name} args={safe_dumps(arguments, self._log_truncate)}"
        )
        return rpc_result(request_id, self.dispatcher.call(name, arguments, request_id=request_id))
