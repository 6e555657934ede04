"""
Tool Dispatcher
===============
Maps a ``tools/call`` invocation to its handler and wraps the result as MCP
text content.

Arguments are read field by field with defaults and are never validated
against the advertised input schema: a missing argument simply flows into
the computation, and whatever that computation raises is reported as a
generic server error.
"""

import time
from typing import Any, Callable, Dict, Optional

from loguru import logger

from openfinance_mcp.core.exceptions import ToolExecutionError, ToolNotFoundError
from openfinance_mcp.core.logging_config import safe_dumps
from openfinance_mcp.core.metrics import TOOL_CALL_LATENCY, record_latency, record_tool_call
from openfinance_mcp.domain import astro
from openfinance_mcp.domain.store import MockDomainStore
from openfinance_mcp.mcp.registry import ToolRegistry
from openfinance_mcp.mcp.schemas import text_content

ToolHandler = Callable[[Dict[str, Any]], Any]

_MISSING = object()


def _arg(args: Any, key: str, default: Any = None) -> Any:
    if not isinstance(args, dict):
        return default
    value = args.get(key, _MISSING)
    # an explicit null is passed through; only an absent key takes the default
    return default if value is _MISSING else value


def _echo(args: Any, **fields: str) -> Dict[str, Any]:
    """Copy the supplied arguments under their output names; absent ones are omitted."""
    if not isinstance(args, dict):
        return {}
    return {out: args[key] for out, key in fields.items() if key in args}


def _key_count(value: Any) -> int:
    if isinstance(value, (dict, list, str)):
        return len(value)
    return 0


def build_finance_handlers(store: MockDomainStore) -> Dict[str, ToolHandler]:
    def consent_status(args):
        record = store.get_consent(
            _arg(args, "customerId"), _arg(args, "resource"), _arg(args, "scope")
        )
        if record is not None and record.active:
            return {"status": "active", "expiresAt": record.expires_at}
        return {"status": "inactive", "expiresAt": ""}

    def consent_grant(args):
        record = store.grant_consent(
            _arg(args, "customerId"),
            _arg(args, "resource"),
            _arg(args, "scope"),
            _arg(args, "durationDays", 30),
        )
        return {"granted": True, "expiresAt": record.expires_at}

    def accounts_list(args):
        accounts = store.list_accounts(_arg(args, "customerId"))
        return {"accounts": [a.to_dict() for a in accounts]}

    def tx_search(args):
        matches = store.search_transactions(
            _arg(args, "accountId"), _arg(args, "from"), _arg(args, "to")
        )
        # ids follow the filtered order, so they are only stable per query
        return {
            "transactions": [
                {
                    "id": f"tx-{n}",
                    "date": tx.date,
                    "amount": tx.amount,
                    "description": tx.description,
                }
                for n, tx in enumerate(matches, start=1)
            ]
        }

    def cashflow_compute(args):
        summary = store.compute_cashflow(
            _arg(args, "customerId"), _arg(args, "horizonDays", 30)
        )
        return summary.to_dict()

    def events_subscribe(args):
        return {"subscribed": True, **_echo(args, topic="topic", callbackUrl="callbackUrl")}

    def events_emit(args):
        return {
            "published": True,
            **_echo(args, topic="topic"),
            "size": _key_count(_arg(args, "payload")),
        }

    return {
        "cmf.consent.status": consent_status,
        "cmf.consent.grant": consent_grant,
        "cmf.accounts.list": accounts_list,
        "cmf.tx.search": tx_search,
        "cmf.cashflow.compute": cashflow_compute,
        "cmf.events.subscribe": events_subscribe,
        "cmf.events.emit": events_emit,
    }


def build_astro_handlers() -> Dict[str, ToolHandler]:
    def get_sign(args):
        return {"sign": astro.zodiac_sign(_arg(args, "date"))}

    def daily_fortune(args):
        return {"fortune": astro.daily_fortune(_arg(args, "sign") or astro.UNKNOWN_SIGN)}

    return {
        "astro.getSign": get_sign,
        "astro.dailyFortune": daily_fortune,
    }


class ToolDispatcher:
    """
    Closed dispatch table from tool name to handler.

    Every advertised tool must have a handler and vice versa, so the table
    and the registry cannot drift apart.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        handlers: Dict[str, ToolHandler],
        log_truncate: int = 500,
    ):
        if sorted(handlers) != sorted(registry.names()):
            raise ValueError(
                f"Handlers {sorted(handlers)} do not match registry {sorted(registry.names())}"
            )
        self.registry = registry
        self._handlers = dict(handlers)
        self._log_truncate = log_truncate

    @classmethod
    def for_variant(
        cls, variant: str, store: Optional[MockDomainStore] = None, log_truncate: int = 500
    ) -> "ToolDispatcher":
        if variant == "astro":
            handlers = build_astro_handlers()
        else:
            handlers = build_finance_handlers(store or MockDomainStore())
        return cls(ToolRegistry.for_variant(variant), handlers, log_truncate=log_truncate)

    def call(self, name: Any, arguments: Any, request_id: Any = None) -> Dict[str, Any]:
        """
        Run tool ``name`` and return its MCP text-content result.

        Raises:
            ToolNotFoundError: ``name`` is not in the table.
            ToolExecutionError: the handler raised.
        """
        handler = self._handlers.get(name) if isinstance(name, str) else None
        if handler is None:
            record_tool_call(None, "not_found")
            raise ToolNotFoundError(name)

        started = time.perf_counter()
        try:
            with record_latency(TOOL_CALL_LATENCY, {"tool": name}):
                payload = handler(arguments)
        except Exception as exc:
            record_tool_call(name, "error")
            logger.exception(f"ERROR id={request_id} tool={name} msg={exc}")
            raise ToolExecutionError(name, exc) from exc

        record_tool_call(name, "ok")
        elapsed_ms = round((time.perf_counter() - started) * 1000)
        logger.debug(
            f"RESP id={request_id} tool={name} "
            f"result={safe_dumps(payload, self._log_truncate)} ms={elapsed_ms}"
        )
        return text_content(payload)
