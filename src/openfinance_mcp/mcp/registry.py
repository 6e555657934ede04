"""
Tool Registry
=============
Static catalogs of the tools each gateway variant advertises.

Order is part of the contract: ``tools/list`` returns the catalog exactly
as declared here, so repeated calls are byte-identical.
"""

from typing import Dict, List, Tuple

from openfinance_mcp.mcp.schemas import InputSchema, ToolDescriptor


def _tool(name: str, description: str, properties: dict, required: List[str]) -> ToolDescriptor:
    return ToolDescriptor(
        name=name,
        description=description,
        inputSchema=InputSchema(type="object", properties=properties, required=required),
    )


_STRING = {"type": "string"}
_NUMBER = {"type": "number"}

FINANCE_TOOLS: Tuple[ToolDescriptor, ...] = (
    _tool(
        "cmf.consent.status",
        "Check if consent is active for a customer/resource/scope.",
        {"customerId": _STRING, "resource": _STRING, "scope": _STRING},
        ["customerId", "resource", "scope"],
    ),
    _tool(
        "cmf.consent.grant",
        "Grant a consent for N days.",
        {"customerId": _STRING, "resource": _STRING, "scope": _STRING, "durationDays": _NUMBER},
        ["customerId", "resource", "scope", "durationDays"],
    ),
    _tool(
        "cmf.accounts.list",
        "List accounts for a given customer.",
        {"customerId": _STRING},
        ["customerId"],
    ),
    _tool(
        "cmf.tx.search",
        "Search transactions for an account in [from, to] (YYYY-MM-DD).",
        {"accountId": _STRING, "from": _STRING, "to": _STRING},
        ["accountId", "from", "to"],
    ),
    _tool(
        "cmf.cashflow.compute",
        "Compute simple cashflow over a horizon (days).",
        {"customerId": _STRING, "horizonDays": _NUMBER},
        ["customerId", "horizonDays"],
    ),
    _tool(
        "cmf.events.subscribe",
        "Subscribe a callback URL to a topic.",
        {"topic": _STRING, "callbackUrl": _STRING},
        ["topic", "callbackUrl"],
    ),
    _tool(
        "cmf.events.emit",
        "Emit a mock event to a topic (no-op).",
        {"topic": _STRING, "payload": {"type": "object"}},
        ["topic", "payload"],
    ),
)

ASTRO_TOOLS: Tuple[ToolDescriptor, ...] = (
    _tool(
        "astro.getSign",
        "Returns zodiac sign for an ISO date (YYYY-MM-DD).",
        {"date": {"type": "string", "pattern": "^\\d{4}-\\d{2}-\\d{2}$"}},
        ["date"],
    ),
    _tool(
        "astro.dailyFortune",
        "Returns a one-line fortune for a given zodiac sign.",
        {"sign": _STRING},
        ["sign"],
    ),
)

CATALOGS: Dict[str, Tuple[ToolDescriptor, ...]] = {
    "finance": FINANCE_TOOLS,
    "astro": ASTRO_TOOLS,
}


class ToolRegistry:
    """Read-only view over one catalog."""

    def __init__(self, tools: Tuple[ToolDescriptor, ...]):
        names = [t.name for t in tools]
        if len(names) != len(set(names)):
            raise ValueError(f"Duplicate tool names in registry: {names}")
        self._tools = tuple(tools)

    @classmethod
    def for_variant(cls, variant: str) -> "ToolRegistry":
        return cls(CATALOGS[variant])

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return any(t.name == name for t in self._tools)

    def names(self) -> List[str]:
        return [t.name for t in self._tools]

    def to_wire(self) -> List[dict]:
        return [t.to_wire() for t in self._tools]
