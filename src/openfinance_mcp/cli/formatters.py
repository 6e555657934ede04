"""
CLI Output Formatters

Tables and decoded tool results for CLI commands.
"""

import json
from typing import Any, Dict, List

from tabulate import tabulate


def format_tools_table(tools: List[Dict[str, Any]]) -> str:
    rows = [
        (
            t.get("name", ""),
            ", ".join((t.get("inputSchema") or {}).get("required", [])),
            t.get("description", ""),
        )
        for t in tools
    ]
    return tabulate(rows, headers=["Tool", "Required", "Description"], tablefmt="simple")


def format_events_table(events: List[Dict[str, Any]]) -> str:
    if not events:
        return "No buffered events."
    rows = [
        (
            ev.get("seq"),
            ev.get("phase") or "-",
            ev.get("method") or "-",
            ev.get("tool") or "-",
            ev.get("id") if ev.get("id") is not None else "-",
            ev.get("status") if ev.get("status") is not None else "-",
            f"{ev['durationMs']:.1f}" if ev.get("durationMs") is not None else "-",
        )
        for ev in events
    ]
    return tabulate(
        rows,
        headers=["#", "Phase", "Method", "Tool", "Id", "Status", "ms"],
        tablefmt="simple",
    )


def decode_tool_result(result: Dict[str, Any]) -> Any:
    """
    Pull the payload out of MCP text content.

    Text blocks holding JSON are decoded; anything else is returned as text.
    """
    blocks = result.get("content") or []
    decoded = []
    for block in blocks:
        if block.get("type") != "text":
            decoded.append(block)
            continue
        try:
            decoded.append(json.loads(block.get("text", "")))
        except ValueError:
            decoded.append(block.get("text", ""))
    return decoded[0] if len(decoded) == 1 else decoded
