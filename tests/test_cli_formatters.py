"""
Tests for CLI output formatters.
"""

from openfinance_mcp.cli.formatters import (
    decode_tool_result,
    format_events_table,
    format_tools_table,
)
from openfinance_mcp.mcp.registry import ToolRegistry


def test_tools_table_lists_every_tool():
    table = format_tools_table(ToolRegistry.for_variant("finance").to_wire())
    for name in ToolRegistry.for_variant("finance").names():
        assert name in table
    assert "accountId, from, to" in table


def test_events_table():
    table = format_events_table(
        [
            {"seq": 1, "id": "a", "method": "initialize", "status": 200, "durationMs": 1.25},
            {"seq": 2, "id": None, "status": 400},
        ]
    )
    lines = table.splitlines()
    assert "Phase" in lines[0]
    assert "initialize" in table
    assert "1.2" in table or "1.3" in table
    assert len(lines) == 4


def test_events_table_empty():
    assert format_events_table([]) == "No buffered events."


def test_decode_tool_result():
    assert decode_tool_result({"content": [{"type": "text", "text": '{"a":1}'}]}) == {"a": 1}
    assert decode_tool_result({"content": [{"type": "text", "text": "plain"}]}) == "plain"
    assert decode_tool_result({"content": []}) == []
