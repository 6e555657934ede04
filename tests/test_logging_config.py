"""
Tests for logging setup and bounded body rendering.
"""

import json

from loguru import logger

from openfinance_mcp.core.logging_config import (
    configure_logging,
    is_configured,
    safe_dumps,
    truncate,
)


def test_truncate():
    assert truncate("abc", 5) == "abc"
    assert truncate("abcdefgh", 5) == "abcde…(+3)"
    assert truncate(12345678, 4) == "1234…(+4)"


def test_safe_dumps():
    assert safe_dumps({"a": "ñ"}, 100) == '{"a": "ñ"}'
    assert safe_dumps({"k": "xxxxxxxxxx"}, 5) == '{"k":…(+14)'
    assert safe_dumps({"bad": object()}, 100) == "<unserializable>"


def test_configure_logging_to_file(tmp_path):
    log_file = tmp_path / "gateway.log"
    configure_logging(level="DEBUG", sink=str(log_file))
    logger.debug("CALL id=1 tool=cmf.accounts.list")
    logger.complete()
    logger.remove()

    assert is_configured()
    assert "CALL id=1 tool=cmf.accounts.list" in log_file.read_text(encoding="utf-8")


def test_configure_json_logging(tmp_path):
    log_file = tmp_path / "gateway.jsonl"
    configure_logging(level="INFO", json_format=True, sink=str(log_file))
    logger.debug("hidden")
    logger.info("LIST id=2")
    logger.complete()
    logger.remove()

    records = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines() if line]
    messages = [r["record"]["message"] for r in records]
    assert "LIST id=2" in messages
    assert "hidden" not in messages
