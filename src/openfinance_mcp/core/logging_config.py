"""
Open Finance MCP Logging Configuration
======================================
Centralized logging configuration using loguru.

Provides:
  - configure_logging(): Setup function called at application startup
  - JSON log format when LOG_FORMAT=json
  - truncate() / safe_dumps(): bounded renderings of request and result bodies

Usage:
    from openfinance_mcp.core.logging_config import configure_logging, safe_dumps

    configure_logging(level="DEBUG")
    logger.info(f"CALL id=1 args={safe_dumps(args, 500)}")
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any, Optional

from loguru import logger

# Track if logging has been configured
_CONFIGURED = False


def configure_logging(
    level: str = "INFO",
    json_format: bool = False,
    *,
    sink: Optional[str] = None,
) -> None:
    """
    Configure loguru logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: If True, emit one JSON object per record.
        sink: Optional file path for log output. If None, logs to stderr.
    """
    global _CONFIGURED

    logger.remove()

    log_sink = sink if sink else sys.stderr

    if json_format:
        logger.add(log_sink, level=level.upper(), serialize=True, enqueue=True)
    else:
        format_str = (
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>"
        )
        logger.add(
            log_sink,
            level=level.upper(),
            format=format_str,
            colorize=sink is None,
            enqueue=True,
            backtrace=True,
            diagnose=False,
        )

    _intercept_standard_logging(level)

    _CONFIGURED = True
    logger.debug(f"Logging configured: level={level}, json_format={json_format}")


def _intercept_standard_logging(level: str) -> None:
    """
    Redirect standard library logging (uvicorn, aiohttp) into loguru.
    """

    class InterceptHandler(logging.Handler):
        def emit(self, record: logging.LogRecord) -> None:
            try:
                log_level = logger.level(record.levelname).name
            except ValueError:
                log_level = record.levelno

            frame, depth = logging.currentframe(), 2
            while frame and frame.f_code.co_filename == logging.__file__:
                frame = frame.f_back
                depth += 1

            logger.opt(depth=depth, exception=record.exc_info).log(
                log_level, record.getMessage()
            )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    for logger_name in ["uvicorn", "uvicorn.error", "uvicorn.access"]:
        logging.getLogger(logger_name).setLevel(level.upper())


def is_configured() -> bool:
    return _CONFIGURED


def truncate(text: Any, max_chars: int) -> str:
    """Cut ``text`` to ``max_chars`` and note how many characters were dropped."""
    if not isinstance(text, str):
        text = str(text)
    if len(text) > max_chars:
        return f"{text[:max_chars]}…(+{len(text) - max_chars})"
    return text


def safe_dumps(obj: Any, max_chars: int) -> str:
    """JSON-encode ``obj`` for a log line, never raising."""
    try:
        return truncate(json.dumps(obj, ensure_ascii=False), max_chars)
    except (TypeError, ValueError):
        return "<unserializable>"


__all__ = ["configure_logging", "is_configured", "truncate", "safe_dumps", "logger"]
