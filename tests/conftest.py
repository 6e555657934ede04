import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest


# Ensure local src/ package imports work without editable install.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


CONFIG_ENV_VARS = (
    "MCP_HOST",
    "MCP_PORT",
    "MCP_VARIANT",
    "MCP_PROTOCOL_MODE",
    "REAL_MCP_URL",
    "MCP_UPSTREAM",
    "MCP_PROXY_HOST",
    "MCP_PROXY_PORT",
    "MCP_PROXY_VERBOSE",
    "MCP_PROXY_LOG_BODIES",
    "MCP_PROXY_MAX_BODY",
    "MCP_PROXY_TIMEOUT_SECONDS",
    "LOG_LEVEL",
    "LOG_TRUNCATE",
    "LOG_FORMAT",
)

# End of the seeded October 2025 statement period.
FIXED_NOW = datetime(2025, 10, 31, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Isolate every test from the caller's environment and the config singleton."""
    from openfinance_mcp.core.config import reset_config

    for key in CONFIG_ENV_VARS:
        monkeypatch.delenv(key, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def store(fixed_clock):
    """Seeded store whose clock is pinned to FIXED_NOW."""
    from openfinance_mcp.domain.store import MockDomainStore

    return MockDomainStore(clock=fixed_clock)


@pytest.fixture
def app_config():
    from openfinance_mcp.core.config import AppConfig

    return AppConfig()
