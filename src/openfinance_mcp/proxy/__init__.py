"""
Logging Proxy Package
=====================
Passthrough proxy recording per-call telemetry for an upstream gateway.
"""

from .event_log import EventLog, LogEvent
from .upstream import UpstreamClient, UpstreamResponse

__all__ = ["EventLog", "LogEvent", "UpstreamClient", "UpstreamResponse"]
