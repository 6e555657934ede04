"""
Proxy Event Log
===============
In-process telemetry buffer for the logging proxy.

One LogEvent is appended per proxied call before the upstream request is
sent, then completed once the upstream answers (or fails). ``drain``
returns every buffered event and empties the buffer in one step.

The buffer is unbounded until drained. ``seq`` is assigned from a
process-wide counter and is the ordering key; wall-clock timestamps are
informational only.
"""

from __future__ import annotations

import itertools
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class LogEvent:
    seq: int
    id: Any
    method: Optional[str] = None
    tool: Optional[str] = None
    arguments: Any = None
    phase: Optional[str] = None
    started_at: int = field(default_factory=now_ms)
    ended_at: Optional[int] = None
    status: Optional[int] = None
    error: Optional[str] = None
    req_snippet: Optional[str] = None
    resp_snippet: Optional[str] = None
    _t0: float = field(default_factory=time.perf_counter, repr=False)
    _duration_ms: Optional[float] = field(default=None, repr=False)

    @property
    def duration_ms(self) -> Optional[float]:
        return self._duration_ms

    def complete(
        self,
        status: int,
        *,
        error: Optional[str] = None,
        resp_snippet: Optional[str] = None,
    ) -> None:
        self.status = status
        self.error = error
        self.resp_snippet = resp_snippet
        self.ended_at = now_ms()
        self._duration_ms = round((time.perf_counter() - self._t0) * 1000, 3)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "seq": self.seq,
            "id": self.id,
            "method": self.method,
            "tool": self.tool,
            "arguments": self.arguments,
            "phase": self.phase,
            "startedAt": self.started_at,
            "endedAt": self.ended_at,
            "durationMs": self._duration_ms,
            "status": self.status,
            "error": self.error,
            "reqSnippet": self.req_snippet,
            "respSnippet": self.resp_snippet,
        }
        return {k: v for k, v in data.items() if v is not None or k in ("id", "seq")}


class EventLog:
    """Append/drain buffer guarded by a lock; safe across threads."""

    def __init__(self) -> None:
        self._events: List[LogEvent] = []
        self._lock = threading.Lock()
        self._seq = itertools.count(1)

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def start(self, request_id: Any, **fields: Any) -> LogEvent:
        """Create, number and append a new event."""
        with self._lock:
            event = LogEvent(seq=next(self._seq), id=request_id, **fields)
            self._events.append(event)
        return event

    def drain(self) -> List[Dict[str, Any]]:
        with self._lock:
            snapshot, self._events = self._events, []
        return [ev.to_dict() for ev in snapshot]
