"""
Upstream Forwarder
==================
aiohttp client used by the proxy to relay request bodies to the real
gateway.

No retries and no body normalization: the bytes received from the caller
are sent as-is, and the upstream body is returned as-is. Every call is
bounded by a total timeout.
"""

import asyncio
import json
from dataclasses import dataclass
from typing import Optional

import aiohttp

from openfinance_mcp.core.exceptions import (
    UpstreamError,
    UpstreamResponseError,
    UpstreamTimeoutError,
)


@dataclass(frozen=True)
class UpstreamResponse:
    status: int
    body: bytes

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


class UpstreamClient:
    """
    Forward JSON-RPC bodies to ``upstream_url``.

    Args:
        upstream_url: full URL of the upstream ``/mcp`` endpoint
        timeout_seconds: total budget for connect + send + read
        session: optional shared aiohttp session (created per call otherwise)
    """

    def __init__(
        self,
        upstream_url: str,
        timeout_seconds: float = 30.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.upstream_url = upstream_url
        self.timeout_seconds = timeout_seconds
        self._session = session

    async def forward(self, body: bytes) -> UpstreamResponse:
        """
        POST ``body`` upstream and return the raw response.

        Raises:
            UpstreamTimeoutError: the total timeout elapsed.
            UpstreamError: connection or protocol failure.
            UpstreamResponseError: the upstream body is not JSON.
        """
        session = self._session
        close_session = False
        if session is None:
            session = aiohttp.ClientSession()
            close_session = True

        try:
            async with session.post(
                self.upstream_url,
                data=body,
                headers={"Content-Type": "application/json"},
                timeout=aiohttp.ClientTimeout(total=self.timeout_seconds),
            ) as response:
                raw = await response.read()
                status = response.status
        except asyncio.TimeoutError as exc:
            raise UpstreamTimeoutError(self.upstream_url, self.timeout_seconds) from exc
        except aiohttp.ClientError as exc:
            raise UpstreamError(self.upstream_url, str(exc) or type(exc).__name__) from exc
        finally:
            if close_session:
                await session.close()

        try:
            json.loads(raw)
        except ValueError as exc:
            raise UpstreamResponseError(self.upstream_url, status) from exc

        return UpstreamResponse(status=status, body=raw)
