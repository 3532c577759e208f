"""Shared aiohttp client used by every HTTP/HTTPS probe.

The client is created once by the caller, handed to the probes that need it
and closed at shutdown::

    async with HttpClient(timeout=15) as client:
        probe = HttpProbe(client)
        ...

The underlying :class:`aiohttp.ClientSession` is created lazily inside the
running event loop and reused for every request so connection pooling works
across probes.  It is safe to share between concurrently running probes.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any

import aiohttp

from .config import DEFAULT_HTTP_TIMEOUT, DEFAULT_USER_AGENT

logger = logging.getLogger(__name__)

# Connector limits are configurable via environment variables.
CONNECTOR_LIMIT = int(os.getenv("HTTP_CONNECTOR_LIMIT", "0") or 0)
CONNECTOR_LIMIT_PER_HOST = int(os.getenv("HTTP_CONNECTOR_LIMIT_PER_HOST", "0") or 0)


class HttpClient:
    """Lifecycle wrapper around one long-lived :class:`aiohttp.ClientSession`."""

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
        trust_env: bool = False,
    ) -> None:
        self.timeout = float(timeout)
        self.user_agent = user_agent
        self.trust_env = trust_env
        self._session: aiohttp.ClientSession | None = None
        self._lock: asyncio.Lock | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def __aenter__(self) -> "HttpClient":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def start(self) -> None:
        await self.session()

    async def session(self) -> aiohttp.ClientSession:
        """Return the shared session, creating it on first use."""
        if self._closed:
            raise RuntimeError("HttpClient is closed")
        if self._session is not None and not self._session.closed:
            return self._session
        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            if self._session is None or self._session.closed:
                self._session = self._create_session()
                logger.debug("Created shared HTTP session (timeout=%.1fs)", self.timeout)
        return self._session

    def _create_session(self) -> aiohttp.ClientSession:
        connector = aiohttp.TCPConnector(
            limit=CONNECTOR_LIMIT,
            limit_per_host=CONNECTOR_LIMIT_PER_HOST,
        )
        return aiohttp.ClientSession(
            connector=connector,
            headers={"User-Agent": self.user_agent},
            timeout=aiohttp.ClientTimeout(total=self.timeout),
            trust_env=self.trust_env,
        )

    def request_kwargs(self, *, verify_ssl: bool) -> dict[str, Any]:
        # ssl=False skips certificate validation for this request only
        return {} if verify_ssl else {"ssl": False}

    async def close(self) -> None:
        self._closed = True
        session, self._session = self._session, None
        if session is not None and not session.closed:
            await session.close()
            logger.debug("Closed shared HTTP session")


__all__ = ["HttpClient"]
