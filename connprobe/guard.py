"""Per-endpoint in-flight guard for callers that trigger probes repeatedly.

Probes do not serialize themselves.  A shell that lets a user re-trigger the
same endpoint wraps each run in :meth:`InvocationGuard.acquire` so a second
trigger is rejected while the first one is still running.
"""

from __future__ import annotations

import threading
from contextlib import asynccontextmanager
from typing import AsyncIterator, Hashable

from .errors import ProbeError


class ProbeAlreadyRunning(ProbeError):
    """A probe for the same endpoint is still in flight."""


class InvocationGuard:
    """Track in-flight keys; different keys never block each other."""

    def __init__(self) -> None:
        self._running: set[Hashable] = set()
        self._lock = threading.Lock()

    def try_acquire(self, key: Hashable) -> bool:
        with self._lock:
            if key in self._running:
                return False
            self._running.add(key)
            return True

    def release(self, key: Hashable) -> None:
        with self._lock:
            self._running.discard(key)

    def is_running(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._running

    @property
    def in_flight(self) -> int:
        with self._lock:
            return len(self._running)

    @asynccontextmanager
    async def acquire(self, key: Hashable, label: str | None = None) -> AsyncIterator[None]:
        if not self.try_acquire(key):
            raise ProbeAlreadyRunning(f"a probe for {label or key!r} is already running")
        try:
            yield
        finally:
            self.release(key)


__all__ = ["InvocationGuard", "ProbeAlreadyRunning"]
