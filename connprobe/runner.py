"""Caller-side orchestration: guard, dispatch, gather."""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, List, Tuple

from .dispatch import Dispatcher
from .errors import format_exception
from .guard import InvocationGuard, ProbeAlreadyRunning
from .models import EndpointDefinition
from .results import ConnectionTestResult

logger = logging.getLogger(__name__)

ProbeOutcome = Tuple[EndpointDefinition, ConnectionTestResult]


class ProbeRunner:
    """Run probes the way an interactive shell would.

    Each endpoint may only have one probe in flight (``run_one`` raises
    :class:`~connprobe.guard.ProbeAlreadyRunning` otherwise), while different
    endpoints run concurrently, optionally capped by ``max_concurrency``.
    """

    def __init__(
        self,
        dispatcher: Dispatcher,
        *,
        guard: InvocationGuard | None = None,
        max_concurrency: int = 0,
    ) -> None:
        self.dispatcher = dispatcher
        self.guard = guard or InvocationGuard()
        self._semaphore: asyncio.Semaphore | None = None
        self.max_concurrency = max(0, int(max_concurrency))

    def _limiter(self) -> asyncio.Semaphore | None:
        if self.max_concurrency and self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self.max_concurrency)
        return self._semaphore

    async def run_one(self, endpoint: EndpointDefinition) -> ConnectionTestResult:
        async with self.guard.acquire(id(endpoint), endpoint.name):
            limiter = self._limiter()
            try:
                if limiter is None:
                    return await self.dispatcher.dispatch(endpoint)
                async with limiter:
                    return await self.dispatcher.dispatch(endpoint)
            except Exception as exc:  # pragma: no cover - dispatcher already converts
                logger.exception("Unexpected error while probing %r", endpoint.name)
                return ConnectionTestResult.fail(
                    format_exception(exc, include_traceback=self.dispatcher.include_traceback)
                )

    async def _run_in_batch(self, endpoint: EndpointDefinition) -> ConnectionTestResult:
        try:
            return await self.run_one(endpoint)
        except ProbeAlreadyRunning as exc:
            # triggered elsewhere; the batch still reports every endpoint
            logger.warning("Skipping %r: %s", endpoint.name, exc)
            return ConnectionTestResult.fail(str(exc))

    async def run_many(self, endpoints: Iterable[EndpointDefinition]) -> List[ProbeOutcome]:
        """Probe *endpoints* concurrently; results come back in input order.

        An endpoint listed more than once is probed once and its result is
        repeated at each position.
        """
        selected = list(endpoints)
        if not selected:
            return []
        unique = list({id(endpoint): endpoint for endpoint in selected}.values())
        logger.info("Probing %d endpoint(s)", len(unique))
        results = await asyncio.gather(*(self._run_in_batch(endpoint) for endpoint in unique))
        by_id = {id(endpoint): result for endpoint, result in zip(unique, results)}
        failed = sum(1 for result in results if not result.success)
        logger.info("Probe run finished: %d ok, %d failed", len(results) - failed, failed)
        return [(endpoint, by_id[id(endpoint)]) for endpoint in selected]


__all__ = ["ProbeRunner", "ProbeOutcome"]
