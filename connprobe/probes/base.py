from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Protocol, TypeVar, runtime_checkable

from ..config import ProbeSettings
from ..errors import ConnectionFailure, format_exception
from ..models import EndpointDefinition
from ..results import ConnectionTestResult

logger = logging.getLogger(__name__)

T = TypeVar("T")


@runtime_checkable
class Probe(Protocol):
    """Capability shared by every protocol-specific check."""

    async def probe(self, endpoint: EndpointDefinition) -> ConnectionTestResult:
        ...


class BaseProbe:
    """Common plumbing: settings, deadline enforcement, failure formatting."""

    name = "probe"

    def __init__(self, settings: ProbeSettings | None = None) -> None:
        self.settings = settings or ProbeSettings()

    async def probe(self, endpoint: EndpointDefinition) -> ConnectionTestResult:  # pragma: no cover - abstract
        raise NotImplementedError

    async def with_deadline(self, aw: Awaitable[T], timeout: float, what: str) -> T:
        """Await *aw*, raising :class:`ConnectionFailure` once *timeout* expires.

        Timeouts raised by *aw* itself (driver or transport timeouts that fire
        before the deadline) propagate unchanged.
        """
        inner_timeout = False

        async def _watched() -> T:
            nonlocal inner_timeout
            try:
                return await aw
            except asyncio.TimeoutError:
                inner_timeout = True
                raise

        try:
            return await asyncio.wait_for(_watched(), timeout=timeout)
        except asyncio.TimeoutError as exc:
            if inner_timeout:
                raise
            raise ConnectionFailure(f"{what} did not complete within {timeout:g}s") from exc

    def failure(self, endpoint: EndpointDefinition, exc: BaseException) -> ConnectionTestResult:
        logger.info(
            "%s probe for %r failed: %s: %s", self.name, endpoint.name, type(exc).__name__, exc
        )
        return ConnectionTestResult.fail(
            format_exception(exc, include_traceback=self.settings.include_traceback)
        )

    def success(self, endpoint: EndpointDefinition) -> ConnectionTestResult:
        logger.info("%s probe for %r succeeded", self.name, endpoint.name)
        return ConnectionTestResult.ok()


__all__ = ["BaseProbe", "Probe"]
