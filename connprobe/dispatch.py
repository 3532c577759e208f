"""Selection of the probe matching an endpoint's connection type."""

from __future__ import annotations

import logging
from typing import Dict, Iterator

from .config import ProbeSettings
from .errors import UnsupportedProtocol, format_exception
from .http import HttpClient
from .models import ConnectionType, EndpointDefinition
from .probes import HttpProbe, MssqlProbe, OracleProbe, PingProbe, Probe
from .results import ConnectionTestResult

logger = logging.getLogger(__name__)

UNSUPPORTED_MESSAGE = "Unsupported connection type."


class ProbeRegistry:
    """Mapping from connection type to the probe that handles it."""

    def __init__(self) -> None:
        self._probes: Dict[str, Probe] = {}

    @staticmethod
    def _key(kind: ConnectionType | str) -> str:
        return kind.value if isinstance(kind, ConnectionType) else str(kind).strip().lower()

    def register(self, kind: ConnectionType | str, probe: Probe) -> None:
        key = self._key(kind)
        if key in self._probes:
            logger.debug("Replacing probe registered for %s", key)
        self._probes[key] = probe

    def get(self, kind: ConnectionType | str) -> Probe:
        try:
            return self._probes[self._key(kind)]
        except KeyError:
            raise UnsupportedProtocol(f"no probe registered for {kind!r}") from None

    def __contains__(self, kind: object) -> bool:
        return isinstance(kind, (str, ConnectionType)) and self._key(kind) in self._probes

    def __iter__(self) -> Iterator[str]:
        return iter(self._probes)

    def __len__(self) -> int:
        return len(self._probes)


def default_registry(settings: ProbeSettings, http_client: HttpClient) -> ProbeRegistry:
    """Registry with the built-in probes for every :class:`ConnectionType`."""
    registry = ProbeRegistry()
    http_probe = HttpProbe(http_client, settings)
    registry.register(ConnectionType.MSSQL, MssqlProbe(settings))
    registry.register(ConnectionType.ORACLE, OracleProbe(settings))
    registry.register(ConnectionType.HTTP, http_probe)
    registry.register(ConnectionType.HTTPS, http_probe)
    registry.register(ConnectionType.PING, PingProbe(settings))
    return registry


class Dispatcher:
    """Invoke exactly one probe per endpoint and hand back its result untouched."""

    def __init__(self, registry: ProbeRegistry, *, include_traceback: bool = True) -> None:
        self.registry = registry
        self.include_traceback = include_traceback

    async def dispatch(self, endpoint: EndpointDefinition) -> ConnectionTestResult:
        try:
            probe = self.registry.get(endpoint.connection_type)
        except UnsupportedProtocol:
            logger.warning(
                "Endpoint %r has unsupported connection type %r",
                endpoint.name,
                endpoint.connection_type,
            )
            return ConnectionTestResult.fail(UNSUPPORTED_MESSAGE)

        try:
            return await probe.probe(endpoint)
        except Exception as exc:
            # probes convert their own failures; this only catches probe bugs
            logger.exception("Probe for %r raised unexpectedly", endpoint.name)
            return ConnectionTestResult.fail(
                format_exception(exc, include_traceback=self.include_traceback)
            )


async def test_endpoint(endpoint: EndpointDefinition, dispatcher: Dispatcher) -> ConnectionTestResult:
    """Probe API consumed by shells."""
    return await dispatcher.dispatch(endpoint)


# keep pytest from collecting the probe API as a test
test_endpoint.__test__ = False  # type: ignore[attr-defined]


__all__ = [
    "Dispatcher",
    "ProbeRegistry",
    "UNSUPPORTED_MESSAGE",
    "default_registry",
    "test_endpoint",
]
