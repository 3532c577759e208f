"""ICMP echo probe built on the system ``ping`` utility.

Raw ICMP sockets need elevated privileges on most systems, so the probe runs
``ping`` as an asyncio subprocess with a single echo request and maps its
output onto a reply status name.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import math
import os
import socket
import sys
from enum import Enum
from urllib.parse import urlsplit

from ..errors import ProtocolFailure
from ..models import EndpointDefinition
from ..results import ConnectionTestResult
from .base import BaseProbe

logger = logging.getLogger(__name__)


class PingStatus(str, Enum):
    SUCCESS = "Success"
    TIMED_OUT = "TimedOut"
    DESTINATION_HOST_UNREACHABLE = "DestinationHostUnreachable"
    DESTINATION_NETWORK_UNREACHABLE = "DestinationNetworkUnreachable"
    TTL_EXPIRED = "TtlExpired"
    BAD_DESTINATION = "BadDestination"
    UNKNOWN = "Unknown"

    def __str__(self) -> str:
        return self.value


# checked in order; first match wins
_OUTPUT_MARKERS: tuple[tuple[str, PingStatus], ...] = (
    ("time to live exceeded", PingStatus.TTL_EXPIRED),
    ("ttl expired", PingStatus.TTL_EXPIRED),
    ("time exceeded", PingStatus.TTL_EXPIRED),
    ("destination host unreachable", PingStatus.DESTINATION_HOST_UNREACHABLE),
    ("destination net unreachable", PingStatus.DESTINATION_NETWORK_UNREACHABLE),
    ("destination network unreachable", PingStatus.DESTINATION_NETWORK_UNREACHABLE),
    ("network is unreachable", PingStatus.DESTINATION_NETWORK_UNREACHABLE),
    ("request timed out", PingStatus.TIMED_OUT),
    ("100% packet loss", PingStatus.TIMED_OUT),
    ("100.0% packet loss", PingStatus.TIMED_OUT),
    (" 0 received", PingStatus.TIMED_OUT),
    (" 0 packets received", PingStatus.TIMED_OUT),
)


def extract_host(target: str) -> str:
    """Accept a bare host or a URL and return the host part."""
    target = target.strip()
    if "://" in target:
        return urlsplit(target).hostname or ""
    return target


def build_ping_command(host: str, timeout: float, *, platform: str | None = None) -> list[str]:
    platform = platform or sys.platform
    if platform.startswith("win"):
        return ["ping", "-n", "1", "-w", str(max(1, int(timeout * 1000))), host]
    seconds = str(max(1, int(math.ceil(timeout))))
    if platform == "darwin":
        # macOS: -t is the overall timeout in seconds
        return ["ping", "-c", "1", "-t", seconds, host]
    return ["ping", "-c", "1", "-W", seconds, host]


def interpret_ping_output(returncode: int, output: str) -> PingStatus:
    lowered = output.lower()
    for marker, status in _OUTPUT_MARKERS:
        if marker in lowered:
            return status
    if returncode == 0:
        return PingStatus.SUCCESS
    if returncode == 1:
        return PingStatus.TIMED_OUT
    return PingStatus.UNKNOWN


class PingProbe(BaseProbe):
    """One echo request bounded by ``settings.ping_timeout``."""

    name = "ping"

    async def probe(self, endpoint: EndpointDefinition) -> ConnectionTestResult:
        host = extract_host(endpoint.connection_string)
        try:
            if not host or host.startswith("-"):
                raise ProtocolFailure(f"Ping failed: {PingStatus.BAD_DESTINATION}")
            status = await self.with_deadline(
                self._resolve_and_ping(host),
                self.settings.ping_timeout + self.settings.deadline_grace,
                f"ping {host}",
            )
            if status is not PingStatus.SUCCESS:
                raise ProtocolFailure(f"Ping failed: {status}")
        except ProtocolFailure as exc:
            logger.info("%r: %s", endpoint.name, exc)
            return ConnectionTestResult.fail(str(exc))
        except Exception as exc:
            return self.failure(endpoint, exc)
        return self.success(endpoint)

    async def _resolve_and_ping(self, host: str) -> PingStatus:
        await self._resolve(host)
        return await self._ping(host)

    async def _resolve(self, host: str) -> None:
        # surfaces resolution errors as socket.gaierror rather than ping's own text
        loop = asyncio.get_running_loop()
        await loop.getaddrinfo(host, None, proto=socket.IPPROTO_TCP)

    async def _ping(self, host: str) -> PingStatus:
        command = build_ping_command(host, self.settings.ping_timeout)
        logger.debug("Running %s", " ".join(command))
        env = dict(os.environ, LC_ALL="C")
        proc = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
            env=env,
        )
        try:
            stdout, _ = await proc.communicate()
        except BaseException:
            # deadline or cancellation: do not leave the child behind
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
            with contextlib.suppress(Exception):
                await proc.wait()
            raise
        output = stdout.decode(errors="replace") if stdout else ""
        status = interpret_ping_output(proc.returncode or 0, output)
        logger.debug("ping %s exited %s -> %s", host, proc.returncode, status)
        return status


__all__ = [
    "PingProbe",
    "PingStatus",
    "build_ping_command",
    "extract_host",
    "interpret_ping_output",
]
