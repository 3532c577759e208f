"""Error taxonomy and the shared exception formatter.

Every probe funnels its failures through :func:`format_exception` so the text
shown to users has the same shape regardless of where the error came from
(database driver, aiohttp, DNS, the ping subprocess).
"""

from __future__ import annotations

import traceback


class ProbeError(Exception):
    """Base class for errors raised by connprobe itself."""


class ConfigurationError(ProbeError):
    """The endpoint file is missing or cannot be parsed. Fatal at startup."""


class UnsupportedProtocol(ProbeError):
    """No probe is registered for an endpoint's connection type."""


class ConnectionFailure(ProbeError):
    """A connection could not be established within its deadline."""


class MalformedConnectionString(ProbeError):
    """A database connection string does not follow the ``key=value;`` grammar."""


class ProtocolFailure(ProbeError):
    """The remote side answered, but not with a success status."""


def _cause_of(exc: BaseException) -> BaseException | None:
    if exc.__cause__ is not None:
        return exc.__cause__
    if exc.__context__ is not None and not exc.__suppress_context__:
        return exc.__context__
    return None


def _headline(exc: BaseException) -> str:
    return f"{type(exc).__name__}: {exc}"


def _trace(exc: BaseException) -> str:
    if exc.__traceback__ is None:
        return ""
    return "".join(traceback.format_tb(exc.__traceback__)).rstrip("\n")


def format_exception(exc: BaseException, *, include_traceback: bool = True) -> str:
    """Render *exc* and its cause chain as deterministic multi-line text.

    The layout is ``"<Type>: <message>"``, then ``"Inner: "`` followed by the
    rendering of the cause (recursively), then the traceback of *exc* when
    one is attached and ``include_traceback`` is true.  A chain with N causes
    yields exactly N ``Inner:`` segments.  Cause cycles are cut with a
    ``<cycle: Type>`` marker.
    """

    chain: list[BaseException] = []
    seen: set[int] = set()
    current: BaseException | None = exc
    cycle: BaseException | None = None
    while current is not None:
        if id(current) in seen:
            cycle = current
            break
        seen.add(id(current))
        chain.append(current)
        current = _cause_of(current)

    # built innermost first so each level wraps the text of its cause
    text: str | None = None
    for index in range(len(chain) - 1, -1, -1):
        item = chain[index]
        parts = [_headline(item)]
        if text is not None:
            parts.append(f"Inner: {text}")
        elif cycle is not None:
            parts.append(f"<cycle: {type(cycle).__name__}>")
        if include_traceback:
            trace = _trace(item)
            if trace:
                parts.append(trace)
        text = "\n".join(parts)
    return text or ""


__all__ = [
    "ProbeError",
    "ConfigurationError",
    "UnsupportedProtocol",
    "ConnectionFailure",
    "MalformedConnectionString",
    "ProtocolFailure",
    "format_exception",
]
