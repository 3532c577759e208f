"""Parsing and rewriting of ``key=value;`` database connection strings.

Connection strings are treated as opaque apart from the keys connprobe needs
to control (connect timeout and certificate trust).  Everything else is kept
verbatim and in its original order so that re-parsing an augmented string
gives back the same unrelated values.

SQL Server descriptors are ODBC strings and quote values with braces
(``PWD={p;w}``); Oracle descriptors use ADO-style ``"`` or ``'`` quoting.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator

from .errors import MalformedConnectionString

logger = logging.getLogger(__name__)

_QUOTES = ("\"", "'")


@dataclass(frozen=True)
class Dialect:
    """Per-provider names of the keys the augmenter rewrites."""

    name: str
    timeout_key: str
    timeout_aliases: tuple[str, ...] = ()
    certificate_key: str | None = None
    certificate_value: str = "yes"
    braced_values: bool = False


MSSQL = Dialect(
    name="mssql",
    timeout_key="Connect Timeout",
    timeout_aliases=("Connection Timeout", "Timeout"),
    certificate_key="TrustServerCertificate",
    braced_values=True,
)
# Oracle exposes no certificate bypass toggle in its connection string.
ORACLE = Dialect(name="oracle", timeout_key="Connection Timeout")

DIALECTS: dict[str, Dialect] = {d.name: d for d in (MSSQL, ORACLE)}


class ConnectionStringBuilder:
    """Ordered, case-insensitive view over ``key=value`` pairs."""

    def __init__(self, pairs: Iterable[tuple[str, str]] = (), *, braced: bool = False) -> None:
        self.braced = braced
        self._pairs: list[list[str]] = []
        for key, value in pairs:
            self[key] = value

    def _index(self, key: str) -> int | None:
        wanted = key.strip().lower()
        for pos, (existing, _) in enumerate(self._pairs):
            if existing.lower() == wanted:
                return pos
        return None

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._index(key) is not None

    def __getitem__(self, key: str) -> str:
        pos = self._index(key)
        if pos is None:
            raise KeyError(key)
        return self._pairs[pos][1]

    def __setitem__(self, key: str, value: object) -> None:
        key = key.strip()
        if not key:
            raise MalformedConnectionString("connection string keys cannot be empty")
        pos = self._index(key)
        if pos is None:
            self._pairs.append([key, _stringify(value)])
        else:
            self._pairs[pos][1] = _stringify(value)

    def __iter__(self) -> Iterator[str]:
        return iter(key for key, _ in self._pairs)

    def __len__(self) -> int:
        return len(self._pairs)

    def get(self, key: str, default: str | None = None) -> str | None:
        pos = self._index(key)
        return default if pos is None else self._pairs[pos][1]

    def items(self) -> list[tuple[str, str]]:
        return [(key, value) for key, value in self._pairs]

    def set_any(self, key: str, value: object, aliases: Iterable[str] = ()) -> None:
        """Overwrite the first of *key* or *aliases* already present, else append *key*."""
        for candidate in (key, *aliases):
            pos = self._index(candidate)
            if pos is not None:
                self._pairs[pos][1] = _stringify(value)
                return
        self[key] = value

    def to_string(self) -> str:
        quote = _brace if self.braced else _quote
        return ";".join(f"{key}={quote(value)}" for key, value in self._pairs)

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"ConnectionStringBuilder({self.items()!r})"


def _stringify(value: object) -> str:
    if isinstance(value, bool):
        return "True" if value else "False"
    return str(value)


def _quote(value: str) -> str:
    needs_quotes = (
        ";" in value
        or value != value.strip()
        or value.startswith(_QUOTES)
    )
    if not needs_quotes:
        return value
    if "\"" not in value:
        return f"\"{value}\""
    if "'" not in value:
        return f"'{value}'"
    return "\"" + value.replace("\"", "\"\"") + "\""


def _brace(value: str) -> str:
    # ODBC: braces protect ; and spaces, a literal } is doubled
    needs_braces = (
        any(ch in value for ch in ";{} ")
        or value != value.strip()
    )
    if not needs_braces:
        return value
    return "{" + value.replace("}", "}}") + "}"


def _read_quoted(text: str, pos: int, close: str, key: str) -> tuple[str, int]:
    """Read a value whose opening delimiter sits just before *pos*.

    A doubled *close* character stands for one literal *close*.
    """
    chunks: list[str] = []
    length = len(text)
    while True:
        end = text.find(close, pos)
        if end == -1:
            raise MalformedConnectionString(f"unterminated quoted value for key {key!r}")
        chunks.append(text[pos:end])
        if end + 1 < length and text[end + 1] == close:
            chunks.append(close)
            pos = end + 2
            continue
        return "".join(chunks), end + 1


def parse_connection_string(text: str, *, braced: bool = False) -> ConnectionStringBuilder:
    """Parse *text* into a :class:`ConnectionStringBuilder`.

    With ``braced`` the ODBC grammar applies: ``{...}`` quotes a value and
    ``}}`` escapes a closing brace.  Otherwise values may be quoted with
    ``"`` or ``'`` and a doubled quote escapes itself.

    Raises :class:`MalformedConnectionString` when a segment has no ``=``,
    the key is empty, or a quoted value is not terminated.
    """

    if not isinstance(text, str):
        raise MalformedConnectionString(f"expected a string, got {type(text).__name__}")

    builder = ConnectionStringBuilder(braced=braced)
    pos = 0
    length = len(text)
    while pos < length:
        # skip separators and blank segments
        while pos < length and (text[pos] == ";" or text[pos].isspace()):
            pos += 1
        if pos >= length:
            break

        eq = text.find("=", pos)
        semi = text.find(";", pos)
        if eq == -1 or (semi != -1 and semi < eq):
            end = length if semi == -1 else semi
            raise MalformedConnectionString(
                f"segment {text[pos:end].strip()!r} is not a key=value pair"
            )
        key = text[pos:eq].strip()
        if not key:
            raise MalformedConnectionString(f"empty key at offset {pos}")
        pos = eq + 1

        while pos < length and text[pos] in " \t":
            pos += 1

        opener = text[pos] if pos < length else ""
        if (braced and opener == "{") or (not braced and opener in _QUOTES):
            close = "}" if braced else opener
            value, pos = _read_quoted(text, pos + 1, close, key)
            while pos < length and text[pos].isspace():
                pos += 1
            if pos < length and text[pos] != ";":
                raise MalformedConnectionString(
                    f"unexpected text after quoted value for key {key!r}"
                )
        else:
            semi = text.find(";", pos)
            end = length if semi == -1 else semi
            value = text[pos:end].strip()
            pos = end

        builder[key] = value
    return builder


def augment(
    connection_string: str,
    timeout_seconds: int,
    ignore_ssl_errors: bool = False,
    *,
    dialect: Dialect | str,
) -> str:
    """Return *connection_string* with the dialect's timeout (and cert) keys set.

    Unrelated keys keep their values and order.
    """

    if isinstance(dialect, str):
        try:
            dialect = DIALECTS[dialect.lower()]
        except KeyError:
            raise ValueError(f"unknown connection string dialect: {dialect}") from None

    builder = parse_connection_string(connection_string, braced=dialect.braced_values)
    builder.set_any(dialect.timeout_key, int(timeout_seconds), dialect.timeout_aliases)
    if ignore_ssl_errors and dialect.certificate_key:
        builder[dialect.certificate_key] = dialect.certificate_value
    elif ignore_ssl_errors:
        logger.debug("%s connection strings have no certificate bypass; flag ignored", dialect.name)
    return builder.to_string()


__all__ = [
    "ConnectionStringBuilder",
    "Dialect",
    "DIALECTS",
    "MSSQL",
    "ORACLE",
    "augment",
    "parse_connection_string",
]
