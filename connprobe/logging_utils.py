from __future__ import annotations

import json
import logging
import sys
import time
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterable, TextIO

DEFAULT_FORMAT = "%(asctime)sZ [%(levelname)s] %(name)s:%(lineno)d | %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"
DEFAULT_MAX_BYTES = 5_000_000
DEFAULT_BACKUP_COUNT = 3

_NOISY_LOGGERS: tuple[str, ...] = (
    "asyncio",
    "aiohttp.access",
    "aiohttp.client",
    "sqlalchemy.engine",
)

_HANDLER_SENTINEL = "_connprobe_handlers"


class _UTCFormatter(logging.Formatter):
    """Formatter that renders timestamps in UTC."""

    converter = time.gmtime


_LOG_RECORD_RESERVED = set(logging.LogRecord(None, 0, "", 0, "", (), None).__dict__.keys())


class JsonFormatter(logging.Formatter):
    """Structured logging formatter producing one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - short summary sufficient
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .replace(tzinfo=None)
            .isoformat(timespec="milliseconds")
            + "Z",
            "level": record.levelname,
            "logger": record.name,
            "line": record.lineno,
            "msg": record.getMessage(),
        }

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack_info"] = record.stack_info

        for key, value in record.__dict__.items():
            if key in payload or key.startswith("_") or key in _LOG_RECORD_RESERVED:
                continue
            payload[key] = value

        return json.dumps(payload, ensure_ascii=False, separators=(",", ":"), default=str)


def parse_log_level(value: str | int | None) -> int:
    if value is None or value == "":
        return logging.INFO
    if isinstance(value, int):
        return value
    level = str(value).strip().upper()
    if level.isdigit():
        return int(level)
    resolved = logging.getLevelName(level)
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(
    *,
    level: str | int | None = None,
    json_logs: bool = False,
    stream: TextIO | None = None,
    logfile: str | Path | None = None,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    quiet: Iterable[str] = _NOISY_LOGGERS,
) -> list[logging.Handler]:
    """Install connprobe's handlers on the root logger.

    Calling this again replaces the handlers installed by the previous call
    instead of stacking duplicates, so shells may reconfigure freely.
    """

    resolved_level = parse_log_level(level)
    root = logging.getLogger()
    root.setLevel(resolved_level)

    for handler in getattr(root, _HANDLER_SENTINEL, []):
        root.removeHandler(handler)
        handler.close()

    formatter: logging.Formatter
    if json_logs:
        formatter = JsonFormatter()
    else:
        formatter = _UTCFormatter(DEFAULT_FORMAT, datefmt=DEFAULT_DATEFMT)

    handlers: list[logging.Handler] = []
    console = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handlers.append(console)

    if logfile:
        path = Path(logfile)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                path,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
        )

    for handler in handlers:
        handler.setLevel(resolved_level)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    # third-party chatter only surfaces when explicitly debugging
    if resolved_level > logging.DEBUG:
        for name in quiet:
            logging.getLogger(name).setLevel(logging.WARNING)

    setattr(root, _HANDLER_SENTINEL, handlers)
    return handlers


__all__ = ["JsonFormatter", "parse_log_level", "setup_logging"]
