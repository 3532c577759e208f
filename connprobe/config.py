"""Runtime settings and endpoint file loading."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from pydantic import ValidationError

from .errors import ConfigurationError
from .models import EndpointConfiguration

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "endpoints.json"
DEFAULT_DB_TIMEOUT = 10
DEFAULT_PING_TIMEOUT = 3.0
DEFAULT_HTTP_TIMEOUT = 15.0
DEFAULT_DEADLINE_GRACE = 2.0
DEFAULT_USER_AGENT = "connprobe/1.0"

_TRUE_VALUES = {"1", "true", "yes", "y", "on", "enable", "enabled", "t"}
_FALSE_VALUES = {"0", "false", "no", "n", "off", "disable", "disabled", "f"}


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None:
        return default
    norm = str(raw).strip().lower()
    if norm in _TRUE_VALUES:
        return True
    if norm in _FALSE_VALUES:
        return False
    logger.debug("Ignoring unknown boolean env %s=%r; using default=%s", name, raw, default)
    return default


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    try:
        value = float(raw) if raw not in {None, ""} else float(default)
    except (TypeError, ValueError):
        logger.warning("Invalid %s=%r; using default %s", name, raw, default)
        return float(default)
    if value <= 0:
        logger.warning("%s must be positive; using default %s", name, default)
        return float(default)
    return value


def _env_int(env: Mapping[str, str], name: str, default: int, *, minimum: int = 1) -> int:
    raw = env.get(name)
    try:
        value = int(raw) if raw not in {None, ""} else int(default)
    except (TypeError, ValueError):
        logger.warning("Invalid %s=%r; using default %s", name, raw, default)
        return int(default)
    if value < minimum:
        logger.warning("%s must be >= %d; using default %s", name, minimum, default)
        return int(default)
    return value


@dataclass(frozen=True)
class ProbeSettings:
    """Timeouts and knobs shared by every probe.

    ``db_timeout`` and ``ping_timeout`` are the connect and round-trip bounds
    of the database and ping probes.  ``http_timeout`` is the deadline of a
    whole HTTP request.  ``deadline_grace`` is added on top of the
    protocol timeout for the outer ``asyncio.wait_for`` backstop.
    """

    config_path: str = DEFAULT_CONFIG_PATH
    db_timeout: int = DEFAULT_DB_TIMEOUT
    ping_timeout: float = DEFAULT_PING_TIMEOUT
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    deadline_grace: float = DEFAULT_DEADLINE_GRACE
    include_traceback: bool = True
    user_agent: str = DEFAULT_USER_AGENT
    max_concurrency: int = 0
    log_level: str = "INFO"
    log_json: bool = False

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "ProbeSettings":
        env = os.environ if env is None else env
        return cls(
            config_path=env.get("PROBE_CONFIG_PATH") or DEFAULT_CONFIG_PATH,
            db_timeout=_env_int(env, "PROBE_DB_TIMEOUT", DEFAULT_DB_TIMEOUT),
            ping_timeout=_env_float(env, "PROBE_PING_TIMEOUT", DEFAULT_PING_TIMEOUT),
            http_timeout=_env_float(env, "PROBE_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT),
            deadline_grace=_env_float(env, "PROBE_DEADLINE_GRACE", DEFAULT_DEADLINE_GRACE),
            include_traceback=_env_bool(env, "PROBE_INCLUDE_TRACEBACK", True),
            user_agent=env.get("PROBE_USER_AGENT") or DEFAULT_USER_AGENT,
            max_concurrency=_env_int(env, "PROBE_MAX_CONCURRENCY", 0, minimum=0),
            log_level=env.get("PROBE_LOG_LEVEL") or "INFO",
            log_json=_env_bool(env, "PROBE_LOG_JSON", False),
        )


def load_configuration(path: str | Path) -> EndpointConfiguration:
    """Read and validate the endpoint file at *path*.

    Any problem (missing file, unreadable file, invalid JSON, schema
    violation such as an unknown ``connectionType``) is raised as
    :class:`ConfigurationError` with the original exception chained.
    """

    path = Path(path)
    if not path.is_file():
        raise ConfigurationError(f"Configuration file not found: {path}")

    try:
        text = path.read_text(encoding="utf-8-sig")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read configuration file {path}") from exc

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Invalid JSON in {path}") from exc

    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ConfigurationError(
            f"{path} must contain a JSON object, got {type(payload).__name__}"
        )

    try:
        configuration = EndpointConfiguration.model_validate(payload)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid endpoint configuration in {path}") from exc

    logger.info("Loaded %d endpoint(s) from %s", len(configuration.endpoints), path)
    return configuration


__all__ = ["ProbeSettings", "load_configuration"]
