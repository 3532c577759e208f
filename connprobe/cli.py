"""Command line shell around the probe runner.

``connprobe list`` shows the configured endpoints, ``connprobe test [NAME ...]``
probes them (all when no name is given) and prints a pass/fail table plus the
full failure text for each endpoint that failed.  Exit codes: ``0`` all
passed, ``1`` at least one failure, ``2`` configuration or usage error.
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import List, Sequence, TextIO

from .config import ProbeSettings, load_configuration
from .dispatch import Dispatcher, default_registry
from .errors import ConfigurationError, format_exception
from .http import HttpClient
from .logging_utils import setup_logging
from .models import EndpointDefinition
from .runner import ProbeOutcome, ProbeRunner

logger = logging.getLogger(__name__)

NO_ENDPOINTS = "No endpoints configured."

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="connprobe",
        description="Check reachability of configured database, HTTP and ping endpoints.",
    )
    parser.add_argument("--config", help="Path to endpoints.json (default: $PROBE_CONFIG_PATH or ./endpoints.json)")
    parser.add_argument("--log-level", help="Logging level (default: $PROBE_LOG_LEVEL or INFO)")
    parser.add_argument(
        "--no-traceback",
        action="store_true",
        help="Omit Python tracebacks from failure messages",
    )
    sub = parser.add_subparsers(dest="command")
    sub.add_parser("list", help="List configured endpoints")
    test = sub.add_parser("test", help="Probe endpoints")
    test.add_argument("names", nargs="*", help="Endpoint names to probe (default: all)")
    test.add_argument("--json", action="store_true", help="Print results as JSON")
    parser.set_defaults(command="list")
    return parser


def _select(endpoints: Sequence[EndpointDefinition], names: Sequence[str]) -> tuple[list[EndpointDefinition], list[str]]:
    if not names:
        return list(endpoints), []
    wanted = set(names)
    known = {endpoint.name for endpoint in endpoints}
    missing = [name for name in dict.fromkeys(names) if name not in known]
    # configuration order is display order
    selected = [endpoint for endpoint in endpoints if endpoint.name in wanted]
    return selected, missing


def _print_endpoints(endpoints: Sequence[EndpointDefinition], out: TextIO) -> None:
    if not endpoints:
        print(NO_ENDPOINTS, file=out)
        return
    width = max(len(endpoint.name) for endpoint in endpoints)
    for endpoint in endpoints:
        flag = "  (ignore SSL errors)" if endpoint.ignore_ssl_errors else ""
        print(f"{endpoint.name:<{width}}  {endpoint.connection_type.value}{flag}", file=out)


def _print_table(outcomes: Sequence[ProbeOutcome], out: TextIO) -> None:
    width = max(len(endpoint.name) for endpoint, _ in outcomes)
    for endpoint, result in outcomes:
        status = "PASS" if result.success else "FAIL"
        print(f"{endpoint.name:<{width}}  {status}  {endpoint.connection_type.value}", file=out)
    for endpoint, result in outcomes:
        if result.success:
            continue
        title = f"{endpoint.name} failed"
        print(f"\n{title}\n{'-' * len(title)}\n{result.display_message}", file=out)


def _print_json(outcomes: Sequence[ProbeOutcome], out: TextIO) -> None:
    payload = [
        {
            "name": endpoint.name,
            "connectionType": endpoint.connection_type.value,
            "success": result.success,
            "errorMessage": result.error_message,
        }
        for endpoint, result in outcomes
    ]
    print(json.dumps(payload, indent=2), file=out)


async def run_probes(settings: ProbeSettings, endpoints: Sequence[EndpointDefinition]) -> List[ProbeOutcome]:
    """Probe *endpoints* with a shared HTTP client that lives for this run only."""
    async with HttpClient(timeout=settings.http_timeout, user_agent=settings.user_agent) as client:
        dispatcher = Dispatcher(
            default_registry(settings, client),
            include_traceback=settings.include_traceback,
        )
        runner = ProbeRunner(dispatcher, max_concurrency=settings.max_concurrency)
        return await runner.run_many(endpoints)


def main(argv: Sequence[str] | None = None, *, out: TextIO | None = None, err: TextIO | None = None) -> int:
    out = out or sys.stdout
    err = err or sys.stderr
    args = build_parser().parse_args(argv)

    settings = ProbeSettings.from_env()
    if args.no_traceback:
        settings = dataclasses.replace(settings, include_traceback=False)
    setup_logging(level=args.log_level or settings.log_level, json_logs=settings.log_json, stream=err)

    config_path = Path(args.config or settings.config_path)
    try:
        configuration = load_configuration(config_path)
    except ConfigurationError as exc:
        detail = format_exception(exc, include_traceback=settings.include_traceback)
        print(f"Failed to load {config_path.name}:\n{detail}", file=err)
        return EXIT_USAGE

    endpoints = configuration.endpoints
    if args.command == "list":
        _print_endpoints(endpoints, out)
        return EXIT_OK

    selected, missing = _select(endpoints, args.names)
    if missing:
        print(f"Unknown endpoint(s): {', '.join(missing)}", file=err)
        return EXIT_USAGE
    if not selected:
        print(NO_ENDPOINTS, file=out)
        return EXIT_OK

    outcomes = asyncio.run(run_probes(settings, selected))
    if args.json:
        _print_json(outcomes, out)
    else:
        _print_table(outcomes, out)
    return EXIT_OK if all(result.success for _, result in outcomes) else EXIT_FAILED


if __name__ == "__main__":  # pragma: no cover - script entry point
    raise SystemExit(main())
