import io
import json
import logging
import sys

import pytest

from connprobe.logging_utils import JsonFormatter, parse_log_level, setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    level, handlers = root.level, list(root.handlers)
    yield
    for handler in getattr(root, "_connprobe_handlers", []):
        root.removeHandler(handler)
    root._connprobe_handlers = []
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.mark.parametrize(
    "value, expected",
    [(None, logging.INFO), ("", logging.INFO), ("debug", logging.DEBUG), ("30", 30), (logging.ERROR, logging.ERROR), ("nonsense", logging.INFO)],
)
def test_parse_log_level(value, expected):
    assert parse_log_level(value) == expected


def test_setup_logging_replaces_its_own_handlers():
    first = io.StringIO()
    second = io.StringIO()
    setup_logging(level="INFO", stream=first)
    setup_logging(level="INFO", stream=second)
    logging.getLogger("connprobe.test").info("hello")
    assert first.getvalue() == ""
    assert "hello" in second.getvalue()
    assert "[INFO] connprobe.test" in second.getvalue()


def test_setup_logging_quiets_third_party_loggers():
    setup_logging(level="INFO", stream=io.StringIO())
    assert logging.getLogger("aiohttp.client").level == logging.WARNING
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


def test_json_formatter_includes_extras():
    stream = io.StringIO()
    setup_logging(level="DEBUG", json_logs=True, stream=stream)
    logging.getLogger("connprobe.json").warning("probe %s", "done", extra={"endpoint": "Portal"})
    payload = json.loads(stream.getvalue().strip().splitlines()[-1])
    assert payload["msg"] == "probe done"
    assert payload["level"] == "WARNING"
    assert payload["endpoint"] == "Portal"
    assert payload["ts"].endswith("Z")


def test_json_formatter_renders_exceptions():
    try:
        raise ValueError("bad")
    except ValueError:
        record = logging.getLogger("x").makeRecord("x", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())
    payload = json.loads(JsonFormatter().format(record))
    assert "ValueError: bad" in payload["exc_info"]


def test_logfile_is_written(tmp_path):
    logfile = tmp_path / "logs" / "connprobe.log"
    handlers = setup_logging(level="INFO", stream=io.StringIO(), logfile=logfile)
    logging.getLogger("connprobe.file").info("to disk")
    for handler in handlers:
        handler.flush()
    assert "to disk" in logfile.read_text(encoding="utf-8")
