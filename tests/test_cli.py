import io
import json
import logging

import pytest

from connprobe import cli
from connprobe.results import ConnectionTestResult

ENDPOINTS = {
    "endpoints": [
        {"name": "Orders DB", "connectionString": "Server=db01", "connectionType": "mssql"},
        {"name": "Portal", "connectionString": "https://portal.example", "connectionType": "https", "ignoreSslErrors": True},
        {"name": "Gateway", "connectionString": "10.0.0.1", "connectionType": "ping"},
    ]
}


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("PROBE_CONFIG_PATH", "PROBE_LOG_LEVEL", "PROBE_LOG_JSON", "PROBE_INCLUDE_TRACEBACK"):
        monkeypatch.delenv(name, raising=False)
    root = logging.getLogger()
    level, handlers = root.level, list(root.handlers)
    yield
    root.handlers[:] = handlers
    root._connprobe_handlers = []
    root.setLevel(level)


@pytest.fixture
def config(tmp_path):
    path = tmp_path / "endpoints.json"
    path.write_text(json.dumps(ENDPOINTS), encoding="utf-8")
    return path


@pytest.fixture
def fake_run(monkeypatch):
    calls: list[list[str]] = []
    failures = {"Gateway": "Ping failed: TimedOut"}

    async def run_probes(settings, endpoints):
        calls.append([endpoint.name for endpoint in endpoints])
        return [
            (
                endpoint,
                ConnectionTestResult.fail(failures[endpoint.name])
                if endpoint.name in failures
                else ConnectionTestResult.ok(),
            )
            for endpoint in endpoints
        ]

    monkeypatch.setattr(cli, "run_probes", run_probes)
    return calls


def _main(*argv):
    out, err = io.StringIO(), io.StringIO()
    code = cli.main(list(argv), out=out, err=err)
    return code, out.getvalue(), err.getvalue()


def test_list_shows_endpoints_in_file_order(config):
    code, out, _ = _main("--config", str(config), "list")
    assert code == 0
    lines = out.splitlines()
    assert [line.split("  ")[0].strip() for line in lines] == ["Orders DB", "Portal", "Gateway"]
    assert "(ignore SSL errors)" in lines[1]


def test_empty_configuration_prints_placeholder(tmp_path):
    path = tmp_path / "endpoints.json"
    path.write_text('{"endpoints": []}', encoding="utf-8")
    assert _main("--config", str(path))[:2] == (0, "No endpoints configured.\n")
    assert _main("--config", str(path), "test")[:2] == (0, "No endpoints configured.\n")


def test_missing_configuration_is_usage_error(tmp_path):
    code, out, err = _main("--config", str(tmp_path / "absent.json"), "list")
    assert code == 2
    assert out == ""
    assert err.startswith("Failed to load absent.json:\nConfigurationError: Configuration file not found")


def test_unknown_connection_type_fails_at_load(tmp_path):
    path = tmp_path / "endpoints.json"
    path.write_text('{"endpoints": [{"name": "x", "connectionString": "y", "connectionType": "smtp"}]}', encoding="utf-8")
    code, _, err = _main("--config", str(path), "--no-traceback", "test")
    assert code == 2
    assert "Inner: ValidationError" in err


def test_unknown_endpoint_name_is_usage_error(config, fake_run):
    code, _, err = _main("--config", str(config), "test", "Portal", "Nope")
    assert code == 2
    assert "Unknown endpoint(s): Nope" in err
    assert fake_run == []


def test_test_prints_table_and_failure_details(config, fake_run):
    code, out, _ = _main("--config", str(config), "test")
    assert code == 1
    assert fake_run == [["Orders DB", "Portal", "Gateway"]]
    assert "Orders DB  PASS  mssql" in out
    assert "Gateway    FAIL  ping" in out
    assert out.endswith("Gateway failed\n--------------\nPing failed: TimedOut\n")


def test_test_selected_names_all_passing(config, fake_run):
    code, out, _ = _main("--config", str(config), "test", "Portal", "Orders DB", "Portal")
    assert code == 0
    assert fake_run == [["Orders DB", "Portal"]]
    assert "failed" not in out


def test_test_json_output(config, fake_run):
    code, out, _ = _main("--config", str(config), "test", "--json")
    assert code == 1
    payload = json.loads(out)
    assert payload[0] == {"name": "Orders DB", "connectionType": "mssql", "success": True, "errorMessage": None}
    assert payload[2]["errorMessage"] == "Ping failed: TimedOut"


def test_config_path_from_environment(config, fake_run, monkeypatch):
    monkeypatch.setenv("PROBE_CONFIG_PATH", str(config))
    code, out, _ = _main("list")
    assert code == 0
    assert "Gateway" in out
