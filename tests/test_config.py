import json
from pathlib import Path

import pytest

from connprobe.config import ProbeSettings, load_configuration
from connprobe.errors import ConfigurationError
from connprobe.models import ConnectionType, EndpointDefinition


def _write(tmp_path: Path, payload) -> Path:
    path = tmp_path / "endpoints.json"
    path.write_text(payload if isinstance(payload, str) else json.dumps(payload), encoding="utf-8")
    return path


def test_load_configuration_preserves_order_and_defaults(tmp_path: Path):
    path = _write(
        tmp_path,
        {
            "endpoints": [
                {"name": "Orders DB", "connectionString": "Server=x", "connectionType": "mssql", "ignoreSslErrors": True},
                {"name": "Portal", "connectionString": "https://portal.example", "connectionType": "HTTPS"},
                {"name": "Gateway", "connectionString": "10.0.0.1", "connectionType": "Ping"},
            ]
        },
    )
    config = load_configuration(path)
    assert [e.name for e in config.endpoints] == ["Orders DB", "Portal", "Gateway"]
    assert [e.connection_type for e in config.endpoints] == [
        ConnectionType.MSSQL,
        ConnectionType.HTTPS,
        ConnectionType.PING,
    ]
    assert config.endpoints[0].ignore_ssl_errors is True
    assert config.endpoints[1].ignore_ssl_errors is False


def test_property_names_are_case_insensitive(tmp_path: Path):
    path = _write(
        tmp_path,
        {"Endpoints": [{"Name": "Legacy", "ConnectionString": "User Id=a;Data Source=b", "ConnectionType": "Oracle"}]},
    )
    endpoint = load_configuration(path).endpoints[0]
    assert endpoint.name == "Legacy"
    assert endpoint.connection_type is ConnectionType.ORACLE


def test_empty_endpoint_list(tmp_path: Path):
    assert load_configuration(_write(tmp_path, {"endpoints": []})).endpoints == []
    assert load_configuration(_write(tmp_path, {})).endpoints == []
    assert load_configuration(_write(tmp_path, "null")).endpoints == []


def test_missing_file_is_configuration_error(tmp_path: Path):
    with pytest.raises(ConfigurationError, match="not found"):
        load_configuration(tmp_path / "nope.json")


def test_invalid_json_is_configuration_error(tmp_path: Path):
    with pytest.raises(ConfigurationError) as info:
        load_configuration(_write(tmp_path, "{not json"))
    assert isinstance(info.value.__cause__, json.JSONDecodeError)


def test_unknown_connection_type_is_configuration_error(tmp_path: Path):
    path = _write(
        tmp_path,
        {"endpoints": [{"name": "FTP", "connectionString": "ftp://x", "connectionType": "ftp"}]},
    )
    with pytest.raises(ConfigurationError):
        load_configuration(path)


def test_blank_name_is_configuration_error(tmp_path: Path):
    path = _write(
        tmp_path,
        {"endpoints": [{"name": "  ", "connectionString": "x", "connectionType": "ping"}]},
    )
    with pytest.raises(ConfigurationError):
        load_configuration(path)


def test_endpoint_definition_is_immutable():
    endpoint = EndpointDefinition(name="a", connection_string="b", connection_type="http")
    with pytest.raises(Exception):
        endpoint.name = "changed"  # type: ignore[misc]


def test_settings_from_env_defaults():
    settings = ProbeSettings.from_env({})
    assert settings.db_timeout == 10
    assert settings.ping_timeout == 3.0
    assert settings.http_timeout == 15.0
    assert settings.config_path == "endpoints.json"
    assert settings.include_traceback is True
    assert settings.max_concurrency == 0


def test_settings_from_env_overrides_and_bad_values():
    settings = ProbeSettings.from_env(
        {
            "PROBE_DB_TIMEOUT": "5",
            "PROBE_PING_TIMEOUT": "not-a-number",
            "PROBE_HTTP_TIMEOUT": "-1",
            "PROBE_INCLUDE_TRACEBACK": "off",
            "PROBE_MAX_CONCURRENCY": "4",
            "PROBE_CONFIG_PATH": "/etc/connprobe/endpoints.json",
        }
    )
    assert settings.db_timeout == 5
    assert settings.ping_timeout == 3.0
    assert settings.http_timeout == 15.0
    assert settings.include_traceback is False
    assert settings.max_concurrency == 4
    assert settings.config_path == "/etc/connprobe/endpoints.json"
