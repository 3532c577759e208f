from __future__ import annotations

import pytest

from connprobe.config import ProbeSettings
from connprobe.models import ConnectionType, EndpointDefinition


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings() -> ProbeSettings:
    return ProbeSettings(
        db_timeout=2,
        ping_timeout=1.0,
        http_timeout=2.0,
        deadline_grace=0.5,
        include_traceback=False,
    )


@pytest.fixture
def make_endpoint():
    def _make(
        connection_string: str,
        connection_type: ConnectionType | str = ConnectionType.HTTP,
        *,
        name: str = "target",
        ignore_ssl_errors: bool = False,
    ) -> EndpointDefinition:
        return EndpointDefinition(
            name=name,
            connection_string=connection_string,
            connection_type=connection_type,
            ignore_ssl_errors=ignore_ssl_errors,
        )

    return _make
