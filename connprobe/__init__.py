"""connprobe: on-demand reachability checks for database, HTTP and ping endpoints."""

from .config import ProbeSettings, load_configuration
from .dispatch import Dispatcher, ProbeRegistry, default_registry, test_endpoint
from .errors import (
    ConfigurationError,
    ConnectionFailure,
    MalformedConnectionString,
    ProbeError,
    ProtocolFailure,
    UnsupportedProtocol,
    format_exception,
)
from .guard import InvocationGuard, ProbeAlreadyRunning
from .http import HttpClient
from .models import ConnectionType, EndpointConfiguration, EndpointDefinition
from .results import ConnectionTestResult
from .runner import ProbeRunner

__version__ = "1.0.0"

__all__ = [
    "ConfigurationError",
    "ConnectionFailure",
    "ConnectionTestResult",
    "ConnectionType",
    "Dispatcher",
    "EndpointConfiguration",
    "EndpointDefinition",
    "HttpClient",
    "InvocationGuard",
    "MalformedConnectionString",
    "ProbeAlreadyRunning",
    "ProbeError",
    "ProbeRegistry",
    "ProbeRunner",
    "ProbeSettings",
    "ProtocolFailure",
    "UnsupportedProtocol",
    "default_registry",
    "format_exception",
    "load_configuration",
    "test_endpoint",
]
