"""Protocol-specific probe strategies."""

from .base import BaseProbe, Probe
from .http import HttpProbe
from .ping import PingProbe, PingStatus
from .sql import MssqlProbe, OracleProbe, SqlProbe

__all__ = [
    "BaseProbe",
    "Probe",
    "HttpProbe",
    "PingProbe",
    "PingStatus",
    "MssqlProbe",
    "OracleProbe",
    "SqlProbe",
]
