"""Audit a blockchain node home directory against operational best practice."""

from node_setup_check.exceptions import CheckAborted
from node_setup_check.records import CheckRecord, ExitStatus, ReportAggregator, Severity
from node_setup_check.roles import NodeRole

__all__ = [
    "__version__",
    "CheckAborted",
    "CheckRecord",
    "ExitStatus",
    "NodeRole",
    "ReportAggregator",
    "Severity",
]

APP_NAME = "node-setup-check"
__version__ = "1.2.0"
