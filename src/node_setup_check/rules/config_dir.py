from __future__ import annotations

from node_setup_check.models import PathInfo
from node_setup_check.records import ReportAggregator
from node_setup_check.rules.common import (
    public_file_findings,
    require_directory,
    require_file,
    secret_file_findings,
    shared_directory_findings,
)

PUBLIC_FILES: tuple[str, ...] = ("app.toml", "config.toml", "genesis.json")
SECRET_FILES: tuple[str, ...] = ("client.toml", "node_key.json", "priv_validator_key.json")


def evaluate_config_directory(info: PathInfo, report: ReportAggregator) -> None:
    require_directory(info, "config directory")
    report.extend(shared_directory_findings(info, "config directory"))


def evaluate_config_file(info: PathInfo, report: ReportAggregator) -> None:
    label = info.name
    require_file(info, label)
    if label in SECRET_FILES:
        report.extend(secret_file_findings(info, label))
    else:
        report.extend(public_file_findings(info, label))
