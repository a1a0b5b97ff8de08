from __future__ import annotations

from node_setup_check.models import PathInfo
from node_setup_check.records import ReportAggregator
from node_setup_check.rules.common import require_directory, shared_directory_findings


def evaluate_home(info: PathInfo, report: ReportAggregator) -> None:
    require_directory(info, "provided home directory")
    report.extend(shared_directory_findings(info, "home directory"))
