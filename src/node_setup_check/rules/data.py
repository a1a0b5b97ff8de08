"""Data directory and validator signing state rules."""

from __future__ import annotations

from node_setup_check.exceptions import CheckAborted
from node_setup_check.models import PathInfo, ValidatorState
from node_setup_check.policy import RolePolicy
from node_setup_check.records import Finding, ReportAggregator, fatal
from node_setup_check.rules.common import (
    exact_mode_finding,
    private_directory_findings,
    require_directory,
    require_file,
)

VALIDATOR_STATE_JSON = "priv_validator_state.json"


def evaluate_data_directory(info: PathInfo, report: ReportAggregator) -> None:
    require_directory(info, "data directory")
    report.extend(private_directory_findings(info, "data directory"))


def evaluate_state_file(policy: RolePolicy, info: PathInfo, report: ReportAggregator) -> None:
    require_file(info, VALIDATOR_STATE_JSON)
    expected = policy.table.modes.validator_state
    report.add(
        exact_mode_finding(
            info,
            expected,
            f"{VALIDATOR_STATE_JSON} has invalid permission",
            f"chmod {expected:o} {info.path}",
        )
    )


def validator_state_finding(policy: RolePolicy, state: ValidatorState) -> Finding | None:
    """Grade the signing state; corrupt or misplaced state aborts the run."""
    if state.is_empty():
        if policy.is_validator:
            return fatal(
                f"{VALIDATOR_STATE_JSON} is empty",
                "can be ignored if this is a fresh validator node",
            )
        return None
    if not policy.is_validator:
        raise CheckAborted(
            f"{VALIDATOR_STATE_JSON} is not empty, it should be empty on non-validator "
            "nodes, trouble-shoot the issue"
        )
    for problem, found in (
        ("height is 0", state.height == "0"),
        ("signature is empty", state.signature == ""),
        ("signbytes is empty", state.signbytes == ""),
    ):
        if found:
            raise CheckAborted(
                f"{VALIDATOR_STATE_JSON} is not empty, but {problem}, trouble-shoot the issue"
            )
    return None


def evaluate_validator_state(
    policy: RolePolicy, state: ValidatorState, report: ReportAggregator
) -> None:
    report.add(validator_state_finding(policy, state))
