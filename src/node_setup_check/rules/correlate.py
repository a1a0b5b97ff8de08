"""Rules that need both ``app.toml`` and ``config.toml`` at once."""

from __future__ import annotations

from typing import Iterator

from node_setup_check.exceptions import MissingCorrelationInputError
from node_setup_check.models import AppConfig, NetworkConfig
from node_setup_check.policy import RolePolicy
from node_setup_check.records import Finding, ReportAggregator, fatal, warning
from node_setup_check.rules.app_config import APP_TOML, parse_pruning_number
from node_setup_check.rules.network_config import CONFIG_TOML


def _custom_keep_recent(app: AppConfig) -> int | None:
    if app.pruning != "custom" or app.pruning_keep_recent.strip() == "":
        return None
    return parse_pruning_number(app.pruning_keep_recent, "pruning-keep-recent")


def retention_finding(policy: RolePolicy, app: AppConfig) -> Finding | None:
    retain = app.min_retain_blocks
    floors = policy.table.retention_floors
    if app.pruning in floors:
        floor = floors[app.pruning]
        if retain < floor:
            return warning(
                f"min-retain-blocks is lower than {floor} while pruning is "
                f"'{app.pruning}' in {APP_TOML} file",
                f"set min-retain-blocks to at least {floor}",
            )
        return None
    if app.pruning == "custom":
        keep_recent = _custom_keep_recent(app)
        if keep_recent is not None and retain < keep_recent:
            return warning(
                f"min-retain-blocks ({retain}) is lower than pruning-keep-recent "
                f"({keep_recent}) in {APP_TOML} file",
                f"set min-retain-blocks to at least {keep_recent}",
            )
        return None
    if app.pruning == "nothing" and retain != 0:
        return fatal(
            f"min-retain-blocks must be 0 while pruning is 'nothing' in {APP_TOML} file",
            "set min-retain-blocks to 0",
        )
    return None


def double_sign_findings(
    policy: RolePolicy, app: AppConfig, network: NetworkConfig
) -> Iterator[Finding]:
    if not policy.is_validator:
        return
    band = policy.table.double_sign
    height = network.consensus.double_sign_check_height if network.consensus else 0
    if height == 0:
        yield fatal(
            f"double_sign_check_height is not set in {CONFIG_TOML} file, validator must set it",
            f"set double_sign_check_height to {band.recommended}",
        )
        return
    if height < band.minimum or height > band.maximum:
        yield warning(
            f"double_sign_check_height {height} is out of recommended range "
            f"[{band.minimum}, {band.maximum}] in {CONFIG_TOML} file",
            f"set double_sign_check_height to {band.recommended}",
        )
    keep_recent = _custom_keep_recent(app)
    if keep_recent is None:
        return
    required = height + band.safety_margin
    if keep_recent < required:
        yield warning(
            f"pruning-keep-recent ({keep_recent}) should exceed double_sign_check_height "
            f"({height}) by at least {band.safety_margin} blocks",
            f"set pruning-keep-recent to at least {required}",
        )
    if app.min_retain_blocks < required:
        yield warning(
            f"min-retain-blocks ({app.min_retain_blocks}) should exceed "
            f"double_sign_check_height ({height}) by at least {band.safety_margin} blocks",
            f"set min-retain-blocks to at least {required}",
        )


def evaluate_correlations(
    policy: RolePolicy,
    app: AppConfig | None,
    network: NetworkConfig | None,
    report: ReportAggregator,
) -> None:
    if app is None or network is None:
        missing = APP_TOML if app is None else CONFIG_TOML
        raise MissingCorrelationInputError(
            f"ERR: cannot correlate settings, {missing} has not been evaluated"
        )
    report.add(retention_finding(policy, app))
    report.extend(double_sign_findings(policy, app, network))
