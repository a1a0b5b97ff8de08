"""Rules for the application config file (``app.toml``)."""

from __future__ import annotations

import re
from typing import Iterator

from node_setup_check.exceptions import CheckAborted
from node_setup_check.models import AppConfig
from node_setup_check.policy import PRUNING_OPTIONS, RolePolicy
from node_setup_check.records import Finding, ReportAggregator, fatal, warning
from node_setup_check.rules.common import service_toggle_finding

APP_TOML = "app.toml"

_ZERO_GAS_PRICE_RE = re.compile(r"^\s*0[a-z]+\s*$")
_INTEGER_RE = re.compile(r"-?[0-9]+")


def parse_pruning_number(raw: str, field_name: str) -> int:
    # Base-10 digits with an optional minus sign.
    if not _INTEGER_RE.fullmatch(raw):
        raise CheckAborted(f"ERR: failed to parse {field_name} in {APP_TOML} file: {raw!r}")
    return int(raw)


def gas_price_finding(policy: RolePolicy, app: AppConfig) -> Finding | None:
    prices = app.minimum_gas_prices
    if prices == "":
        if policy.is_validator:
            return warning(f"minimum-gas-prices is empty, validator must set, in {APP_TOML} file")
        return warning(f"minimum-gas-prices is empty in {APP_TOML} file")
    if _ZERO_GAS_PRICE_RE.match(prices):
        if policy.is_validator:
            return warning(
                f"minimum-gas-prices is zero, validator must set, in {APP_TOML} file: {prices}"
            )
        return warning(f"minimum-gas-prices is zero in {APP_TOML} file: {prices}")
    return None


def pruning_mode_finding(policy: RolePolicy, pruning: str) -> Finding | None:
    role_policy = policy.pruning
    outcome = role_policy.outcome(pruning)
    if outcome.severity is None:
        return None
    if pruning in PRUNING_OPTIONS:
        message = f"pruning set to '{pruning}' in {APP_TOML} file"
        if outcome.note:
            message += f", {outcome.note}"
    else:
        message = f"invalid pruning option '{pruning}' in {APP_TOML} file"
    return Finding(outcome.severity, message, role_policy.suggestion)


def snapshot_profile_finding(policy: RolePolicy, app: AppConfig) -> Finding | None:
    if not policy.is_snapshot:
        return None
    keep_recent, interval = policy.table.snapshot_profile
    if (
        app.pruning != "custom"
        or app.pruning_keep_recent != keep_recent
        or app.pruning_interval != interval
    ):
        profile = f"custom {keep_recent}/{interval}"
        return warning(
            f"snapshot node should use pruning {profile} in {APP_TOML} file",
            f"set pruning to {profile}",
        )
    return None


def custom_pruning_findings(policy: RolePolicy, app: AppConfig) -> Iterator[Finding]:
    if app.pruning != "custom":
        return
    for field_name, raw, bounds in (
        ("pruning-keep-recent", app.pruning_keep_recent, policy.table.keep_recent),
        ("pruning-interval", app.pruning_interval, policy.table.interval),
    ):
        if raw.strip() == "":
            yield fatal(
                f"{field_name} is empty in {APP_TOML} file",
                f"set {field_name} to {bounds.suggested}",
            )
            continue
        value = parse_pruning_number(raw, field_name)
        if value > bounds.maximum:
            yield warning(f"{field_name} is too high in {APP_TOML} file")
        elif value < bounds.minimum:
            yield fatal(f"{field_name} is too low in {APP_TOML} file")


def halt_findings(app: AppConfig) -> Iterator[Finding]:
    if app.halt_height > 0:
        yield warning(
            f"halt-height is set to {app.halt_height} in {APP_TOML} file", "unset halt-height"
        )
    if app.halt_time > 0:
        yield warning(f"halt-time is set to {app.halt_time} in {APP_TOML} file", "unset halt-time")


def service_findings(policy: RolePolicy, app: AppConfig) -> Iterator[Finding | None]:
    if app.api is None:
        raise CheckAborted(f"ERR: [api] section is missing in {APP_TOML} file")
    yield service_toggle_finding(
        policy, "api", app.api.enable, file_name=APP_TOML, section="api"
    )
    if app.json_rpc is not None:
        yield service_toggle_finding(
            policy, "json-rpc", app.json_rpc.enable, file_name=APP_TOML, section="json-rpc"
        )
    if app.grpc is not None:
        yield service_toggle_finding(
            policy, "grpc", app.grpc.enable, file_name=APP_TOML, section="grpc"
        )


def state_sync_finding(policy: RolePolicy, app: AppConfig) -> Finding | None:
    if not policy.is_snapshot:
        return None
    interval = app.state_sync.snapshot_interval if app.state_sync is not None else 0
    if interval == 0:
        return warning(
            f"state-sync snapshot-interval is 0 in {APP_TOML} file, "
            "snapshot node should produce state-sync snapshots",
            "set snapshot-interval in [state-sync] section",
        )
    return None


def evaluate_app_config(
    policy: RolePolicy, app: AppConfig, report: ReportAggregator
) -> AppConfig:
    report.add(gas_price_finding(policy, app))
    report.add(pruning_mode_finding(policy, app.pruning))
    report.add(snapshot_profile_finding(policy, app))
    report.extend(custom_pruning_findings(policy, app))
    report.extend(halt_findings(app))
    report.extend(service_findings(policy, app))
    report.add(state_sync_finding(policy, app))
    return app
