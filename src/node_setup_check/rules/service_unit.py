"""Systemd unit rules for validators running on Linux."""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import Iterator

from node_setup_check.models import InstallSection, ServiceSection, ServiceUnit, UnitSection
from node_setup_check.policy import RolePolicy, ServiceUnitPolicy
from node_setup_check.records import Finding, ReportAggregator, fatal, warning


def location_findings(policy: RolePolicy, unit: ServiceUnit) -> Iterator[Finding]:
    rules = policy.table.service_unit
    expected_mode = policy.table.modes.service_unit
    if unit.mode != expected_mode:
        yield fatal("service file has invalid permission", f"sudo chmod {expected_mode:o} {unit.path}")
    if not unit.path.endswith(rules.suffix):
        yield fatal("service file is not a systemd service file", f"use {rules.suffix} file extension")
    directory = PurePosixPath(rules.directory)
    if directory not in PurePosixPath(unit.path).parents:
        yield fatal(f"service file is not in {rules.directory} directory", "use systemd")


def unit_section_findings(rules: ServiceUnitPolicy, section: UnitSection | None) -> Iterator[Finding]:
    if section is None:
        yield fatal("service file is missing [Unit] section", "add [Unit] section to service file")
        return
    if section.description == "":
        yield fatal(
            "service file is missing Description in [Unit] section",
            "add Description to [Unit] section",
        )
    if section.after == "":
        yield fatal("service file is missing After in [Unit] section", "add After to [Unit] section")
    elif rules.after not in section.after.split():
        yield fatal(
            "service file is using invalid After in [Unit] section",
            f"change After to {rules.after}",
        )


def _user_findings(rules: ServiceUnitPolicy, raw_user: str) -> Iterator[Finding]:
    if raw_user == "":
        yield fatal("service file is missing User in [Service] section", "add User to [Service] section")
        return
    user = raw_user.strip().lower()
    if user in rules.forbidden_users:
        yield fatal(
            "service file is using invalid User in [Service] section",
            "change User to a non-root user",
        )
    elif rules.user_separator not in user:
        yield warning(
            "service file is using invalid User in [Service] section",
            f'use memorable username with "{rules.user_separator}", e.g. "val-x-testnet"',
        )


def _exec_start_finding(exec_start: str, home: Path) -> Finding | None:
    if exec_start == "":
        return fatal(
            "service file is missing ExecStart in [Service] section",
            "add ExecStart to [Service] section",
        )
    if "--home" not in exec_start:
        return fatal(
            "service file is missing --home in ExecStart in [Service] section",
            "add --home to ExecStart in [Service] section",
        )
    resolved = home.resolve()
    home_name = resolved.name
    if home_name not in exec_start:
        return fatal(
            "--home in ExecStart in [Service] section might not pointing to the "
            f'correct home dir "{home_name}"',
            f"change --home to --home={resolved}",
        )
    return None


def service_section_findings(
    rules: ServiceUnitPolicy, section: ServiceSection | None, home: Path
) -> Iterator[Finding]:
    if section is None:
        yield fatal("service file is missing [Service] section", "add [Service] section to service file")
        return
    yield from _user_findings(rules, section.user)
    finding = _exec_start_finding(section.exec_start, home)
    if finding is not None:
        yield finding
    if section.restart == "":
        yield fatal(
            "service file is missing Restart in [Service] section",
            f"add Restart={rules.restart} to [Service] section",
        )
    elif section.restart != rules.restart:
        yield fatal(
            "service file is using invalid Restart in [Service] section, "
            f"must using '{rules.restart}' to prevent incident restart",
            f"change Restart={rules.restart}",
        )
    if section.restart_sec != "":
        yield fatal(
            "service file contains RestartSec in [Service] section",
            "remove RestartSec from [Service] section",
        )


def install_section_findings(
    rules: ServiceUnitPolicy, section: InstallSection | None
) -> Iterator[Finding]:
    if section is None:
        yield fatal("service file is missing [Install] section", "add [Install] section to service file")
        return
    if section.wanted_by == "":
        yield fatal(
            "service file is missing WantedBy in [Install] section",
            f"add WantedBy={rules.wanted_by} in [Install] section",
        )
    elif section.wanted_by != rules.wanted_by:
        yield fatal(
            "service file is using invalid WantedBy in [Install] section",
            f"change WantedBy to {rules.wanted_by} in [Install] section",
        )


def enabled_finding(unit: ServiceUnit) -> Finding | None:
    if unit.enabled:
        return fatal("service file is already enabled", f"sudo systemctl disable {unit.file_name}")
    return None


def evaluate_service_unit(
    policy: RolePolicy, unit: ServiceUnit, home: Path, report: ReportAggregator
) -> None:
    rules = policy.table.service_unit
    report.extend(location_findings(policy, unit))
    report.extend(unit_section_findings(rules, unit.unit))
    report.extend(service_section_findings(rules, unit.service, home))
    report.extend(install_section_findings(rules, unit.install))
    report.add(enabled_finding(unit))
