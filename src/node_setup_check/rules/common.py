"""Permission and presence shapes shared by the surface evaluators."""

from __future__ import annotations

from typing import Iterator

from node_setup_check.exceptions import CheckAborted
from node_setup_check.models import PathInfo
from node_setup_check.permissions import classify
from node_setup_check.policy import RolePolicy
from node_setup_check.records import Finding, fatal
from node_setup_check.roles import role_label


def require_directory(info: PathInfo, label: str) -> None:
    if not info.exists:
        raise CheckAborted(f"ERR: {label} does not exist: {info.path}")
    if not info.is_dir:
        raise CheckAborted(f"ERR: {label} is not a directory: {info.path}")


def require_file(info: PathInfo, label: str) -> None:
    if not info.exists:
        raise CheckAborted(f"ERR: {label} file does not exist: {info.path}")
    if info.is_dir:
        raise CheckAborted(f"ERR: {label} is a directory, it should be a file: {info.path}")


def shared_directory_findings(info: PathInfo, label: str) -> Iterator[Finding]:
    """Directory others may read but only the owner may change."""
    perm = classify(info.mode)
    if perm.other.write:
        yield fatal(f"{label} is writable by others", f"chmod o-w {info.path}")
    if perm.group.write:
        yield fatal(f"{label} is writable by group", f"chmod g-w {info.path}")
    if not perm.user.has_full_access():
        yield fatal(f"{label} is not fully accessible by user", f"chmod u+rwx {info.path}")


def private_directory_findings(info: PathInfo, label: str) -> Iterator[Finding]:
    perm = classify(info.mode)
    suggestion = f"chmod 700 {info.path}"
    if perm.other.has_any_access():
        yield fatal(f"{label} is accessible by others", suggestion)
    if perm.group.has_any_access():
        yield fatal(f"{label} is accessible by group", suggestion)
    if not perm.user.has_full_access():
        yield fatal(f"{label} is not fully accessible by user", suggestion)


def public_file_findings(info: PathInfo, label: str) -> Iterator[Finding]:
    perm = classify(info.mode)
    suggestion = f"chmod 644 {info.path}"
    if perm.other.write:
        yield fatal(f"{label} file is writable by others", suggestion)
    if perm.group.write:
        yield fatal(f"{label} file is writable by group", suggestion)
    yield from _owner_read_write(perm.user.read, perm.user.write, label, suggestion)


def secret_file_findings(info: PathInfo, label: str) -> Iterator[Finding]:
    perm = classify(info.mode)
    suggestion = f"chmod 600 {info.path}"
    if perm.other.has_any_access():
        yield fatal(f"{label} file is accessible by others", suggestion)
    if perm.group.has_any_access():
        yield fatal(f"{label} file is accessible by group", suggestion)
    yield from _owner_read_write(perm.user.read, perm.user.write, label, suggestion)


def _owner_read_write(read: bool, write: bool, label: str, suggestion: str) -> Iterator[Finding]:
    if not read:
        yield fatal(f"{label} file is not readable by user", suggestion)
    if not write:
        yield fatal(f"{label} file is not writable by user", suggestion)


def exact_mode_finding(
    info: PathInfo, expected: int, message: str, suggestion: str
) -> Finding | None:
    if info.mode != expected:
        return fatal(message, suggestion)
    return None


def service_toggle_finding(
    policy: RolePolicy,
    service: str,
    enabled: bool,
    *,
    file_name: str,
    section: str,
) -> Finding | None:
    """Compare a service enable flag with the role's expectation, if any."""
    expectation = policy.services.get(service)
    if expectation is None or expectation.enabled == enabled:
        return None
    who = role_label(policy.role)
    if enabled:
        message = f"{service} is enabled in {file_name} file, {who} should disable it"
        suggestion = f"disable it in [{section}] section"
    else:
        message = f"{service} is disabled in {file_name} file, {who} should enable it"
        suggestion = f"enable it in [{section}] section"
    return Finding(expectation.severity, message, suggestion)
