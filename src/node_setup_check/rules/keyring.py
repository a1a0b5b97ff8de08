"""Keyring backend checks for ``keyring-file`` and ``keyring-test`` stores."""

from __future__ import annotations

from typing import Iterator

from node_setup_check.exceptions import CheckAborted
from node_setup_check.models import KeyringStore
from node_setup_check.permissions import symbolic
from node_setup_check.policy import RolePolicy
from node_setup_check.records import Finding, ReportAggregator, fatal, warning
from node_setup_check.rules.common import secret_file_findings

KEYRING_FILE = "keyring-file"
KEYRING_TEST = "keyring-test"
KEYHASH = "keyhash"


def _mode_text(modes: frozenset[int]) -> str:
    return " or ".join(f"{mode:o}" for mode in sorted(modes))


def inner_entry_findings(
    policy: RolePolicy, store: KeyringStore, label: str
) -> Iterator[Finding]:
    modes = policy.table.modes
    root = store.root.path
    for entry in store.entries:
        if entry.is_dir:
            if entry.mode != modes.keyring_directory:
                yield fatal(
                    f"{label} inner directory must have permission "
                    f"{modes.keyring_directory:o} but {entry.path} has invalid "
                    f"permission {symbolic(entry.mode)}",
                    f"chmod -R {modes.keyring_directory:o} {root}",
                )
        elif entry.mode not in modes.keyring_files:
            yield fatal(
                f"{label} inner file must have permission {_mode_text(modes.keyring_files)} "
                f"but {entry.path} has invalid permission {symbolic(entry.mode)}",
                f"chmod {min(modes.keyring_files):o} {entry.path}",
            )


def _directory_mode_finding(policy: RolePolicy, store: KeyringStore, label: str) -> Finding | None:
    expected = policy.table.modes.keyring_directory
    if store.root.mode != expected:
        return fatal(
            f"{label} directory has invalid permission {symbolic(store.root.mode)}",
            f"chmod -R {expected:o} {store.root.path}",
        )
    return None


def keyring_file_findings(policy: RolePolicy, store: KeyringStore) -> Iterator[Finding]:
    root = store.root
    if not root.exists:
        if policy.is_validator:
            yield warning(
                f"{KEYRING_FILE} directory is missing on validator node: {root.path}",
                f"can be ignored if you are not using {KEYRING_FILE}",
            )
        return
    if not root.is_dir:
        raise CheckAborted(f"ERR: {KEYRING_FILE} is not a directory: {root.path}")

    if not policy.is_validator and not store.is_empty:
        yield warning(
            f"should not store key on non-validator node, found at {root.path}",
            f"migrate/backup and remove usage of {KEYRING_FILE}",
        )

    finding = _directory_mode_finding(policy, store, KEYRING_FILE)
    if finding is not None:
        yield finding

    keyhash = store.keyhash
    if keyhash is not None and keyhash.exists:
        if keyhash.is_dir:
            raise CheckAborted(f"ERR: {keyhash.path} is a directory, it should be a file")
        yield from secret_file_findings(keyhash, KEYHASH)
    elif policy.is_validator:
        yield warning(
            f"{KEYHASH} file is missing on validator node: {root.path / KEYHASH}",
            f"can be ignored if you are not using {KEYRING_FILE}",
        )

    if store.walk_error is not None:
        raise CheckAborted(store.walk_error)
    yield from inner_entry_findings(policy, store, KEYRING_FILE)


def keyring_test_findings(policy: RolePolicy, store: KeyringStore) -> Iterator[Finding]:
    root = store.root
    if not root.exists or not root.is_dir:
        return

    finding = _directory_mode_finding(policy, store, KEYRING_TEST)
    if finding is not None:
        yield finding

    if store.walk_error is not None:
        raise CheckAborted(store.walk_error)

    if not store.is_empty:
        message = f"{KEYRING_TEST} should not be used, found at {root.path}"
        suggestion = f"migrate/backup and remove usage of {KEYRING_TEST}"
        if policy.is_validator:
            yield fatal(message, suggestion)
        else:
            yield warning(message, suggestion)

    yield from inner_entry_findings(policy, store, KEYRING_TEST)


def evaluate_keyrings(
    policy: RolePolicy,
    keyring_file: KeyringStore,
    keyring_test: KeyringStore,
    report: ReportAggregator,
) -> None:
    report.extend(keyring_file_findings(policy, keyring_file))
    report.extend(keyring_test_findings(policy, keyring_test))
