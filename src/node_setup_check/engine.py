from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol

from node_setup_check import rules
from node_setup_check.fs import FilesystemInspector
from node_setup_check.models import (
    AppConfig,
    KeyringStore,
    NetworkConfig,
    NodeKey,
    PathInfo,
    ServiceUnit,
    ValidatorKey,
    ValidatorState,
)
from node_setup_check.policy import RolePolicy, policy_for
from node_setup_check.records import ReportAggregator
from node_setup_check.roles import NodeRole
from node_setup_check.rules.common import require_file
from node_setup_check.rules.data import VALIDATOR_STATE_JSON
from node_setup_check.rules.keyring import KEYHASH, KEYRING_FILE, KEYRING_TEST

logger = logging.getLogger(__name__)


class HomeInspector(Protocol):
    def stat(self, path: Path) -> PathInfo: ...

    def keyring_store(self, path: Path, *, keyhash_name: str | None = None) -> KeyringStore: ...

    def app_config(self, path: Path) -> AppConfig: ...

    def network_config(self, path: Path) -> NetworkConfig: ...

    def node_key(self, path: Path) -> NodeKey: ...

    def validator_key(self, path: Path) -> ValidatorKey: ...

    def validator_state(self, path: Path) -> ValidatorState: ...

    def service_unit(self, info: PathInfo, *, wants_directory: Path) -> ServiceUnit: ...


@dataclass(frozen=True)
class CheckRequest:
    home: Path
    role: NodeRole
    service_file: Optional[Path] = None


def check_home(
    policy: RolePolicy, home: Path, inspector: HomeInspector, report: ReportAggregator
) -> None:
    rules.evaluate_home(inspector.stat(home), report)


def check_keyrings(
    policy: RolePolicy, home: Path, inspector: HomeInspector, report: ReportAggregator
) -> None:
    rules.evaluate_keyrings(
        policy,
        inspector.keyring_store(home / KEYRING_FILE, keyhash_name=KEYHASH),
        inspector.keyring_store(home / KEYRING_TEST),
        report,
    )


def check_config(
    policy: RolePolicy, home: Path, inspector: HomeInspector, report: ReportAggregator
) -> None:
    config_dir = home / "config"
    rules.evaluate_config_directory(inspector.stat(config_dir), report)

    def _file(name: str) -> Path:
        info = inspector.stat(config_dir / name)
        rules.evaluate_config_file(info, report)
        return info.path

    app_path = _file("app.toml")
    app = rules.evaluate_app_config(policy, inspector.app_config(app_path), report)
    _file("client.toml")
    network_path = _file("config.toml")
    network = rules.evaluate_network_config(policy, inspector.network_config(network_path), report)
    _file("genesis.json")
    rules.evaluate_node_key(inspector.node_key(_file("node_key.json")))
    rules.evaluate_validator_key(inspector.validator_key(_file("priv_validator_key.json")))
    rules.evaluate_correlations(policy, app, network, report)


def check_data(
    policy: RolePolicy, home: Path, inspector: HomeInspector, report: ReportAggregator
) -> None:
    data_dir = home / "data"
    rules.evaluate_data_directory(inspector.stat(data_dir), report)
    state_info = inspector.stat(data_dir / VALIDATOR_STATE_JSON)
    rules.evaluate_state_file(policy, state_info, report)
    rules.evaluate_validator_state(policy, inspector.validator_state(state_info.path), report)


def check_service_unit(
    policy: RolePolicy,
    home: Path,
    service_file: Path,
    inspector: HomeInspector,
    report: ReportAggregator,
) -> None:
    info = inspector.stat(service_file)
    require_file(info, "service")
    unit = inspector.service_unit(
        info, wants_directory=Path(policy.table.service_unit.wants_directory)
    )
    rules.evaluate_service_unit(policy, unit, home, report)


def run_checks(
    request: CheckRequest,
    report: ReportAggregator,
    *,
    inspector: HomeInspector | None = None,
    policy: RolePolicy | None = None,
) -> RolePolicy:
    """Evaluate every surface of a node home in the fixed order.

    Policy violations land in ``report``; a ``CheckAborted`` stops the run and
    leaves the records gathered so far in place.
    """
    active_inspector = inspector if inspector is not None else FilesystemInspector()
    active_policy = policy if policy is not None else policy_for(request.role)
    home = request.home
    for name, step in (
        ("home", check_home),
        ("keyring", check_keyrings),
        ("config", check_config),
        ("data", check_data),
    ):
        logger.debug("evaluating %s of %s", name, home)
        step(active_policy, home, active_inspector, report)
    if request.service_file is not None:
        logger.debug("evaluating service unit %s", request.service_file)
        check_service_unit(active_policy, home, request.service_file, active_inspector, report)
    return active_policy
