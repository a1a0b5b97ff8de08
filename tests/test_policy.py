from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from node_setup_check import policy
from node_setup_check.records import Severity
from node_setup_check.roles import NodeRole, node_role_from_name, role_label, role_names


def test_packaged_policy_loads_expected_thresholds() -> None:
    table = policy.load_policy_table()
    assert (table.keep_recent.minimum, table.keep_recent.maximum) == (2, 400000)
    assert (table.interval.minimum, table.interval.maximum) == (10, 10000)
    assert table.snapshot_profile == ("100", "10")
    assert table.retention_floors == {"default": 362880, "everything": 2}
    assert table.double_sign.minimum == 5
    assert table.double_sign.maximum == 100
    assert table.double_sign.safety_margin == 10
    assert table.peers.default_port == 26656
    assert table.modes.keyring_directory == 0o700
    assert table.modes.keyring_files == frozenset({0o600})
    assert table.modes.validator_state == 0o600
    assert table.service_unit.restart == "no"
    assert table.service_unit.forbidden_users == ("root", "ubuntu")


def test_load_policy_table_is_cached() -> None:
    assert policy.load_policy_table() is policy.load_policy_table()


@pytest.mark.parametrize(
    ("role", "pruning", "severity"),
    [
        (NodeRole.VALIDATOR, "default", Severity.WARNING),
        (NodeRole.VALIDATOR, "nothing", Severity.FATAL),
        (NodeRole.VALIDATOR, "everything", None),
        (NodeRole.VALIDATOR, "custom", None),
        (NodeRole.RPC, "default", None),
        (NodeRole.RPC, "nothing", None),
        (NodeRole.RPC, "everything", Severity.FATAL),
        (NodeRole.RPC, "custom", None),
        (NodeRole.SNAPSHOT, "default", Severity.WARNING),
        (NodeRole.SNAPSHOT, "nothing", Severity.FATAL),
        (NodeRole.SNAPSHOT, "everything", Severity.FATAL),
        (NodeRole.SNAPSHOT, "custom", None),
        (NodeRole.ARCHIVAL, "default", Severity.FATAL),
        (NodeRole.ARCHIVAL, "nothing", None),
        (NodeRole.ARCHIVAL, "everything", Severity.FATAL),
        (NodeRole.ARCHIVAL, "custom", Severity.FATAL),
        (NodeRole.ARCHIVAL, "bogus", Severity.FATAL),
        (NodeRole.RPC, "", Severity.FATAL),
    ],
)
def test_pruning_outcomes_by_role(role: NodeRole, pruning: str, severity: Severity | None) -> None:
    assert policy.policy_for(role).pruning.outcome(pruning).severity is severity


def test_role_policy_predicates_and_services() -> None:
    validator = policy.policy_for(NodeRole.VALIDATOR)
    assert validator.is_validator and not validator.is_rpc
    assert not validator.services["api"].enabled
    rpc = policy.policy_for(NodeRole.RPC)
    assert rpc.is_rpc
    assert rpc.services["api"].severity is Severity.FATAL
    assert rpc.services["tx-index"].severity is Severity.WARNING
    assert "grpc" not in rpc.services
    snapshot = policy.policy_for(NodeRole.SNAPSHOT)
    assert snapshot.is_snapshot and dict(snapshot.services) == {}
    assert policy.policy_for(NodeRole.ARCHIVAL).is_archival


def test_role_policy_rejects_unspecified() -> None:
    with pytest.raises(ValueError):
        policy.policy_for(NodeRole.UNSPECIFIED)


def test_notices_wrap_role_specific_entries() -> None:
    notices = policy.policy_for(NodeRole.VALIDATOR).notices()
    assert notices[0].message == "Ensure P2P port is open on firewall"
    assert "health-check" in notices[1].message
    assert "fast_sync" in notices[-1].message
    assert notices[-1].suggestion == ""


def test_role_names_and_parsing() -> None:
    assert role_names() == ("validator", "rpc", "snapshot", "archival")
    assert node_role_from_name(" Validator ") is NodeRole.VALIDATOR
    assert node_role_from_name("ARCHIVAL") is NodeRole.ARCHIVAL
    assert node_role_from_name("seed") is NodeRole.UNSPECIFIED
    assert node_role_from_name(None) is NodeRole.UNSPECIFIED
    assert role_label(NodeRole.RPC) == "rpc node"


def _packaged_raw() -> dict[str, object]:
    source = Path(policy.__file__).with_name("policy.yaml")
    return yaml.load(source.read_text(encoding="utf-8"), Loader=policy._yaml_loader())


def test_yaml_loader_keeps_no_as_text() -> None:
    raw = _packaged_raw()
    assert raw["service_unit"]["restart"] == "no"


def test_load_policy_table_from_explicit_path(tmp_path: Path) -> None:
    raw = _packaged_raw()
    raw["peers"]["min_inbound"] = 80
    path = tmp_path / "policy.yaml"
    path.write_text(yaml.safe_dump(raw), encoding="utf-8")
    table = policy.load_policy_table(path)
    assert table.peers.min_inbound == 80
    custom = policy.policy_for(NodeRole.RPC, table=table)
    assert custom.table.peers.min_inbound == 80


def test_parse_policy_table_validation_failures() -> None:
    with pytest.raises(ValueError, match="policy invalid root"):
        policy.parse_policy_table([])
    with pytest.raises(ValueError, match="expected int"):
        policy._as_int("many", field_name="x")
    with pytest.raises(ValueError, match="expected int"):
        policy._as_int(True, field_name="x")
    with pytest.raises(ValueError, match="octal"):
        policy._as_mode("9z", field_name="x")
    with pytest.raises(ValueError, match="unknown severity"):
        policy._as_severity("loud", field_name="x")

    raw = _packaged_raw()
    raw["services"]["rpc"]["bogus"] = {"expect": "enabled", "severity": "fatal"}
    with pytest.raises(ValueError, match="unknown service"):
        policy.parse_policy_table(raw)

    raw = _packaged_raw()
    raw["services"]["rpc"]["api"] = {"expect": "enabled", "severity": "ok"}
    with pytest.raises(ValueError, match="ok is not allowed"):
        policy.parse_policy_table(raw)

    raw = _packaged_raw()
    raw["modes"]["keyring_files"] = []
    with pytest.raises(ValueError, match="keyring_files"):
        policy.parse_policy_table(raw)
