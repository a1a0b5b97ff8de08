from __future__ import annotations

import pytest

from node_setup_check.exceptions import CheckAborted
from node_setup_check.models import NetworkConfig, P2PSection
from node_setup_check.policy import RolePolicy, policy_for
from node_setup_check.records import ReportAggregator, Severity
from node_setup_check.roles import NodeRole
from node_setup_check.rules import network_config

NODE_ID = "f" * 40


def _p2p(**overrides: object) -> P2PSection:
    payload: dict[str, object] = {
        "laddr": "tcp://0.0.0.0:26756",
        "seeds": f"{NODE_ID}@seed.example.com:26656",
        "persistent_peers": f"{NODE_ID}@1.2.3.4:26656",
        "max_num_inbound_peers": 40,
        "max_num_outbound_peers": 10,
    }
    payload.update(overrides)
    return P2PSection.model_validate(payload)


def _network(**overrides: object) -> NetworkConfig:
    payload: dict[str, object] = {
        "moniker": "node-1",
        "p2p": _p2p().model_dump(),
        "consensus": {"double_sign_check_height": 10},
        "tx_index": {"indexer": "kv"},
    }
    payload.update(overrides)
    return NetworkConfig.model_validate(payload)


@pytest.mark.parametrize(
    ("peers", "valid"),
    [
        (f"{NODE_ID}@1.2.3.4:26656", True),
        (f"{NODE_ID}@seed.example.com:26656,{NODE_ID}@5.6.7.8:1", True),
        (f"{NODE_ID}@[2001:db8::1]:26656", True),
        (f"{NODE_ID}@1.2.3.4:26656, {NODE_ID}@5.6.7.8:26656", True),
        (f"{NODE_ID}@1.2.3.4", False),
        ("abc@1.2.3.4:26656", False),
        (f"{NODE_ID.upper()}@1.2.3.4:26656", False),
        (f"{NODE_ID}@1.2.3.4:26656,", False),
        (f"{NODE_ID}@1.2.3.4:123456", False),
    ],
)
def test_is_valid_peer_list(peers: str, valid: bool) -> None:
    assert network_config.is_valid_peer_list(peers) is valid


@pytest.mark.parametrize(
    ("laddr", "port"),
    [("tcp://0.0.0.0:26656", 26656), ("tcp://[::]:1234", 1234), ("tcp://0.0.0.0", None), ("", None)],
)
def test_laddr_port(laddr: str, port: int | None) -> None:
    assert network_config.laddr_port(laddr) == port


def test_clean_p2p_has_no_findings(rpc_policy: RolePolicy) -> None:
    assert list(network_config.p2p_findings(rpc_policy, _p2p())) == []


def test_empty_and_malformed_peer_lists_warn() -> None:
    findings = list(network_config.peer_list_findings(_p2p(seeds="", persistent_peers="nope")))
    assert [item.message for item in findings] == [
        "seeds is empty in config.toml file",
        "persistent_peers is malformed in config.toml file, "
        "expected comma separated <node id>@<host>:<port>",
    ]
    assert all(item.severity is Severity.WARNING for item in findings)


def test_p2p_thresholds(rpc_policy: RolePolicy) -> None:
    p2p = _p2p(
        laddr="tcp://0.0.0.0:26656",
        max_num_inbound_peers=10,
        max_num_outbound_peers=5,
        seed_mode=True,
    )
    messages = [item.message for item in network_config.p2p_findings(rpc_policy, p2p)]
    assert messages == [
        "p2p is using default port 26656 in config.toml file",
        "max_num_inbound_peers is too low in config.toml file: 10",
        "max_num_outbound_peers is too low in config.toml file: 5",
        "seed_mode is enabled in config.toml file",
    ]


def test_moniker_consensus_and_statesync() -> None:
    assert network_config.moniker_finding(_network()) is None
    assert network_config.moniker_finding(_network(moniker="  ")) is not None
    skip = _network(consensus={"skip_timeout_commit": True})
    assert network_config.consensus_finding(skip) is not None
    assert network_config.consensus_finding(_network()) is None
    synced = _network(statesync={"enable": True})
    assert network_config.state_sync_finding(synced) is not None
    assert network_config.state_sync_finding(_network()) is None


@pytest.mark.parametrize(
    ("role", "indexer", "expected"),
    [
        (NodeRole.VALIDATOR, "kv", "tx-index is enabled in config.toml file, validator should disable it"),
        (NodeRole.VALIDATOR, "null", None),
        (NodeRole.RPC, "null", "tx-index is disabled in config.toml file, rpc node should enable it"),
        (NodeRole.RPC, "kv", None),
        (NodeRole.ARCHIVAL, "null", "tx-index is disabled in config.toml file, archival node should enable it"),
        (NodeRole.SNAPSHOT, "null", None),
    ],
)
def test_tx_index_finding(role: NodeRole, indexer: str, expected: str | None) -> None:
    finding = network_config.tx_index_finding(
        policy_for(role), _network(tx_index={"indexer": indexer})
    )
    if expected is None:
        assert finding is None
    else:
        assert finding is not None
        assert finding.severity is Severity.WARNING
        assert finding.message == expected
        assert finding.suggestion.endswith("[tx_index] section")


def test_missing_tx_index_section_is_ignored(validator_policy: RolePolicy) -> None:
    network = NetworkConfig.model_validate({"p2p": {}, "consensus": {}})
    assert network_config.tx_index_finding(validator_policy, network) is None


@pytest.mark.parametrize("missing", ["p2p", "consensus"])
def test_missing_required_sections_abort(rpc_policy: RolePolicy, missing: str) -> None:
    payload = _network().model_dump()
    payload[missing] = None
    network = NetworkConfig.model_validate(payload)
    with pytest.raises(CheckAborted, match=rf"\[{missing}\] section is missing"):
        network_config.evaluate_network_config(rpc_policy, network, ReportAggregator())


def test_evaluate_network_config_returns_input(rpc_policy: RolePolicy) -> None:
    report = ReportAggregator()
    network = _network(moniker="")
    assert network_config.evaluate_network_config(rpc_policy, network, report) is network
    assert [entry.message for entry in report.render()] == ["moniker is empty in config.toml file"]
