"""Rules for the network and consensus config file (``config.toml``)."""

from __future__ import annotations

import re
from typing import Iterator

from node_setup_check.exceptions import CheckAborted
from node_setup_check.models import NetworkConfig, P2PSection
from node_setup_check.policy import RolePolicy
from node_setup_check.records import Finding, ReportAggregator, warning
from node_setup_check.rules.common import service_toggle_finding

CONFIG_TOML = "config.toml"

_PEER_RE = re.compile(
    r"^[a-f\d]{40}@(([^:]+)|(\[[a-f\d]*(:+[a-f\d]+)+\])):\d{1,5}$"
)


def is_valid_peer_list(peers: str) -> bool:
    """Match ``<node id>@<host>:<port>`` entries separated by commas."""
    entries = [entry.strip() for entry in peers.split(",")]
    return bool(entries) and all(_PEER_RE.match(entry) for entry in entries)


def laddr_port(laddr: str) -> int | None:
    _, sep, port = laddr.strip().rpartition(":")
    if not sep or not port.isdigit():
        return None
    return int(port)


def moniker_finding(network: NetworkConfig) -> Finding | None:
    if network.moniker.strip() == "":
        return warning(f"moniker is empty in {CONFIG_TOML} file", "set a moniker")
    return None


def peer_list_findings(p2p: P2PSection) -> Iterator[Finding]:
    for field_name, value in (("seeds", p2p.seeds), ("persistent_peers", p2p.persistent_peers)):
        if value.strip() == "":
            yield warning(
                f"{field_name} is empty in {CONFIG_TOML} file",
                f"set {field_name} in [p2p] section",
            )
        elif not is_valid_peer_list(value):
            yield warning(
                f"{field_name} is malformed in {CONFIG_TOML} file, "
                "expected comma separated <node id>@<host>:<port>",
                f"fix {field_name} in [p2p] section",
            )


def p2p_findings(policy: RolePolicy, p2p: P2PSection) -> Iterator[Finding]:
    peers = policy.table.peers
    yield from peer_list_findings(p2p)
    if laddr_port(p2p.laddr) == peers.default_port:
        yield warning(
            f"p2p is using default port {peers.default_port} in {CONFIG_TOML} file",
            "change port of laddr in [p2p] section",
        )
    if p2p.max_num_inbound_peers < peers.min_inbound:
        yield warning(
            f"max_num_inbound_peers is too low in {CONFIG_TOML} file: {p2p.max_num_inbound_peers}",
            f"set max_num_inbound_peers to at least {peers.min_inbound}",
        )
    if p2p.max_num_outbound_peers < peers.min_outbound:
        yield warning(
            f"max_num_outbound_peers is too low in {CONFIG_TOML} file: {p2p.max_num_outbound_peers}",
            f"set max_num_outbound_peers to at least {peers.min_outbound}",
        )
    if p2p.seed_mode:
        yield warning(f"seed_mode is enabled in {CONFIG_TOML} file", "set seed_mode to false")


def consensus_finding(network: NetworkConfig) -> Finding | None:
    if network.consensus is not None and network.consensus.skip_timeout_commit:
        return warning(
            f"skip_timeout_commit is enabled in {CONFIG_TOML} file",
            "set skip_timeout_commit to false",
        )
    return None


def state_sync_finding(network: NetworkConfig) -> Finding | None:
    if network.statesync is not None and network.statesync.enable:
        return warning(
            f"statesync is enabled in {CONFIG_TOML} file",
            "disable statesync after the node has synced",
        )
    return None


def tx_index_finding(policy: RolePolicy, network: NetworkConfig) -> Finding | None:
    if network.tx_index is None:
        return None
    enabled = network.tx_index.indexer.strip().lower() != "null"
    return service_toggle_finding(
        policy, "tx-index", enabled, file_name=CONFIG_TOML, section="tx_index"
    )


def evaluate_network_config(
    policy: RolePolicy, network: NetworkConfig, report: ReportAggregator
) -> NetworkConfig:
    if network.p2p is None:
        raise CheckAborted(f"ERR: [p2p] section is missing in {CONFIG_TOML} file")
    if network.consensus is None:
        raise CheckAborted(f"ERR: [consensus] section is missing in {CONFIG_TOML} file")
    report.add(moniker_finding(network))
    report.extend(p2p_findings(policy, network.p2p))
    report.add(consensus_finding(network))
    report.add(state_sync_finding(network))
    report.add(tx_index_finding(policy, network))
    return network
