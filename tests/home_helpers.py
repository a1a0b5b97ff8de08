from __future__ import annotations

import json
import os
import textwrap
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

NODE_ID = "a" * 40
OTHER_NODE_ID = "b" * 40
VALIDATOR_ADDRESS = "0123456789ABCDEF0123456789ABCDEF01234567"

RPC_APP_TOML = """
minimum-gas-prices = "0.025uatom"
pruning = "default"
pruning-keep-recent = "0"
pruning-interval = "0"
halt-height = 0
halt-time = 0
min-retain-blocks = 362880

[api]
enable = true
swagger = false

[json-rpc]
enable = true

[grpc]
enable = true
address = "0.0.0.0:9090"

[state-sync]
snapshot-interval = 0
snapshot-keep-recent = 2
"""

VALIDATOR_APP_TOML = """
minimum-gas-prices = "0.025uatom"
pruning = "everything"
pruning-keep-recent = "0"
pruning-interval = "0"
halt-height = 0
min-retain-blocks = 100

[api]
enable = false

[json-rpc]
enable = false

[grpc]
enable = false
"""

CONFIG_TOML = f"""
moniker = "node-1"

[p2p]
laddr = "tcp://0.0.0.0:26756"
seeds = "{NODE_ID}@seed.example.com:26656"
persistent_peers = "{NODE_ID}@10.0.0.2:26656,{OTHER_NODE_ID}@[2001:db8::1]:26656"
max_num_inbound_peers = 40
max_num_outbound_peers = 10
seed_mode = false

[statesync]
enable = false

[consensus]
double_sign_check_height = {{double_sign}}
skip_timeout_commit = false

[tx_index]
indexer = "{{indexer}}"
"""

NODE_KEY = {"priv_key": {"type": "tendermint/PrivKeyEd25519", "value": "bm9kZS1rZXk="}}
VALIDATOR_KEY = {
    "address": VALIDATOR_ADDRESS,
    "pub_key": {"type": "tendermint/PubKeyEd25519", "value": "cHViLWtleQ=="},
    "priv_key": {"type": "tendermint/PrivKeyEd25519", "value": "cHJpdi1rZXk="},
}
EMPTY_STATE = {"height": "0", "round": 0, "step": 0}
SIGNED_STATE = {
    "height": "1200",
    "round": 0,
    "step": 3,
    "signature": "c2lnbmF0dXJl",
    "signbytes": "0A0B0C",
}


def write_file(path: Path, text: str, mode: int) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    os.chmod(path, mode)
    return path


def make_dir(path: Path, mode: int) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    os.chmod(path, mode)
    return path


def network_toml(*, double_sign: int = 0, indexer: str = "kv") -> str:
    return CONFIG_TOML.replace("{double_sign}", str(double_sign)).replace(
        "{indexer}", indexer
    )


def build_home(
    root: Path,
    *,
    validator: bool = False,
    app_toml: str | None = None,
    config_toml: str | None = None,
    state: dict[str, object] | None = None,
    home_mode: int = 0o755,
) -> Path:
    """Lay out a node home that passes every check for its role."""
    home = make_dir(root / "node-home", 0o755)
    config = make_dir(home / "config", 0o755)
    if app_toml is None:
        app_toml = VALIDATOR_APP_TOML if validator else RPC_APP_TOML
    if config_toml is None:
        config_toml = (
            network_toml(double_sign=10, indexer="null") if validator else network_toml()
        )
    write_file(config / "app.toml", textwrap.dedent(app_toml), 0o644)
    write_file(config / "config.toml", textwrap.dedent(config_toml), 0o644)
    write_file(config / "client.toml", 'chain-id = "test-1"\n', 0o600)
    write_file(config / "genesis.json", "{}\n", 0o644)
    write_file(config / "node_key.json", json.dumps(NODE_KEY), 0o600)
    write_file(config / "priv_validator_key.json", json.dumps(VALIDATOR_KEY), 0o600)
    data = make_dir(home / "data", 0o700)
    if state is None:
        state = SIGNED_STATE if validator else EMPTY_STATE
    write_file(data / "priv_validator_state.json", json.dumps(state), 0o600)
    if validator:
        keyring = make_dir(home / "keyring-file", 0o700)
        write_file(keyring / "keyhash", "hash\n", 0o600)
        write_file(keyring / "validator.info", "info\n", 0o600)
    os.chmod(home, home_mode)
    return home


@contextmanager
def env_scope(values: dict[str, str | None]) -> Iterator[None]:
    previous = {key: os.environ.get(key) for key in values}
    for key, value in values.items():
        if value is None:
            os.environ.pop(key, None)
        else:
            os.environ[key] = value
    try:
        yield
    finally:
        for key, value in previous.items():
            if value is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = value
