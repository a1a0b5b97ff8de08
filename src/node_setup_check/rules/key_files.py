from __future__ import annotations

import re

from node_setup_check.exceptions import CheckAborted
from node_setup_check.models import KeyPart, NodeKey, ValidatorKey

NODE_KEY_JSON = "node_key.json"
VALIDATOR_KEY_JSON = "priv_validator_key.json"

_ADDRESS_RE = re.compile(r"^[\dA-F]{40}$")


def _require_key_part(part: KeyPart | None, name: str, file_name: str) -> None:
    if part is None:
        raise CheckAborted(f"ERR: {name} is missing in {file_name} file")
    if not part.type:
        raise CheckAborted(f"ERR: type is missing in {name} in {file_name} file")
    if not part.value:
        raise CheckAborted(f"ERR: value is missing in {name} in {file_name} file")


def evaluate_node_key(key: NodeKey) -> None:
    _require_key_part(key.priv_key, "priv_key", NODE_KEY_JSON)


def evaluate_validator_key(key: ValidatorKey) -> None:
    _require_key_part(key.priv_key, "priv_key", VALIDATOR_KEY_JSON)
    _require_key_part(key.pub_key, "pub_key", VALIDATOR_KEY_JSON)
    if not key.address:
        raise CheckAborted(f"ERR: address is missing in {VALIDATOR_KEY_JSON} file")
    if not _ADDRESS_RE.match(key.address):
        raise CheckAborted(f"ERR: address is malformed in {VALIDATOR_KEY_JSON} file")
