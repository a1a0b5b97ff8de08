from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
for entry in (ROOT, ROOT / "src"):
    if str(entry) not in sys.path:
        sys.path.insert(0, str(entry))


import pytest

from node_setup_check.policy import RolePolicy, policy_for
from node_setup_check.records import ReportAggregator
from node_setup_check.roles import NodeRole
from tests.home_helpers import build_home


@pytest.fixture
def report() -> ReportAggregator:
    return ReportAggregator()


@pytest.fixture
def validator_policy() -> RolePolicy:
    return policy_for(NodeRole.VALIDATOR)


@pytest.fixture
def rpc_policy() -> RolePolicy:
    return policy_for(NodeRole.RPC)


@pytest.fixture
def rpc_home(tmp_path: Path) -> Path:
    return build_home(tmp_path)


@pytest.fixture
def validator_home(tmp_path: Path) -> Path:
    return build_home(tmp_path, validator=True)
