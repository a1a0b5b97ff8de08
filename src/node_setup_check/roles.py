from __future__ import annotations

from enum import Enum


class NodeRole(str, Enum):
    UNSPECIFIED = "unspecified"
    VALIDATOR = "validator"
    RPC = "rpc"
    SNAPSHOT = "snapshot"
    ARCHIVAL = "archival"


SELECTABLE_ROLES: tuple[NodeRole, ...] = (
    NodeRole.VALIDATOR,
    NodeRole.RPC,
    NodeRole.SNAPSHOT,
    NodeRole.ARCHIVAL,
)


def role_names() -> tuple[str, ...]:
    return tuple(role.value for role in SELECTABLE_ROLES)


def node_role_from_name(name: str | None) -> NodeRole:
    normalized = (name or "").strip().lower()
    for role in SELECTABLE_ROLES:
        if role.value == normalized:
            return role
    return NodeRole.UNSPECIFIED


_ROLE_LABELS = {
    NodeRole.VALIDATOR: "validator",
    NodeRole.RPC: "rpc node",
    NodeRole.SNAPSHOT: "snapshot node",
    NodeRole.ARCHIVAL: "archival node",
}


def role_label(role: NodeRole) -> str:
    return _ROLE_LABELS.get(role, role.value)
