from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Mapping

import yaml

from node_setup_check.records import Severity
from node_setup_check.roles import SELECTABLE_ROLES, NodeRole

PRUNING_OPTIONS: tuple[str, ...] = ("default", "nothing", "everything", "custom")
INVALID_PRUNING = "invalid"
SERVICE_NAMES: tuple[str, ...] = ("api", "json-rpc", "grpc", "tx-index")


@dataclass(frozen=True)
class Bounds:
    minimum: int
    maximum: int
    suggested: str


@dataclass(frozen=True)
class PruningOutcome:
    severity: Severity | None
    note: str = ""


@dataclass(frozen=True)
class PruningRolePolicy:
    suggestion: str
    outcomes: Mapping[str, PruningOutcome]

    def outcome(self, pruning: str) -> PruningOutcome:
        key = pruning if pruning in PRUNING_OPTIONS else INVALID_PRUNING
        return self.outcomes[key]


@dataclass(frozen=True)
class ServiceExpectation:
    enabled: bool
    severity: Severity


@dataclass(frozen=True)
class DoubleSignBand:
    minimum: int
    maximum: int
    recommended: int
    safety_margin: int


@dataclass(frozen=True)
class PeerPolicy:
    default_port: int
    min_inbound: int
    min_outbound: int


@dataclass(frozen=True)
class ModePolicy:
    keyring_directory: int
    keyring_files: frozenset[int]
    validator_state: int
    service_unit: int


@dataclass(frozen=True)
class ServiceUnitPolicy:
    directory: str
    suffix: str
    after: str
    wanted_by: str
    restart: str
    forbidden_users: tuple[str, ...]
    user_separator: str
    wants_directory: str


@dataclass(frozen=True)
class Notice:
    message: str
    suggestion: str = ""


@dataclass(frozen=True)
class PolicyTable:
    keep_recent: Bounds
    interval: Bounds
    snapshot_profile: tuple[str, str]
    pruning: Mapping[NodeRole, PruningRolePolicy]
    retention_floors: Mapping[str, int]
    double_sign: DoubleSignBand
    peers: PeerPolicy
    services: Mapping[NodeRole, Mapping[str, ServiceExpectation]]
    modes: ModePolicy
    service_unit: ServiceUnitPolicy
    notices_before: tuple[Notice, ...] = ()
    notices_by_role: Mapping[NodeRole, tuple[Notice, ...]] = field(default_factory=dict)
    notices_after: tuple[Notice, ...] = ()


@dataclass(frozen=True)
class RolePolicy:
    """Role predicates plus the role-keyed slices of the policy table."""

    role: NodeRole
    table: PolicyTable

    def __post_init__(self) -> None:
        if self.role not in SELECTABLE_ROLES:
            raise ValueError(f"no policy for node role: {self.role.value}")

    @property
    def is_validator(self) -> bool:
        return self.role is NodeRole.VALIDATOR

    @property
    def is_rpc(self) -> bool:
        return self.role is NodeRole.RPC

    @property
    def is_snapshot(self) -> bool:
        return self.role is NodeRole.SNAPSHOT

    @property
    def is_archival(self) -> bool:
        return self.role is NodeRole.ARCHIVAL

    @property
    def pruning(self) -> PruningRolePolicy:
        return self.table.pruning[self.role]

    @property
    def services(self) -> Mapping[str, ServiceExpectation]:
        return self.table.services.get(self.role, {})

    def notices(self) -> tuple[Notice, ...]:
        return (
            self.table.notices_before
            + self.table.notices_by_role.get(self.role, ())
            + self.table.notices_after
        )


def _yaml_loader():
    class Loader(yaml.SafeLoader):
        pass

    # Keep "no"/"yes"/"on"/"off" as strings; systemd values rely on it.
    for key, values in list(Loader.yaml_implicit_resolvers.items()):
        Loader.yaml_implicit_resolvers[key] = [
            (tag, regexp) for tag, regexp in values if tag != "tag:yaml.org,2002:bool"
        ]
    return Loader


def _mapping(raw: object, *, field_name: str) -> Mapping[str, object]:
    if not isinstance(raw, Mapping):
        raise ValueError(f"policy invalid {field_name}: expected mapping")
    return raw


def _as_int(raw: object, *, field_name: str) -> int:
    if isinstance(raw, bool):
        raise ValueError(f"policy invalid {field_name}: expected int")
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"policy invalid {field_name}: expected int") from exc


def _as_mode(raw: object, *, field_name: str) -> int:
    try:
        return int(str(raw), 8)
    except ValueError as exc:
        raise ValueError(f"policy invalid {field_name}: expected octal mode") from exc


def _as_severity(raw: object, *, field_name: str) -> Severity | None:
    text = str(raw).strip().lower()
    if text == "ok":
        return None
    try:
        return Severity(text)
    except ValueError as exc:
        raise ValueError(f"policy invalid {field_name}: unknown severity {raw!r}") from exc


def _bounds(raw: object, *, field_name: str) -> Bounds:
    payload = _mapping(raw, field_name=field_name)
    return Bounds(
        minimum=_as_int(payload.get("min"), field_name=f"{field_name}.min"),
        maximum=_as_int(payload.get("max"), field_name=f"{field_name}.max"),
        suggested=str(payload.get("suggested", "")),
    )


def _pruning_roles(raw: object) -> dict[NodeRole, PruningRolePolicy]:
    roles_raw = _mapping(raw, field_name="pruning.roles")
    result: dict[NodeRole, PruningRolePolicy] = {}
    for role in SELECTABLE_ROLES:
        prefix = f"pruning.roles.{role.value}"
        role_raw = _mapping(roles_raw.get(role.value), field_name=prefix)
        outcomes_raw = _mapping(role_raw.get("outcomes"), field_name=f"{prefix}.outcomes")
        outcomes: dict[str, PruningOutcome] = {}
        for option in (*PRUNING_OPTIONS, INVALID_PRUNING):
            outcome_raw = _mapping(
                outcomes_raw.get(option), field_name=f"{prefix}.outcomes.{option}"
            )
            outcomes[option] = PruningOutcome(
                severity=_as_severity(
                    outcome_raw.get("severity"),
                    field_name=f"{prefix}.outcomes.{option}.severity",
                ),
                note=str(outcome_raw.get("note", "")),
            )
        result[role] = PruningRolePolicy(
            suggestion=str(role_raw.get("suggestion", "")),
            outcomes=outcomes,
        )
    return result


def _services(raw: object) -> dict[NodeRole, dict[str, ServiceExpectation]]:
    roles_raw = _mapping(raw, field_name="services")
    result: dict[NodeRole, dict[str, ServiceExpectation]] = {}
    for role in SELECTABLE_ROLES:
        entries_raw = _mapping(roles_raw.get(role.value, {}), field_name=f"services.{role.value}")
        entries: dict[str, ServiceExpectation] = {}
        for name, entry_raw in entries_raw.items():
            prefix = f"services.{role.value}.{name}"
            if name not in SERVICE_NAMES:
                raise ValueError(f"policy invalid {prefix}: unknown service")
            entry = _mapping(entry_raw, field_name=prefix)
            expect = str(entry.get("expect", "")).strip().lower()
            if expect not in {"enabled", "disabled"}:
                raise ValueError(f"policy invalid {prefix}.expect: {expect!r}")
            severity = _as_severity(entry.get("severity"), field_name=f"{prefix}.severity")
            if severity is None:
                raise ValueError(f"policy invalid {prefix}.severity: ok is not allowed")
            entries[name] = ServiceExpectation(enabled=expect == "enabled", severity=severity)
        result[role] = entries
    return result


def _notices(raw: object, *, field_name: str) -> tuple[Notice, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ValueError(f"policy invalid {field_name}: expected list")
    notices: list[Notice] = []
    for index, item in enumerate(raw):
        entry = _mapping(item, field_name=f"{field_name}[{index}]")
        notices.append(
            Notice(
                message=str(entry.get("message", "")),
                suggestion=str(entry.get("suggestion", "") or ""),
            )
        )
    return tuple(notices)


def parse_policy_table(raw: object) -> PolicyTable:
    root = _mapping(raw, field_name="root")
    pruning_raw = _mapping(root.get("pruning"), field_name="pruning")
    profile_raw = _mapping(pruning_raw.get("snapshot_profile"), field_name="pruning.snapshot_profile")
    retention_raw = _mapping(root.get("retention"), field_name="retention")
    floors_raw = _mapping(retention_raw.get("floors"), field_name="retention.floors")
    double_sign_raw = _mapping(root.get("double_sign"), field_name="double_sign")
    peers_raw = _mapping(root.get("peers"), field_name="peers")
    modes_raw = _mapping(root.get("modes"), field_name="modes")
    unit_raw = _mapping(root.get("service_unit"), field_name="service_unit")
    notices_raw = _mapping(root.get("notices", {}), field_name="notices")
    notice_roles_raw = _mapping(notices_raw.get("roles", {}), field_name="notices.roles")

    keyring_files = modes_raw.get("keyring_files")
    if not isinstance(keyring_files, list) or not keyring_files:
        raise ValueError("policy invalid modes.keyring_files: expected non-empty list")
    forbidden_users = unit_raw.get("forbidden_users", [])
    if not isinstance(forbidden_users, list):
        raise ValueError("policy invalid service_unit.forbidden_users: expected list")

    return PolicyTable(
        keep_recent=_bounds(pruning_raw.get("keep_recent"), field_name="pruning.keep_recent"),
        interval=_bounds(pruning_raw.get("interval"), field_name="pruning.interval"),
        snapshot_profile=(
            str(profile_raw.get("keep_recent", "")),
            str(profile_raw.get("interval", "")),
        ),
        pruning=_pruning_roles(pruning_raw.get("roles")),
        retention_floors={
            str(key): _as_int(value, field_name=f"retention.floors.{key}")
            for key, value in floors_raw.items()
        },
        double_sign=DoubleSignBand(
            minimum=_as_int(double_sign_raw.get("min"), field_name="double_sign.min"),
            maximum=_as_int(double_sign_raw.get("max"), field_name="double_sign.max"),
            recommended=_as_int(
                double_sign_raw.get("recommended"), field_name="double_sign.recommended"
            ),
            safety_margin=_as_int(
                double_sign_raw.get("safety_margin", 0), field_name="double_sign.safety_margin"
            ),
        ),
        peers=PeerPolicy(
            default_port=_as_int(peers_raw.get("default_port"), field_name="peers.default_port"),
            min_inbound=_as_int(peers_raw.get("min_inbound"), field_name="peers.min_inbound"),
            min_outbound=_as_int(peers_raw.get("min_outbound"), field_name="peers.min_outbound"),
        ),
        services=_services(root.get("services")),
        modes=ModePolicy(
            keyring_directory=_as_mode(
                modes_raw.get("keyring_directory"), field_name="modes.keyring_directory"
            ),
            keyring_files=frozenset(
                _as_mode(item, field_name="modes.keyring_files") for item in keyring_files
            ),
            validator_state=_as_mode(
                modes_raw.get("validator_state"), field_name="modes.validator_state"
            ),
            service_unit=_as_mode(modes_raw.get("service_unit"), field_name="modes.service_unit"),
        ),
        service_unit=ServiceUnitPolicy(
            directory=str(unit_raw.get("directory", "")),
            suffix=str(unit_raw.get("suffix", "")),
            after=str(unit_raw.get("after", "")),
            wanted_by=str(unit_raw.get("wanted_by", "")),
            restart=str(unit_raw.get("restart", "")),
            forbidden_users=tuple(str(item).lower() for item in forbidden_users),
            user_separator=str(unit_raw.get("user_separator", "")),
            wants_directory=str(unit_raw.get("wants_directory", "")),
        ),
        notices_before=_notices(notices_raw.get("common_before"), field_name="notices.common_before"),
        notices_by_role={
            role: _notices(notice_roles_raw.get(role.value), field_name=f"notices.roles.{role.value}")
            for role in SELECTABLE_ROLES
        },
        notices_after=_notices(notices_raw.get("common_after"), field_name="notices.common_after"),
    )


@lru_cache(maxsize=None)
def load_policy_table(path: Path | None = None) -> PolicyTable:
    if path is None:
        text = resources.files("node_setup_check").joinpath("policy.yaml").read_text(
            encoding="utf-8"
        )
    else:
        text = path.read_text(encoding="utf-8")
    raw = yaml.load(text, Loader=_yaml_loader()) or {}
    return parse_policy_table(raw)


def policy_for(role: NodeRole, *, table: PolicyTable | None = None) -> RolePolicy:
    return RolePolicy(role=role, table=table if table is not None else load_policy_table())
