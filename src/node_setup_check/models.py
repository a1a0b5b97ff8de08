from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


@dataclass(frozen=True)
class PathInfo:
    path: Path
    exists: bool
    is_dir: bool = False
    mode: int = 0

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class KeyringStore:
    root: PathInfo
    entries: Tuple[PathInfo, ...] = ()
    keyhash: Optional[PathInfo] = None
    walk_error: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.entries


def _text(value: object) -> object:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value)
    return value


class _Section(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ApiSection(_Section):
    enable: bool = False
    swagger: bool = False


class JsonRpcSection(_Section):
    enable: bool = False
    enable_indexer: bool = Field(False, alias="enable-indexer")


class GrpcSection(_Section):
    enable: bool = False
    address: str = ""


class AppStateSyncSection(_Section):
    snapshot_interval: int = Field(0, alias="snapshot-interval")
    snapshot_keep_recent: int = Field(0, alias="snapshot-keep-recent")


class AppConfig(_Section):
    minimum_gas_prices: str = Field("", alias="minimum-gas-prices")
    pruning: str = ""
    pruning_keep_recent: str = Field("", alias="pruning-keep-recent")
    pruning_interval: str = Field("", alias="pruning-interval")
    halt_height: int = Field(0, alias="halt-height")
    halt_time: int = Field(0, alias="halt-time")
    min_retain_blocks: int = Field(0, alias="min-retain-blocks")
    api: Optional[ApiSection] = None
    json_rpc: Optional[JsonRpcSection] = Field(None, alias="json-rpc")
    grpc: Optional[GrpcSection] = None
    state_sync: Optional[AppStateSyncSection] = Field(None, alias="state-sync")

    @field_validator("pruning_keep_recent", "pruning_interval", mode="before")
    @classmethod
    def _numbers_as_text(cls, value: object) -> object:
        return _text(value)


class P2PSection(_Section):
    seeds: str = ""
    laddr: str = ""
    persistent_peers: str = ""
    max_num_inbound_peers: int = 0
    max_num_outbound_peers: int = 0
    seed_mode: bool = False


class NetworkStateSyncSection(_Section):
    enable: bool = False


class ConsensusSection(_Section):
    double_sign_check_height: int = 0
    skip_timeout_commit: bool = False


class TxIndexSection(_Section):
    indexer: str = "kv"


class NetworkConfig(_Section):
    moniker: str = ""
    p2p: Optional[P2PSection] = None
    statesync: Optional[NetworkStateSyncSection] = None
    consensus: Optional[ConsensusSection] = None
    tx_index: Optional[TxIndexSection] = None


class KeyPart(_Section):
    type: str = ""
    value: str = ""


class NodeKey(_Section):
    priv_key: Optional[KeyPart] = None


class ValidatorKey(_Section):
    address: str = ""
    pub_key: Optional[KeyPart] = None
    priv_key: Optional[KeyPart] = None


class ValidatorState(_Section):
    height: str = ""
    round: int = 0
    step: int = 0
    signature: str = ""
    signbytes: str = ""

    @field_validator("height", mode="before")
    @classmethod
    def _height_as_text(cls, value: object) -> object:
        return _text(value)

    @field_validator("signature", "signbytes", mode="before")
    @classmethod
    def _null_as_empty(cls, value: object) -> object:
        return "" if value is None else value

    def is_empty(self) -> bool:
        return (
            self.height == "0"
            and self.round == 0
            and self.step == 0
            and self.signature == ""
            and self.signbytes == ""
        )


class UnitSection(_Section):
    description: str = Field("", alias="Description")
    after: str = Field("", alias="After")


class ServiceSection(_Section):
    user: str = Field("", alias="User")
    exec_start: str = Field("", alias="ExecStart")
    restart: str = Field("", alias="Restart")
    restart_sec: str = Field("", alias="RestartSec")


class InstallSection(_Section):
    wanted_by: str = Field("", alias="WantedBy")


class ServiceUnit(_Section):
    path: str
    mode: int
    enabled: bool = False
    unit: Optional[UnitSection] = Field(None, alias="Unit")
    service: Optional[ServiceSection] = Field(None, alias="Service")
    install: Optional[InstallSection] = Field(None, alias="Install")

    @property
    def file_name(self) -> str:
        return Path(self.path).name
