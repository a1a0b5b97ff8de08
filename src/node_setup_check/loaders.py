"""Parse node configuration files into typed models.

Every parse problem is turned into :class:`CheckAborted` carrying the file
path, since the rule engine cannot reason about a file it cannot read.
"""

from __future__ import annotations

import configparser
import json
import logging
import tomllib
from pathlib import Path
from typing import Mapping, TypeVar

from pydantic import BaseModel, ValidationError

from node_setup_check.exceptions import CheckAborted
from node_setup_check.models import (
    AppConfig,
    NetworkConfig,
    NodeKey,
    ServiceUnit,
    ValidatorKey,
    ValidatorState,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def read_bytes(path: Path, *, label: str) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        raise CheckAborted(f"ERR: failed to read {label} file at {path}: {exc}") from exc


def _validate(model: type[ModelT], payload: object, *, label: str, path: Path) -> ModelT:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise CheckAborted(f"ERR: failed to unmarshal {label} file at {path}: {exc}") from exc


def parse_toml(raw: bytes, *, label: str, path: Path) -> dict[str, object]:
    try:
        return tomllib.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, tomllib.TOMLDecodeError) as exc:
        raise CheckAborted(f"ERR: failed to unmarshal {label} file at {path}: {exc}") from exc


def parse_json(raw: bytes, *, label: str, path: Path) -> object:
    if not raw.strip():
        raise CheckAborted(f"ERR: {label} file is empty: {path}")
    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise CheckAborted(f"ERR: failed to unmarshal {label} file at {path}: {exc}") from exc


def load_app_config(path: Path) -> AppConfig:
    logger.debug("loading app config from %s", path)
    payload = parse_toml(read_bytes(path, label="app.toml"), label="app.toml", path=path)
    return _validate(AppConfig, payload, label="app.toml", path=path)


def load_network_config(path: Path) -> NetworkConfig:
    logger.debug("loading network config from %s", path)
    payload = parse_toml(read_bytes(path, label="config.toml"), label="config.toml", path=path)
    return _validate(NetworkConfig, payload, label="config.toml", path=path)


def load_node_key(path: Path) -> NodeKey:
    payload = parse_json(read_bytes(path, label="node_key.json"), label="node_key.json", path=path)
    return _validate(NodeKey, payload, label="node_key.json", path=path)


def load_validator_key(path: Path) -> ValidatorKey:
    label = "priv_validator_key.json"
    payload = parse_json(read_bytes(path, label=label), label=label, path=path)
    return _validate(ValidatorKey, payload, label=label, path=path)


def load_validator_state(path: Path) -> ValidatorState:
    label = "priv_validator_state.json"
    payload = parse_json(read_bytes(path, label=label), label=label, path=path)
    return _validate(ValidatorState, payload, label=label, path=path)


def parse_unit_sections(text: str) -> dict[str, dict[str, str]]:
    """Read a systemd unit file into ``{section: {key: value}}``.

    Repeated keys keep their last value, as systemd does for scalar settings.
    """
    parser = configparser.ConfigParser(
        interpolation=None,
        strict=False,
        comment_prefixes=("#", ";"),
        inline_comment_prefixes=None,
        delimiters=("=",),
    )
    parser.optionxform = str  # type: ignore[assignment, method-assign]
    parser.read_string(text)
    return {
        section: {key: value.strip() for key, value in parser.items(section)}
        for section in parser.sections()
    }


def load_service_unit(path: Path, *, mode: int, enabled: bool) -> ServiceUnit:
    raw = read_bytes(path, label="service")
    try:
        sections = parse_unit_sections(raw.decode("utf-8"))
    except (UnicodeDecodeError, configparser.Error) as exc:
        raise CheckAborted(f"ERR: failed to unmarshal service file: {exc}") from exc
    payload: dict[str, object] = {"path": str(path), "mode": mode, "enabled": enabled}
    payload.update(_known_sections(sections))
    return _validate(ServiceUnit, payload, label="service", path=path)


def _known_sections(sections: Mapping[str, Mapping[str, str]]) -> dict[str, object]:
    return {
        name: dict(sections[name])
        for name in ("Unit", "Service", "Install")
        if name in sections
    }
