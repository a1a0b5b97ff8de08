from __future__ import annotations

import logging
import os
import stat
from pathlib import Path

from node_setup_check import loaders
from node_setup_check.exceptions import CheckAborted
from node_setup_check.models import (
    AppConfig,
    KeyringStore,
    NetworkConfig,
    NodeKey,
    PathInfo,
    ServiceUnit,
    ValidatorKey,
    ValidatorState,
)
from node_setup_check.permissions import PERMISSION_BITS

logger = logging.getLogger(__name__)


def stat_path(path: Path) -> PathInfo:
    """Stat ``path`` following symlinks; a missing path is not an error."""
    try:
        info = os.stat(path)
    except FileNotFoundError:
        return PathInfo(path=path, exists=False)
    except OSError as exc:
        raise CheckAborted(f"ERR: failed to check {path}: {exc}") from exc
    return PathInfo(
        path=path,
        exists=True,
        is_dir=stat.S_ISDIR(info.st_mode),
        mode=stat.S_IMODE(info.st_mode) & PERMISSION_BITS,
    )


def walk_entries(root: Path) -> tuple[PathInfo, ...]:
    entries: list[PathInfo] = []

    def _raise(exc: OSError) -> None:
        raise CheckAborted(f"ERR: failed to walk on {root}: {exc}") from exc

    for current, dirnames, filenames in os.walk(root, onerror=_raise):
        dirnames.sort()
        base = Path(current)
        for name in [*dirnames, *sorted(filenames)]:
            entries.append(stat_path(base / name))
    return tuple(sorted(entries, key=lambda entry: str(entry.path)))


class FilesystemInspector:
    """Real filesystem collaborator consumed by the engine."""

    def stat(self, path: Path) -> PathInfo:
        return stat_path(path)

    def keyring_store(self, path: Path, *, keyhash_name: str | None = None) -> KeyringStore:
        root = stat_path(path)
        if not root.exists or not root.is_dir:
            return KeyringStore(root=root)
        keyhash = stat_path(path / keyhash_name) if keyhash_name else None
        try:
            entries = walk_entries(path)
        except CheckAborted as exc:
            # Reported by the keyring rules after the directory mode check.
            logger.debug("keyring walk failed: %s", exc.message)
            return KeyringStore(root=root, keyhash=keyhash, walk_error=exc.message)
        return KeyringStore(root=root, entries=entries, keyhash=keyhash)

    def app_config(self, path: Path) -> AppConfig:
        return loaders.load_app_config(path)

    def network_config(self, path: Path) -> NetworkConfig:
        return loaders.load_network_config(path)

    def node_key(self, path: Path) -> NodeKey:
        return loaders.load_node_key(path)

    def validator_key(self, path: Path) -> ValidatorKey:
        return loaders.load_validator_key(path)

    def validator_state(self, path: Path) -> ValidatorState:
        return loaders.load_validator_state(path)

    def service_unit(self, info: PathInfo, *, wants_directory: Path) -> ServiceUnit:
        link = stat_path(wants_directory / info.name)
        logger.debug("service unit %s enabled=%s", info.path, link.exists)
        return loaders.load_service_unit(info.path, mode=info.mode, enabled=link.exists)
