from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping

ENV_PREFIX = "NODE_SETUP_CHECK_"
RELEASE_URL_ENV = f"{ENV_PREFIX}RELEASE_URL"
RELEASE_TIMEOUT_ENV = f"{ENV_PREFIX}RELEASE_TIMEOUT"
RELEASE_GRACE_ENV = f"{ENV_PREFIX}RELEASE_GRACE"
SKIP_RELEASE_CHECK_ENV = f"{ENV_PREFIX}SKIP_RELEASE_CHECK"
LOG_LEVEL_ENV = f"{ENV_PREFIX}LOG_LEVEL"

DEFAULT_RELEASE_URL = "https://api.github.com/repos/bcdevtools/node-setup-check/releases/latest"
DEFAULT_RELEASE_TIMEOUT_SECONDS = 10.0
DEFAULT_RELEASE_GRACE_SECONDS = 2.0
DEFAULT_LOG_LEVEL = "WARNING"

_TRUTHY_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class RuntimeSettings:
    release_url: str = DEFAULT_RELEASE_URL
    release_timeout_seconds: float = DEFAULT_RELEASE_TIMEOUT_SECONDS
    release_grace_seconds: float = DEFAULT_RELEASE_GRACE_SECONDS
    skip_release_check: bool = False
    log_level: str = DEFAULT_LOG_LEVEL


def env_text(environ: Mapping[str, str], name: str, *, default: str = "") -> str:
    return environ.get(name, default).strip()


def env_enabled_truthy_only(environ: Mapping[str, str], name: str) -> bool:
    return env_text(environ, name).lower() in _TRUTHY_VALUES


def env_seconds(environ: Mapping[str, str], name: str, *, default: float) -> float:
    raw = env_text(environ, name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value >= 0 else default


def normalize_log_level(raw: str) -> str:
    level = raw.strip().upper()
    if level in logging.getLevelNamesMapping():
        return level
    return DEFAULT_LOG_LEVEL


def load_settings(environ: Mapping[str, str] | None = None) -> RuntimeSettings:
    env = os.environ if environ is None else environ
    return RuntimeSettings(
        release_url=env_text(env, RELEASE_URL_ENV) or DEFAULT_RELEASE_URL,
        release_timeout_seconds=env_seconds(
            env, RELEASE_TIMEOUT_ENV, default=DEFAULT_RELEASE_TIMEOUT_SECONDS
        ),
        release_grace_seconds=env_seconds(
            env, RELEASE_GRACE_ENV, default=DEFAULT_RELEASE_GRACE_SECONDS
        ),
        skip_release_check=env_enabled_truthy_only(env, SKIP_RELEASE_CHECK_ENV),
        log_level=normalize_log_level(env_text(env, LOG_LEVEL_ENV, default=DEFAULT_LOG_LEVEL)),
    )
