# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Runtime configuration.

All settings come from environment variables (a local .env file is loaded by
the entry points). The session secret has no default: starting without
JSONVAULT_SESSION_SECRET is a configuration error.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from jsonvault.core.errors import ConfigError

_TRUE = {"1", "true", "yes", "y", "on"}
_FALSE = {"0", "false", "no", "n", "off"}

DEFAULT_MAX_BODY_BYTES = 10 * 1024 * 1024
DEFAULT_SESSION_MAX_AGE = 24 * 60 * 60


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {value}")
    return value


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    v = raw.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    raise ConfigError(f"{name} must be a boolean, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    session_secret: str
    host: str = "0.0.0.0"
    port: int = 3000
    allowed_origin: str = "http://localhost:3000"
    credential_store_path: Path = Path("users.db")
    record_store_path: Path = Path("data.db")
    session_max_age: int = DEFAULT_SESSION_MAX_AGE
    cookie_name: str = "jsonvault_session"
    cookie_secure: bool = False
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if not (self.session_secret or "").strip():
            raise ConfigError("JSONVAULT_SESSION_SECRET is not set")

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env

        port_name = "JSONVAULT_PORT" if env.get("JSONVAULT_PORT") else "PORT"
        return cls(
            session_secret=env.get("JSONVAULT_SESSION_SECRET", ""),
            host=env.get("JSONVAULT_HOST", "0.0.0.0"),
            port=_env_int(env, port_name, 3000),
            allowed_origin=env.get("JSONVAULT_ALLOWED_ORIGIN", "http://localhost:3000"),
            credential_store_path=Path(env.get("JSONVAULT_USERS_DB", "users.db")),
            record_store_path=Path(env.get("JSONVAULT_DATA_DB", "data.db")),
            session_max_age=_env_int(env, "JSONVAULT_SESSION_MAX_AGE", DEFAULT_SESSION_MAX_AGE),
            cookie_name=env.get("JSONVAULT_COOKIE_NAME", "jsonvault_session"),
            cookie_secure=_env_bool(env, "JSONVAULT_COOKIE_SECURE", False),
            max_body_bytes=_env_int(env, "JSONVAULT_MAX_BODY_BYTES", DEFAULT_MAX_BODY_BYTES),
            log_level=env.get("JSONVAULT_LOG_LEVEL", "INFO").upper(),
        )

    def cookie_settings(self) -> dict:
        return {
            "httponly": True,
            "samesite": "strict",
            "secure": self.cookie_secure,
            "max_age": self.session_max_age,
        }
