"""
Configuration for SecretStore

Defaults live here as module constants; Settings.from_env() lets the
environment override them. Only file locations, KDF costs, the idle timeout
and the log level are configurable. Nothing secret is read from here.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..security.kdf import (
    DEFAULT_MEMORY_COST,
    DEFAULT_PARALLELISM,
    DEFAULT_TIME_COST,
    PBKDF2_ITERATIONS,
    KdfParams,
)

MIN_PASSWORD_LENGTH = 8

ENV_STORE_FILE = "SECRET_STORE_FILE"
ENV_EXPORT_FILE = "SECRET_EXPORT_FILE"
ENV_PASSWORD = "SECRET_STORE_PASSWORD"
ENV_TIME_COST = "SECRET_STORE_ARGON2_TIME_COST"
ENV_MEMORY_COST = "SECRET_STORE_ARGON2_MEMORY_COST"
ENV_PARALLELISM = "SECRET_STORE_ARGON2_PARALLELISM"
ENV_ITERATIONS = "SECRET_STORE_PBKDF2_ITERATIONS"
ENV_IDLE_TIMEOUT = "SECRET_STORE_IDLE_TIMEOUT"
ENV_LOG_LEVEL = "SECRET_STORE_LOG_LEVEL"

DEFAULT_STORE_FILENAME = "secrets.sqlite3.dat"
DEFAULT_EXPORT_FILENAME = "secrets_export.json"
DEFAULT_LOG_LEVEL = "WARNING"


def default_store_file() -> Path:
    """SQLite file from SECRET_STORE_FILE, else ~/secrets.sqlite3.dat."""
    value = os.environ.get(ENV_STORE_FILE)
    return Path(value).expanduser() if value else Path.home() / DEFAULT_STORE_FILENAME


def default_export_file() -> Path:
    """Export file from SECRET_EXPORT_FILE, else ~/secrets_export.json."""
    value = os.environ.get(ENV_EXPORT_FILE)
    return Path(value).expanduser() if value else Path.home() / DEFAULT_EXPORT_FILENAME


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


@dataclass
class Settings:
    """Resolved runtime settings for the command surface."""

    store_file: Path = field(default_factory=default_store_file)
    export_file: Path = field(default_factory=default_export_file)
    kdf: KdfParams = field(default_factory=KdfParams)
    idle_timeout: Optional[float] = None
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls) -> "Settings":
        kdf = KdfParams(
            time_cost=_env_int(ENV_TIME_COST, DEFAULT_TIME_COST),
            memory_cost=_env_int(ENV_MEMORY_COST, DEFAULT_MEMORY_COST),
            parallelism=_env_int(ENV_PARALLELISM, DEFAULT_PARALLELISM),
            iterations=_env_int(ENV_ITERATIONS, PBKDF2_ITERATIONS),
        )
        idle = _env_int(ENV_IDLE_TIMEOUT, 0)
        return cls(
            store_file=default_store_file(),
            export_file=default_export_file(),
            kdf=kdf,
            idle_timeout=float(idle) if idle > 0 else None,
            log_level=os.environ.get(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL).upper(),
        )
