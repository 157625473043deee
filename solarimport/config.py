"""Application configuration from a TOML file, a .env file and SMI_ variables."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from dotenv import find_dotenv, load_dotenv

_ENV_PREFIX = "SMI_"
_ENV_SUBSTITUTION_MARK = "<REPLACED_BY_ENV>"
_MISSING = object()


@dataclass
class SourceCfg:
    """Input, backup and error directories."""

    input_dir: Path
    backup_dir: Path
    error_dir: Path


@dataclass
class DatabaseCfg:
    """Database target, connection string, table and per-target enable gates."""

    target: str
    conn: str
    table: str
    enabled: dict[str, bool] = field(default_factory=dict)

    def is_enabled(self, target: str) -> bool:
        """True only when ``target`` is explicitly enabled."""
        return self.enabled.get(target, False)


@dataclass
class LogCfg:
    """Log directory and level."""

    dir: Path
    level: str


@dataclass
class ProfileCfg:
    """Directory holding profile JSON files."""

    dir: Path


@dataclass
class Config:
    """The whole configuration."""

    source: SourceCfg
    database: DatabaseCfg
    log: LogCfg
    profile: ProfileCfg


def load(path) -> Config:
    """Load the TOML file at ``path``, overlay SMI_ variables and fill in the DB password."""
    path = Path(path)
    dotenv_path = find_dotenv(usecwd=True)
    if dotenv_path:
        load_dotenv(dotenv_path)

    data: dict[str, Any] = {}
    try:
        if path.is_file():
            with path.open("rb") as fh:
                data = tomllib.load(fh)
        _merge_env(data)
        cfg = _build(data)
    except (ValueError, OSError) as exc:
        raise ValueError(f"loading config from {path}: {exc}") from exc

    replacement = os.environ.get("SMI_DB_PASSWORD")
    if replacement is not None and _ENV_SUBSTITUTION_MARK in cfg.database.conn:
        cfg.database.conn = cfg.database.conn.replace(_ENV_SUBSTITUTION_MARK, replacement)
    return cfg


def _env_value(text: str) -> Any:
    lowered = text.strip().lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    return text


def _merge_env(data: dict[str, Any]) -> None:
    for name, value in os.environ.items():
        if not name.upper().startswith(_ENV_PREFIX):
            continue
        parts = [p for p in name[len(_ENV_PREFIX):].lower().split("__") if p]
        if not parts:
            continue
        cursor = data
        for part in parts[:-1]:
            nested = cursor.get(part)
            if not isinstance(nested, dict):
                nested = {}
                cursor[part] = nested
            cursor = nested
        cursor[parts[-1]] = _env_value(value)


def _require(obj: dict, key: str, default: Any = _MISSING) -> Any:
    if key not in obj:
        if default is _MISSING:
            raise ValueError(f"missing field `{key}`")
        return default
    return obj[key]


def _table(obj: dict, key: str) -> dict:
    value = _require(obj, key)
    if not isinstance(value, dict):
        raise ValueError(f"invalid type for `{key}`: expected a table")
    return value


def _string(obj: dict, key: str) -> str:
    value = _require(obj, key)
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise ValueError(f"invalid type for `{key}`: expected a string")
    return str(value)


def _path(obj: dict, key: str) -> Path:
    return Path(_string(obj, key))


def _flag(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ValueError(f"invalid type for `{key}`: expected a boolean")


def _build(data: dict[str, Any]) -> Config:
    source = _table(data, "source")
    database = _table(data, "database")
    log = _table(data, "log")
    profile = _table(data, "profile")
    enabled_raw = _require(database, "enabled", {})
    if not isinstance(enabled_raw, dict):
        raise ValueError("invalid type for `enabled`: expected a table")
    return Config(
        source=SourceCfg(
            input_dir=_path(source, "input_dir"),
            backup_dir=_path(source, "backup_dir"),
            error_dir=_path(source, "error_dir"),
        ),
        database=DatabaseCfg(
            target=_string(database, "target"),
            conn=_string(database, "conn"),
            table=_string(database, "table"),
            enabled={str(k): _flag(v, str(k)) for k, v in enabled_raw.items()},
        ),
        log=LogCfg(dir=_path(log, "dir"), level=_string(log, "level")),
        profile=ProfileCfg(dir=_path(profile, "dir")),
    )