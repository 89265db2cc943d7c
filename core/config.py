"""
Runtime configuration for DotPrint.

Settings come from environment variables. If ``DOTPRINT_CONFIG`` points at a
YAML file, its keys (same names as the Settings fields) override the
environment.
"""

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./data/data.db"
DEFAULT_GRID_SIZE = 32
MIN_POINTS = 80
MAX_POINTS = 1024


@dataclass(frozen=True)
class Settings:
    """Typed view of the service configuration."""

    database_url: str = DEFAULT_DATABASE_URL
    ledger_database_url: Optional[str] = None
    grid_size: int = DEFAULT_GRID_SIZE
    min_points: int = MIN_POINTS
    max_points: int = MAX_POINTS
    admin_token: Optional[str] = None
    db_echo: bool = False
    log_level: str = "INFO"
    log_format: str = "json"

    @property
    def grid_label(self) -> str:
        return f"{self.grid_size}x{self.grid_size}"


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def normalize_database_url(url: str) -> str:
    """Rewrite plain PostgreSQL URLs to the asyncpg driver."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    return url


def settings_from_mapping(values: Mapping[str, Any], base: Optional[Settings] = None) -> Settings:
    """Overlay known keys from ``values`` onto ``base`` with type coercion."""
    base = base or Settings()
    known = {f.name for f in fields(Settings)}
    unknown = set(values) - known
    if unknown:
        raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

    updates: Dict[str, Any] = {}
    for key, value in values.items():
        if value is None:
            updates[key] = None
        elif key in ("grid_size", "min_points", "max_points"):
            updates[key] = int(value)
        elif key == "db_echo":
            updates[key] = _as_bool(value)
        else:
            updates[key] = str(value)

    settings = replace(base, **updates)
    if settings.grid_size < 1:
        raise ValueError("grid_size must be positive")
    if not 0 < settings.min_points <= settings.max_points:
        raise ValueError("min_points must be positive and not exceed max_points")
    return replace(
        settings,
        database_url=normalize_database_url(settings.database_url),
        ledger_database_url=(
            normalize_database_url(settings.ledger_database_url)
            if settings.ledger_database_url else None
        ),
    )


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from the environment and an optional YAML file.

    Args:
        environ: Mapping to read instead of ``os.environ`` (used by tests)
    """
    env = os.environ if environ is None else environ

    values: Dict[str, Any] = {}
    env_keys = {
        "DOTPRINT_DATABASE_URL": "database_url",
        "DOTPRINT_LEDGER_DATABASE_URL": "ledger_database_url",
        "DOTPRINT_GRID_SIZE": "grid_size",
        "DOTPRINT_MIN_POINTS": "min_points",
        "DOTPRINT_MAX_POINTS": "max_points",
        "DOTPRINT_ADMIN_TOKEN": "admin_token",
        "DOTPRINT_DB_ECHO": "db_echo",
        "LOG_LEVEL": "log_level",
        "LOG_FORMAT": "log_format",
    }
    for env_name, field_name in env_keys.items():
        if env.get(env_name):
            values[field_name] = env[env_name]

    settings = settings_from_mapping(values)

    config_path = env.get("DOTPRINT_CONFIG")
    if config_path:
        obj = yaml.safe_load(Path(config_path).read_text(encoding="utf-8")) or {}
        if not isinstance(obj, dict):
            raise ValueError(f"Config file must be a YAML mapping, got {type(obj).__name__}")
        settings = settings_from_mapping(obj, base=settings)

    return settings
