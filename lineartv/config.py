"""
Configuration management for LinearTV.

Settings come from a YAML file (``$LINEARTV_CONFIG`` or ``./config.yaml``)
with ``LINEARTV_*`` environment variables layered on top, validated into
pydantic section models.
"""

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "LINEARTV_CONFIG"
DEFAULT_CONFIG_FILE = "config.yaml"

# Environment variable -> (section, field); values are coerced by the models
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "LINEARTV_HOST": ("server", "host"),
    "LINEARTV_PORT": ("server", "port"),
    "LINEARTV_DEBUG": ("server", "debug"),
    "LINEARTV_DATABASE_URL": ("database", "url"),
    "LINEARTV_STORAGE_PUBLIC_ROOT": ("storage", "public_root"),
    "LINEARTV_STANDBY_KEY": ("storage", "standby_key"),
    "LINEARTV_MAX_INSERTS": ("scheduling", "max_inserts"),
    "LINEARTV_LOG_LEVEL": ("logging", "level"),
}

_config: Optional["LinearTVConfig"] = None


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = Field(default=8420, ge=1, le=65535)
    debug: bool = False
    log_level: str = "INFO"


class DatabaseConfig(BaseModel):
    """Timeline database. Plain sqlite:// and postgresql:// URLs are made async."""
    url: str = "sqlite:///./lineartv.db"
    echo: bool = False


class StorageConfig(BaseModel):
    """Public object store that assets and the standby clip are served from."""
    public_root: str = "http://localhost:54321/storage/v1/object/public"
    standby_key: str = "standby.mp4"
    namespace_template: str = "channel{channel_id}"

    @field_validator("standby_key")
    @classmethod
    def standby_key_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("standby_key must not be blank")
        return value.strip()


class PlayoutConfig(BaseModel):
    recent_window: int = Field(default=8, ge=1)  # started items scanned for the active one
    upcoming_limit: int = Field(default=6, ge=1)
    standby_title: str = "Standby Programming"
    waiting_message: str = "Standby… waiting for next program."


class SchedulingConfig(BaseModel):
    template_window_hours: float = Field(default=24, gt=0)
    max_inserts: int = Field(default=2000, ge=1)  # per extension request


class LiveConfig(BaseModel):
    """Channels pinned to an external live feed, keyed by channel id."""
    channels: dict[int, str] = Field(default_factory=dict)


class LoggingConfig(BaseModel):
    level: str = "INFO"
    file: str = "logs/lineartv.log"
    max_size: str = "10MB"
    backup_count: int = 5
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class LinearTVConfig(BaseModel):
    server: ServerConfig = Field(default_factory=ServerConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    playout: PlayoutConfig = Field(default_factory=PlayoutConfig)
    scheduling: SchedulingConfig = Field(default_factory=SchedulingConfig)
    live: LiveConfig = Field(default_factory=LiveConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _find_config_file() -> Optional[Path]:
    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        return Path(explicit)
    candidate = Path(DEFAULT_CONFIG_FILE)
    return candidate if candidate.exists() else None


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        logger.warning(f"Config file {path} not found, using defaults")
        return {}
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    # An empty section ("live:") means defaults
    return {section: values for section, values in data.items() if values is not None}


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Layer LINEARTV_* variables over the file settings."""
    for env_var, (section, field) in ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        if value is None:
            continue
        data[section] = dict(data.get(section) or {})
        data[section][field] = value
    return data


def load_config(config_path: Optional[str] = None) -> LinearTVConfig:
    """
    Load configuration and install it as the global config.

    Args:
        config_path: YAML file to read. Defaults to ``$LINEARTV_CONFIG``,
            then ``config.yaml`` in the working directory.

    Returns:
        Validated configuration
    """
    global _config

    path = Path(config_path) if config_path else _find_config_file()
    data = _read_yaml(path) if path is not None else {}

    _config = LinearTVConfig(**_apply_env_overrides(data))
    return _config


def get_config() -> LinearTVConfig:
    """Get the global configuration, loading it on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config() -> LinearTVConfig:
    """Discard the global configuration and load it again."""
    global _config
    _config = None
    return load_config()


class _ConfigProxy:
    """
    Lazy stand-in for the global configuration.

        from lineartv.config import config
        config.storage.public_root
    """

    def __getattr__(self, name: str) -> Any:
        return getattr(get_config(), name)

    def __repr__(self) -> str:
        return f"<ConfigProxy for {get_config()}>"


config = _ConfigProxy()
