"""
Veilleur configuration with hybrid YAML + ENV support.

Priority: Environment variables > YAML config > Pydantic defaults
"""

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from veilleur.domain.value_objects.commitment import CommitmentLevel


class RetrySettings(BaseSettings):
    """Retry configuration for transient transport failures."""

    max_attempts: int = Field(default=3, ge=1, le=10)
    initial_delay: float = Field(default=0.5, ge=0.0, le=10.0)
    max_delay: float = Field(default=5.0, ge=0.1, le=300.0)
    backoff_multiplier: float = Field(default=2.0, ge=1.0, le=10.0)
    jitter: bool = Field(default=True)


class TimeoutSettings(BaseSettings):
    """Timeout configuration for operations (seconds)."""

    rpc_call: float = Field(default=10.0, ge=0.1, le=120.0)
    subscribe_ack: float = Field(default=15.0, ge=0.1, le=120.0)


class VeilleurConfig(BaseSettings):
    """
    Veilleur configuration schema.

    The default commitment is fixed here rather than chosen per call, so
    every query without an explicit commitment observes the same level.
    """

    model_config = SettingsConfigDict(
        env_prefix="VEILLEUR_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # Endpoints
    rpc_url: str = Field(default="http://127.0.0.1:8899")
    ws_url: str = Field(default="ws://127.0.0.1:8900")

    # Snapshot selection
    default_commitment: CommitmentLevel = Field(default=CommitmentLevel.FINALIZED)

    # Per-subscription delivery queue bound
    subscription_queue_size: int = Field(default=256, ge=1, le=100_000)
    # Undelivered notifications a slow subscription may accumulate
    subscription_backlog_limit: int = Field(default=10_000, ge=1, le=10_000_000)

    # Logging
    log_level: str = Field(default="info")
    log_dir: Optional[str] = Field(default=None)
    verbose: int = Field(default=1, ge=0, le=3)

    retry: RetrySettings = Field(default_factory=RetrySettings)
    timeouts: TimeoutSettings = Field(default_factory=TimeoutSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = ["debug", "info", "warning", "error", "critical"]
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"Invalid log_level. Must be one of: {allowed}")
        return v_lower

    @field_validator("default_commitment", mode="before")
    @classmethod
    def validate_commitment(cls, v):
        """Accept commitment names case-insensitively."""
        if isinstance(v, str):
            return v.lower()
        return v

    @property
    def log_level_number(self) -> int:
        """Numeric logging level."""
        return getattr(logging, self.log_level.upper())


def load_config(config_file: Optional[str] = None) -> VeilleurConfig:
    """
    Load configuration from YAML files.

    Priority: Environment variables > environment-specific YAML > default YAML

    Args:
        config_file: Optional YAML filename override

    Returns:
        VeilleurConfig instance
    """
    env = os.getenv("ENV", "production")

    config_map = {
        "production": "production.yaml",
        "development": "development.yaml",
        "test": "test.yaml",
    }

    current_file = Path(__file__).resolve()
    project_root = current_file.parent.parent.parent.parent
    config_dir = Path(os.getenv("VEILLEUR_CONFIG_DIR", project_root / "config"))

    default_config_path = config_dir / "default.yaml"
    merged_config = {}

    if default_config_path.exists():
        with open(default_config_path, "r") as f:
            loaded = yaml.safe_load(f)
            if loaded:
                merged_config = loaded

    if config_file is None:
        config_file = os.getenv("VEILLEUR_CONFIG")
        if not config_file:
            config_file = config_map.get(env, "production.yaml")

    env_config_path = config_dir / config_file

    if env_config_path.exists():
        with open(env_config_path, "r") as f:
            loaded = yaml.safe_load(f)
            if loaded:
                merged_config.update(loaded)

    # Environment variables win over YAML: drop YAML keys that ENV sets,
    # including nested keys set as VEILLEUR_<SECTION>__<KEY>
    env_keys = {k.upper() for k in os.environ}
    for key in list(merged_config):
        env_name = f"VEILLEUR_{key}".upper()
        if env_name in env_keys:
            merged_config.pop(key)
            continue
        section = merged_config[key]
        if isinstance(section, dict):
            merged_config[key] = {
                name: value
                for name, value in section.items()
                if f"{env_name}__{name}".upper() not in env_keys
            }

    return VeilleurConfig(**merged_config)


# Global settings instance
_settings: Optional[VeilleurConfig] = None


def get_settings() -> VeilleurConfig:
    """
    Get singleton settings instance.

    Returns:
        VeilleurConfig instance
    """
    global _settings
    if _settings is None:
        _settings = load_config()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings instance."""
    global _settings
    _settings = None
