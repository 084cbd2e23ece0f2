"""
Configuration module.
"""

from veilleur.config.settings import (
    RetrySettings,
    TimeoutSettings,
    VeilleurConfig,
    get_settings,
    load_config,
    reset_settings,
)

__all__ = [
    "VeilleurConfig",
    "RetrySettings",
    "TimeoutSettings",
    "get_settings",
    "load_config",
    "reset_settings",
]
