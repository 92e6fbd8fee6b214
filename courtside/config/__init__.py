"""Configuration for Courtside."""

from .settings import (
    ActionConfig,
    DetectionConfig,
    MomentumConfig,
    PersistenceConfig,
    Settings,
    WatchConfig,
    configure,
    get_settings,
)

__all__ = [
    "ActionConfig",
    "DetectionConfig",
    "MomentumConfig",
    "PersistenceConfig",
    "Settings",
    "WatchConfig",
    "configure",
    "get_settings",
]
