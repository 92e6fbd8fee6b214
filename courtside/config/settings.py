"""Configuration settings for Courtside."""

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

import yaml

from ..exceptions import ConfigError


@dataclass
class MomentumConfig:
    """Tunable momentum and credibility policy."""

    baseline: int = 50  # Neutral starting score
    helpful_delta: int = 2
    harmful_delta: int = 3
    contradicted_harmful_factor: float = 0.5
    contradiction_bonus: dict[str, int] = field(
        default_factory=lambda: {"high": 6, "medium": 4, "low": 2}
    )
    trend_window: int = 5
    significant_threshold: int = 3  # Minimum |impact| for a key admission
    credibility_baseline: int = 50
    count_exploited_contradictions: bool = True
    # Witnesses whose contradictions raise momentum; empty means every witness
    adverse_witnesses: list[str] = field(default_factory=list)


@dataclass
class DetectionConfig:
    """Configuration for contradiction detection."""

    text_comparator: str = "none"  # none, negation, amount_date


@dataclass
class ActionConfig:
    """Configuration for the action prioritizer."""

    classify_objections: bool = False  # Opt-in regex fallback for missing triggers
    reframe_min_consistent: int = 2
    concession_streak: int = 3
    impeachment_confidence: dict[str, float] = field(
        default_factory=lambda: {"high": 0.85, "medium": 0.65, "low": 0.45}
    )
    objection_confidence: float = 0.6


@dataclass
class PersistenceConfig:
    """Configuration for state persistence."""

    max_retries: int = 3
    retry_delay: float = 0.5  # Seconds between save attempts


@dataclass
class WatchConfig:
    """Configuration for the polling loop."""

    poll_interval: float = 2.0


@dataclass
class Settings:
    """Main settings container."""

    momentum: MomentumConfig = field(default_factory=MomentumConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    actions: ActionConfig = field(default_factory=ActionConfig)
    persistence: PersistenceConfig = field(default_factory=PersistenceConfig)
    watch: WatchConfig = field(default_factory=WatchConfig)

    # Paths
    state_dir: Path = field(default_factory=lambda: Path("./trial_state"))

    # Logging
    log_level: str = "INFO"
    log_file: Optional[Path] = None

    @classmethod
    def from_env(cls) -> "Settings":
        """Create settings from environment variables."""
        settings = cls()

        if state_dir := os.getenv("COURTSIDE_STATE_DIR"):
            settings.state_dir = Path(state_dir)

        if interval := os.getenv("COURTSIDE_POLL_INTERVAL"):
            try:
                settings.watch.poll_interval = float(interval)
            except ValueError:
                raise ConfigError(f"COURTSIDE_POLL_INTERVAL is not a number: {interval}")

        if comparator := os.getenv("COURTSIDE_TEXT_COMPARATOR"):
            settings.detection.text_comparator = comparator

        if log_level := os.getenv("LOG_LEVEL"):
            settings.log_level = log_level

        if log_file := os.getenv("COURTSIDE_LOG_FILE"):
            settings.log_file = Path(log_file)

        return settings

    def apply_dict(self, data: dict[str, Any]) -> None:
        """Overlay values from a nested mapping onto these settings."""
        sections = {
            "momentum": self.momentum,
            "detection": self.detection,
            "actions": self.actions,
            "persistence": self.persistence,
            "watch": self.watch,
        }

        for key, value in data.items():
            if key in sections:
                if not isinstance(value, dict):
                    raise ConfigError(f"Section '{key}' must be a mapping")
                _apply_section(sections[key], key, value)
            elif key == "state_dir":
                self.state_dir = Path(_check_value(key, "", value))
            elif key == "log_level":
                self.log_level = _check_value(key, self.log_level, value)
            elif key == "log_file":
                self.log_file = Path(_check_value(key, "", value)) if value else None
            else:
                raise ConfigError(f"Unknown configuration key: {key}")

    @classmethod
    def from_yaml(cls, path: Path, base: Optional["Settings"] = None) -> "Settings":
        """Load a YAML policy file on top of ``base`` (or environment defaults)."""
        settings = base or cls.from_env()
        path = Path(path)

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except OSError as e:
            raise ConfigError(f"Cannot read config file {path}: {e}")
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}")

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")

        settings.apply_dict(data)
        return settings


def _check_value(setting: str, expected: Any, value: Any) -> Any:
    """Return ``value`` if it matches the type of ``expected``, else raise."""
    # Booleans are never accepted as numbers
    if isinstance(expected, bool):
        if isinstance(value, bool):
            return value
        raise ConfigError(f"Setting '{setting}' must be true or false, got {value!r}")
    if isinstance(expected, int):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        raise ConfigError(f"Setting '{setting}' must be an integer, got {value!r}")
    if isinstance(expected, float):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        raise ConfigError(f"Setting '{setting}' must be a number, got {value!r}")
    if isinstance(expected, str):
        if isinstance(value, str):
            return value
        raise ConfigError(f"Setting '{setting}' must be a string, got {value!r}")
    return value


def _apply_section(target: Any, name: str, values: dict[str, Any]) -> None:
    """Set known dataclass fields on a config section.

    Each value must match the type of the field's default. Mapping fields
    are merged key by key and only accept the keys they already have.
    """
    known = {f.name for f in fields(target)}
    for key, value in values.items():
        setting = f"{name}.{key}"
        if key not in known:
            raise ConfigError(f"Unknown setting '{setting}'")
        current = getattr(target, key)

        if isinstance(current, dict):
            if not isinstance(value, dict):
                raise ConfigError(f"Setting '{setting}' must be a mapping")
            merged = dict(current)
            for item_key, item_value in value.items():
                if item_key not in current:
                    raise ConfigError(f"Unknown key '{item_key}' in setting '{setting}'")
                merged[item_key] = _check_value(
                    f"{setting}.{item_key}", current[item_key], item_value
                )
            value = merged
        elif isinstance(current, list):
            if not isinstance(value, list):
                raise ConfigError(f"Setting '{setting}' must be a list")
            value = [_check_value(setting, "", item) for item in value]
        else:
            value = _check_value(setting, current, value)

        setattr(target, key, value)


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def configure(settings: Settings) -> None:
    """Set the global settings instance."""
    global _settings
    _settings = settings
