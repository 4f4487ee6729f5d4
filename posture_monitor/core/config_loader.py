"""
Unified configuration loader - lightweight dataclass-free config tree
=====================================================================

This module is responsible for:
1. Reading system_config.json and filling in missing sections
2. Providing attribute-style access to configuration values
3. Flattening posture/calibration values for engine construction

Config file location:
- Default: system_config.json in the project root, then config/system_config.json
- Environment variable: POSTURE_CONFIG=path/to/config.json
- Argument: load_config(config_path="path/to/config.json")

Usage:
```python
from posture_monitor.core.config_loader import get_config

config = get_config()  # singleton
print(config.logging.level)
print(config.posture.lean_tolerance)
print(config.calibration.max_attempts)
```
"""
from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import Dict, Optional, Any

from .constants import Constants


# ============================================================================
# Config classes
# ============================================================================

class DictConfig:
    """Dict-style configuration base class"""

    def __init__(self, **kwargs):
        for key, value in kwargs.items():
            if isinstance(value, dict):
                # nested dicts become nested configs
                setattr(self, key, DictConfig(**value))
            elif isinstance(value, list) and value and isinstance(value[0], dict):
                setattr(self, key, [DictConfig(**item) if isinstance(item, dict) else item for item in value])
            else:
                setattr(self, key, value)

    def get(self, key: str, default=None):
        """dict-style get"""
        return getattr(self, key, default)

    def __getitem__(self, key: str):
        """Supports config["key"]"""
        return getattr(self, key)

    def __repr__(self):
        attrs = {k: v for k, v in self.__dict__.items() if not k.startswith("_")}
        return f"{self.__class__.__name__}({attrs})"


class SystemConfig(DictConfig):
    """
    Top-level system configuration

    Attributes:
        system: system info
        paths: path configuration
        logging: logging configuration
        posture: classifier thresholds
        calibration: calibration loop parameters
    """

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._config_path: Optional[Path] = None

    def set_config_path(self, path: Path) -> None:
        """Remember where the config came from (for relative path resolution)"""
        self._config_path = path

    def resolve_path(self, path_str: Optional[str]) -> Optional[Path]:
        """Resolve a path relative to the config file"""
        if not path_str:
            return None

        candidate = Path(path_str)
        if not candidate.is_absolute() and self._config_path:
            candidate = self._config_path.parent / candidate

        return candidate


DEFAULT_SECTIONS: Dict[str, Dict[str, Any]] = {
    "system": {
        "name": "posture_monitor",
    },
    "paths": {
        "logs_dir": "logs",
    },
    "logging": {
        "level": "INFO",
        "enable_console": True,
        "enable_file": False,
        "file_rotation": "daily",
        "max_size_mb": 100,
    },
    "posture": {
        "min_score": Constants.MIN_SCORE,
        "classify_min_confidence": Constants.CLASSIFY_MIN_CONFIDENCE,
        "nose_slouch_tolerance": Constants.NOSE_SLOUCH_TOLERANCE,
        "slouch_tolerance": Constants.SLOUCH_TOLERANCE,
        "lean_tolerance": Constants.LEAN_TOLERANCE,
        "angle_tolerance": Constants.ANGLE_TOLERANCE,
        "forward_head_tolerance": Constants.FORWARD_HEAD_TOLERANCE,
    },
    "calibration": {
        "max_attempts": Constants.CALIBRATION_MAX_ATTEMPTS,
        "required_samples": Constants.CALIBRATION_REQUIRED_SAMPLES,
        "min_confidence": Constants.CALIBRATION_MIN_CONFIDENCE,
        "retry_delay": Constants.CALIBRATION_RETRY_DELAY,
    },
}


def _fill_defaults(raw_data: Dict[str, Any]) -> Dict[str, Any]:
    """Fill in missing sections and keys (section by section, key by key)"""
    for section, defaults in DEFAULT_SECTIONS.items():
        current = raw_data.get(section)
        if not isinstance(current, dict):
            raw_data[section] = copy.deepcopy(defaults)
            continue
        for key, value in defaults.items():
            current.setdefault(key, value)
    return raw_data


# ============================================================================
# Loader (singleton)
# ============================================================================

_config_instance: Optional[SystemConfig] = None


def _default_config_path() -> Optional[Path]:
    config_env = os.getenv("POSTURE_CONFIG")
    if config_env:
        return Path(config_env)

    root_dir = Path(__file__).parent.parent.parent
    for candidate in (root_dir / "system_config.json", root_dir / "config" / "system_config.json"):
        if candidate.exists():
            return candidate
    return None


def load_config(config_path: Optional[str | Path] = None) -> SystemConfig:
    """
    Load configuration from JSON file

    Args:
        config_path: Configuration file path (default: auto-detect)
                    Search order: parameter > env POSTURE_CONFIG > root/system_config.json > config/system_config.json

    Returns:
        SystemConfig: Configuration object. When nothing is found during
        auto-detection, a config made purely of defaults is returned.

    Raises:
        FileNotFoundError: an explicitly given configuration file does not exist
        ValueError: Configuration file format error
    """
    explicit = config_path is not None
    config_path = Path(config_path) if explicit else _default_config_path()

    if config_path is None:
        config = SystemConfig(**_fill_defaults({}))
        return config

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with config_path.open("r", encoding="utf-8") as f:
            raw_data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Configuration file JSON parsing failed: {e}") from e

    if not isinstance(raw_data, dict):
        raise ValueError(f"Configuration root must be a JSON object: {config_path}")

    config = SystemConfig(**_fill_defaults(raw_data))
    config.set_config_path(config_path)
    return config


def get_config(config_path: Optional[str | Path] = None, reload: bool = False) -> SystemConfig:
    """
    Get the configuration singleton (lazy)

    Args:
        config_path: config file path (only used on first load)
        reload: force a reload

    Returns:
        SystemConfig: the singleton
    """
    global _config_instance

    if _config_instance is None or reload:
        _config_instance = apply_env_overrides(load_config(config_path))

    return _config_instance


# ============================================================================
# Environment overrides
# ============================================================================

def apply_env_overrides(config: SystemConfig) -> SystemConfig:
    """
    Apply environment overrides (ENV > system_config.json > defaults)

    Supported variables:
    - POSTURE_LOG_LEVEL: log level
    - POSTURE_CALIBRATION_DELAY: delay between calibration attempts (seconds)
    """
    if log_level := os.getenv("POSTURE_LOG_LEVEL"):
        config.logging.level = log_level.upper()

    if delay := os.getenv("POSTURE_CALIBRATION_DELAY"):
        try:
            config.calibration.retry_delay = float(delay)
        except ValueError:
            pass

    return config


def get_posture_constants(config: Optional[SystemConfig] = None) -> Dict[str, Any]:
    """
    Flatten posture/calibration settings into a constants dict

    Returns:
        Dict keyed like ``Constants`` attributes, suitable for building a
        PostureEngine.
    """
    config = config or get_config()

    return {
        # pose gating
        "MIN_SCORE": float(config.posture.min_score),

        # classifier
        "CLASSIFY_MIN_CONFIDENCE": float(config.posture.classify_min_confidence),
        "NOSE_SLOUCH_TOLERANCE": float(config.posture.nose_slouch_tolerance),
        "SLOUCH_TOLERANCE": float(config.posture.slouch_tolerance),
        "LEAN_TOLERANCE": float(config.posture.lean_tolerance),
        "ANGLE_TOLERANCE": float(config.posture.angle_tolerance),
        "FORWARD_HEAD_TOLERANCE": float(config.posture.forward_head_tolerance),

        # calibration
        "CALIBRATION_MAX_ATTEMPTS": int(config.calibration.max_attempts),
        "CALIBRATION_REQUIRED_SAMPLES": int(config.calibration.required_samples),
        "CALIBRATION_MIN_CONFIDENCE": float(config.calibration.min_confidence),
        "CALIBRATION_RETRY_DELAY": float(config.calibration.retry_delay),

        # logging
        "LOG_LEVEL": config.logging.level,
    }
