#!/usr/bin/env python3
"""Configuration loader for noise monitor."""
import json
from pathlib import Path
from typing import Dict, Any, Optional, Tuple

from logger import get_logger

log = get_logger(__name__)


def get_default_config() -> Dict[str, Any]:
    """Return default configuration values."""
    return {
        "audio": {
            "device": "default",
            "sample_rate": 8000,
            "channels": 1,
            "sample_format": "U8",
            "analysis_window": 256,
            "gain": 1.0
        },
        "monitoring": {
            "tick_interval_sec": 0.1,
            "threshold": 60
        },
        "detection": {
            "debounce_window_sec": 1.5,
            "level_offset_db": 115
        },
        "capture": {
            "capture_window_sec": 60.0,
            "chunk_interval_sec": 1.0,
            "pre_roll_chunks": 10,
            "preferred_encodings": [
                "audio/wav",
                "audio/x-raw",
                "application/octet-stream"
            ]
        },
        "storage": {
            "events_file": "data/events.csv",
            "clips_dir": "data/clips",
            "clips_index": "data/clips.csv",
            "recent_limit": 20
        },
        "logging": {
            "log_file": None,
            "level": "INFO"
        }
    }


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """Validate configuration structure and values."""
    defaults = get_default_config()

    # Check required top-level keys
    for key in defaults.keys():
        if key not in config:
            return False, f"Missing required config section: {key}"

    # Validate audio settings
    audio = config.get("audio", {})
    if not isinstance(audio.get("sample_rate"), int) or audio.get("sample_rate") <= 0:
        return False, "audio.sample_rate must be a positive integer"
    if not isinstance(audio.get("channels"), int) or audio.get("channels") <= 0:
        return False, "audio.channels must be a positive integer"
    if audio.get("sample_format") != "U8":
        return False, "audio.sample_format must be U8 (byte-domain samples)"
    if not isinstance(audio.get("analysis_window"), int) or audio.get("analysis_window") <= 0:
        return False, "audio.analysis_window must be a positive integer"
    if audio.get("gain") <= 0:
        return False, "audio.gain must be positive"

    # Validate monitoring cadence and threshold
    monitoring = config.get("monitoring", {})
    if monitoring.get("tick_interval_sec") <= 0:
        return False, "monitoring.tick_interval_sec must be positive"
    threshold = monitoring.get("threshold")
    if not isinstance(threshold, int) or threshold < 0:
        return False, "monitoring.threshold must be a non-negative integer"

    # Validate detection
    detection = config.get("detection", {})
    if detection.get("debounce_window_sec") < 0:
        return False, "detection.debounce_window_sec must be non-negative"

    # Validate capture
    capture = config.get("capture", {})
    if capture.get("capture_window_sec") <= 0:
        return False, "capture.capture_window_sec must be positive"
    if capture.get("chunk_interval_sec") <= 0:
        return False, "capture.chunk_interval_sec must be positive"
    if not isinstance(capture.get("pre_roll_chunks"), int) or capture.get("pre_roll_chunks") < 0:
        return False, "capture.pre_roll_chunks must be a non-negative integer"
    if not isinstance(capture.get("preferred_encodings"), list):
        return False, "capture.preferred_encodings must be a list of content types"

    # Validate storage
    storage = config.get("storage", {})
    if not isinstance(storage.get("recent_limit"), int) or storage.get("recent_limit") <= 0:
        return False, "storage.recent_limit must be a positive integer"

    return True, None


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load configuration from JSON file, merging with defaults.

    Args:
        config_path: Path to config file. If None, looks for config.json in current directory.

    Returns:
        Merged configuration dictionary.

    Raises:
        ValueError: If config is invalid.
    """
    defaults = get_default_config()

    if config_path is None:
        config_path = Path("config.json")

    if not config_path.exists():
        log.info(f"Config file {config_path} not found, using defaults")
        return defaults

    try:
        with config_path.open() as f:
            config = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in config file {config_path}: {e}")

    # Deep merge with defaults
    merged = _deep_merge(defaults, config)

    # Validate
    is_valid, error_msg = validate_config(merged)
    if not is_valid:
        raise ValueError(f"Invalid configuration: {error_msg}")

    log.info(f"Loaded configuration from {config_path}")
    return merged


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def get_config_value(config: Dict[str, Any], path: str, default: Any = None) -> Any:
    """
    Get nested config value using dot notation.

    Example: get_config_value(config, "capture.capture_window_sec")
    """
    keys = path.split(".")
    value = config
    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default
    return value
