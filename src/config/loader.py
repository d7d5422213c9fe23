"""Configuration loader for the encounter tracker.

Loads configuration from YAML files and environment variables.
Environment variables override YAML values using the ENCOUNTER_ prefix.
Nested keys use double underscores: ENCOUNTER_DETECTION__CYCLE_SLEEP_MS=250
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


class CaptureConfig(BaseModel):
    """Screen capture and normalization settings."""

    monitor: int = Field(default=1, ge=1, description="mss monitor index, 1 is primary")
    crop_x: int = Field(default=150, ge=0)
    crop_y: int = Field(default=50, ge=0)
    crop_bottom_margin: int = Field(default=150, ge=0)
    brightness: int = Field(default=-50, ge=-255, le=255)
    frame_rate: int = Field(default=60, ge=1, le=240, description="Display refresh rate")
    max_not_ready_retries: int = Field(default=600, ge=0)


class DetectionConfig(BaseModel):
    """Encounter detection settings."""

    detect_frames: int = Field(default=4, ge=2, le=60, description="Frames per detection window")
    cycle_sleep_ms: int = Field(default=400, ge=0, le=60000)
    marker: str = Field(default="Lv.", min_length=1)
    banned_words: list[str] = Field(default_factory=lambda: ["lv.", "llv.", "alpha"])
    strip_fragment: str = Field(default="llv.")
    min_length: int = Field(default=4, ge=1)


class OCRConfig(BaseModel):
    """OCR engine settings."""

    language: str = Field(default="eng")
    tesseract_cmd: str | None = Field(default=None)


class PersistenceConfig(BaseModel):
    """State file settings."""

    state_path: str = Field(default="state.json")


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    format: str = Field(default="readable", pattern="^(readable|json)$")


class Config(BaseModel):
    """Root configuration model."""

    capture: CaptureConfig = Field(default_factory=CaptureConfig)
    detection: DetectionConfig = Field(default_factory=DetectionConfig)
    ocr: OCRConfig = Field(default_factory=OCRConfig)
    persistence: PersistenceConfig = Field(default_factory=PersistenceConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _get_env_value(key: str) -> str | None:
    """Get environment variable with ENCOUNTER_ prefix."""
    env_key = f"ENCOUNTER_{key.upper()}"
    return os.environ.get(env_key)


def _apply_env_overrides(data: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    """Apply environment variable overrides to config data.

    Environment variables use ENCOUNTER_ prefix with double underscores for nesting.
    Example: ENCOUNTER_CAPTURE__BRIGHTNESS=-30 sets capture.brightness to -30.
    List values are given comma separated.
    """
    result = data.copy()

    for key, value in result.items():
        env_key = f"{prefix}__{key}" if prefix else key

        if isinstance(value, dict):
            result[key] = _apply_env_overrides(value, env_key)
        else:
            env_value = _get_env_value(env_key)
            if env_value is not None:
                # Convert to appropriate type based on original value
                if isinstance(value, bool):
                    result[key] = env_value.lower() in ("true", "1", "yes")
                elif isinstance(value, int):
                    result[key] = int(env_value)
                elif isinstance(value, float):
                    result[key] = float(env_value)
                elif isinstance(value, list):
                    result[key] = [item.strip() for item in env_value.split(",") if item.strip()]
                else:
                    result[key] = env_value

    return result


def load_config(config_path: str | Path | None = None) -> Config:
    """Load configuration from YAML file with environment variable overrides.

    Overrides apply to every key known to the model, including ones the
    YAML file leaves out.

    Args:
        config_path: Path to YAML config file. If None, uses default.yaml.

    Returns:
        Validated Config object.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValidationError: If config values are invalid.
    """
    # Determine config file path
    if config_path is None:
        # Look for default config relative to project root
        project_root = Path(__file__).parent.parent.parent
        config_path = project_root / "configs" / "default.yaml"
    else:
        config_path = Path(config_path)

    # Load YAML file
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    # Fill in defaults so every field can be overridden from the environment
    merged = _deep_merge(Config().model_dump(), data)
    merged = _apply_env_overrides(merged)

    # Create and validate config
    return Config.model_validate(merged)


def _deep_merge(base: dict[str, Any], updates: dict[str, Any]) -> dict[str, Any]:
    """Deep merge updates into base dict."""
    result = base.copy()

    for key, value in updates.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result
