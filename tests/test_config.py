"""Tests for configuration loading and management."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from src.config import Config, load_config


class TestConfigLoader:
    """Tests for load_config function."""

    def test_load_default_config(self) -> None:
        """Test loading the default configuration file."""
        config = load_config()

        assert config.capture is not None
        assert config.detection is not None
        assert config.ocr is not None
        assert config.persistence is not None
        assert config.logging is not None

    def test_load_default_values(self) -> None:
        """Test that default values are correctly loaded."""
        config = load_config()

        assert config.capture.monitor == 1
        assert config.capture.crop_x == 150
        assert config.capture.crop_y == 50
        assert config.capture.crop_bottom_margin == 150
        assert config.capture.brightness == -50
        assert config.detection.detect_frames == 4
        assert config.detection.cycle_sleep_ms == 400
        assert config.detection.marker == "Lv."
        assert config.detection.banned_words == ["lv.", "llv.", "alpha"]
        assert config.persistence.state_path == "state.json"

    def test_default_file_matches_model_defaults(self) -> None:
        assert load_config() == Config()

    def test_load_custom_config_file(self, tmp_path: Path) -> None:
        """Test loading from a custom config file path."""
        custom_config = {
            "detection": {"cycle_sleep_ms": 250, "detect_frames": 6},
            "capture": {"brightness": -30},
        }

        config_file = tmp_path / "custom.yaml"
        with open(config_file, "w") as f:
            yaml.dump(custom_config, f)

        config = load_config(config_file)

        assert config.detection.cycle_sleep_ms == 250
        assert config.detection.detect_frames == 6
        assert config.capture.brightness == -30
        # Default values still apply for unspecified fields
        assert config.detection.marker == "Lv."
        assert config.capture.crop_x == 150

    def test_missing_config_file_raises_error(self) -> None:
        """Test that missing config file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config("/nonexistent/path/config.yaml")

    def test_empty_config_file_uses_defaults(self, tmp_path: Path) -> None:
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")

        assert load_config(config_file) == Config()


class TestEnvOverrides:
    """Tests for ENCOUNTER_ environment overrides."""

    def test_int_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENCOUNTER_DETECTION__CYCLE_SLEEP_MS", "250")

        config = load_config()

        assert config.detection.cycle_sleep_ms == 250

    def test_negative_int_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENCOUNTER_CAPTURE__BRIGHTNESS", "-80")

        assert load_config().capture.brightness == -80

    def test_list_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENCOUNTER_DETECTION__BANNED_WORDS", "lv., omega , ")

        assert load_config().detection.banned_words == ["lv.", "omega"]

    def test_override_key_absent_from_file(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        config_file = tmp_path / "partial.yaml"
        config_file.write_text("capture:\n  monitor: 2\n")
        monkeypatch.setenv("ENCOUNTER_OCR__TESSERACT_CMD", "/opt/tesseract/bin/tesseract")

        config = load_config(config_file)

        assert config.capture.monitor == 2
        assert config.ocr.tesseract_cmd == "/opt/tesseract/bin/tesseract"

    def test_string_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENCOUNTER_PERSISTENCE__STATE_PATH", "/tmp/mons.json")

        assert load_config().persistence.state_path == "/tmp/mons.json"


class TestConfigValidation:
    """Tests for configuration validation."""

    def test_detect_frames_must_leave_a_sample(self) -> None:
        with pytest.raises(ValidationError):
            Config.model_validate({"detection": {"detect_frames": 1}})

    def test_invalid_log_format(self) -> None:
        with pytest.raises(ValidationError):
            Config.model_validate({"logging": {"format": "xml"}})

    def test_invalid_log_level(self) -> None:
        with pytest.raises(ValidationError):
            Config.model_validate({"logging": {"level": "LOUD"}})

    def test_brightness_bounds(self) -> None:
        with pytest.raises(ValidationError):
            Config.model_validate({"capture": {"brightness": 300}})

    def test_invalid_value_in_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / "bad.yaml"
        config_file.write_text("detection:\n  cycle_sleep_ms: -5\n")

        with pytest.raises(ValidationError):
            load_config(config_file)
