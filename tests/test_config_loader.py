"""
Tests for config_loader module.
"""
import json

import pytest

import config_loader


class TestLoadConfig:
    """Test loading and validation."""

    def test_defaults_when_missing(self, tmp_path):
        config = config_loader.load_config(tmp_path / "missing.json")
        assert config == config_loader.get_default_config()

    def test_defaults_are_valid(self):
        assert config_loader.validate_config(config_loader.get_default_config()) == (True, None)

    def test_merges_over_defaults(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"monitoring": {"threshold": 72}}))
        config = config_loader.load_config(path)
        assert config["monitoring"]["threshold"] == 72
        assert config["monitoring"]["tick_interval_sec"] == 0.1
        assert config["capture"]["capture_window_sec"] == 60.0

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{not json")
        with pytest.raises(ValueError, match="Invalid JSON"):
            config_loader.load_config(path)

    @pytest.mark.parametrize("override,message", [
        ({"monitoring": {"threshold": -1}}, "monitoring.threshold"),
        ({"detection": {"debounce_window_sec": -0.5}}, "debounce_window_sec"),
        ({"capture": {"capture_window_sec": 0}}, "capture_window_sec"),
        ({"capture": {"pre_roll_chunks": -2}}, "pre_roll_chunks"),
        ({"audio": {"sample_format": "S16_LE"}}, "sample_format"),
        ({"storage": {"recent_limit": 0}}, "recent_limit"),
    ])
    def test_invalid_values(self, tmp_path, override, message):
        path = tmp_path / "config.json"
        path.write_text(json.dumps(override))
        with pytest.raises(ValueError, match=message):
            config_loader.load_config(path)


class TestGetConfigValue:
    """Test dotted lookups."""

    def test_nested_value(self):
        config = config_loader.get_default_config()
        assert config_loader.get_config_value(config, "capture.pre_roll_chunks") == 10

    def test_missing_value_default(self):
        assert config_loader.get_config_value({}, "a.b", default=3) == 3
