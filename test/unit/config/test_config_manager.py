"""Tests for configuration manager."""
import os
import tempfile
from pathlib import Path

import pytest
import yaml

from recipe_dumper import ConfigurationError
from recipe_dumper.core.config_manager import AppConfig, ConfigManager, DumpConfig, LoggingConfig


def write_config(data) -> Path:
    with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
        yaml.dump(data, f)
        return Path(f.name)


class TestConfigManager:
    """Test cases for ConfigManager."""

    def test_default_config_creation(self, mock_logger):
        """Test creation with default configuration."""
        with tempfile.TemporaryDirectory() as temp_dir:
            manager = ConfigManager(Path(temp_dir) / "nonexistent.yaml", mock_logger)

            assert manager.config.name == "recipe-dumper"
            assert manager.config.debug is False
            assert manager.config.dump.progress_interval_ms == 2500
            assert manager.config.dump.workers == 1
            assert manager.config.dump.preserve_order is False
            assert manager.config.dump.companion_suffix == "_stacks"
            assert manager.config.logging.level == "INFO"
            assert manager.config.plugins == []

    def test_config_loading_from_file(self, mock_logger):
        """Test loading configuration from YAML file."""
        config_path = write_config({
            "app": {"name": "GTNH dumper", "debug": True},
            "dump": {"workers": 4, "preserve_order": True, "companion_suffix": "_items",
                     "unknown_key": "ignored"},
            "logging": {"level": "DEBUG", "console_output": False},
            "plugins": ["my_mod.recipes"],
        })

        try:
            config = ConfigManager(config_path, mock_logger).config

            assert config.name == "GTNH dumper"
            assert config.debug is True
            assert config.dump.workers == 4
            assert config.dump.preserve_order is True
            assert config.dump.companion_suffix == "_items"
            assert config.logging.console_output is False
            assert config.plugins == ["my_mod.recipes"]
        finally:
            os.unlink(config_path)

    def test_empty_file_uses_defaults(self, mock_logger, tmp_path):
        config_path = tmp_path / "empty.yaml"
        config_path.write_text("", encoding="utf-8")

        assert ConfigManager(config_path, mock_logger).config == AppConfig()

    def test_environment_variable_overrides(self, mock_logger, monkeypatch):
        """Test environment variable overrides."""
        monkeypatch.setenv("RECIPE_DUMPER_WORKERS", "8")
        monkeypatch.setenv("RECIPE_DUMPER_PROGRESS_INTERVAL", "1000")
        monkeypatch.setenv("RECIPE_DUMPER_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("RECIPE_DUMPER_DEBUG", "yes")

        with tempfile.TemporaryDirectory() as temp_dir:
            config = ConfigManager(Path(temp_dir) / "nonexistent.yaml", mock_logger).config

        assert config.dump.workers == 8
        assert config.dump.progress_interval_ms == 1000
        assert config.logging.level == "WARNING"
        assert config.debug is True

    @pytest.mark.parametrize("data, message", [
        ({"dump": {"progress_interval_ms": 50}}, "progress_interval_ms must be at least 100ms"),
        ({"dump": {"progress_interval_ms": 120000}}, "progress_interval_ms must not exceed 60000ms"),
        ({"dump": {"workers": 0}}, "workers must be at least 1"),
        ({"dump": {"companion_suffix": ""}}, "companion_suffix must not be empty"),
        ({"logging": {"level": "LOUD"}}, "logging level must be one of"),
    ])
    def test_invalid_values_rejected(self, mock_logger, data, message):
        config_path = write_config(data)
        try:
            with pytest.raises(ConfigurationError, match=message):
                ConfigManager(config_path, mock_logger)
        finally:
            os.unlink(config_path)

    def test_malformed_yaml_wrapped(self, mock_logger, tmp_path):
        config_path = tmp_path / "broken.yaml"
        config_path.write_text("dump: [unclosed", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="Failed to load configuration"):
            ConfigManager(config_path, mock_logger)

    def test_reload(self, mock_logger, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text(yaml.dump({"dump": {"workers": 2}}), encoding="utf-8")
        manager = ConfigManager(config_path, mock_logger)

        config_path.write_text(yaml.dump({"dump": {"workers": 6}}), encoding="utf-8")
        manager.reload()

        assert manager.config.dump.workers == 6

    def test_shipped_default_config_is_valid(self, mock_logger):
        default_path = Path(__file__).parent.parent.parent.parent / "config" / "default.yaml"

        config = ConfigManager(default_path, mock_logger).config

        assert config.dump == DumpConfig()
        assert config.logging == LoggingConfig()
