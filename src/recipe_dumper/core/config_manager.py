"""Configuration management for recipe-dumper."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog
import yaml

from recipe_dumper import ConfigurationError
from recipe_dumper.core.progress import DEFAULT_PROGRESS_INTERVAL_MS

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


@dataclass
class DumpConfig:
    """Recipe dump behaviour."""
    progress_interval_ms: int = DEFAULT_PROGRESS_INTERVAL_MS
    workers: int = 1
    preserve_order: bool = False
    companion_suffix: str = "_stacks"
    dumps_dir: str = "dumps"
    format_version: Optional[str] = None


@dataclass
class LoggingConfig:
    """Logging output configuration."""
    level: str = "INFO"
    console_output: bool = True


@dataclass
class AppConfig:
    """Main application configuration."""
    name: str = "recipe-dumper"
    version: str = "1.0.0"
    debug: bool = False
    dump: DumpConfig = field(default_factory=DumpConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    plugins: List[str] = field(default_factory=list)


class ConfigManager:
    """Manages application configuration from YAML files and environment variables."""

    def __init__(self, config_path: Optional[Path] = None, logger: Optional[structlog.BoundLogger] = None):
        """Initialize configuration manager.

        Args:
            config_path: Path to configuration file
            logger: Structured logger instance

        Raises:
            ConfigurationError: If configuration is invalid
        """
        self.logger = logger or structlog.get_logger()
        self.config_path = Path(config_path) if config_path else Path("config/default.yaml")
        self._config = self._load_config()

    def _load_config(self) -> AppConfig:
        """Load configuration from file and environment variables.

        Returns:
            Loaded and validated configuration

        Raises:
            ConfigurationError: If configuration cannot be loaded or is invalid
        """
        try:
            config_data: Dict[str, Any] = {}

            if self.config_path.exists():
                self.logger.info("Loading configuration", config_path=str(self.config_path))
                with open(self.config_path, 'r', encoding='utf-8') as f:
                    config_data = yaml.safe_load(f) or {}
            else:
                self.logger.warning("Configuration file not found, using defaults",
                                    config_path=str(self.config_path))

            config_data = self._apply_env_overrides(config_data)

            app_data = config_data.get("app", {}) or {}
            config = AppConfig(
                name=app_data.get("name", "recipe-dumper"),
                version=app_data.get("version", "1.0.0"),
                debug=app_data.get("debug", False),
                dump=DumpConfig(
                    **{k: v for k, v in (config_data.get("dump", {}) or {}).items()
                       if k in DumpConfig.__dataclass_fields__}
                ),
                logging=LoggingConfig(
                    **{k: v for k, v in (config_data.get("logging", {}) or {}).items()
                       if k in LoggingConfig.__dataclass_fields__}
                ),
                plugins=list(config_data.get("plugins", []) or []),
            )

            self._validate_config(config)

            self.logger.info("Configuration loaded successfully",
                             debug=config.debug,
                             workers=config.dump.workers,
                             plugins=len(config.plugins))

            return config

        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Failed to load configuration: {e}") from e

    def _apply_env_overrides(self, config_data: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides to configuration.

        Args:
            config_data: Base configuration data

        Returns:
            Configuration with environment overrides applied
        """
        env_mappings = {
            "RECIPE_DUMPER_WORKERS": ["dump", "workers"],
            "RECIPE_DUMPER_PROGRESS_INTERVAL": ["dump", "progress_interval_ms"],
            "RECIPE_DUMPER_LOG_LEVEL": ["logging", "level"],
            "RECIPE_DUMPER_DEBUG": ["app", "debug"],
        }

        for env_var, config_path in env_mappings.items():
            env_value = os.getenv(env_var)
            if env_value is not None:
                current = config_data
                for key in config_path[:-1]:
                    current = current.setdefault(key, {})

                final_key = config_path[-1]
                if final_key in ["workers", "progress_interval_ms"]:
                    current[final_key] = int(env_value)
                elif final_key in ["debug"]:
                    current[final_key] = env_value.lower() in ("true", "1", "yes")
                else:
                    current[final_key] = env_value

                self.logger.debug("Applied environment override",
                                  env_var=env_var, value=env_value, config_path=config_path)

        return config_data

    def _validate_config(self, config: AppConfig) -> None:
        """Validate configuration values.

        Args:
            config: Configuration to validate

        Raises:
            ConfigurationError: If configuration is invalid
        """
        if config.dump.progress_interval_ms < 100:
            raise ConfigurationError("progress_interval_ms must be at least 100ms")

        if config.dump.progress_interval_ms > 60000:
            raise ConfigurationError("progress_interval_ms must not exceed 60000ms")

        if config.dump.workers < 1:
            raise ConfigurationError("workers must be at least 1")

        if not config.dump.companion_suffix:
            raise ConfigurationError("companion_suffix must not be empty")

        if str(config.logging.level).upper() not in VALID_LOG_LEVELS:
            raise ConfigurationError(
                f"logging level must be one of {VALID_LOG_LEVELS}, got {config.logging.level}"
            )

    @property
    def config(self) -> AppConfig:
        """Get the current configuration."""
        return self._config

    def reload(self) -> None:
        """Reload configuration from file."""
        self.logger.info("Reloading configuration")
        self._config = self._load_config()
