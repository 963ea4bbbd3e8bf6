# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Configuration loading and validation for DependViz."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".dependviz.yml"

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigurationError(Exception):
    """Raised when configuration validation fails critically."""

    pass


class Config:
    """Configuration for the DependViz analyzer and editor server.

    Loads configuration from .dependviz.yml with validation and defaults.
    Problems with the file are logged and never fatal.
    """

    DEFAULTS = {
        "output_path": "data/sample.json",
        "max_workers": 4,
        "source_extensions": [".java"],
        "source_root_candidates": ["src/main/java"],
        "ignore_patterns": [],
        # Keep unresolved external types as boundary nodes in the output
        "include_external_nodes": True,
        "max_file_size_kb": 1024,
        "watch_workspace": False,
        "log_level": "INFO",
    }

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize configuration.

        Args:
            config_path: Path to configuration file. If None, uses default location.
        """
        if config_path is None:
            config_path = Path.cwd() / CONFIG_FILENAME

        self.config_path = Path(config_path)
        self._config: Dict[str, Any] = {}
        self._load_config()

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "Config":
        """Build a configuration from in-memory values.

        Values are validated the same way as file contents.

        Args:
            values: Configuration parameters to override.

        Returns:
            Config instance not bound to any file.

        Raises:
            ConfigurationError: If values is not a dictionary.
        """
        if not isinstance(values, dict):
            raise ConfigurationError(f"Configuration must be a dictionary, got {type(values)}")
        config = cls.__new__(cls)
        config.config_path = None
        config._config = cls._defaults()
        config._validate_and_merge(values)
        return config

    @classmethod
    def _defaults(cls) -> Dict[str, Any]:
        # Copy list values so instances never share mutable defaults
        return {
            key: list(value) if isinstance(value, list) else value
            for key, value in cls.DEFAULTS.items()
        }

    def _load_config(self) -> None:
        """Load and validate configuration from file."""
        if not self.config_path.exists():
            logger.info(f"Configuration file not found at {self.config_path}, using defaults")
            self._config = self._defaults()
            return

        try:
            with open(self.config_path, encoding="utf-8") as f:
                loaded_config = yaml.safe_load(f)

            if loaded_config is None:
                logger.warning("Configuration file is empty, using defaults")
                self._config = self._defaults()
                return

            if not isinstance(loaded_config, dict):
                logger.warning(
                    f"Configuration file must contain a YAML dictionary, "
                    f"got {type(loaded_config)}, using defaults"
                )
                self._config = self._defaults()
                return

            self._config = self._defaults()
            self._validate_and_merge(loaded_config)

        except yaml.YAMLError as e:
            logger.warning(
                f"Error parsing configuration file {self.config_path}: {e}, using defaults"
            )
            self._config = self._defaults()
        except OSError as e:
            logger.warning(
                f"Error reading configuration file {self.config_path}: {e}, using defaults"
            )
            self._config = self._defaults()

    def _validate_and_merge(self, loaded_config: Dict[str, Any]) -> None:
        """Validate loaded configuration and merge with defaults.

        Invalid parameters are logged as warnings and defaults are used.
        """
        for key, value in loaded_config.items():
            if key not in self.DEFAULTS:
                logger.warning(f"Unknown configuration parameter '{key}', ignoring")
                continue

            if not self._validate_parameter(key, value):
                logger.warning(
                    f"Invalid value for '{key}': {value}, using default {self.DEFAULTS[key]}"
                )
                continue

            self._config[key] = value

    def _validate_parameter(self, key: str, value: Any) -> bool:
        """Validate a configuration parameter.

        Returns:
            True if valid, False if invalid
        """
        expected_type = type(self.DEFAULTS[key])
        # bool is a subclass of int; reject True/False for numeric keys
        if expected_type is int and isinstance(value, bool):
            return False
        if not isinstance(value, expected_type):
            return False

        if key in ("max_workers", "max_file_size_kb"):
            return value > 0
        elif key == "output_path":
            return bool(value.strip())
        elif key in ("source_extensions", "source_root_candidates", "ignore_patterns"):
            return all(isinstance(item, str) and item for item in value)
        elif key == "log_level":
            return value.upper() in VALID_LOG_LEVELS

        return True

    def set(self, key: str, value: Any) -> bool:
        """Override one parameter at runtime (e.g. from a command-line flag).

        Args:
            key: Configuration parameter name.
            value: New value.

        Returns:
            True if the value was accepted, False if it was invalid.
        """
        if key not in self.DEFAULTS or not self._validate_parameter(key, value):
            logger.warning(f"Rejected configuration override {key}={value!r}")
            return False
        self._config[key] = value
        return True

    def to_dict(self) -> Dict[str, Any]:
        """Return a copy of the effective configuration."""
        return dict(self._config)

    # Property accessors for all configuration values
    @property
    def output_path(self) -> str:
        """Batch output artifact path."""
        value = self._config["output_path"]
        assert isinstance(value, str)
        return value

    @property
    def max_workers(self) -> int:
        """Thread pool size for batch analysis."""
        value = self._config["max_workers"]
        assert isinstance(value, int)
        return value

    @property
    def source_extensions(self) -> List[str]:
        """File extensions analyzed by the engine."""
        value = self._config["source_extensions"]
        assert isinstance(value, list)
        return value

    @property
    def source_root_candidates(self) -> List[str]:
        """Relative source root locations, tried in order.

        Default is ["src/main/java"] (Maven/Gradle layout).
        """
        value = self._config["source_root_candidates"]
        assert isinstance(value, list)
        return value

    @property
    def ignore_patterns(self) -> List[str]:
        """Additional fnmatch patterns excluded from discovery and watching."""
        value = self._config["ignore_patterns"]
        assert isinstance(value, list)
        return value

    @property
    def include_external_nodes(self) -> bool:
        """Whether unresolved external types stay in serialized graphs.

        External types are nodes that remain Unknown with no file path, such
        as java.lang.String. When False they are dropped from output together
        with every link touching them.
        """
        value = self._config["include_external_nodes"]
        assert isinstance(value, bool)
        return value

    @property
    def max_file_size_kb(self) -> int:
        """Files larger than this are not analyzed."""
        value = self._config["max_file_size_kb"]
        assert isinstance(value, int)
        return value

    @property
    def watch_workspace(self) -> bool:
        """Whether the editor server watches the workspace for external edits."""
        value = self._config["watch_workspace"]
        assert isinstance(value, bool)
        return value

    @property
    def log_level(self) -> str:
        """Logging level name."""
        value = self._config["log_level"]
        assert isinstance(value, str)
        return value.upper()
