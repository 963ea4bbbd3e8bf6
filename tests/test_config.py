# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Tests for configuration loading and validation."""

import tempfile
from pathlib import Path

import pytest
import yaml

from dependviz.config import Config, ConfigurationError


def test_default_config_when_file_missing():
    """Test that defaults are used when config file is missing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config = Config(config_path=Path(tmpdir) / "nonexistent.yml")

        assert config.output_path == "data/sample.json"
        assert config.max_workers == 4
        assert config.source_extensions == [".java"]
        assert config.source_root_candidates == ["src/main/java"]
        assert config.ignore_patterns == []
        assert config.include_external_nodes is True
        assert config.max_file_size_kb == 1024
        assert config.watch_workspace is False
        assert config.log_level == "INFO"


def test_valid_config_loading():
    """Test loading a valid configuration file."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / ".dependviz.yml"
        config_data = {
            "output_path": "out/graph.json",
            "max_workers": 8,
            "include_external_nodes": False,
            "ignore_patterns": ["generated/*"],
        }
        with open(config_path, "w") as f:
            yaml.dump(config_data, f)

        config = Config(config_path=config_path)

        assert config.output_path == "out/graph.json"
        assert config.max_workers == 8
        assert config.include_external_nodes is False
        assert config.ignore_patterns == ["generated/*"]
        # Defaults for unspecified values
        assert config.max_file_size_kb == 1024


def test_invalid_parameter_values():
    """Test that invalid parameter values are rejected and defaults used."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / ".dependviz.yml"
        config_data = {
            "max_workers": 0,  # Invalid: must be > 0
            "max_file_size_kb": -1,  # Invalid: must be > 0
            "output_path": "   ",  # Invalid: blank
            "log_level": "LOUD",  # Invalid: not a level name
        }
        with open(config_path, "w") as f:
            yaml.dump(config_data, f)

        config = Config(config_path=config_path)

        assert config.max_workers == 4
        assert config.max_file_size_kb == 1024
        assert config.output_path == "data/sample.json"
        assert config.log_level == "INFO"


def test_invalid_parameter_types():
    """Test that wrongly typed values fall back to defaults."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / ".dependviz.yml"
        config_data = {
            "max_workers": True,  # bool is not an int here
            "include_external_nodes": "no",
            "source_extensions": ".java",
            "ignore_patterns": ["ok", 3],
        }
        with open(config_path, "w") as f:
            yaml.dump(config_data, f)

        config = Config(config_path=config_path)

        assert config.max_workers == 4
        assert config.include_external_nodes is True
        assert config.source_extensions == [".java"]
        assert config.ignore_patterns == []


def test_unknown_parameters_ignored():
    """Test that unknown parameters are ignored."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / ".dependviz.yml"
        with open(config_path, "w") as f:
            yaml.dump({"unknown_param": 1, "max_workers": 2}, f)

        config = Config(config_path=config_path)

        assert config.max_workers == 2
        assert "unknown_param" not in config.to_dict()


def test_empty_config_file():
    """Test that an empty file yields defaults."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / ".dependviz.yml"
        config_path.write_text("")

        config = Config(config_path=config_path)

        assert config.to_dict() == Config.DEFAULTS


def test_non_dict_config_file():
    """Test that a YAML list yields defaults."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / ".dependviz.yml"
        config_path.write_text("- a\n- b\n")

        config = Config(config_path=config_path)

        assert config.max_workers == 4


def test_invalid_yaml_syntax():
    """Test that unparseable YAML yields defaults."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / ".dependviz.yml"
        config_path.write_text("max_workers: [unclosed\n")

        config = Config(config_path=config_path)

        assert config.max_workers == 4


def test_log_level_is_uppercased():
    """Test that lowercase level names are accepted."""
    config = Config.from_dict({"log_level": "debug"})

    assert config.log_level == "DEBUG"


def test_from_dict_rejects_non_dict():
    """Test that from_dict requires a dictionary."""
    with pytest.raises(ConfigurationError):
        Config.from_dict(["max_workers"])  # type: ignore[arg-type]


def test_set_override():
    """Test runtime overrides are validated."""
    config = Config.from_dict({})

    assert config.set("max_workers", 6) is True
    assert config.set("max_workers", -1) is False
    assert config.set("nonsense", 1) is False
    assert config.max_workers == 6


def test_defaults_not_shared_between_instances():
    """Test that list defaults are copied per instance."""
    first = Config.from_dict({})
    first.ignore_patterns.append("*.tmp")

    assert Config.from_dict({}).ignore_patterns == []
