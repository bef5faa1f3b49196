#!/usr/bin/env python3
"""Comprehensive tests for the ConfigManager module."""

from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from rebackup.core import config as config_module
from rebackup.core.config import ConfigError, ConfigManager, ConfigSource
from rebackup.core.constants import ErrorCode


class TestConfigSource:
    """Tests for ConfigSource enum."""

    def test_precedence_order(self):
        """Test config source precedence ordering."""
        sources = [
            ConfigSource.COMPILED_DEFAULTS,
            ConfigSource.SYSTEM_CONFIG,
            ConfigSource.USER_CONFIG,
            ConfigSource.ENVIRONMENT,
            ConfigSource.CLI_ARGS,
            ConfigSource.RUNTIME,
        ]

        for i in range(len(sources) - 1):
            assert sources[i].value < sources[i + 1].value


class TestConfigError:
    """Tests for ConfigError exception."""

    def test_default_code(self):
        error = ConfigError("bad")

        assert str(error) == "bad"
        assert error.error_code == ErrorCode.INVALID_INPUT

    def test_custom_code(self):
        assert ConfigError("gone", ErrorCode.NOT_FOUND).error_code == ErrorCode.NOT_FOUND


class TestDefaults:
    """Tests for compiled defaults."""

    def test_walker_defaults(self):
        config = ConfigManager()

        assert config.get("rebackup.walker.follow_symlinks") is False
        assert config.get("rebackup.walker.drop_empty_dirs") is False

    def test_output_defaults(self):
        config = ConfigManager()

        assert config.get("rebackup.output.sort") is True
        assert config.get("rebackup.output.non_utf8") == "fail"
        assert config.get("rebackup.output.prefix") is None

    def test_missing_key(self):
        config = ConfigManager()

        assert config.get("rebackup.nothing.here") is None
        assert config.get("rebackup.nothing.here", "fallback") == "fallback"

    def test_defaults_validate(self):
        assert ConfigManager().validate() is True

    def test_defaults_not_shared(self):
        """Changing one manager leaves the defaults of others intact."""
        first = ConfigManager()
        first._config[ConfigSource.COMPILED_DEFAULTS]["rebackup"]["rules"].append({"builtin": "dotgit"})

        assert ConfigManager().get_rules() == []


class TestLoadFile:
    """Tests for loading YAML files."""

    def test_load_file(self, config_file):
        config = ConfigManager()
        config.load_file(str(config_file))

        assert config.get("rebackup.walker.drop_empty_dirs") is True
        assert config.get("rebackup.logging.level") == "WARNING"

    def test_load_in_constructor(self, config_file):
        config = ConfigManager(config_file=str(config_file))

        assert config.get("rebackup.walker.drop_empty_dirs") is True

    def test_file_without_root_key(self, tmp_path):
        """Files may omit the top-level rebackup key."""
        path = tmp_path / "config.yaml"
        path.write_text("walker:\n  follow_symlinks: true\n")

        config = ConfigManager()
        config.load_file(str(path))

        assert config.get("rebackup.walker.follow_symlinks") is True

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError) as exc_info:
            ConfigManager().load_file(str(tmp_path / "missing.yaml"))

        assert exc_info.value.error_code == ErrorCode.NOT_FOUND

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("walker: [unclosed\n")

        with pytest.raises(ConfigError, match="YAML parse error"):
            ConfigManager().load_file(str(path))

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n")

        with pytest.raises(ConfigError, match="Invalid config format"):
            ConfigManager().load_file(str(path))

    def test_invalid_content(self, tmp_path):
        """Files are validated when loaded."""
        path = tmp_path / "config.yaml"
        path.write_text("rebackup:\n  walker:\n    follow_symlinks: maybe\n")

        with pytest.raises(ConfigError, match="Invalid configuration"):
            ConfigManager().load_file(str(path))

    def test_load_default_files(self, tmp_path, sample_config):
        """System and user files are loaded when present."""
        system = tmp_path / "system.yaml"
        system.write_text(yaml.dump({"rebackup": {"rules": [{"builtin": "dotgit"}]}}))
        user = tmp_path / "user.yaml"
        user.write_text(yaml.dump(sample_config))

        with patch.object(config_module, "SYSTEM_CONFIG_PATH", str(system)), patch.object(
            config_module, "USER_CONFIG_PATH", str(user)
        ):
            config = ConfigManager()
            config.load_default_files()

        assert config.get("rebackup.walker.drop_empty_dirs") is True
        assert config.get_rules()[0] == {"builtin": "dotgit"}

    def test_load_default_files_missing(self, tmp_path):
        with patch.object(config_module, "SYSTEM_CONFIG_PATH", str(tmp_path / "none.yaml")):
            config = ConfigManager()
            config.load_default_files()

        assert config.get_rules() == []


class TestPrecedence:
    """Tests for source precedence."""

    def test_higher_source_wins(self):
        config = ConfigManager()
        config.load_dict({"rebackup": {"output": {"prefix": "user/"}}}, ConfigSource.USER_CONFIG)
        config.load_dict({"rebackup": {"output": {"prefix": "cli/"}}}, ConfigSource.CLI_ARGS)

        assert config.get("rebackup.output.prefix") == "cli/"

    def test_lower_source_fills_gaps(self):
        config = ConfigManager()
        config.load_dict({"rebackup": {"output": {"absolute": True}}}, ConfigSource.USER_CONFIG)
        config.load_dict({"rebackup": {"output": {"prefix": "cli/"}}}, ConfigSource.CLI_ARGS)

        assert config.get("rebackup.output.absolute") is True

    def test_set_runtime(self):
        config = ConfigManager()
        config.set("rebackup.walker.follow_symlinks", True)

        assert config.get("rebackup.walker.follow_symlinks") is True

    def test_get_all_merges(self):
        config = ConfigManager()
        config.load_dict({"rebackup": {"walker": {"drop_empty_dirs": True}}}, ConfigSource.CLI_ARGS)

        merged = config.get_all()["rebackup"]["walker"]
        assert merged == {"follow_symlinks": False, "drop_empty_dirs": True}

    def test_load_dict_copies(self):
        data = {"rebackup": {"output": {"prefix": "a/"}}}
        config = ConfigManager()
        config.load_dict(data)
        data["rebackup"]["output"]["prefix"] = "b/"

        assert config.get("rebackup.output.prefix") == "a/"

    def test_rules_concatenated(self):
        """Rules from every source apply, lowest precedence first."""
        config = ConfigManager()
        config.load_dict({"rebackup": {"rules": [{"shell": "true"}]}}, ConfigSource.CLI_ARGS)
        config.load_dict({"rebackup": {"rules": [{"builtin": "dotgit"}]}}, ConfigSource.SYSTEM_CONFIG)

        assert config.get_rules() == [{"builtin": "dotgit"}, {"shell": "true"}]

    def test_clear_source(self):
        config = ConfigManager()
        config.load_dict({"rebackup": {"output": {"prefix": "a/"}}}, ConfigSource.CLI_ARGS)
        config.clear(ConfigSource.CLI_ARGS)

        assert config.get("rebackup.output.prefix") is None

    def test_clear_keeps_defaults(self):
        config = ConfigManager()
        config.set("rebackup.output.sort", False)
        config.clear()

        assert config.get("rebackup.output.sort") is True

    def test_validate_merged(self):
        config = ConfigManager()
        config.set("rebackup.output.non_utf8", "explode")

        with pytest.raises(ConfigError, match="non_utf8"):
            config.validate()


class TestEnvironment:
    """Tests for environment variable overrides."""

    def test_nested_keys(self, monkeypatch):
        monkeypatch.setenv("REBACKUP_WALKER__FOLLOW_SYMLINKS", "true")
        monkeypatch.setenv("REBACKUP_OUTPUT__PREFIX", "backup/")

        config = ConfigManager()

        assert config.get("rebackup.walker.follow_symlinks") is True
        assert config.get("rebackup.output.prefix") == "backup/"

    def test_item_variable_ignored(self, monkeypatch):
        """REBACKUP_ITEM belongs to shell filters."""
        monkeypatch.setenv("REBACKUP_ITEM", "/data/file")

        config = ConfigManager()

        assert config.get("rebackup.item") is None
        assert ConfigSource.ENVIRONMENT not in config._config

    def test_environment_disabled(self, monkeypatch):
        monkeypatch.setenv("REBACKUP_WALKER__DROP_EMPTY_DIRS", "yes")

        config = ConfigManager(load_environment=False)

        assert config.get("rebackup.walker.drop_empty_dirs") is False

    def test_environment_over_files(self, monkeypatch, config_file):
        monkeypatch.setenv("REBACKUP_WALKER__DROP_EMPTY_DIRS", "false")

        config = ConfigManager(config_file=str(config_file))

        assert config.get("rebackup.walker.drop_empty_dirs") is False

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("true", True),
            ("No", False),
            ("42", 42),
            ("1.5", 1.5),
            ("text", "text"),
        ],
    )
    def test_parse_env_value(self, value, expected):
        assert ConfigManager(load_environment=False)._parse_env_value(value) == expected


def test_config_paths():
    """Default configuration file locations."""
    assert Path(config_module.SYSTEM_CONFIG_PATH).is_absolute()
    assert config_module.USER_CONFIG_PATH.startswith("~")
