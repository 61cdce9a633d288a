"""Unit tests for the config module."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from envtrace.utils.config import (
    EnvtraceConfig,
    OutputConfig,
    TraceConfig,
    get_config,
    get_config_paths,
    get_default_config,
    load_config,
    set_config,
)
from envtrace.utils.errors import ConfigurationError


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    """Run with an empty working and home directory."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    return tmp_path


class TestConfigModels:
    """Tests for the config models."""

    def test_default_values(self):
        """Test that all defaults are properly set."""
        config = EnvtraceConfig()
        assert config.output.default_format == "text"
        assert config.output.color is True
        assert config.trace.platform is None
        assert config.trace.default_context == "login"
        assert config.trace.follow_sources is True
        assert config.trace.max_source_depth == 10

    def test_nested_config(self):
        """Test nested configuration."""
        config = EnvtraceConfig(output=OutputConfig(color=False), trace=TraceConfig(platform="linux"))
        assert config.output.color is False
        assert config.trace.platform == "linux"

    def test_negative_depth_rejected(self):
        """Test the source depth cannot be negative."""
        with pytest.raises(PydanticValidationError):
            TraceConfig(max_source_depth=-1)


class TestConfigPaths:
    """Tests for config path functions."""

    def test_get_config_paths_includes_expected(self, isolated, monkeypatch):
        """Test that expected config paths are included."""
        monkeypatch.setenv("XDG_CONFIG_HOME", str(isolated / "xdg"))
        path_strs = [str(p) for p in get_config_paths()]
        assert path_strs[0] == str(isolated / ".envtrace.yaml")
        assert str(isolated / ".config" / "envtrace" / "config.yaml") in path_strs
        assert str(isolated / "xdg" / "envtrace" / "config.yaml") in path_strs


class TestLoadConfig:
    """Tests for loading configuration."""

    def test_load_config_default(self, isolated):
        """Test loading default config when no file exists."""
        assert load_config() == EnvtraceConfig()

    def test_load_config_from_file(self, tmp_path):
        """Test loading config from a specific file."""
        config_path = tmp_path / "test-config.yaml"
        config_path.write_text(
            "output:\n"
            "  default_format: json\n"
            "trace:\n"
            "  default_context: interactive\n"
            "  max_source_depth: 3\n"
        )
        config = load_config(config_path)
        assert config.output.default_format == "json"
        assert config.trace.default_context == "interactive"
        assert config.trace.max_source_depth == 3

    def test_discovered_in_cwd(self, isolated):
        """Test a config file in the working directory is found."""
        (isolated / ".envtrace.yaml").write_text("trace:\n  follow_sources: false\n")
        assert load_config().trace.follow_sources is False

    def test_load_config_file_not_found(self, tmp_path):
        """Test that loading a nonexistent explicit file raises."""
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(tmp_path / "nonexistent.yaml")

    def test_load_config_invalid_yaml(self, tmp_path):
        """Test that invalid YAML raises error."""
        config_path = tmp_path / "invalid.yaml"
        config_path.write_text("invalid: yaml: content: :")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_config(config_path)

    def test_load_config_invalid_values(self, tmp_path):
        """Test that values of the wrong type raise."""
        config_path = tmp_path / "bad.yaml"
        config_path.write_text("trace:\n  max_source_depth: deep\n")
        with pytest.raises(ConfigurationError, match="Invalid config"):
            load_config(config_path)

    def test_load_config_not_mapping(self, tmp_path):
        """Test that a top-level list is rejected."""
        config_path = tmp_path / "list.yaml"
        config_path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(config_path)

    def test_load_config_empty_file(self, tmp_path):
        """Test loading empty config file returns default."""
        config_path = tmp_path / "empty.yaml"
        config_path.write_text("")
        assert load_config(config_path) == EnvtraceConfig()


class TestGlobalConfig:
    """Tests for the global config instance."""

    def test_set_and_get(self):
        """Test set_config replaces the global instance."""
        config = EnvtraceConfig(output=OutputConfig(verbose=True))
        set_config(config)
        assert get_config() is config

    def test_reset_loads_again(self, isolated):
        """Test resetting with None reloads from disk."""
        set_config(None)
        assert get_config() == get_default_config()
