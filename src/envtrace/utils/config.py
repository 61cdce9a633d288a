"""Configuration file support for envtrace."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from envtrace.utils.errors import ConfigurationError


class OutputConfig(BaseModel):
    """Output configuration."""

    default_format: str = Field(default="text", description="Default output format (text, json)")
    color: bool = Field(default=True, description="Enable color output")
    verbose: bool = Field(default=False, description="Show skipped files by default")


class TraceConfig(BaseModel):
    """Simulation configuration."""

    platform: str | None = Field(default=None, description="Force a platform (macos, linux)")
    default_context: str = Field(default="login", description="Context used when none is given")
    follow_sources: bool = Field(default=True, description="Follow `source`/`.` statements")
    max_source_depth: int = Field(default=10, ge=0, description="Maximum nesting of sourced files")


class EnvtraceConfig(BaseModel):
    """Main configuration for envtrace."""

    output: OutputConfig = Field(default_factory=OutputConfig)
    trace: TraceConfig = Field(default_factory=TraceConfig)


def get_config_paths() -> list[Path]:
    """Get possible configuration file paths, highest priority first."""
    paths = [
        Path.cwd() / ".envtrace.yaml",
        Path.cwd() / ".envtrace.yml",
    ]

    try:
        home = Path.home()
    except RuntimeError:
        home = None
    if home is not None:
        paths.append(home / ".envtrace.yaml")
        paths.append(home / ".config" / "envtrace" / "config.yaml")

    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        paths.append(Path(xdg_config) / "envtrace" / "config.yaml")

    return paths


def load_config(config_path: Path | str | None = None) -> EnvtraceConfig:
    """Load configuration from file.

    Args:
        config_path: Explicit path to config file. If None, searches default locations.

    Returns:
        Loaded configuration

    Raises:
        ConfigurationError: If the explicit file is missing or any file is invalid
    """
    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            return _load_config_file(path)
        raise ConfigurationError(f"Config file not found: {config_path}")

    for path in get_config_paths():
        if path.exists():
            return _load_config_file(path)

    return EnvtraceConfig()


def _load_config_file(path: Path) -> EnvtraceConfig:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in config file {path}: {e}")
    except OSError as e:
        raise ConfigurationError(f"Failed to read config file {path}: {e}")

    if data is None:
        return EnvtraceConfig()
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")
    try:
        return EnvtraceConfig.model_validate(data)
    except PydanticValidationError as e:
        raise ConfigurationError(f"Invalid config file {path}: {e}")


def get_default_config() -> EnvtraceConfig:
    """Get the default configuration."""
    return EnvtraceConfig()


# Global config instance
_config: EnvtraceConfig | None = None


def get_config() -> EnvtraceConfig:
    """Get the global configuration instance, loading it on first call."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: EnvtraceConfig | None) -> None:
    """Set (or with None, reset) the global configuration instance."""
    global _config
    _config = config
