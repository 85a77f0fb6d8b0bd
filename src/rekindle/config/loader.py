"""Configuration loader with YAML parsing and environment variable substitution."""

import os
import re
from pathlib import Path

import yaml

from rekindle.utils.logging import configure_from

from .schema import RekindleConfig


def substitute_env_vars(text: str) -> str:
    """
    Replace ${VAR_NAME} patterns with environment variable values.

    Args:
        text: Text containing ${VAR_NAME} patterns

    Returns:
        Text with environment variables substituted

    Raises:
        ValueError: If a referenced environment variable is not found
    """

    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1)
        value = os.environ.get(var_name)
        if value is None:
            raise ValueError(f"Environment variable {var_name} not found")
        return value

    return re.sub(r"\$\{([^}]+)\}", replacer, text)


def load_config(path: Path | None = None) -> RekindleConfig:
    """
    Load configuration from a YAML file, or from the environment alone.

    Args:
        path: Path to YAML configuration file; None uses defaults plus
            ``REKINDLE_*`` environment variables

    Returns:
        Validated RekindleConfig instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If environment variables are missing
        ValidationError: If config doesn't match schema
    """
    if path is None:
        return RekindleConfig()

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with path.open() as f:
        raw_yaml = f.read()

    yaml_with_env = substitute_env_vars(raw_yaml)
    config_dict = yaml.safe_load(yaml_with_env) or {}

    if not isinstance(config_dict, dict):
        raise ValueError(f"Configuration root must be a mapping: {path}")

    return RekindleConfig.model_validate(config_dict)


def load_and_configure(path: Path | None = None) -> RekindleConfig:
    """Load configuration and apply its logging section.

    Hosts call this once at startup, before creating a TraceResolver.

    Example:
        config = load_and_configure(Path("rekindle.yaml"))
        resolver = TraceResolver(config)
    """
    config = load_config(path)
    configure_from(config)
    return config
