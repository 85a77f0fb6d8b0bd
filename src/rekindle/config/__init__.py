"""Configuration loading and validation."""

from .loader import load_and_configure, load_config, substitute_env_vars
from .schema import (
    FileLoggingConfig,
    LoggingConfig,
    MetaItemConfig,
    PathsConfig,
    RekindleConfig,
    RuntimeConfig,
    SnippetConfig,
)

__all__ = [
    # Loader
    "load_and_configure",
    "load_config",
    "substitute_env_vars",
    # Root config
    "RekindleConfig",
    # Sections
    "PathsConfig",
    "SnippetConfig",
    "RuntimeConfig",
    "LoggingConfig",
    "FileLoggingConfig",
    "MetaItemConfig",
]
