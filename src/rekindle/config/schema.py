"""Pydantic models for configuration schema."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PathsConfig(BaseModel):
    """Where frame locations are looked up on disk."""

    working_dir: Path = Path(".")
    public_dir: Path = Path("public")


class SnippetConfig(BaseModel):
    """Code snippet configuration."""

    context_lines: int = Field(10, ge=1, le=100)


class RuntimeConfig(BaseModel):
    """Runtime configuration."""

    max_concurrent: int = Field(8, ge=1, le=64, description="Frames resolved at once")
    resolution_timeout: float = Field(
        30.0, gt=0, le=600, description="Budget for one whole trace, in seconds"
    )


class FileLoggingConfig(BaseModel):
    """File logging configuration."""

    enabled: bool = False
    path: Path = Path("rekindle.log")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "console"] = "console"
    file: FileLoggingConfig = FileLoggingConfig()


class MetaItemConfig(BaseModel):
    """An extra component listed in the report's meta section."""

    version: str
    docs: str

    @field_validator("docs")
    @classmethod
    def validate_docs(cls, v: str) -> str:
        """Validate that the docs link is a web URL."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Docs link must be an http(s) URL: {v}")
        return v


class RekindleConfig(BaseSettings):
    """Root configuration for rekindle."""

    paths: PathsConfig = PathsConfig()
    snippet: SnippetConfig = SnippetConfig()
    runtime: RuntimeConfig = RuntimeConfig()
    logging: LoggingConfig = LoggingConfig()
    meta: dict[str, MetaItemConfig] = {}

    model_config = SettingsConfigDict(
        env_prefix="REKINDLE_",
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

    @property
    def working_root(self) -> Path:
        """Absolute working directory."""
        return self.paths.working_dir.resolve()

    @property
    def public_root(self) -> Path:
        """Absolute public assets directory."""
        return (self.working_root / self.paths.public_dir).resolve()
