"""Configuration management for commitsmith."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import structlog
from pydantic import BaseModel, Field, ValidationError, field_validator

from commitsmith.lint import normalize_rules
from commitsmith.models import Style

# Try to import tomllib (Python 3.11+) or fall back to tomli
try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore[import-not-found,no-redef]

logger = structlog.get_logger(__name__)


class Config(BaseModel):
    """Application configuration."""

    preset: Style = Field(default=Style.DEFAULT, description="Style used when a request names none")
    validator: str = Field(default="commitlint", description="Name of the validator to look up")
    generation_timeout: float = Field(default=60.0, gt=0, description="Seconds to wait for a generated message")
    max_tokens: int = Field(default=200, gt=0)
    temperature: float = Field(default=0.3, ge=0, le=2)
    model_hints: list[str] = Field(default_factory=lambda: ["claude-3-sonnet"])
    model: str = Field(default="gemini-2.0-flash", description="Gemini model used by the CLI")
    api_key: str | None = Field(default=None, description="Google API key for CLI generation")
    log_level: str = Field(default="INFO")
    rules: dict[str, list[Any]] = Field(
        default_factory=dict, description="Lint rule overrides, commitlint format"
    )

    @field_validator("rules")
    @classmethod
    def check_rules(cls, value: dict[str, list[Any]]) -> dict[str, list[Any]]:
        return normalize_rules(value)

    @classmethod
    def get_config_path(cls) -> Path:
        """Get the path to the config file."""
        if xdg_config := os.getenv("XDG_CONFIG_HOME"):
            return Path(xdg_config) / "commitsmith" / "config.toml"
        if os.name == "nt":
            base = Path(os.getenv("APPDATA", Path.home()))
        else:
            base = Path.home() / ".config"
        return base / "commitsmith" / "config.toml"


def _read_config_file(path: Path) -> dict[str, Any]:
    try:
        with open(path, "rb") as f:
            file_config = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("config_file_unreadable", path=str(path), error=str(e))
        return {}

    data: dict[str, Any] = dict(file_config.get("default", {}))
    if rules := file_config.get("rules"):
        data["rules"] = rules
    return data


def load_config(path: Path | None = None) -> Config:
    """Load configuration from environment variables and config file.

    Priority: Environment variables > Config file > Defaults
    """
    config_data: dict[str, Any] = {}

    config_path = path or Config.get_config_path()
    if config_path.exists():
        config_data.update(_read_config_file(config_path))

    if api_key := os.getenv("GOOGLE_API_KEY"):
        config_data["api_key"] = api_key
    if model := os.getenv("COMMITSMITH_MODEL"):
        config_data["model"] = model
    if preset := os.getenv("COMMITSMITH_PRESET"):
        config_data["preset"] = preset
    if log_level := os.getenv("COMMITSMITH_LOG_LEVEL"):
        config_data["log_level"] = log_level
    if timeout := os.getenv("COMMITSMITH_TIMEOUT"):
        config_data["generation_timeout"] = timeout

    try:
        return Config(**config_data)
    except ValidationError as e:
        logger.warning("config_invalid_using_defaults", path=str(config_path), error=str(e))
        return Config()
