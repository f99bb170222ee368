"""Configuration loader for gitpilot.

Settings live in a single JSON file under the per-user config directory
(~/.config/gitpilot/config.json). A missing file yields defaults, command
line flags are layered on top with apply_overrides().
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field, ValidationError, model_validator

from gitpilot.core.exceptions import ConfigError

logger = logging.getLogger("gitpilot.config")

Provider = Literal["anthropic", "ollama", "openai"]

PROVIDERS: tuple[str, ...] = ("anthropic", "ollama", "openai")

DEFAULT_ANTHROPIC_MODEL = "claude-sonnet-4-5-20250929"
DEFAULT_OLLAMA_MODEL = "llama3.2"
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_OLLAMA_URL = "http://localhost:11434"
DEFAULT_OPENAI_URL = "https://api.openai.com/v1"

_DEFAULT_MODELS = {
    "anthropic": DEFAULT_ANTHROPIC_MODEL,
    "ollama": DEFAULT_OLLAMA_MODEL,
    "openai": DEFAULT_OPENAI_MODEL,
}


def default_model_for(provider: str) -> str:
    return _DEFAULT_MODELS.get(provider, DEFAULT_ANTHROPIC_MODEL)


# ---------------------------------------------------------------------------
# Config schema
# ---------------------------------------------------------------------------

class LoggingConfig(BaseModel):
    level: str = "WARNING"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class AppConfig(BaseModel):
    provider: Provider = "anthropic"
    model: str = ""  # fallback for both purposes
    commit_model: str = ""
    pr_model: str = ""
    ollama_url: str = DEFAULT_OLLAMA_URL
    openai_url: str = DEFAULT_OPENAI_URL
    openai_api_key: Optional[str] = None
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def _fill_defaults(self) -> "AppConfig":
        if not self.model:
            self.model = default_model_for(self.provider)
        if not self.ollama_url:
            self.ollama_url = DEFAULT_OLLAMA_URL
        if not self.openai_url:
            self.openai_url = DEFAULT_OPENAI_URL
        return self

    def get_commit_model(self) -> str:
        """Model for commit messages, falling back to the general model."""
        return self.commit_model or self.model

    def get_pr_model(self) -> str:
        """Model for PR descriptions, falling back to the general model."""
        return self.pr_model or self.model


class CliOverrides(BaseModel):
    """Values passed on the command line; None means "not given"."""
    provider: Optional[Provider] = None
    model: Optional[str] = None
    commit_model: Optional[str] = None
    pr_model: Optional[str] = None
    ollama_url: Optional[str] = None
    openai_url: Optional[str] = None
    openai_api_key: Optional[str] = None


def apply_overrides(config: AppConfig, overrides: CliOverrides) -> AppConfig:
    """Return a copy of config with command-line values layered on top.

    --model replaces the general fallback model, so purpose-specific models
    (from flags or from the file) keep winning over it.
    """
    data = config.model_dump()
    for key, value in overrides.model_dump().items():
        if value:
            data[key] = value
    if overrides.provider and not overrides.model and overrides.provider != config.provider:
        # a provider switch without a model must not keep the old provider's default
        if config.model == default_model_for(config.provider):
            data["model"] = ""
    return AppConfig(**data)


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

def config_dir() -> Path:
    override = os.getenv("GITPILOT_CONFIG_DIR")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "gitpilot"


def config_path(directory: Optional[Path] = None) -> Path:
    return (directory or config_dir()) / "config.json"


def load_config(path: Optional[Path] = None) -> AppConfig:
    """Load the config file, returning defaults when it does not exist.

    Raises:
        ConfigError: If the file exists but cannot be read or parsed.
    """
    path = path or config_path()
    if not path.exists():
        logger.debug("No config at %s, using defaults", path)
        return AppConfig()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"failed to read config file: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"failed to parse config file: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"failed to parse config file: expected an object in {path}")

    try:
        return AppConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"invalid config file {path}: {e}") from e


def save_config(config: AppConfig, path: Optional[Path] = None) -> Path:
    """Write the config as indented JSON, creating the directory if needed."""
    path = path or config_path()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(config.model_dump_json(indent=2) + "\n", encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"failed to write config file: {e}") from e
    logger.info("Saved config to %s", path)
    return path


def ensure_config(path: Optional[Path] = None) -> AppConfig:
    """Load the config and write a default file on first run.

    A failure to write the default file is logged, not raised.
    """
    path = path or config_path()
    config = load_config(path)
    if not path.exists():
        try:
            save_config(config, path)
        except ConfigError as e:
            logger.warning("could not save default config: %s", e)
    return config


# ---------------------------------------------------------------------------
# Prompt loader
# ---------------------------------------------------------------------------

class PromptLoader:
    """Loads prompt templates from the prompts/ directory next to the config.

    Falls back to the built-in template when no file exists, so prompts can
    be tuned without touching the code.
    """

    def __init__(self, prompts_dir: Optional[Path] = None):
        if prompts_dir is None:
            prompts_dir = config_dir() / "prompts"
        self.prompts_dir = prompts_dir

    def load(self, name: str, default: str = "") -> str:
        """Load a prompt template by filename.

        Args:
            name: Filename within prompts/ (e.g. "commit_prompt.txt").
            default: Fallback text if the file doesn't exist.

        Returns:
            Prompt text (stripped of leading/trailing whitespace).
        """
        path = self.prompts_dir / name
        if path.exists():
            logger.debug("Using prompt override %s", path)
            return path.read_text(encoding="utf-8").strip()
        return default
