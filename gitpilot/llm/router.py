"""Model router for gitpilot.

Resolves a generation purpose (commit message or PR description) to a model
name, and a provider name to the client that speaks its API.
"""

from __future__ import annotations

import logging

from gitpilot.core.config import AppConfig
from gitpilot.core.exceptions import ConfigError
from gitpilot.llm.client import (
    AnthropicClient,
    OllamaClient,
    OpenAICompatibleClient,
    TextGenerationClient,
)

logger = logging.getLogger("gitpilot.llm.router")

PURPOSE_COMMIT = "commit"
PURPOSE_PR = "pr"

MAX_TOKENS = {
    PURPOSE_COMMIT: 1024,
    PURPOSE_PR: 2048,
}


class ModelRouter:
    """Maps generation purposes to model names from the effective config."""

    def __init__(self, config: AppConfig):
        self.config = config

    def get_model(self, purpose: str) -> str:
        """Resolve a purpose to its configured model.

        Raises:
            ConfigError: If the purpose is unknown.
        """
        if purpose == PURPOSE_COMMIT:
            model = self.config.get_commit_model()
        elif purpose == PURPOSE_PR:
            model = self.config.get_pr_model()
        else:
            raise ConfigError(f"No model configured for purpose '{purpose}'")
        logger.debug("Resolved purpose '%s' -> model '%s'", purpose, model)
        return model

    def max_tokens(self, purpose: str) -> int:
        return MAX_TOKENS.get(purpose, 1024)


def build_text_generator(config: AppConfig) -> TextGenerationClient:
    """Instantiate the client for config.provider."""
    if config.provider == "anthropic":
        return AnthropicClient()
    if config.provider == "ollama":
        return OllamaClient(base_url=config.ollama_url)
    if config.provider == "openai":
        return OpenAICompatibleClient(base_url=config.openai_url, api_key=config.openai_api_key)
    raise ConfigError(f"Unknown provider '{config.provider}'")
