"""Text generation clients for gitpilot.

One httpx-based client per provider: the Anthropic Messages API, a local
Ollama server, and any OpenAI-compatible /chat/completions endpoint. All of
them expose generate(prompt, model, max_tokens) -> str and raise an LLMError
subclass on any failure. Nothing here retries; retrying is the user's call.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Optional

import httpx

from gitpilot.core.exceptions import (
    AuthenticationError,
    EmptyResponseError,
    GenerationTimeoutError,
    LLMError,
    ModelNotFoundError,
    RateLimitError,
    ResponseParseError,
)

logger = logging.getLogger("gitpilot.llm")

ANTHROPIC_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"
HOSTED_TIMEOUT_SECONDS = 30.0
LOCAL_TIMEOUT_SECONDS = 60.0


class LLMResponse:
    """Parsed response from the backend."""

    def __init__(self, content: str, model: str, raw: Optional[dict] = None):
        self.content = content
        self.model = model
        self.raw = raw or {}


class TextGenerationClient:
    """Shared HTTP plumbing; subclasses describe the wire format."""

    name = "llm"

    def __init__(
        self,
        endpoint: str,
        timeout_seconds: float = HOSTED_TIMEOUT_SECONDS,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.endpoint = endpoint
        self.timeout_seconds = timeout_seconds
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                timeout=httpx.Timeout(self.timeout_seconds),
                transport=self._transport,
            )
        return self._client

    def generate(self, prompt: str, model: str, max_tokens: int = 1024) -> str:
        """Send a single-turn prompt and return the trimmed text answer.

        Raises:
            LLMError: Or a subclass describing the failure.
        """
        response = self.complete(prompt, model, max_tokens)
        return response.content

    def complete(self, prompt: str, model: str, max_tokens: int = 1024) -> LLMResponse:
        payload = self.build_payload(prompt, model, max_tokens)
        headers = self.build_headers()
        data = self._post(payload, headers)
        content = self.extract_text(data).strip()
        if not content:
            raise EmptyResponseError(f"No content in {self.name} API response")
        logger.debug("%s response: model=%s chars=%d", self.name, model, len(content))
        return LLMResponse(content=content, model=data.get("model", model), raw=data)

    # -- wire format ------------------------------------------------------

    def build_payload(self, prompt: str, model: str, max_tokens: int) -> dict[str, Any]:
        raise NotImplementedError

    def build_headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json"}

    def extract_text(self, data: dict[str, Any]) -> str:
        raise NotImplementedError

    # -- transport --------------------------------------------------------

    def _post(self, payload: dict[str, Any], headers: dict[str, str]) -> dict[str, Any]:
        try:
            resp = self.client.post(self.endpoint, json=payload, headers=headers)
        except httpx.TimeoutException as e:
            raise GenerationTimeoutError(
                f"{self.name} request timed out after {self.timeout_seconds:.0f}s"
            ) from e
        except httpx.HTTPError as e:
            raise LLMError(f"Error making request to {self.name} ({self.endpoint}): {e}") from e

        if resp.status_code in (401, 403):
            raise AuthenticationError(f"{self.name} API error ({resp.status_code}): invalid API key")
        if resp.status_code == 404:
            raise ModelNotFoundError(f"Model not found: {payload.get('model')}")
        if resp.status_code == 429:
            raise RateLimitError(f"{self.name} API error (429): {resp.text}")
        if resp.status_code != 200:
            raise LLMError(f"{self.name} API error ({resp.status_code}): {resp.text}")

        try:
            data = resp.json()
        except ValueError as e:
            raise ResponseParseError(f"Error parsing response: {e}") from e
        if not isinstance(data, dict):
            raise ResponseParseError("Error parsing response: expected a JSON object")
        return data

    def close(self) -> None:
        if self._client:
            self._client.close()
            self._client = None


class AnthropicClient(TextGenerationClient):
    """Anthropic Messages API. Reads ANTHROPIC_API_KEY when no key is given."""

    name = "Anthropic"

    def __init__(
        self,
        api_key: Optional[str] = None,
        endpoint: str = ANTHROPIC_URL,
        timeout_seconds: float = HOSTED_TIMEOUT_SECONDS,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        super().__init__(endpoint, timeout_seconds, transport)
        self.api_key = api_key if api_key is not None else os.getenv("ANTHROPIC_API_KEY", "")

    def complete(self, prompt: str, model: str, max_tokens: int = 1024) -> LLMResponse:
        if not self.api_key:
            raise AuthenticationError("ANTHROPIC_API_KEY environment variable not set")
        return super().complete(prompt, model, max_tokens)

    def build_payload(self, prompt: str, model: str, max_tokens: int) -> dict[str, Any]:
        return {
            "model": model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }

    def build_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }

    def extract_text(self, data: dict[str, Any]) -> str:
        blocks = data.get("content") or []
        if not blocks:
            raise EmptyResponseError("No content in API response")
        first = blocks[0]
        if not isinstance(first, dict):
            raise ResponseParseError("Error parsing response: malformed content block")
        return first.get("text", "")


class OllamaClient(TextGenerationClient):
    """Local Ollama server (/api/chat, non-streaming)."""

    name = "Ollama"

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = LOCAL_TIMEOUT_SECONDS,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        super().__init__(base_url.rstrip("/") + "/api/chat", timeout_seconds, transport)

    def build_payload(self, prompt: str, model: str, max_tokens: int) -> dict[str, Any]:
        return {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "stream": False,
            "options": {"num_predict": max_tokens},
        }

    def extract_text(self, data: dict[str, Any]) -> str:
        message = data.get("message") or {}
        if not isinstance(message, dict):
            raise ResponseParseError("Error parsing response: malformed message")
        return message.get("content", "")


class OpenAICompatibleClient(TextGenerationClient):
    """Any OpenAI-compatible chat completions endpoint."""

    name = "OpenAI"

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout_seconds: float = HOSTED_TIMEOUT_SECONDS,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        super().__init__(base_url.rstrip("/") + "/chat/completions", timeout_seconds, transport)
        self.api_key = api_key or os.getenv("OPENAI_API_KEY", "")

    def build_payload(self, prompt: str, model: str, max_tokens: int) -> dict[str, Any]:
        return {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": max_tokens,
        }

    def build_headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        # local OpenAI-compatible servers usually run without a key
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def extract_text(self, data: dict[str, Any]) -> str:
        try:
            return data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise ResponseParseError(f"Error parsing response: {e}") from e
