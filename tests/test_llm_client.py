"""Tests for gitpilot/llm/client.py: provider clients over httpx.MockTransport."""

import json

import httpx
import pytest

from gitpilot.core.exceptions import (
    AuthenticationError,
    EmptyResponseError,
    GenerationTimeoutError,
    LLMError,
    ModelNotFoundError,
    RateLimitError,
    ResponseParseError,
)
from gitpilot.llm.client import (
    ANTHROPIC_URL,
    ANTHROPIC_VERSION,
    HOSTED_TIMEOUT_SECONDS,
    LOCAL_TIMEOUT_SECONDS,
    AnthropicClient,
    LLMResponse,
    OllamaClient,
    OpenAICompatibleClient,
)


class Recorder:
    """MockTransport handler that records requests and replays one response."""

    def __init__(self, status_code=200, payload=None, text=None, exc=None):
        self.status_code = status_code
        self.payload = payload
        self.text = text
        self.exc = exc
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc(f"simulated {self.exc.__name__}", request=request)
        if self.text is not None:
            return httpx.Response(self.status_code, text=self.text)
        return httpx.Response(self.status_code, json=self.payload)

    @property
    def body(self) -> dict:
        return json.loads(self.requests[-1].content)

    @property
    def headers(self) -> httpx.Headers:
        return self.requests[-1].headers


def _anthropic(handler, api_key="sk-ant-test"):
    return AnthropicClient(api_key=api_key, transport=httpx.MockTransport(handler))


class TestLLMResponse:
    def test_creation(self):
        resp = LLMResponse(content="Hello", model="test/model")
        assert resp.content == "Hello"
        assert resp.model == "test/model"
        assert resp.raw == {}


class TestAnthropicClient:
    def test_generate_sends_messages_request(self):
        handler = Recorder(payload={"content": [{"type": "text", "text": "  feat: add x  "}]})
        client = _anthropic(handler)
        text = client.generate("the prompt", model="claude-test", max_tokens=1024)

        assert text == "feat: add x"
        request = handler.requests[-1]
        assert str(request.url) == ANTHROPIC_URL
        assert handler.headers["x-api-key"] == "sk-ant-test"
        assert handler.headers["anthropic-version"] == ANTHROPIC_VERSION
        assert handler.body == {
            "model": "claude-test",
            "max_tokens": 1024,
            "messages": [{"role": "user", "content": "the prompt"}],
        }

    def test_missing_key_raises_before_request(self, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        handler = Recorder(payload={})
        client = AnthropicClient(transport=httpx.MockTransport(handler))
        with pytest.raises(AuthenticationError, match="ANTHROPIC_API_KEY environment variable not set"):
            client.generate("p", model="m")
        assert handler.requests == []

    def test_reads_key_from_environment(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "from-env")
        client = AnthropicClient()
        assert client.api_key == "from-env"

    def test_default_timeout_is_hosted(self):
        assert AnthropicClient(api_key="k").timeout_seconds == HOSTED_TIMEOUT_SECONDS

    def test_empty_content_list(self):
        client = _anthropic(Recorder(payload={"content": []}))
        with pytest.raises(EmptyResponseError):
            client.generate("p", model="m")

    def test_blank_text(self):
        client = _anthropic(Recorder(payload={"content": [{"text": "   "}]}))
        with pytest.raises(EmptyResponseError):
            client.generate("p", model="m")


class TestErrorMapping:
    @pytest.mark.parametrize(
        "status,exc_type",
        [
            (401, AuthenticationError),
            (403, AuthenticationError),
            (404, ModelNotFoundError),
            (429, RateLimitError),
            (500, LLMError),
        ],
    )
    def test_status_codes(self, status, exc_type):
        client = _anthropic(Recorder(status_code=status, payload={"error": "x"}))
        with pytest.raises(exc_type):
            client.generate("p", model="m")

    def test_forbidden_names_status(self):
        client = _anthropic(Recorder(status_code=403, payload={"error": "forbidden"}))
        with pytest.raises(AuthenticationError, match=r"\(403\)"):
            client.generate("p", model="m")

    def test_server_error_includes_status(self):
        client = _anthropic(Recorder(status_code=503, text="overloaded"))
        with pytest.raises(LLMError, match=r"\(503\): overloaded"):
            client.generate("p", model="m")

    def test_timeout_maps_to_generation_timeout(self):
        client = _anthropic(Recorder(exc=httpx.ReadTimeout))
        with pytest.raises(GenerationTimeoutError, match="timed out"):
            client.generate("p", model="m")

    def test_connection_error_maps_to_llm_error(self):
        client = _anthropic(Recorder(exc=httpx.ConnectError))
        with pytest.raises(LLMError, match="Error making request"):
            client.generate("p", model="m")

    def test_unparsable_body(self):
        client = _anthropic(Recorder(text="<html>not json</html>"))
        with pytest.raises(ResponseParseError):
            client.generate("p", model="m")

    def test_non_object_body(self):
        client = _anthropic(Recorder(payload=["a", "b"]))
        with pytest.raises(ResponseParseError):
            client.generate("p", model="m")

    def test_errors_are_all_llm_errors(self):
        # the workflow treats every LLMError as retryable
        for exc in (AuthenticationError, ModelNotFoundError, RateLimitError, ResponseParseError):
            assert issubclass(exc, LLMError)


class TestOllamaClient:
    def test_posts_to_api_chat_without_streaming(self):
        handler = Recorder(payload={"model": "llama3.2", "message": {"content": "fix: y"}})
        client = OllamaClient("http://localhost:11434/", transport=httpx.MockTransport(handler))
        assert client.generate("prompt", model="llama3.2", max_tokens=2048) == "fix: y"

        assert str(handler.requests[-1].url) == "http://localhost:11434/api/chat"
        body = handler.body
        assert body["stream"] is False
        assert body["model"] == "llama3.2"
        assert body["messages"] == [{"role": "user", "content": "prompt"}]
        assert "authorization" not in handler.headers
        assert "x-api-key" not in handler.headers

    def test_local_timeout(self):
        assert OllamaClient("http://x").timeout_seconds == LOCAL_TIMEOUT_SECONDS

    def test_missing_message_is_empty(self):
        client = OllamaClient("http://x", transport=httpx.MockTransport(Recorder(payload={"done": True})))
        with pytest.raises(EmptyResponseError):
            client.generate("p", model="m")


class TestOpenAICompatibleClient:
    def test_posts_chat_completions_with_bearer(self):
        handler = Recorder(payload={"choices": [{"message": {"content": "docs: z"}}]})
        client = OpenAICompatibleClient(
            "https://api.openai.com/v1",
            api_key="sk-test",
            transport=httpx.MockTransport(handler),
        )
        assert client.generate("prompt", model="gpt-4o-mini", max_tokens=1024) == "docs: z"
        assert str(handler.requests[-1].url) == "https://api.openai.com/v1/chat/completions"
        assert handler.headers["authorization"] == "Bearer sk-test"
        assert handler.body["max_tokens"] == 1024

    def test_no_key_no_auth_header(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        handler = Recorder(payload={"choices": [{"message": {"content": "ok"}}]})
        client = OpenAICompatibleClient("http://localhost:8000/v1", transport=httpx.MockTransport(handler))
        client.generate("p", model="m")
        assert "authorization" not in handler.headers

    def test_env_key_used(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "env-key")
        assert OpenAICompatibleClient("http://x").api_key == "env-key"

    def test_malformed_choices(self):
        client = OpenAICompatibleClient(
            "http://x", api_key="k", transport=httpx.MockTransport(Recorder(payload={"choices": []})),
        )
        with pytest.raises(ResponseParseError):
            client.generate("p", model="m")


class TestClose:
    def test_close_resets_client(self):
        client = _anthropic(Recorder(payload={"content": [{"text": "x"}]}))
        client.generate("p", model="m")
        assert client._client is not None
        client.close()
        assert client._client is None

    def test_close_without_use(self):
        OllamaClient("http://x").close()
