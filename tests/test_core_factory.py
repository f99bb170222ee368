"""Tests for gitpilot/core/factory.py: ComponentFactory wiring."""

from gitpilot.core.config import AppConfig
from gitpilot.core.factory import ComponentBundle, ComponentFactory
from gitpilot.llm.client import AnthropicClient, OllamaClient
from gitpilot.tools.forge import GitHubForge
from gitpilot.tools.git_ops import GitRepository


class RecordingGenerator:
    def __init__(self):
        self.closed = False

    def generate(self, prompt, model, max_tokens=1024):
        return "feat: x"

    def close(self):
        self.closed = True


class TestComponentFactory:
    def test_create_returns_bundle(self):
        bundle = ComponentFactory.create(AppConfig(), repo_path="/tmp/repo")
        try:
            assert isinstance(bundle, ComponentBundle)
            assert isinstance(bundle.git, GitRepository)
            assert isinstance(bundle.forge, GitHubForge)
            assert isinstance(bundle.generator, AnthropicClient)
            assert bundle.git.repo_path == "/tmp/repo"
            assert bundle.runner.vcs is bundle.git
            assert bundle.runner.router is bundle.router
        finally:
            ComponentFactory.close(bundle)

    def test_provider_selects_client(self):
        bundle = ComponentFactory.create(AppConfig(provider="ollama"))
        try:
            assert isinstance(bundle.generator, OllamaClient)
        finally:
            ComponentFactory.close(bundle)

    def test_injected_generator(self):
        generator = RecordingGenerator()
        bundle = ComponentFactory.create(AppConfig(), generator=generator)
        assert bundle.runner.generator is generator
        ComponentFactory.close(bundle)
        assert generator.closed

    def test_prompts_read_from_config_dir(self, isolated_config_dir):
        bundle = ComponentFactory.create(AppConfig())
        try:
            assert bundle.runner.prompts.loader.prompts_dir == isolated_config_dir / "prompts"
        finally:
            ComponentFactory.close(bundle)
