"""Component factory for gitpilot.

Creates and wires the collaborators one workflow run needs: the git
repository, the PR forge, the text generation client for the configured
provider, the model router and the effect runner that drives them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from gitpilot.core.config import AppConfig, PromptLoader, config_dir
from gitpilot.llm.router import ModelRouter, build_text_generator
from gitpilot.tools.forge import GitHubForge
from gitpilot.tools.git_ops import GitRepository
from gitpilot.workflow.contracts import TextGenerator
from gitpilot.workflow.prompts import PromptBuilder
from gitpilot.workflow.runner import EffectRunner

logger = logging.getLogger("gitpilot.factory")


@dataclass
class ComponentBundle:
    """Everything a run needs, built once from the effective config."""

    config: AppConfig
    git: GitRepository
    forge: GitHubForge
    generator: TextGenerator
    router: ModelRouter
    runner: EffectRunner


class ComponentFactory:
    """Factory for the workflow's collaborators.

    Usage:
        bundle = ComponentFactory.create(config)
        ConsoleAdapter(bundle.runner).run(start)
        ComponentFactory.close(bundle)
    """

    @staticmethod
    def create(
        config: AppConfig,
        repo_path: Optional[str] = None,
        generator: Optional[TextGenerator] = None,
    ) -> ComponentBundle:
        """Wire the components for one run.

        Args:
            config: Effective config (file values with flags applied).
            repo_path: Working tree to operate on. Default: current directory.
            generator: Text generator to use instead of the provider's client.
        """
        git = GitRepository(repo_path)
        forge = GitHubForge(repo_path)
        generator = generator or build_text_generator(config)
        router = ModelRouter(config)
        prompts = PromptBuilder(PromptLoader(config_dir() / "prompts"))
        runner = EffectRunner(git, forge, generator, router, prompts)
        logger.info(
            "Components ready (provider=%s, commit_model=%s, pr_model=%s)",
            config.provider, config.get_commit_model(), config.get_pr_model(),
        )
        return ComponentBundle(
            config=config,
            git=git,
            forge=forge,
            generator=generator,
            router=router,
            runner=runner,
        )

    @staticmethod
    def close(bundle: ComponentBundle) -> None:
        """Stop the runner's worker and release the HTTP client."""
        bundle.runner.shutdown(wait=False)
        logger.debug("Components shut down")
