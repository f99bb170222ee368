"""CLI entrypoint for gitpilot."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Callable, Optional

import click

from gitpilot.core.config import (
    DEFAULT_OLLAMA_URL,
    DEFAULT_OPENAI_URL,
    PROVIDERS,
    AppConfig,
    CliOverrides,
    apply_overrides,
    config_path,
    default_model_for,
    ensure_config,
    load_config,
    save_config,
)
from gitpilot.core.exceptions import ConfigError, ToolError, UnsupportedForgeError
from gitpilot.core.factory import ComponentBundle, ComponentFactory
from gitpilot.tools.git_ops import is_protected_branch
from gitpilot.workflow.console import ConsoleAdapter
from gitpilot.workflow.engine import new_session
from gitpilot.workflow.session import summarize

logger = logging.getLogger("gitpilot.cli")

HELP_TEXT = """\
gitpilot - AI-powered git commit message and pull request generator

USAGE:
    gitpilot [OPTIONS]
    gitpilot config
    gitpilot help

OPTIONS:
    -m, --model <model>           Model for both commit and PR (overrides config)
    --commit-model <model>        Model for commit messages (overrides config and -m)
    --pr-model <model>            Model for PR descriptions (overrides config and -m)
    -p, --provider <provider>     anthropic, ollama or openai (overrides config)
    --ollama-url <url>            Ollama server URL (overrides config)
    --openai-url <url>            OpenAI-compatible API base URL (overrides config)
    --openai-api-key <key>        API key for the OpenAI-compatible endpoint
    --pr                          Generate a PR from existing commits (no commit)
    --verbose                     Enable verbose (DEBUG) logging

EXAMPLES:
    gitpilot                      Generate a commit message with the saved config
    gitpilot -p ollama            Use a local Ollama server
    gitpilot --commit-model claude-haiku-4-5 --pr-model claude-sonnet-4-5-20250929
                                  Fast model for commits, smarter model for PRs
    gitpilot --pr                 Open a PR for the current branch's commits
    gitpilot config               Edit provider, models and endpoints

CONFIGURATION:
    Config is stored in ~/.config/gitpilot/config.json
    (set GITPILOT_CONFIG_DIR to use another directory).
    Prompt overrides: commit_prompt.txt / pr_prompt.txt in <config dir>/prompts/.

    Providers:
      - anthropic: requires ANTHROPIC_API_KEY
      - ollama:    local Ollama instance
      - openai:    any OpenAI-compatible endpoint (OPENAI_API_KEY if required)"""


def _setup_logging(verbose: bool = False) -> None:
    """Apply logging configuration from the config file's logging section."""
    try:
        config = load_config()
        level_name = config.logging.level
        fmt = config.logging.format
    except ConfigError:
        level_name = "WARNING"
        fmt = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    level = logging.DEBUG if verbose else getattr(logging, level_name.upper(), logging.WARNING)
    logging.basicConfig(level=level, format=fmt, stream=sys.stderr)


@click.group(
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option("-m", "--model", default=None, help="Model for both commit and PR generation.")
@click.option(
    "-p",
    "--provider",
    default=None,
    type=click.Choice(PROVIDERS, case_sensitive=False),
    help="Text generation provider.",
)
@click.option("--commit-model", default=None, help="Model for commit message generation.")
@click.option("--pr-model", default=None, help="Model for PR description generation.")
@click.option("--ollama-url", default=None, help="Ollama server URL.")
@click.option("--openai-url", default=None, help="OpenAI-compatible API base URL.")
@click.option("--openai-api-key", default=None, help="API key for the OpenAI-compatible endpoint.")
@click.option("--pr", "pr_only", is_flag=True, default=False, help="Generate a PR from existing commits.")
@click.option("--verbose", is_flag=True, default=False, help="Enable verbose (DEBUG) logging.")
@click.pass_context
def cli(
    ctx: click.Context,
    model: Optional[str],
    provider: Optional[str],
    commit_model: Optional[str],
    pr_model: Optional[str],
    ollama_url: Optional[str],
    openai_url: Optional[str],
    openai_api_key: Optional[str],
    pr_only: bool,
    verbose: bool,
) -> None:
    """AI-assisted commit, push and pull request workflow."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    _setup_logging(verbose=verbose)
    if ctx.invoked_subcommand is not None:
        return

    overrides = CliOverrides(
        provider=provider.lower() if provider else None,
        model=model,
        commit_model=commit_model,
        pr_model=pr_model,
        ollama_url=ollama_url,
        openai_url=openai_url,
        openai_api_key=openai_api_key,
    )
    try:
        config = apply_overrides(ensure_config(), overrides)
    except ConfigError as exc:
        raise click.ClickException(f"Error loading config: {exc}") from exc

    bundle = ComponentFactory.create(config)
    try:
        _run_workflow(bundle, pr_only=pr_only)
    finally:
        ComponentFactory.close(bundle)


def _run_workflow(bundle: ComponentBundle, pr_only: bool = False) -> None:
    """Gather the repository state, then drive one session on the console."""
    git = bundle.git

    if pr_only:
        branch = _git_query("Error getting current branch", git.current_branch)
        try:
            bundle.forge.ensure_supported_origin()
        except UnsupportedForgeError as exc:
            raise click.ClickException(str(exc)) from exc
        if bundle.forge.has_existing_pr(branch):
            raise click.ClickException(f"A pull request already exists for branch '{branch}'.")
        start = new_session(current_branch=branch, pr_only=True)
    else:
        diff = _git_query("Error getting git diff", git.staged_diff)
        needs_staging = False
        if not diff:
            if not _git_query("Error checking git status", git.has_changes):
                click.echo("No changes to commit.")
                return
            needs_staging = True
        branch = _git_query("Error getting current branch", git.current_branch)
        suggestion = git.default_branch_name() if is_protected_branch(branch) else ""
        start = new_session(
            change_summary=diff,
            needs_staging=needs_staging,
            current_branch=branch,
            branch_name_suggestion=suggestion,
        )

    session = ConsoleAdapter(bundle.runner).run(start)
    logger.debug("Session finished in %s", session.phase.value)

    summary = summarize(session)
    if summary:
        click.echo("")
        click.echo(click.style(summary, fg="green", bold=True))
    if session.failed:
        raise click.ClickException(session.fatal_error)


def _git_query(context: str, query: Callable[[], object]):
    try:
        return query()
    except ToolError as exc:
        raise click.ClickException(f"{context}: {exc}") from exc


# ---------------------------------------------------------------------------
# config / help
# ---------------------------------------------------------------------------

def _edit_config(current: AppConfig, prompt: Callable[..., object] = click.prompt) -> AppConfig:
    """Ask for provider, models and endpoint; return the edited config.

    Model defaults follow the chosen provider: switching provider offers the
    new provider's default instead of the old model names.
    """
    provider = str(prompt(
        "Provider",
        type=click.Choice(PROVIDERS, case_sensitive=False),
        default=current.provider,
    )).lower()

    if provider == current.provider:
        commit_default = current.get_commit_model()
        pr_default = current.get_pr_model()
    else:
        commit_default = pr_default = default_model_for(provider)

    commit_model = str(prompt("Commit model (fast model recommended)", default=commit_default))
    pr_model = str(prompt("PR model (smarter model recommended)", default=pr_default))

    data = current.model_dump()
    data.update(
        provider=provider,
        model=default_model_for(provider) if provider != current.provider else current.model,
        commit_model=commit_model,
        pr_model=pr_model,
    )
    if provider == "ollama":
        data["ollama_url"] = str(prompt("Ollama server URL", default=current.ollama_url or DEFAULT_OLLAMA_URL))
    elif provider == "openai":
        data["openai_url"] = str(prompt("OpenAI-compatible base URL", default=current.openai_url or DEFAULT_OPENAI_URL))
    return AppConfig(**data)


def _echo_config(config: AppConfig, path: Path) -> None:
    rows = [
        ("Provider:", config.provider),
        ("Commit model:", config.get_commit_model()),
        ("PR model:", config.get_pr_model()),
    ]
    if config.provider == "ollama":
        rows.append(("Ollama URL:", config.ollama_url))
    elif config.provider == "openai":
        rows.append(("OpenAI URL:", config.openai_url))
    for label, value in rows:
        click.echo(f"{click.style(label, bold=True)} {value}")
    click.echo(f"\n{click.style('Config file:', bold=True)} {path}")


@cli.command("config")
def config_cmd() -> None:
    """Interactively set provider, models and endpoints."""
    path = config_path()
    try:
        current = load_config(path)
    except ConfigError as exc:
        raise click.ClickException(f"Error loading config: {exc}") from exc

    click.echo(click.style("Configure gitpilot", fg="blue", bold=True))
    edited = _edit_config(current)

    click.echo("")
    _echo_config(edited, path)
    if not click.confirm("Save this configuration?", default=True):
        click.echo("Configuration not saved.")
        return
    try:
        save_config(edited, path)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(click.style(f"Configuration saved to {path}", fg="green"))


@cli.command("help")
def help_cmd() -> None:
    """Show usage, flags and configuration help."""
    click.echo(HELP_TEXT)


def main() -> None:
    """Entry point used by the `gitpilot` console script."""
    from dotenv import load_dotenv
    load_dotenv(Path.cwd() / ".env")
    cli()


if __name__ == "__main__":
    main()
