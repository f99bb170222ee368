"""Console presentation for the commit workflow.

Renders the current phase with click, reads one answer from the user and
turns it into an engine Event. While an effect is in flight it waits on the
runner's future; Ctrl+C at any point becomes a Quit event.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

import click

from gitpilot.workflow.engine import Transition, transition
from gitpilot.workflow.events import (
    CheckPREligibility,
    Commit,
    CreateBranch,
    CreatePR,
    Effect,
    Event,
    GenerateCommitMessage,
    GeneratePRContent,
    Push,
    PushSetUpstream,
    Quit,
    Select,
    StageAll,
    Submit,
)
from gitpilot.workflow.runner import EffectRunner
from gitpilot.workflow.session import (
    DIFF_LINE_LIMIT,
    AddPrompt,
    BranchInput,
    BranchWarning,
    ChoiceState,
    CommitError,
    Confirm,
    Edit,
    ManualInput,
    PRError,
    PRManualBody,
    PRManualTitle,
    PRPrompt,
    PushPrompt,
    ScopeInput,
    Session,
    TypeSelect,
    UpstreamPrompt,
    is_diff_too_large,
)

logger = logging.getLogger("gitpilot.workflow.console")

Editor = Callable[[str], Optional[str]]


def _title(text: str) -> str:
    return click.style(text, fg="blue", bold=True)


def _hint(text: str) -> str:
    return click.style(text, dim=True)


def _progress_message(effect: Effect, session: Session) -> str:
    if isinstance(effect, CreateBranch):
        return f"Creating and switching to branch '{effect.name}'..."
    if isinstance(effect, StageAll):
        return "Adding all changes..."
    if isinstance(effect, GenerateCommitMessage):
        return "Generating commit message..."
    if isinstance(effect, Commit):
        return "Committing..."
    if isinstance(effect, (Push, PushSetUpstream)):
        return f"Pushing {session.current_branch}..."
    if isinstance(effect, CheckPREligibility):
        return "Checking for an existing pull request..."
    if isinstance(effect, GeneratePRContent):
        return "Generating PR title and body..."
    if isinstance(effect, CreatePR):
        return "Creating pull request..."
    return "Working..."


class ConsoleAdapter:
    """Drives one session to completion on the terminal."""

    def __init__(
        self,
        runner: EffectRunner,
        echo: Callable[[str], None] = click.echo,
        editor: Optional[Editor] = None,
    ):
        self.runner = runner
        self.echo = echo
        self.editor = editor or _edit_with_click

    def run(self, start: Transition) -> Session:
        session = start.session
        while not session.is_finished:
            if session.pending is not None:
                event = self._await(session)
            else:
                self.echo("")
                event = self._ask(session)
            session, _ = transition(session, event)
        return session

    # -- in-flight calls --------------------------------------------------

    def _await(self, session: Session) -> Event:
        effect = session.pending
        self.echo(_title(_progress_message(effect, session)))
        future = self.runner.submit(effect)
        try:
            return future.result()
        except KeyboardInterrupt:
            logger.debug("Interrupted while waiting on %s", type(effect).__name__)
            return Quit()

    # -- user input -------------------------------------------------------

    def _ask(self, session: Session) -> Event:
        try:
            if isinstance(session.state, ChoiceState):
                return self._ask_choice(session)
            return self._ask_text(session)
        except (click.Abort, KeyboardInterrupt, EOFError):
            return Quit()

    def _ask_choice(self, session: Session) -> Event:
        state = session.state
        self._render_choice_header(session)
        labels = session.choices()
        for i, label in enumerate(labels, start=1):
            marker = ">" if i - 1 == state.cursor else " "
            text = click.style(label, fg="green", bold=True) if marker == ">" else label
            self.echo(f"{marker} {i}. {text}")
        picked = click.prompt(
            "Select",
            type=click.IntRange(1, len(labels)),
            default=state.cursor + 1,
        )
        return Select(picked - 1)

    def _render_choice_header(self, session: Session) -> None:
        state = session.state
        if isinstance(state, BranchWarning):
            self.echo(_title("Warning: You are on a protected branch!"))
            self.echo(click.style(f"Current branch: {session.current_branch}", fg="yellow", bold=True))
            self.echo("Committing directly to main/master branches is not recommended.")
            self.echo("Would you like to create a new branch instead?")
        elif isinstance(state, AddPrompt):
            self.echo(_title("No staged changes found. Would you like to add all changes?"))
        elif isinstance(state, TypeSelect):
            self.echo(_title("Select commit type:"))
        elif isinstance(state, Confirm):
            self.echo(_title("Generated commit message:"))
            self.echo(click.style(state.message, fg="cyan"))
            self.echo(_title("Use this message?"))
        elif isinstance(state, CommitError):
            self.echo(_title("API Error"))
            self.echo(click.style("Failed to generate commit message:", fg="red"))
            self.echo(_hint(state.error))
            self.echo(_title("What would you like to do?"))
        elif isinstance(state, PushPrompt):
            self.echo(click.style("Commit created successfully!", fg="green"))
            self.echo(_title("Push to remote?"))
        elif isinstance(state, UpstreamPrompt):
            self.echo(_title("No upstream branch configured."))
            self.echo(_title(f"Set upstream to 'origin/{session.current_branch}' and push?"))
        elif isinstance(state, PRPrompt):
            self.echo(_title("Create a pull request?"))
        elif isinstance(state, PRError):
            self.echo(_title("API Error"))
            self.echo(click.style("Failed to generate PR content:", fg="red"))
            self.echo(_hint(state.error))
            self.echo(_title("What would you like to do?"))

    def _ask_text(self, session: Session) -> Event:
        state = session.state
        if isinstance(state, BranchInput):
            self.echo(_hint("Tip: Use format like 'feature/description' or 'fix/issue-123'"))
            return Submit(_prompt("Enter new branch name", state.buffer))
        if isinstance(state, ScopeInput):
            return Submit(_prompt(f"Enter scope for {session.commit_type}", state.buffer))
        if isinstance(state, ManualInput):
            self.echo(_title("Enter your commit message manually"))
            if is_diff_too_large(session.change_summary):
                self.echo(click.style(
                    f"The diff is too large (>{DIFF_LINE_LIMIT} lines) to send to the API.",
                    fg="yellow",
                ))
            self.echo(_hint(
                f"Tip: Follow conventional commits format, e.g. "
                f"{session.commit_type}({session.scope}): <description>"
            ))
            return Submit(_prompt("Commit message", state.buffer))
        if isinstance(state, Edit):
            self.echo(_title("Edit commit message"))
            return Submit(self._edit(state.buffer))
        if isinstance(state, PRManualTitle):
            self.echo(_hint("Tip: Keep it concise and descriptive (max 72 chars)"))
            return Submit(_prompt("Enter PR title", state.buffer))
        if isinstance(state, PRManualBody):
            self.echo(click.style(f"Title: {state.title}", fg="cyan"))
            self.echo(_title("Enter PR body"))
            return Submit(self._edit(state.buffer))
        # nothing to ask in this phase
        return Quit()

    def _edit(self, text: str) -> str:
        edited = self.editor(text)
        return text if edited is None else edited.rstrip("\n")


def _prompt(label: str, default: str) -> str:
    return click.prompt(label, default=default, show_default=bool(default))


def _edit_with_click(text: str) -> Optional[str]:
    return click.edit(text, require_save=False)
