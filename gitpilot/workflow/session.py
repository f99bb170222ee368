"""Session state for the interactive commit workflow.

A Session is an immutable value: the engine never mutates one, it returns a
new Session for every accepted event. The current phase is a tagged union,
one PhaseState subclass per phase, each carrying only what that phase needs
(cursor, text buffer, the in-flight request, the error being shown).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import ClassVar, Optional

from gitpilot.workflow.events import CommitRequest, Effect

COMMIT_TYPES: tuple[str, ...] = (
    "feat", "fix", "docs", "style", "refactor", "perf", "test", "build", "ci", "chore",
)

DIFF_LINE_LIMIT = 1000


class Phase(str, enum.Enum):
    BRANCH_WARNING = "branch_warning"
    BRANCH_INPUT = "branch_input"
    BRANCH_CREATING = "branch_creating"
    ADD = "add"
    TYPE = "type"
    SCOPE = "scope"
    GENERATING = "generating"
    COMMIT_ERROR = "commit_error"
    MANUAL_INPUT = "manual_input"
    CONFIRM = "confirm"
    EDIT = "edit"
    PUSH_PROMPT = "push_prompt"
    UPSTREAM_PROMPT = "upstream_prompt"
    PR_PROMPT = "pr_prompt"
    PR_GENERATING = "pr_generating"
    PR_ERROR = "pr_error"
    PR_MANUAL_TITLE = "pr_manual_title"
    PR_MANUAL_BODY = "pr_manual_body"
    PR_CREATING = "pr_creating"
    DONE = "done"
    EXITING = "exiting"


TERMINAL_PHASES = frozenset({Phase.PR_CREATING, Phase.DONE, Phase.EXITING})


# ---------------------------------------------------------------------------
# Phase variants
# ---------------------------------------------------------------------------

@dataclass(frozen=True, kw_only=True)
class PhaseState:
    phase: ClassVar[Phase]


@dataclass(frozen=True, kw_only=True)
class ChoiceState(PhaseState):
    """A phase where the user picks one of a fixed list of options."""
    cursor: int = 0
    choices: ClassVar[tuple[str, ...]] = ()

    def labels(self, session: "Session") -> tuple[str, ...]:
        return self.choices


@dataclass(frozen=True, kw_only=True)
class TextState(PhaseState):
    """A phase where the user edits a free-text buffer."""
    buffer: str = ""


@dataclass(frozen=True, kw_only=True)
class BranchWarning(ChoiceState):
    phase = Phase.BRANCH_WARNING
    CREATE, CONTINUE = 0, 1

    def labels(self, session: "Session") -> tuple[str, ...]:
        return ("Yes, create a new branch", f"No, continue on {session.current_branch}")


@dataclass(frozen=True, kw_only=True)
class BranchInput(TextState):
    phase = Phase.BRANCH_INPUT


@dataclass(frozen=True, kw_only=True)
class BranchCreating(PhaseState):
    phase = Phase.BRANCH_CREATING
    name: str


@dataclass(frozen=True, kw_only=True)
class AddPrompt(ChoiceState):
    phase = Phase.ADD
    choices = ("Yes, add all changes", "No, exit")
    STAGE, EXIT = 0, 1


@dataclass(frozen=True, kw_only=True)
class TypeSelect(ChoiceState):
    phase = Phase.TYPE
    choices = COMMIT_TYPES


@dataclass(frozen=True, kw_only=True)
class ScopeInput(TextState):
    phase = Phase.SCOPE


@dataclass(frozen=True, kw_only=True)
class Generating(PhaseState):
    phase = Phase.GENERATING
    request: CommitRequest


@dataclass(frozen=True, kw_only=True)
class CommitError(ChoiceState):
    phase = Phase.COMMIT_ERROR
    choices = ("Retry", "Enter commit message manually")
    RETRY, MANUAL = 0, 1
    error: str
    request: CommitRequest


@dataclass(frozen=True, kw_only=True)
class ManualInput(TextState):
    phase = Phase.MANUAL_INPUT


@dataclass(frozen=True, kw_only=True)
class Confirm(ChoiceState):
    phase = Phase.CONFIRM
    choices = ("Yes, commit", "No, let me edit")
    ACCEPT, EDIT = 0, 1
    message: str


@dataclass(frozen=True, kw_only=True)
class Edit(TextState):
    phase = Phase.EDIT


@dataclass(frozen=True, kw_only=True)
class PushPrompt(ChoiceState):
    phase = Phase.PUSH_PROMPT
    choices = ("Yes, push", "No, skip")
    PUSH, SKIP = 0, 1
    cursor: int = 1


@dataclass(frozen=True, kw_only=True)
class UpstreamPrompt(ChoiceState):
    phase = Phase.UPSTREAM_PROMPT
    choices = ("Yes, set upstream and push", "No, skip")
    PUSH, SKIP = 0, 1


@dataclass(frozen=True, kw_only=True)
class PRPrompt(ChoiceState):
    phase = Phase.PR_PROMPT
    choices = ("Yes, create PR", "No, skip")
    CREATE, SKIP = 0, 1
    cursor: int = 1


@dataclass(frozen=True, kw_only=True)
class PRGenerating(PhaseState):
    phase = Phase.PR_GENERATING


@dataclass(frozen=True, kw_only=True)
class PRError(ChoiceState):
    phase = Phase.PR_ERROR
    choices = ("Retry", "Enter PR details manually", "Skip PR creation")
    RETRY, MANUAL, SKIP = 0, 1, 2
    error: str


@dataclass(frozen=True, kw_only=True)
class PRManualTitle(TextState):
    phase = Phase.PR_MANUAL_TITLE


@dataclass(frozen=True, kw_only=True)
class PRManualBody(TextState):
    phase = Phase.PR_MANUAL_BODY
    title: str


@dataclass(frozen=True, kw_only=True)
class PRCreating(PhaseState):
    phase = Phase.PR_CREATING
    title: str
    body: str


@dataclass(frozen=True, kw_only=True)
class Done(PhaseState):
    phase = Phase.DONE


@dataclass(frozen=True, kw_only=True)
class Exiting(PhaseState):
    phase = Phase.EXITING


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CompletionFlags:
    """What the session has done so far, for the exit summary."""
    staged_file_count: int = 0
    did_commit: bool = False
    did_push: bool = False
    did_create_pr: bool = False
    created_branch: str = ""

    def merge(self, **changes) -> "CompletionFlags":
        """Return flags with changes applied; a field that is already set is kept."""
        updates = {}
        for name, value in changes.items():
            current = getattr(self, name)
            if not current and value:
                updates[name] = value
        return replace(self, **updates) if updates else self


@dataclass(frozen=True, kw_only=True)
class Session:
    state: PhaseState
    change_summary: str = ""
    needs_staging: bool = False
    current_branch: str = ""
    is_protected_branch: bool = False
    branch_name_suggestion: str = ""
    pr_only: bool = False
    commit_type_index: int = 0
    scope: str = ""
    completion: CompletionFlags = field(default_factory=CompletionFlags)
    pending: Optional[Effect] = None
    next_call_id: int = 1
    fatal_error: Optional[str] = None

    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def commit_type(self) -> str:
        return COMMIT_TYPES[self.commit_type_index]

    @property
    def is_finished(self) -> bool:
        return self.phase in TERMINAL_PHASES and self.pending is None

    @property
    def failed(self) -> bool:
        return self.fatal_error is not None

    def choices(self) -> tuple[str, ...]:
        """Labels offered in the current phase (empty for non-choice phases)."""
        if isinstance(self.state, ChoiceState):
            return self.state.labels(self)
        return ()


def is_diff_too_large(diff: str) -> bool:
    return len(diff.split("\n")) > DIFF_LINE_LIMIT


def summarize(session: Session) -> str:
    """One-line account of what the session did; empty if it committed nothing."""
    flags = session.completion
    if session.pr_only and flags.did_create_pr:
        return f"Created PR on branch {session.current_branch}"
    if not flags.did_commit:
        return ""

    file_word = "file" if flags.staged_file_count == 1 else "files"
    parts = [f"Committed {flags.staged_file_count} {file_word}"]
    if flags.created_branch:
        parts.append(f"to new branch {flags.created_branch}")
    else:
        parts.append(f"to branch {session.current_branch}")
    if flags.did_push:
        parts.append("and pushed")
    if flags.did_create_pr:
        parts.append("and created PR")
    return " ".join(parts)
