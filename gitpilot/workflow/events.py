"""Events and effects exchanged with the workflow engine.

Events flow into the engine: user input (selections, text editing, quit)
and the outcomes of external calls. Effects flow out: each one names a
single external call the engine wants made. Every outcome carries the
call_id of the effect it answers so the engine can drop stale results.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


# ---------------------------------------------------------------------------
# Effects (engine -> runner)
# ---------------------------------------------------------------------------

@dataclass(frozen=True, kw_only=True)
class Effect:
    call_id: int = 0


@dataclass(frozen=True, kw_only=True)
class CreateBranch(Effect):
    name: str


@dataclass(frozen=True, kw_only=True)
class StageAll(Effect):
    """Stage every change, then re-read the staged diff."""


@dataclass(frozen=True, kw_only=True)
class CommitRequest:
    diff: str
    commit_type: str
    scope: str


@dataclass(frozen=True, kw_only=True)
class GenerateCommitMessage(Effect):
    request: CommitRequest


@dataclass(frozen=True, kw_only=True)
class Commit(Effect):
    message: str


@dataclass(frozen=True, kw_only=True)
class Push(Effect):
    pass


@dataclass(frozen=True, kw_only=True)
class PushSetUpstream(Effect):
    branch: str


@dataclass(frozen=True, kw_only=True)
class CheckPREligibility(Effect):
    """Origin is a supported forge and no PR exists yet for branch."""
    branch: str


@dataclass(frozen=True, kw_only=True)
class GeneratePRContent(Effect):
    branch: str


@dataclass(frozen=True, kw_only=True)
class CreatePR(Effect):
    title: str
    body: str


# ---------------------------------------------------------------------------
# User events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Event:
    pass


@dataclass(frozen=True)
class Quit(Event):
    pass


@dataclass(frozen=True)
class MoveCursor(Event):
    delta: int


@dataclass(frozen=True)
class Choose(Event):
    """Pick the choice under the cursor."""


@dataclass(frozen=True)
class Select(Event):
    """Move the cursor to index and pick it."""
    index: int


@dataclass(frozen=True)
class TypeText(Event):
    text: str


@dataclass(frozen=True)
class Backspace(Event):
    count: int = 1


@dataclass(frozen=True)
class Submit(Event):
    """Submit the current text buffer, replacing it first when text is given."""
    text: Optional[str] = None


# ---------------------------------------------------------------------------
# Call outcomes (runner -> engine)
# ---------------------------------------------------------------------------

@dataclass(frozen=True, kw_only=True)
class CallOutcome(Event):
    call_id: int


@dataclass(frozen=True, kw_only=True)
class BranchCreated(CallOutcome):
    name: str


@dataclass(frozen=True, kw_only=True)
class Staged(CallOutcome):
    diff: str


@dataclass(frozen=True, kw_only=True)
class CommitMessageGenerated(CallOutcome):
    text: str


@dataclass(frozen=True, kw_only=True)
class Committed(CallOutcome):
    staged_file_count: int = 0


@dataclass(frozen=True, kw_only=True)
class Pushed(CallOutcome):
    pass


@dataclass(frozen=True, kw_only=True)
class NoUpstream(CallOutcome):
    message: str = ""


@dataclass(frozen=True, kw_only=True)
class PREligibility(CallOutcome):
    eligible: bool


@dataclass(frozen=True, kw_only=True)
class PRContentGenerated(CallOutcome):
    text: str


@dataclass(frozen=True, kw_only=True)
class PRCreated(CallOutcome):
    pass


@dataclass(frozen=True, kw_only=True)
class GenerationFailed(CallOutcome):
    """Retryable: the text backend failed."""
    message: str


@dataclass(frozen=True, kw_only=True)
class CallFailed(CallOutcome):
    """Fatal: a structural (git, gh) call failed."""
    message: str


# Which outcomes may answer which effect.
EXPECTED_OUTCOMES: dict[type[Effect], tuple[type[CallOutcome], ...]] = {
    CreateBranch: (BranchCreated, CallFailed),
    StageAll: (Staged, CallFailed),
    GenerateCommitMessage: (CommitMessageGenerated, GenerationFailed, CallFailed),
    Commit: (Committed, CallFailed),
    Push: (Pushed, NoUpstream, CallFailed),
    PushSetUpstream: (Pushed, CallFailed),
    CheckPREligibility: (PREligibility, CallFailed),
    GeneratePRContent: (PRContentGenerated, GenerationFailed, CallFailed),
    CreatePR: (PRCreated, CallFailed),
}


def answers(outcome: CallOutcome, effect: Effect) -> bool:
    """True when outcome is a valid, current answer to effect."""
    if outcome.call_id != effect.call_id:
        return False
    return isinstance(outcome, EXPECTED_OUTCOMES.get(type(effect), ()))
