"""Workflow engine: the phase-transition function.

transition(session, event) is pure. It returns the next Session and, at
most, one Effect for the caller to execute; the effect's outcome comes back
as another event. Any (phase, event) pair not handled below returns the
session unchanged.

Rules the function enforces:
- While an effect is pending, only its matching outcome (same call_id,
  expected type) and Quit are accepted.
- A second effect is never scheduled while one is pending.
- Generation failures route to an error phase; any other failed call is
  fatal and ends the session with the message as-is.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import NamedTuple, Optional

from gitpilot.core.exceptions import BranchNameError, WorkflowError
from gitpilot.llm.response_parser import split_pr_content
from gitpilot.tools.git_ops import is_protected_branch, validate_branch_name
from gitpilot.workflow.events import (
    Backspace,
    BranchCreated,
    CallFailed,
    CallOutcome,
    CheckPREligibility,
    Choose,
    Commit,
    CommitMessageGenerated,
    CommitRequest,
    Committed,
    CreateBranch,
    CreatePR,
    Effect,
    Event,
    GenerateCommitMessage,
    GeneratePRContent,
    GenerationFailed,
    MoveCursor,
    NoUpstream,
    PRContentGenerated,
    PRCreated,
    PREligibility,
    Push,
    Pushed,
    PushSetUpstream,
    Quit,
    Select,
    StageAll,
    Staged,
    Submit,
    TypeText,
    answers,
)
from gitpilot.workflow.session import (
    COMMIT_TYPES,
    AddPrompt,
    BranchCreating,
    BranchInput,
    BranchWarning,
    ChoiceState,
    CommitError,
    Confirm,
    Done,
    Edit,
    Exiting,
    Generating,
    ManualInput,
    PhaseState,
    PRCreating,
    PRError,
    PRGenerating,
    PRManualBody,
    PRManualTitle,
    PRPrompt,
    PushPrompt,
    ScopeInput,
    Session,
    TextState,
    TypeSelect,
    UpstreamPrompt,
    is_diff_too_large,
)

logger = logging.getLogger("gitpilot.workflow.engine")


class Transition(NamedTuple):
    session: Session
    effect: Optional[Effect] = None


def new_session(
    *,
    change_summary: str = "",
    needs_staging: bool = False,
    current_branch: str = "",
    branch_name_suggestion: str = "",
    pr_only: bool = False,
) -> Transition:
    """Create the session for one run and pick its entry phase.

    PR-only sessions start generating PR content straight away, so the
    returned Transition already carries the first effect.
    """
    protected = is_protected_branch(current_branch)
    session = Session(
        state=Exiting(),
        change_summary=change_summary,
        needs_staging=needs_staging,
        current_branch=current_branch,
        is_protected_branch=protected,
        branch_name_suggestion=branch_name_suggestion,
        pr_only=pr_only,
    )
    if pr_only:
        return _schedule(_enter(session, PRGenerating()), GeneratePRContent(branch=current_branch))
    if protected:
        return Transition(_enter(session, BranchWarning()))
    return Transition(_after_branch_step(session))


def transition(session: Session, event: Event) -> Transition:
    """Compute the next session (and optional effect) for event."""
    if session.is_finished:
        return _ignore(session, event)

    if isinstance(event, Quit):
        if session.pending is not None:
            logger.debug("Quit with %s in flight; abandoning it", type(session.pending).__name__)
        return Transition(replace(session, state=Done(), pending=None))

    if session.pending is not None:
        if not isinstance(event, CallOutcome) or not answers(event, session.pending):
            return _ignore(session, event)
        result = _on_outcome(replace(session, pending=None), event)
    elif isinstance(event, CallOutcome):
        # nothing in flight: a late answer to an abandoned call
        return _ignore(session, event)
    else:
        result = _on_user_event(session, event)

    if result is None:
        return _ignore(session, event)
    logger.debug(
        "%s: %s -> %s",
        type(event).__name__, session.phase.value, result.session.phase.value,
    )
    return result


# ---------------------------------------------------------------------------
# User events
# ---------------------------------------------------------------------------

def _on_user_event(session: Session, event: Event) -> Optional[Transition]:
    state = session.state

    if isinstance(state, ChoiceState):
        count = len(session.choices())
        if isinstance(event, MoveCursor):
            cursor = max(0, min(count - 1, state.cursor + event.delta))
            return Transition(replace(session, state=replace(state, cursor=cursor)))
        if isinstance(event, Select):
            if not 0 <= event.index < count:
                return None
            return _choose(replace(session, state=replace(state, cursor=event.index)), event.index)
        if isinstance(event, Choose):
            return _choose(session, state.cursor)
        return None

    if isinstance(state, TextState):
        if isinstance(event, TypeText):
            return Transition(replace(session, state=replace(state, buffer=state.buffer + event.text)))
        if isinstance(event, Backspace):
            keep = max(0, len(state.buffer) - max(0, event.count))
            return Transition(replace(session, state=replace(state, buffer=state.buffer[:keep])))
        if isinstance(event, Submit):
            text = state.buffer if event.text is None else event.text
            return _submit(replace(session, state=replace(state, buffer=text)), text)
        return None

    return None


def _choose(session: Session, index: int) -> Optional[Transition]:
    state = session.state

    if isinstance(state, BranchWarning):
        if index == BranchWarning.CREATE:
            return Transition(_enter(session, BranchInput(buffer=session.branch_name_suggestion)))
        return Transition(_after_branch_step(session))

    if isinstance(state, AddPrompt):
        if index == AddPrompt.STAGE:
            return _schedule(session, StageAll())
        return Transition(_enter(session, Exiting()))

    if isinstance(state, TypeSelect):
        session = replace(session, commit_type_index=index)
        return Transition(_enter(session, ScopeInput(buffer=session.scope)))

    if isinstance(state, Confirm):
        if index == Confirm.ACCEPT:
            return _schedule(session, Commit(message=state.message))
        return Transition(_enter(session, Edit(buffer=state.message)))

    if isinstance(state, CommitError):
        if index == CommitError.RETRY:
            return _schedule(
                _enter(session, Generating(request=state.request)),
                GenerateCommitMessage(request=state.request),
            )
        return Transition(_enter(session, ManualInput(buffer="")))

    if isinstance(state, PushPrompt):
        if index == PushPrompt.PUSH:
            return _schedule(session, Push())
        return Transition(_enter(session, Exiting()))

    if isinstance(state, UpstreamPrompt):
        if index == UpstreamPrompt.PUSH:
            return _schedule(session, PushSetUpstream(branch=session.current_branch))
        return Transition(_enter(session, Exiting()))

    if isinstance(state, PRPrompt):
        if index == PRPrompt.CREATE:
            return _start_pr_generation(session)
        return Transition(_enter(session, Exiting()))

    if isinstance(state, PRError):
        if index == PRError.RETRY:
            return _start_pr_generation(session)
        if index == PRError.MANUAL:
            return Transition(_enter(session, PRManualTitle(buffer="")))
        return Transition(_enter(session, Exiting()))

    return None


def _submit(session: Session, text: str) -> Optional[Transition]:
    state = session.state

    if isinstance(state, BranchInput):
        try:
            validate_branch_name(text)
        except BranchNameError as e:
            return Transition(_fail(session, str(e)))
        return _schedule(_enter(session, BranchCreating(name=text)), CreateBranch(name=text))

    if isinstance(state, ScopeInput):
        session = replace(session, scope=text)
        if is_diff_too_large(session.change_summary):
            return Transition(_enter(session, ManualInput(buffer="")))
        request = CommitRequest(
            diff=session.change_summary,
            commit_type=COMMIT_TYPES[session.commit_type_index],
            scope=text,
        )
        return _schedule(_enter(session, Generating(request=request)), GenerateCommitMessage(request=request))

    if isinstance(state, (ManualInput, Edit)):
        return _schedule(session, Commit(message=text))

    if isinstance(state, PRManualTitle):
        return Transition(_enter(session, PRManualBody(title=text, buffer="")))

    if isinstance(state, PRManualBody):
        return _schedule(
            _enter(session, PRCreating(title=state.title, body=text)),
            CreatePR(title=state.title, body=text),
        )

    return None


# ---------------------------------------------------------------------------
# Call outcomes
# ---------------------------------------------------------------------------

def _on_outcome(session: Session, event: CallOutcome) -> Optional[Transition]:
    state = session.state

    if isinstance(event, CallFailed):
        return Transition(_fail(session, event.message))

    if isinstance(event, BranchCreated) and isinstance(state, BranchCreating):
        session = replace(
            session,
            current_branch=event.name,
            completion=session.completion.merge(created_branch=event.name),
        )
        return Transition(_after_branch_step(session))

    if isinstance(event, Staged) and isinstance(state, AddPrompt):
        session = replace(session, change_summary=event.diff)
        return Transition(_enter(session, TypeSelect(cursor=session.commit_type_index)))

    if isinstance(event, CommitMessageGenerated) and isinstance(state, Generating):
        if not event.text.strip():
            error = "Generated commit message is empty"
            return Transition(_enter(session, CommitError(error=error, request=state.request)))
        return Transition(_enter(session, Confirm(message=event.text)))

    if isinstance(event, GenerationFailed):
        if isinstance(state, Generating):
            return Transition(_enter(session, CommitError(error=event.message, request=state.request)))
        if isinstance(state, PRGenerating):
            return Transition(_enter(session, PRError(error=event.message)))
        return None

    if isinstance(event, Committed):
        completion = session.completion.merge(
            staged_file_count=event.staged_file_count,
            did_commit=True,
        )
        return Transition(_enter(replace(session, completion=completion), PushPrompt()))

    if isinstance(event, NoUpstream) and isinstance(state, PushPrompt):
        return Transition(_enter(session, UpstreamPrompt()))

    if isinstance(event, Pushed):
        session = replace(session, completion=session.completion.merge(did_push=True))
        return _schedule(session, CheckPREligibility(branch=session.current_branch))

    if isinstance(event, PREligibility):
        if event.eligible and session.completion.did_push:
            return Transition(_enter(session, PRPrompt()))
        return Transition(_enter(session, Exiting()))

    if isinstance(event, PRContentGenerated) and isinstance(state, PRGenerating):
        title, body = split_pr_content(event.text)
        if not title:
            return Transition(_enter(session, PRError(error="Generated PR content has no title")))
        return _schedule(_enter(session, PRCreating(title=title, body=body)), CreatePR(title=title, body=body))

    if isinstance(event, PRCreated) and isinstance(state, PRCreating):
        completion = session.completion.merge(did_create_pr=True)
        return Transition(replace(session, completion=completion))

    return None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _enter(session: Session, state: PhaseState) -> Session:
    return replace(session, state=state)


def _after_branch_step(session: Session) -> Session:
    """Where the flow goes once the branch question is settled."""
    if session.needs_staging:
        return _enter(session, AddPrompt())
    return _enter(session, TypeSelect(cursor=session.commit_type_index))


def _start_pr_generation(session: Session) -> Transition:
    return _schedule(_enter(session, PRGenerating()), GeneratePRContent(branch=session.current_branch))


def _schedule(session: Session, effect: Effect) -> Transition:
    if session.pending is not None:
        raise WorkflowError(
            f"cannot start {type(effect).__name__} while "
            f"{type(session.pending).__name__} is in flight"
        )
    effect = replace(effect, call_id=session.next_call_id)
    session = replace(session, pending=effect, next_call_id=session.next_call_id + 1)
    return Transition(session, effect)


def _fail(session: Session, message: str) -> Session:
    logger.debug("Fatal in %s: %s", session.phase.value, message)
    return replace(session, state=Exiting(), pending=None, fatal_error=message)


def _ignore(session: Session, event: Event) -> Transition:
    logger.debug("Ignored %s in %s", type(event).__name__, session.phase.value)
    return Transition(session)
