"""Interactive commit workflow: phase model, transition engine and effect runner."""

from gitpilot.workflow.engine import Transition, new_session, transition
from gitpilot.workflow.runner import EffectRunner, ErrorReport, classify_error
from gitpilot.workflow.session import (
    COMMIT_TYPES,
    CompletionFlags,
    Phase,
    Session,
    summarize,
)

__all__ = [
    "COMMIT_TYPES",
    "CompletionFlags",
    "EffectRunner",
    "ErrorReport",
    "Phase",
    "Session",
    "Transition",
    "classify_error",
    "new_session",
    "summarize",
    "transition",
]
