"""Effect runner: performs the engine's external calls.

run() executes one Effect against the collaborators and reports the result
as the matching CallOutcome event. submit() does the same on a daemon
worker thread so the console can stay responsive to Ctrl+C while git,
gh or the text backend is busy, and an abandoned call never holds up
interpreter exit.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Callable, Literal, Optional

from gitpilot.core.exceptions import (
    GitOperationError,
    GitPilotError,
    LLMError,
    NoUpstreamError,
    UnsupportedForgeError,
)
from gitpilot.llm.response_parser import clean_commit_message
from gitpilot.llm.router import PURPOSE_COMMIT, PURPOSE_PR, ModelRouter
from gitpilot.workflow.contracts import Forge, TextGenerator, VersionControl
from gitpilot.workflow.events import (
    BranchCreated,
    CallFailed,
    CallOutcome,
    CheckPREligibility,
    Commit,
    CommitMessageGenerated,
    Committed,
    CreateBranch,
    CreatePR,
    Effect,
    GenerateCommitMessage,
    GeneratePRContent,
    GenerationFailed,
    NoUpstream,
    PRContentGenerated,
    PRCreated,
    PREligibility,
    Push,
    Pushed,
    PushSetUpstream,
    StageAll,
    Staged,
)
from gitpilot.workflow.prompts import PromptBuilder

logger = logging.getLogger("gitpilot.workflow.runner")

ErrorKind = Literal["fatal", "retryable"]


@dataclass(frozen=True)
class ErrorReport:
    kind: ErrorKind
    message: str


def classify_error(exc: BaseException) -> ErrorReport:
    """Text backend failures are retryable; everything else ends the session."""
    message = str(exc) or type(exc).__name__
    if isinstance(exc, LLMError):
        return ErrorReport(kind="retryable", message=message)
    return ErrorReport(kind="fatal", message=message)


def outcome_for_error(effect: Effect, exc: BaseException) -> CallOutcome:
    report = classify_error(exc)
    if report.kind == "retryable":
        return GenerationFailed(call_id=effect.call_id, message=report.message)
    return CallFailed(call_id=effect.call_id, message=report.message)


class EffectRunner:
    """Executes effects against a VersionControl, a Forge and a TextGenerator."""

    def __init__(
        self,
        vcs: VersionControl,
        forge: Forge,
        generator: TextGenerator,
        router: ModelRouter,
        prompts: Optional[PromptBuilder] = None,
    ):
        self.vcs = vcs
        self.forge = forge
        self.generator = generator
        self.router = router
        self.prompts = prompts or PromptBuilder()
        self._workers: list[threading.Thread] = []
        self._handlers: dict[type[Effect], Callable[[Effect], CallOutcome]] = {
            CreateBranch: self._create_branch,
            StageAll: self._stage_all,
            GenerateCommitMessage: self._generate_commit_message,
            Commit: self._commit,
            Push: self._push,
            PushSetUpstream: self._push_set_upstream,
            CheckPREligibility: self._check_pr_eligibility,
            GeneratePRContent: self._generate_pr_content,
            CreatePR: self._create_pr,
        }

    def run(self, effect: Effect) -> CallOutcome:
        """Execute effect synchronously and return its outcome event."""
        handler = self._handlers.get(type(effect))
        if handler is None:
            raise GitPilotError(f"No handler for effect {type(effect).__name__}")
        logger.debug("Running %s (call %d)", type(effect).__name__, effect.call_id)
        try:
            return handler(effect)
        except GitPilotError as e:
            outcome = outcome_for_error(effect, e)
            logger.warning("%s failed: %s", type(effect).__name__, e)
            return outcome

    def submit(self, effect: Effect) -> Future:
        """Run effect on a daemon thread; the returned future carries its outcome."""
        future: Future = Future()
        worker = threading.Thread(
            target=self._complete,
            args=(effect, future),
            name=f"gitpilot-call-{effect.call_id}",
            daemon=True,
        )
        self._workers = [w for w in self._workers if w.is_alive()]
        self._workers.append(worker)
        worker.start()
        return future

    def _complete(self, effect: Effect, future: Future) -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            future.set_result(self.run(effect))
        except BaseException as e:
            future.set_exception(e)

    def shutdown(self, wait: bool = False) -> None:
        """Release the workers; with wait=False an in-flight call is abandoned."""
        workers, self._workers = self._workers, []
        if wait:
            for worker in workers:
                worker.join()
        elif any(w.is_alive() for w in workers):
            logger.debug("Abandoning %d in-flight call(s)", sum(w.is_alive() for w in workers))
        self.generator.close()

    # -- handlers ---------------------------------------------------------

    def _create_branch(self, effect: CreateBranch) -> CallOutcome:
        name = self.vcs.create_and_checkout_branch(effect.name)
        return BranchCreated(call_id=effect.call_id, name=name)

    def _stage_all(self, effect: StageAll) -> CallOutcome:
        self.vcs.stage_all()
        return Staged(call_id=effect.call_id, diff=self.vcs.staged_diff())

    def _generate_commit_message(self, effect: GenerateCommitMessage) -> CallOutcome:
        prompt = self.prompts.commit_prompt(effect.request)
        text = self.generator.generate(
            prompt,
            model=self.router.get_model(PURPOSE_COMMIT),
            max_tokens=self.router.max_tokens(PURPOSE_COMMIT),
        )
        return CommitMessageGenerated(call_id=effect.call_id, text=clean_commit_message(text))

    def _commit(self, effect: Commit) -> CallOutcome:
        count = self.vcs.count_staged_files()
        self.vcs.commit(effect.message)
        return Committed(call_id=effect.call_id, staged_file_count=count)

    def _push(self, effect: Push) -> CallOutcome:
        try:
            self.vcs.push()
        except NoUpstreamError as e:
            return NoUpstream(call_id=effect.call_id, message=str(e))
        return Pushed(call_id=effect.call_id)

    def _push_set_upstream(self, effect: PushSetUpstream) -> CallOutcome:
        self.vcs.push_set_upstream(effect.branch)
        return Pushed(call_id=effect.call_id)

    def _check_pr_eligibility(self, effect: CheckPREligibility) -> CallOutcome:
        try:
            self.forge.ensure_supported_origin()
        except UnsupportedForgeError as e:
            logger.info("Skipping PR prompt: %s", e)
            return PREligibility(call_id=effect.call_id, eligible=False)
        if self.forge.has_existing_pr(effect.branch):
            logger.info("Skipping PR prompt: a PR already exists for %s", effect.branch)
            return PREligibility(call_id=effect.call_id, eligible=False)
        return PREligibility(call_id=effect.call_id, eligible=True)

    def _generate_pr_content(self, effect: GeneratePRContent) -> CallOutcome:
        try:
            git_log = self.vcs.branch_log(effect.branch)
        except GitOperationError as e:
            return GenerationFailed(call_id=effect.call_id, message=f"Error getting git log: {e}")
        text = self.generator.generate(
            self.prompts.pr_prompt(git_log),
            model=self.router.get_model(PURPOSE_PR),
            max_tokens=self.router.max_tokens(PURPOSE_PR),
        )
        return PRContentGenerated(call_id=effect.call_id, text=text)

    def _create_pr(self, effect: CreatePR) -> CallOutcome:
        self.forge.create_pr(effect.title, effect.body)
        return PRCreated(call_id=effect.call_id)
