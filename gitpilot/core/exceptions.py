"""Custom exception hierarchy for gitpilot.

All exceptions inherit from GitPilotError so callers can catch broadly
or narrowly as needed. LLMError and its subclasses are the only errors the
workflow treats as retryable; everything else ends the session.
"""


class GitPilotError(Exception):
    """Base exception for all gitpilot errors."""


# ---------------------------------------------------------------------------
# LLM
# ---------------------------------------------------------------------------

class LLMError(GitPilotError):
    """Failed text generation call."""


class RateLimitError(LLMError):
    """Hit API rate limit."""


class AuthenticationError(LLMError):
    """Missing or invalid API key."""


class ModelNotFoundError(LLMError):
    """Requested model not available."""


class ResponseParseError(LLMError):
    """Failed to parse the backend response."""


class EmptyResponseError(LLMError):
    """Backend answered but returned no text."""


class GenerationTimeoutError(LLMError):
    """Backend did not answer within the configured timeout."""


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------

class ToolError(GitPilotError):
    """Tool execution failure."""


class ShellTimeoutError(ToolError):
    """Shell command exceeded timeout."""


class GitOperationError(ToolError):
    """Git operation failed."""


class NoUpstreamError(GitOperationError):
    """Push failed because the current branch has no upstream branch."""


class BranchNameError(GitOperationError):
    """Proposed branch name is not acceptable to git."""


class ForgeError(ToolError):
    """Forge (gh) operation failed."""


class UnsupportedForgeError(ForgeError):
    """The origin remote is not hosted on a supported forge."""


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

class ConfigError(GitPilotError):
    """Invalid or missing configuration."""


# ---------------------------------------------------------------------------
# Workflow
# ---------------------------------------------------------------------------

class WorkflowError(GitPilotError):
    """The workflow was asked to do something its current state forbids."""
