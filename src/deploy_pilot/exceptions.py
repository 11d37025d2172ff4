"""Custom exception hierarchy for deploy-pilot.

All exceptions that cross layer boundaries must inherit from
:class:`DeployPilotError`.  Raw ``subprocess``/``json``/``yaml`` errors
must NEVER propagate beyond the infrastructure layer — they are caught
there and re-raised as a typed subclass defined here.

Hierarchy
---------
DeployPilotError
├── ConfigurationError
├── WorkspaceError
│   └── AmbiguousApplicationError
├── PlanFileError
├── ToolNotFoundError
├── CIError
│   ├── GhCommandError
│   ├── GhResponseError
│   ├── TriggerFailedError
│   ├── RunWatchError
│   ├── LogRetrievalError
│   └── MergeFailedError
├── PipelineError
│   ├── WorkflowFailedError
│   ├── NoDeploymentPRError
│   ├── PullRequestStateError
│   └── RunStateRegressionError
└── OperationCancelledError
"""

from __future__ import annotations

from collections.abc import Sequence


class DeployPilotError(Exception):
    """Base exception for all deploy-pilot errors.

    Every user-visible error condition must map to a subclass of this
    exception so that the CLI error boundary can render a clean message
    without leaking internal stack traces.
    """

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint: str | None = hint
        """Optional actionable guidance shown below the error message."""


# --- Configuration / local workspace ---------------------------------------

class ConfigurationError(DeployPilotError):
    """Raised when settings cannot be resolved (bad env override, etc.)."""


class WorkspaceError(DeployPilotError):
    """Raised when the local repository is missing required files."""


class AmbiguousApplicationError(WorkspaceError):
    """Raised when several application models exist and none was chosen."""

    def __init__(self, applications: Sequence[str]) -> None:
        self.applications: tuple[str, ...] = tuple(applications)
        listing = "\n  ".join(self.applications)
        super().__init__(
            f"Multiple applications found:\n  {listing}",
            hint="Specify one with --application.",
        )


class PlanFileError(DeployPilotError):
    """Raised when a plan manifest cannot be written or parsed."""


class ToolNotFoundError(DeployPilotError):
    """Raised when a required executable (``gh``, ``git``) is not on PATH."""


# --- Remote CI system ------------------------------------------------------

class CIError(DeployPilotError):
    """Base class for failures talking to the remote CI system."""


class GhCommandError(CIError):
    """Raised when a ``gh`` invocation exits with a non-zero status."""

    def __init__(
        self,
        args: Sequence[str],
        returncode: int,
        stderr: str,
    ) -> None:
        self.command: tuple[str, ...] = tuple(args)
        self.returncode: int = returncode
        self.stderr: str = stderr.strip()
        detail = f": {self.stderr}" if self.stderr else ""
        super().__init__(
            f"'gh {' '.join(self.command)}' exited with status {returncode}{detail}",
        )


class GhResponseError(CIError):
    """Raised when ``gh`` output cannot be parsed into a domain model."""


class TriggerFailedError(CIError):
    """Raised when a workflow dispatch is rejected."""


class RunWatchError(CIError):
    """Raised when the run record cannot be fetched while watching."""


class LogRetrievalError(CIError):
    """Raised when neither failed-only nor full run logs can be fetched."""


class MergeFailedError(CIError):
    """Raised when the merge request for a pull request fails."""


# --- Pipeline business rules -----------------------------------------------

class PipelineError(DeployPilotError):
    """Base class for orchestration-level failures."""


class WorkflowFailedError(PipelineError):
    """Raised when a watched run completes with a non-success conclusion."""

    def __init__(
        self,
        message: str,
        *,
        run_id: int,
        url: str,
        logs: str = "",
    ) -> None:
        super().__init__(message, hint=f"For full details, see: {url}")
        self.run_id: int = run_id
        self.url: str = url
        self.logs: str = logs


class NoDeploymentPRError(PipelineError):
    """Raised when no open pull request matches the deployment prefix."""


class PullRequestStateError(PipelineError):
    """Raised when an operation requires an open pull request."""

    def __init__(self, number: int, state: str) -> None:
        super().__init__(
            f"PR #{number} is not open (state: {state}). Cannot merge.",
        )
        self.number: int = number
        self.state: str = state


class RunStateRegressionError(PipelineError):
    """Raised when a run record appears to move backwards in its lifecycle."""


class OperationCancelledError(DeployPilotError):
    """Raised when a wait is interrupted by cancellation or a deadline."""
