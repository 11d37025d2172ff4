"""Protocols (interfaces) consumed by the core layer.

These define the contracts that infrastructure and CLI adapters must
satisfy.  Core code depends ONLY on these protocols — never on concrete
implementations — preserving the dependency inversion principle.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from contextlib import AbstractContextManager
from typing import Protocol

from deploy_pilot.core.models import PullRequest, WorkflowRun

ProgressCallback = Callable[[str], None]
"""Invoked with the current run status string on every poll."""


class CIProvider(Protocol):
    """Contract for the remote CI system (GitHub Actions + pull requests).

    Implementations must map all backend-specific exceptions to
    :class:`~deploy_pilot.exceptions.CIError` subclasses and must return
    models whose ``status``/``conclusion``/``state`` strings are already
    lower case.
    """

    def trigger(self, workflow: str, ref: str, inputs: Mapping[str, str]) -> None:
        """Dispatch *workflow* on *ref* with string *inputs*.

        Raises
        ------
        TriggerFailedError
            On transport or authentication failure.
        """
        ...  # pragma: no cover

    def list_runs(self, workflow: str, limit: int) -> list[WorkflowRun]:
        """Return up to *limit* runs of *workflow*, most recent first."""
        ...  # pragma: no cover

    def get_run(self, run_id: int) -> WorkflowRun:
        """Return the current record of run *run_id*."""
        ...  # pragma: no cover

    def get_logs(self, run_id: int, failed_only: bool) -> str:
        """Return run logs, falling back to full logs when failed-only errors.

        Raises
        ------
        LogRetrievalError
            When neither variant can be fetched.
        """
        ...  # pragma: no cover

    def list_prs(self, state: str, head_branch_filter: str = "") -> list[PullRequest]:
        """Return pull requests in *state*, in the remote's default order."""
        ...  # pragma: no cover

    def get_pr(self, number: int) -> PullRequest:
        ...  # pragma: no cover

    def merge_pr(self, number: int, method: str, delete_branch: bool) -> None:
        """Merge PR *number* using *method* (``merge``/``squash``/``rebase``)."""
        ...  # pragma: no cover


class PipelineReporter(Protocol):
    """Sink for user-facing progress lines emitted by the driver."""

    def info(self, message: str) -> None: ...  # pragma: no cover

    def success(self, message: str) -> None: ...  # pragma: no cover

    def warning(self, message: str) -> None: ...  # pragma: no cover

    def failure(self, message: str) -> None: ...  # pragma: no cover

    def logs(self, text: str) -> None:
        """Render a (possibly truncated) block of workflow logs."""
        ...  # pragma: no cover

    def progress(self, label: str) -> AbstractContextManager[ProgressCallback]:
        """Show an ephemeral progress indicator for the enclosed block.

        The yielded callable receives run status updates.  The indicator
        must be torn down on every exit path, including exceptions.
        """
        ...  # pragma: no cover


class Prompter(Protocol):
    """Interactive confirmation surface."""

    def confirm_merge(self, pr: PullRequest) -> bool:
        """Return ``True`` if the operator agrees to merge *pr*."""
        ...  # pragma: no cover
