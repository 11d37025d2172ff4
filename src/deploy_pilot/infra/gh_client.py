"""``gh`` CLI backed implementation of :class:`~deploy_pilot.core.protocols.CIProvider`.

This module is the **only** place in the codebase that talks to GitHub.
Every ``subprocess``/``json`` failure is caught here and re-raised as a
typed :class:`~deploy_pilot.exceptions.CIError` subclass — nothing raw
escapes the infrastructure boundary.

State strings are normalised to lower case once, here, so that ``"OPEN"``
from ``gh pr view`` and ``"open"`` from other endpoints compare equal.
"""

from __future__ import annotations

import json
import logging
import subprocess
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any, Protocol

from deploy_pilot.core.models import PullRequest, WorkflowRun
from deploy_pilot.exceptions import (
    CIError,
    GhCommandError,
    GhResponseError,
    LogRetrievalError,
    MergeFailedError,
    ToolNotFoundError,
    TriggerFailedError,
)
from deploy_pilot.infra.tool_detector import install_hint

logger = logging.getLogger(__name__)

RUN_FIELDS = "databaseId,name,status,conclusion,url,headBranch,event"
PR_FIELDS = "number,url,title,state,headRefName,baseRefName,createdAt"

_MERGE_METHODS = ("merge", "squash", "rebase")


# ---------------------------------------------------------------------------
# Process runner
# ---------------------------------------------------------------------------

class GhRunner(Protocol):
    """Executes one ``gh`` invocation and returns its stdout."""

    def run(self, args: Sequence[str]) -> str: ...  # pragma: no cover


class SubprocessGhRunner:
    """Run ``gh`` as a child process with captured output."""

    def __init__(self, executable: str = "gh") -> None:
        self._executable = executable

    def run(self, args: Sequence[str]) -> str:
        """Return stdout of ``gh <args>``.

        Raises
        ------
        ToolNotFoundError
            When the ``gh`` binary cannot be executed.
        GhCommandError
            When ``gh`` exits with a non-zero status.
        """
        logger.debug("gh %s", " ".join(args))
        try:
            completed = subprocess.run(
                [self._executable, *args],
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError as exc:
            raise ToolNotFoundError(
                "GitHub CLI (gh) is not installed or not on PATH.",
                hint=install_hint("gh"),
            ) from exc
        if completed.returncode != 0:
            raise GhCommandError(args, completed.returncode, completed.stderr)
        return completed.stdout


# ---------------------------------------------------------------------------
# Provider
# ---------------------------------------------------------------------------

class GhCliProvider:
    """Concrete :class:`CIProvider` backed by the GitHub CLI.

    Usage::

        provider = GhCliProvider()
        provider.trigger("deploy-plan.yaml", "main", {"environment": "prod"})

    This class satisfies the :class:`~deploy_pilot.core.protocols.CIProvider`
    protocol structurally — no explicit inheritance required.
    """

    def __init__(self, runner: GhRunner | None = None) -> None:
        self._runner: GhRunner = runner or SubprocessGhRunner()

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    def auth_status(self) -> None:
        """Raise :class:`CIError` unless ``gh`` is authenticated."""
        try:
            self._runner.run(["auth", "status"])
        except GhCommandError as exc:
            raise CIError(
                "GitHub CLI (gh) is not authenticated.",
                hint="Run 'gh auth login' to authenticate.",
            ) from exc

    # ------------------------------------------------------------------
    # Workflows
    # ------------------------------------------------------------------

    def trigger(self, workflow: str, ref: str, inputs: Mapping[str, str]) -> None:
        args = ["workflow", "run", workflow, "--ref", ref]
        for key, value in inputs.items():
            args.extend(["-f", f"{key}={value}"])
        try:
            self._runner.run(args)
        except GhCommandError as exc:
            raise TriggerFailedError(
                f"Failed to run workflow {workflow}: {exc.stderr or exc}",
                hint="Check that the workflow file exists on the target ref "
                "and declares a workflow_dispatch trigger.",
            ) from exc

    def list_runs(self, workflow: str, limit: int) -> list[WorkflowRun]:
        output = self._runner.run(
            [
                "run", "list",
                "--workflow", workflow,
                "--limit", str(limit),
                "--json", RUN_FIELDS,
            ]
        )
        data = _load_json(output, "workflow runs")
        if not isinstance(data, list):
            raise GhResponseError("Expected a JSON list of workflow runs.")
        return [parse_run(entry) for entry in data]

    def get_run(self, run_id: int) -> WorkflowRun:
        output = self._runner.run(
            ["run", "view", str(run_id), "--json", RUN_FIELDS],
        )
        return parse_run(_load_json(output, "workflow run"))

    def get_logs(self, run_id: int, failed_only: bool) -> str:
        """Return run logs; ``--log-failed`` falls back to ``--log`` on error."""
        base = ["run", "view", str(run_id)]
        if failed_only:
            try:
                return self._runner.run([*base, "--log-failed"])
            except GhCommandError as exc:
                logger.debug("--log-failed unavailable for run #%s: %s", run_id, exc)
        try:
            return self._runner.run([*base, "--log"])
        except GhCommandError as exc:
            raise LogRetrievalError(
                f"Failed to get logs for workflow run #{run_id}: {exc.stderr or exc}",
            ) from exc

    # ------------------------------------------------------------------
    # Pull requests
    # ------------------------------------------------------------------

    def list_prs(self, state: str, head_branch_filter: str = "") -> list[PullRequest]:
        args = ["pr", "list", "--state", state, "--json", PR_FIELDS]
        if head_branch_filter:
            args.extend(["--head", head_branch_filter])
        data = _load_json(self._runner.run(args), "pull request list")
        if not isinstance(data, list):
            raise GhResponseError("Expected a JSON list of pull requests.")
        return [parse_pull_request(entry) for entry in data]

    def get_pr(self, number: int) -> PullRequest:
        output = self._runner.run(["pr", "view", str(number), "--json", PR_FIELDS])
        return parse_pull_request(_load_json(output, f"pull request #{number}"))

    def merge_pr(self, number: int, method: str, delete_branch: bool) -> None:
        if method not in _MERGE_METHODS:
            raise ValueError(f"unsupported merge method: {method}")
        args = ["pr", "merge", str(number), f"--{method}"]
        if delete_branch:
            args.append("--delete-branch")
        try:
            self._runner.run(args)
        except GhCommandError as exc:
            raise MergeFailedError(
                f"Failed to merge pull request #{number}: {exc.stderr or exc}",
            ) from exc


# ---------------------------------------------------------------------------
# Raw-dict → domain-model parsers (pure)
# ---------------------------------------------------------------------------

def _load_json(output: str, what: str) -> Any:
    try:
        return json.loads(output)
    except json.JSONDecodeError as exc:
        raise GhResponseError(f"Failed to parse {what}: {exc}") from exc


def _lower(value: object) -> str:
    return str(value or "").strip().lower()


def parse_run(raw: object) -> WorkflowRun:
    """Convert one ``gh run`` JSON object into a :class:`WorkflowRun`."""
    if not isinstance(raw, dict):
        raise GhResponseError("Workflow run entry is not a JSON object.")
    try:
        run_id = int(raw["databaseId"])
    except (KeyError, TypeError, ValueError) as exc:
        raise GhResponseError("Workflow run entry has no valid databaseId.") from exc
    return WorkflowRun(
        id=run_id,
        status=_lower(raw.get("status")),
        conclusion=_lower(raw.get("conclusion")),
        url=str(raw.get("url") or ""),
        head_branch=str(raw.get("headBranch") or ""),
        event=str(raw.get("event") or ""),
        name=str(raw.get("name") or ""),
    )


def parse_pull_request(raw: object) -> PullRequest:
    """Convert one ``gh pr`` JSON object into a :class:`PullRequest`."""
    if not isinstance(raw, dict):
        raise GhResponseError("Pull request entry is not a JSON object.")
    try:
        number = int(raw["number"])
    except (KeyError, TypeError, ValueError) as exc:
        raise GhResponseError("Pull request entry has no valid number.") from exc
    return PullRequest(
        number=number,
        url=str(raw.get("url") or ""),
        title=str(raw.get("title") or ""),
        state=_lower(raw.get("state")),
        head_ref_name=str(raw.get("headRefName") or ""),
        base_ref_name=str(raw.get("baseRefName") or ""),
        created_at=_parse_timestamp(raw.get("createdAt")),
    )


def _parse_timestamp(value: object) -> datetime | None:
    """Parse GitHub's ``2024-05-01T12:00:00Z`` timestamps; ``None`` if absent."""
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.debug("Ignoring unparseable timestamp %r", value)
        return None
