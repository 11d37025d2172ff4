"""Pipeline orchestration — the plan → PR → merge → deploy state machine.

:class:`PipelineDriver` sequences the remote jobs and maps their outcomes
to user-facing results:

Plan / PR path (``create_plan_pr``)::

    TRIGGERED → RUN_PENDING → RUN_OBSERVED → COMPLETED_SUCCESS | COMPLETED_FAILURE
                           ↘ NOT_FOUND (soft failure)

Merge / deploy path (``merge_and_deploy``)::

    PR_DISCOVERED → MERGED → DEPLOY_TRIGGERED → DEPLOY_RUN_PENDING
        → DEPLOY_RUN_OBSERVED → DEPLOY_COMPLETED_SUCCESS | DEPLOY_COMPLETED_FAILURE
                                ↘ NOT_FOUND (informational)

    AMBIGUOUS instead of PR_DISCOVERED when several deployment PRs are
    open, no number was given and the merge is not confirmed interactively.

Failure semantics
-----------------
* Trigger, watch, log and merge failures raise immediately.
* A run that never becomes visible is a *soft* failure: the outcome
  ends in ``NOT_FOUND`` and the operator is told to check GitHub Actions.
* A run that completes unsuccessfully raises
  :class:`~deploy_pilot.exceptions.WorkflowFailedError` after the log
  tail has been reported.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from deploy_pilot.config import PipelineSettings
from deploy_pilot.core.models import (
    DeploymentIdentity,
    PipelineOutcome,
    PipelineStage,
    PullRequest,
    WorkflowRun,
)
from deploy_pilot.core.pr_manager import PRLifecycleManager
from deploy_pilot.core.protocols import CIProvider, PipelineReporter
from deploy_pilot.core.run_locator import RunLocator
from deploy_pilot.core.waiting import CancelToken
from deploy_pilot.core.workflow_watcher import WorkflowWatcher
from deploy_pilot.exceptions import (
    CIError,
    LogRetrievalError,
    NoDeploymentPRError,
    TriggerFailedError,
    WorkflowFailedError,
)

logger = logging.getLogger(__name__)

_RUN_PATH_SEGMENT = "/actions/runs/"


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------

def tail_logs(logs: str, limit: int = 2000) -> str:
    """Return the last *limit* characters of *logs* (unchanged if shorter)."""
    if limit <= 0:
        return ""
    if len(logs) > limit:
        return logs[-limit:]
    return logs


def pull_request_listing_url(run_url: str) -> str:
    """Derive the repository's PR listing URL from a workflow run URL.

    ``https://github.com/o/r/actions/runs/42`` → ``https://github.com/o/r/pulls``.
    A URL without the run segment is returned unchanged.
    """
    base, sep, _ = run_url.partition(_RUN_PATH_SEGMENT)
    if not sep:
        return run_url
    return f"{base}/pulls"


class _StageTracker:
    """Ordered record of visited stages."""

    def __init__(self) -> None:
        self.history: list[PipelineStage] = []

    def enter(self, stage: PipelineStage) -> None:
        logger.debug("Pipeline stage -> %s", stage.value)
        self.history.append(stage)

    @property
    def current(self) -> PipelineStage:
        return self.history[-1]

    def outcome(
        self,
        *,
        run: WorkflowRun | None = None,
        pull_request: PullRequest | None = None,
        message: str = "",
    ) -> PipelineOutcome:
        return PipelineOutcome(
            stage=self.current,
            history=tuple(self.history),
            run=run,
            pull_request=pull_request,
            message=message,
        )


# ---------------------------------------------------------------------------
# Driver
# ---------------------------------------------------------------------------

class PipelineDriver:
    """Sequences trigger → locate → watch → merge → locate → watch.

    Parameters
    ----------
    provider:
        Remote CI system.
    reporter:
        Sink for user-facing progress lines.
    pr_manager:
        Pull-request lifecycle helper (owns confirmation policy).
    settings:
        Workflow names, timings and merge options.
    token:
        Cancellation token shared by every wait in this invocation.
    """

    def __init__(
        self,
        provider: CIProvider,
        reporter: PipelineReporter,
        pr_manager: PRLifecycleManager,
        settings: PipelineSettings,
        token: CancelToken,
    ) -> None:
        self._provider = provider
        self._reporter = reporter
        self._prs = pr_manager
        self._settings = settings
        self._token = token
        self._locator = RunLocator(
            provider,
            max_attempts=settings.locate_attempts,
            interval=settings.locate_interval,
            token=token,
        )
        self._watcher = WorkflowWatcher(
            provider, interval=settings.watch_interval, token=token,
        )

    # ------------------------------------------------------------------
    # Plan / PR path
    # ------------------------------------------------------------------

    def create_plan_pr(self, identity: DeploymentIdentity, ref: str) -> PipelineOutcome:
        """Trigger the plan workflow and follow it to completion.

        Raises
        ------
        TriggerFailedError
            If the dispatch is rejected.
        RunWatchError
            If the run cannot be fetched while watching.
        WorkflowFailedError
            If the plan workflow concludes with anything but success.
        """
        stages = _StageTracker()
        workflow = self._settings.plan_workflow
        inputs = {
            "environment": identity.environment,
            "application": identity.application,
        }

        self._reporter.info(
            f"Triggering plan workflow for application '{identity.application}' "
            f"in environment '{identity.environment}'...",
        )
        self._trigger(workflow, ref, inputs)
        stages.enter(PipelineStage.TRIGGERED)
        self._reporter.success("Plan workflow triggered successfully!")

        self._reporter.info("Waiting for workflow to start...")
        stages.enter(PipelineStage.RUN_PENDING)
        run = self._locate(workflow)
        if run is None:
            stages.enter(PipelineStage.NOT_FOUND)
            message = "Could not find workflow run. Check GitHub Actions for status."
            self._reporter.warning(message)
            self._reporter.info("The pull request will appear once the workflow finishes.")
            return stages.outcome(message=message)

        stages.enter(PipelineStage.RUN_OBSERVED)
        final = self._watch(run, "Generating deployment plan...")

        if final.succeeded:
            stages.enter(PipelineStage.COMPLETED_SUCCESS)
            pr_url = pull_request_listing_url(final.url)
            self._reporter.success("Deployment plan generated successfully!")
            self._reporter.info("A pull request has been created for review.")
            self._reporter.info(f"View the PR at: {pr_url}")
            self._reporter.info("")
            self._reporter.info("Next steps:")
            self._reporter.info("  1. Review the deployment plan in the pull request")
            self._reporter.info("  2. Run 'deploy-pilot pr-merge' to deploy the application")
            return stages.outcome(run=final, message=pr_url)

        stages.enter(PipelineStage.COMPLETED_FAILURE)
        logs = self._report_failure(final, "Deployment plan generation failed!")
        raise WorkflowFailedError(
            f"Deployment plan generation failed (run #{final.id}, "
            f"conclusion: {final.conclusion or 'unknown'}).",
            run_id=final.id,
            url=final.url,
            logs=logs,
        )

    # ------------------------------------------------------------------
    # Merge / deploy path
    # ------------------------------------------------------------------

    def merge_and_deploy(self, pr_number: int | None = None) -> PipelineOutcome:
        """Merge a deployment PR and follow the deploy workflow it starts.

        Raises
        ------
        NoDeploymentPRError
            If no PR number was given and no open deployment PR exists.
        PullRequestStateError
            If the PR is not open.
        MergeFailedError
            If the merge is rejected.
        WorkflowFailedError
            If the deploy workflow concludes with anything but success.
        """
        stages = _StageTracker()

        if pr_number is not None:
            self._reporter.info(f"Fetching PR #{pr_number}...")
            pr = self._prs.get(pr_number)
        else:
            self._reporter.info("Finding latest deployment PR...")
            candidates = self._prs.deployment_prs()
            if len(candidates) > 1 and self._prs.auto_approve:
                stages.enter(PipelineStage.AMBIGUOUS)
                numbers = ", ".join(f"#{candidate.number}" for candidate in candidates)
                message = f"Several open deployment PRs found ({numbers}); choose one with --pr."
                self._reporter.warning(message)
                return stages.outcome(message=message)
            pr = self._latest_pr(candidates)
        stages.enter(PipelineStage.PR_DISCOVERED)
        self._reporter.info("")
        self._reporter.info("Found deployment PR:")
        self._reporter.info(f"  #{pr.number}: {pr.title}")
        self._reporter.info(f"  Branch: {pr.head_ref_name} -> {pr.base_ref_name}")
        self._reporter.info(f"  URL: {pr.url}")
        self._reporter.info("")

        self._prs.ensure_open(pr)

        if not self._prs.confirm(pr):
            stages.enter(PipelineStage.CANCELLED)
            self._reporter.info("Merge cancelled.")
            return stages.outcome(pull_request=pr, message="Merge cancelled.")

        self._reporter.info(f"Merging PR #{pr.number}...")
        self._prs.merge(
            pr,
            method=self._settings.merge_method,
            delete_branch=self._settings.delete_branch,
        )
        stages.enter(PipelineStage.MERGED)
        self._reporter.success(f"PR #{pr.number} merged successfully!")

        # The merge event itself starts the deploy workflow.
        stages.enter(PipelineStage.DEPLOY_TRIGGERED)
        self._reporter.info("Waiting for deploy workflow to start...")
        stages.enter(PipelineStage.DEPLOY_RUN_PENDING)
        run = self._locate(self._settings.deploy_workflow)
        if run is None:
            stages.enter(PipelineStage.NOT_FOUND)
            message = "Could not find deploy workflow run. Check GitHub Actions for status."
            self._reporter.info(f"Note: {message}")
            self._report_next_steps()
            return stages.outcome(pull_request=pr, message=message)

        stages.enter(PipelineStage.DEPLOY_RUN_OBSERVED)
        final = self._watch(run, "Deploying resources...")

        if final.succeeded:
            stages.enter(PipelineStage.DEPLOY_COMPLETED_SUCCESS)
            self._reporter.success("Deployment completed successfully!")
            self._report_next_steps()
            return stages.outcome(run=final, pull_request=pr)

        stages.enter(PipelineStage.DEPLOY_COMPLETED_FAILURE)
        logs = self._report_failure(final, "Deployment failed!")
        raise WorkflowFailedError(
            f"Deployment failed (run #{final.id}, "
            f"conclusion: {final.conclusion or 'unknown'}).",
            run_id=final.id,
            url=final.url,
            logs=logs,
        )

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _trigger(self, workflow: str, ref: str, inputs: Mapping[str, str]) -> None:
        try:
            self._provider.trigger(workflow, ref, inputs)
        except TriggerFailedError:
            raise
        except CIError as exc:
            raise TriggerFailedError(
                f"Failed to trigger workflow {workflow}: {exc}",
                hint=exc.hint,
            ) from exc

    def _locate(self, workflow: str) -> WorkflowRun | None:
        self._token.sleep(self._settings.initial_delay)
        return self._locator.locate(workflow)

    def _watch(self, run: WorkflowRun, label: str) -> WorkflowRun:
        logger.debug("Watching run #%s (%s)", run.id, run.url)
        with self._reporter.progress(label) as on_status:
            final = self._watcher.watch(run.id, on_status)
        self._reporter.info("")
        return final

    def _latest_pr(self, candidates: list[PullRequest]) -> PullRequest:
        pr = self._prs.find_latest_deployment_pr(candidates)
        if pr is None:
            raise NoDeploymentPRError(
                "No deployment PR found.",
                hint="Run 'deploy-pilot pr-create' to create a deployment PR first.",
            )
        return pr

    def _report_failure(self, run: WorkflowRun, header: str) -> str:
        """Report a failed run with its log tail; return the reported tail."""
        self._reporter.failure(header)
        try:
            raw = self._provider.get_logs(run.id, failed_only=True)
        except LogRetrievalError as exc:
            raise LogRetrievalError(
                f"Workflow run #{run.id} failed and its logs could not be fetched: {exc}",
                hint=f"For full details, see: {run.url}",
            ) from exc
        logs = tail_logs(raw, self._settings.log_tail_chars)
        if logs:
            self._reporter.info("Workflow logs:")
            self._reporter.logs(logs)
        self._reporter.info(f"For full details, see: {run.url}")
        return logs

    def _report_next_steps(self) -> None:
        self._reporter.info("")
        self._reporter.info("Next steps:")
        self._reporter.info("  - Monitor the deployment workflow in GitHub Actions")
        self._reporter.info(
            f"  - Deployment records will be stored in {self._settings.workspace_dir}/deploy/",
        )
