"""Domain models for deploy-pilot.

All models are **frozen** dataclasses — immutable value objects with no
behaviour beyond data access and a few derived properties.  They carry
zero I/O.  String states coming from GitHub are normalised to lower case
by the infrastructure layer before a model is built, so comparisons here
never special-case ``"OPEN"`` vs ``"open"``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime

from deploy_pilot.exceptions import RunStateRegressionError

BRANCH_PREFIX = "deploy/"
"""Reserved head-branch prefix correlating a PR to a deployment."""

BRANCH_TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"

STATUS_COMPLETED = "completed"
CONCLUSION_SUCCESS = "success"
PR_STATE_OPEN = "open"


# ---------------------------------------------------------------------------
# Deployment target
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class DeploymentIdentity:
    """One logical deployment target."""

    application: str
    environment: str

    def branch_name(self, timestamp: datetime) -> str:
        """Return ``deploy/<application>/<environment>-<timestamp>``.

        The plan workflow creates this branch remotely; locally the name
        only documents what :attr:`PullRequest.is_deployment` matches.
        """
        stamp = timestamp.strftime(BRANCH_TIMESTAMP_FORMAT)
        return f"{BRANCH_PREFIX}{self.application}/{self.environment}-{stamp}"


# ---------------------------------------------------------------------------
# Remote records
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class WorkflowRun:
    """A single GitHub Actions run as reported by the CI system."""

    id: int
    status: str
    """``queued``, ``in_progress``, … until ``completed``."""

    conclusion: str
    """Meaningful only once :attr:`status` is terminal."""

    url: str
    head_branch: str = ""
    event: str = ""
    name: str = ""

    @property
    def is_terminal(self) -> bool:
        return self.status == STATUS_COMPLETED

    @property
    def succeeded(self) -> bool:
        return self.is_terminal and self.conclusion == CONCLUSION_SUCCESS

    def advanced_to(self, newer: WorkflowRun) -> WorkflowRun:
        """Return *newer* after checking it is a legal successor of ``self``.

        Raises
        ------
        RunStateRegressionError
            If *newer* is a different run, or moves a terminal run back
            to a non-terminal status.
        """
        if newer.id != self.id:
            raise RunStateRegressionError(
                f"Run #{self.id} was replaced by unrelated run #{newer.id}.",
            )
        if self.is_terminal and not newer.is_terminal:
            raise RunStateRegressionError(
                f"Run #{self.id} went from '{self.status}' back to '{newer.status}'.",
            )
        return newer


@dataclass(frozen=True, slots=True)
class PullRequest:
    """A pull request on the remote repository."""

    number: int
    url: str
    title: str
    state: str
    """``open``, ``merged`` or ``closed``."""

    head_ref_name: str
    base_ref_name: str
    created_at: datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.state == PR_STATE_OPEN

    @property
    def is_deployment(self) -> bool:
        return self.head_ref_name.startswith(BRANCH_PREFIX)


# ---------------------------------------------------------------------------
# Orchestration state
# ---------------------------------------------------------------------------

class PipelineStage(enum.Enum):
    """States visited by :class:`~deploy_pilot.core.pipeline_driver.PipelineDriver`."""

    TRIGGERED = "triggered"
    RUN_PENDING = "run-pending"
    RUN_OBSERVED = "run-observed"
    COMPLETED_SUCCESS = "completed-success"
    COMPLETED_FAILURE = "completed-failure"
    PR_DISCOVERED = "pr-discovered"
    MERGED = "merged"
    DEPLOY_TRIGGERED = "deploy-triggered"
    DEPLOY_RUN_PENDING = "deploy-run-pending"
    DEPLOY_RUN_OBSERVED = "deploy-run-observed"
    DEPLOY_COMPLETED_SUCCESS = "deploy-completed-success"
    DEPLOY_COMPLETED_FAILURE = "deploy-completed-failure"
    NOT_FOUND = "not-found"
    AMBIGUOUS = "ambiguous"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STAGES


_TERMINAL_STAGES = frozenset(
    {
        PipelineStage.COMPLETED_SUCCESS,
        PipelineStage.COMPLETED_FAILURE,
        PipelineStage.DEPLOY_COMPLETED_SUCCESS,
        PipelineStage.DEPLOY_COMPLETED_FAILURE,
        PipelineStage.NOT_FOUND,
        PipelineStage.AMBIGUOUS,
        PipelineStage.CANCELLED,
    }
)


@dataclass(frozen=True, slots=True)
class PipelineOutcome:
    """Result of a driver operation that did not raise."""

    stage: PipelineStage
    history: tuple[PipelineStage, ...]
    run: WorkflowRun | None = None
    pull_request: PullRequest | None = None
    message: str = ""


# ---------------------------------------------------------------------------
# Plan manifest
# ---------------------------------------------------------------------------

RECIPE_KIND_TERRAFORM = "terraform"
RECIPE_KIND_BICEP = "bicep"


@dataclass(frozen=True, slots=True)
class PlanStep:
    """One ordered step of a deployment plan."""

    order: int
    resource_name: str
    resource_type: str
    recipe_kind: str
    artifact_directory: str


@dataclass(frozen=True, slots=True)
class PlanSummary:
    total_steps: int
    terraform_steps: int
    bicep_steps: int


@dataclass(frozen=True, slots=True)
class DeploymentPlan:
    """Ordered plan for one application in one environment."""

    application: str
    environment: str
    generated_at: str
    """RFC 3339 UTC timestamp."""

    steps: tuple[PlanStep, ...] = field(default_factory=tuple)

    @property
    def summary(self) -> PlanSummary:
        kinds = [step.recipe_kind for step in self.steps]
        return PlanSummary(
            total_steps=len(self.steps),
            terraform_steps=kinds.count(RECIPE_KIND_TERRAFORM),
            bicep_steps=kinds.count(RECIPE_KIND_BICEP),
        )
