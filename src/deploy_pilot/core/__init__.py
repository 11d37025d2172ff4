"""Core / service layer — orchestration logic and domain models.

Rules
-----
* No ``print()`` calls.
* No filesystem, network or subprocess I/O.
* No imports from ``cli`` or ``infra``.
* Remote access only through :class:`~deploy_pilot.core.protocols.CIProvider`.
"""

from deploy_pilot.core.models import (
    DeploymentIdentity,
    DeploymentPlan,
    PipelineOutcome,
    PipelineStage,
    PlanStep,
    PullRequest,
    WorkflowRun,
)
from deploy_pilot.core.pipeline_driver import PipelineDriver
from deploy_pilot.core.pr_manager import PRLifecycleManager
from deploy_pilot.core.protocols import CIProvider, PipelineReporter, Prompter
from deploy_pilot.core.run_locator import RunLocator
from deploy_pilot.core.waiting import CancelToken
from deploy_pilot.core.workflow_watcher import WorkflowWatcher

__all__: list[str] = [
    "CIProvider",
    "CancelToken",
    "DeploymentIdentity",
    "DeploymentPlan",
    "PRLifecycleManager",
    "PipelineDriver",
    "PipelineOutcome",
    "PipelineReporter",
    "PipelineStage",
    "PlanStep",
    "Prompter",
    "PullRequest",
    "RunLocator",
    "WorkflowRun",
    "WorkflowWatcher",
]
