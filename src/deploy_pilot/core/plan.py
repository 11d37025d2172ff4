"""Pure construction of deployment plans.

Writing the plan to disk is the infrastructure layer's job
(:mod:`deploy_pilot.infra.plan_writer`); this module only decides what
the plan contains.
"""

from __future__ import annotations

from datetime import datetime, timezone

from deploy_pilot.core.models import RECIPE_KIND_TERRAFORM, DeploymentPlan, PlanStep
from deploy_pilot.exceptions import WorkspaceError

APPLICATION_RESOURCE_TYPE = "Applications.Core/applications"

_RESERVED_NAMES = frozenset({".", ".."})


def check_name(kind: str, value: str) -> str:
    """Return *value* if it can name a single plan directory.

    Raises
    ------
    WorkspaceError
        If *value* is empty, ``.`` or ``..``, or contains a path separator.
    """
    if not value or value in _RESERVED_NAMES or "/" in value or "\\" in value:
        raise WorkspaceError(
            f"Invalid {kind} name: {value!r}.",
            hint=f"Use a plain {kind} name without path separators.",
        )
    return value


def artifact_directory_name(order: int, resource_name: str, recipe_kind: str) -> str:
    """Return the per-step artifact directory, e.g. ``001-todo-terraform``."""
    return f"{order:03d}-{resource_name}-{recipe_kind}"


def build_plan(
    application: str,
    environment: str,
    generated_at: datetime | None = None,
) -> DeploymentPlan:
    """Build the plan for *application* in *environment*.

    The plan holds a single ``order = 1`` step deploying the application
    resource through its Terraform recipe.
    """
    check_name("application", application)
    check_name("environment", environment)

    stamp = generated_at or datetime.now(timezone.utc)
    step = PlanStep(
        order=1,
        resource_name=application,
        resource_type=APPLICATION_RESOURCE_TYPE,
        recipe_kind=RECIPE_KIND_TERRAFORM,
        artifact_directory=artifact_directory_name(1, application, RECIPE_KIND_TERRAFORM),
    )
    return DeploymentPlan(
        application=application,
        environment=environment,
        generated_at=stamp.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
        steps=(step,),
    )
