"""Persist deployment plans and their artifact stubs.

Each plan lives in ``<plan_dir>/<application>/<environment>/``: a
``plan.yaml`` manifest plus one artifact directory per step.  Writing is
idempotent — re-running for the same application/environment overwrites
the files in place and removes artifact directories of steps that are no
longer part of the plan.
"""

from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path
from typing import Any

import yaml

from deploy_pilot.core.models import DeploymentPlan, PlanStep
from deploy_pilot.exceptions import PlanFileError

logger = logging.getLogger(__name__)

MANIFEST_NAME = "plan.yaml"


class PlanWriter:
    """Write plan manifests below *plan_dir*."""

    def __init__(self, plan_dir: Path) -> None:
        self._plan_dir = plan_dir

    def directory_for(self, application: str, environment: str) -> Path:
        return self._plan_dir / application / environment

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def write(self, plan: DeploymentPlan) -> Path:
        """Write *plan* and its artifacts; return the manifest path.

        Raises
        ------
        PlanFileError
            On any filesystem or serialisation failure, or when the
            names do not resolve to a directory two levels below
            *plan_dir*.
        """
        target = self.directory_for(plan.application, plan.environment)
        if target.resolve().parent.parent != self._plan_dir.resolve():
            raise PlanFileError(
                f"Refusing to write plan outside {self._plan_dir}: {target}",
            )
        manifest = target / MANIFEST_NAME
        try:
            target.mkdir(parents=True, exist_ok=True)
            manifest.write_text(
                yaml.safe_dump(plan_to_dict(plan), sort_keys=False),
                encoding="utf-8",
            )
            self._remove_stale_artifacts(target, plan)
            for step in plan.steps:
                _write_artifacts(target / step.artifact_directory, plan, step)
        except (OSError, yaml.YAMLError) as exc:
            raise PlanFileError(f"Failed to write plan to {target}: {exc}") from exc

        logger.debug("Wrote %s (%d steps)", manifest, len(plan.steps))
        return manifest

    @staticmethod
    def _remove_stale_artifacts(target: Path, plan: DeploymentPlan) -> None:
        keep = {step.artifact_directory for step in plan.steps}
        for entry in target.iterdir():
            if entry.is_dir() and entry.name not in keep:
                logger.debug("Removing stale artifact directory %s", entry)
                shutil.rmtree(entry)


# ---------------------------------------------------------------------------
# Serialisation
# ---------------------------------------------------------------------------

def plan_to_dict(plan: DeploymentPlan) -> dict[str, Any]:
    summary = plan.summary
    return {
        "application": plan.application,
        "environment": plan.environment,
        "generatedAt": plan.generated_at,
        "summary": {
            "totalSteps": summary.total_steps,
            "terraformSteps": summary.terraform_steps,
            "bicepSteps": summary.bicep_steps,
        },
        "steps": [
            {
                "order": step.order,
                "resourceName": step.resource_name,
                "resourceType": step.resource_type,
                "recipeKind": step.recipe_kind,
                "artifactDirectory": step.artifact_directory,
            }
            for step in plan.steps
        ],
    }


# ---------------------------------------------------------------------------
# Artifact stubs
# ---------------------------------------------------------------------------

def _write_artifacts(directory: Path, plan: DeploymentPlan, step: PlanStep) -> None:
    directory.mkdir(parents=True, exist_ok=True)
    files = {
        "main.tf": f"# Resource: {step.resource_name}\n",
        "providers.tf": "terraform {}\n",
        "variables.tf": "# Variables\n",
        "terraform.tfvars.json": json.dumps(
            {
                "context": {
                    "application": plan.application,
                    "environment": plan.environment,
                    "resource": step.resource_name,
                }
            },
            indent=2,
        )
        + "\n",
        "terraform-context.txt": (
            f"Resource: {step.resource_name}\nType: {step.resource_type}\n"
        ),
    }
    for name, content in files.items():
        (directory / name).write_text(content, encoding="utf-8")
