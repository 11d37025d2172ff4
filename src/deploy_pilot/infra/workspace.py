"""Local repository layout checks.

Layout under the repository root::

    .git/
    .github/workflows/<plan workflow>, <deploy workflow>
    <workspace_dir>/model/<application>.bicep
    <workspace_dir>/env.<environment>.yaml
    <workspace_dir>/plan/<application>/<environment>/plan.yaml
"""

from __future__ import annotations

from pathlib import Path

from deploy_pilot.exceptions import AmbiguousApplicationError, WorkspaceError
from deploy_pilot.infra.git_helper import is_git_repository

MODEL_SUFFIXES = (".bicep", ".yaml")


class Workspace:
    """Filesystem view of a deploy-pilot repository."""

    def __init__(self, root: Path, workspace_dir: str = ".deploy") -> None:
        self.root: Path = root
        self.config_dir: Path = root / workspace_dir

    @property
    def model_dir(self) -> Path:
        return self.config_dir / "model"

    @property
    def plan_dir(self) -> Path:
        return self.config_dir / "plan"

    def workflow_path(self, workflow: str) -> Path:
        return self.root / ".github" / "workflows" / workflow

    def environment_path(self, environment: str) -> Path:
        return self.config_dir / f"env.{environment}.yaml"

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def require_git_repository(self) -> None:
        if not is_git_repository(self.root):
            raise WorkspaceError(
                "Not in a git repository.",
                hint="Run this command from the root of your repository.",
            )

    def require_workflow(self, workflow: str) -> Path:
        path = self.workflow_path(workflow)
        if not path.is_file():
            raise WorkspaceError(
                f"Workflow not found at '{path}'.",
                hint="Commit the workflow files under .github/workflows/ first.",
            )
        return path

    def require_environment(self, environment: str) -> Path:
        path = self.environment_path(environment)
        if not path.is_file():
            raise WorkspaceError(
                f"Environment '{environment}' not found.",
                hint=f"Create {path.relative_to(self.root)} describing the environment.",
            )
        return path

    # ------------------------------------------------------------------
    # Applications
    # ------------------------------------------------------------------

    def detect_applications(self) -> list[str]:
        """Return sorted application names from model files; ``[]`` if none."""
        if not self.model_dir.is_dir():
            return []
        names = {
            entry.stem
            for entry in self.model_dir.iterdir()
            if entry.is_file() and entry.suffix in MODEL_SUFFIXES and entry.stem
        }
        return sorted(names)

    def resolve_application(self, requested: str | None) -> str:
        """Return *requested*, or the single detected application.

        Raises
        ------
        WorkspaceError
            When no application model exists.
        AmbiguousApplicationError
            When several exist and *requested* is ``None``.
        """
        if requested:
            return requested
        apps = self.detect_applications()
        if not apps:
            raise WorkspaceError(
                f"No applications found in '{self.model_dir.relative_to(self.root)}'.",
                hint="Create an application model first.",
            )
        if len(apps) > 1:
            raise AmbiguousApplicationError(apps)
        return apps[0]
