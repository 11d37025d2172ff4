"""Infrastructure layer — external system integration.

This layer wraps all interaction with the ``gh`` CLI, ``git`` and the
local filesystem.  Every raw subprocess/JSON/YAML exception must be caught
here and re-raised as a :class:`~deploy_pilot.exceptions.DeployPilotError`
subclass.

Rules
-----
* No imports from ``cli``.
* No user-facing output (no ``print()``, no Rich rendering).
"""

from deploy_pilot.infra.gh_client import GhCliProvider, SubprocessGhRunner
from deploy_pilot.infra.git_helper import GitHelper, is_git_repository
from deploy_pilot.infra.plan_writer import PlanWriter
from deploy_pilot.infra.tool_detector import ToolStatus, detect_tool, require_tool
from deploy_pilot.infra.workspace import Workspace

__all__: list[str] = [
    "GhCliProvider",
    "GitHelper",
    "PlanWriter",
    "SubprocessGhRunner",
    "ToolStatus",
    "Workspace",
    "detect_tool",
    "is_git_repository",
    "require_tool",
]
