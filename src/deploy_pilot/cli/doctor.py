"""``deploy-pilot doctor`` — environment diagnostics command.

Gathers tool and repository information and renders a Rich table
summarising whether the current checkout is ready to drive the plan and
deploy workflows.

This module lives in the CLI layer — it may import from ``infra`` and
``core``, and it renders via Rich.  No business logic resides here.
"""

from __future__ import annotations

import platform
import sys
from pathlib import Path

from deploy_pilot.cli import exit_codes
from deploy_pilot.cli.console import console
from deploy_pilot.config import PipelineSettings
from deploy_pilot.exceptions import DeployPilotError
from deploy_pilot.infra.gh_client import GhCliProvider
from deploy_pilot.infra.git_helper import GitHelper, is_git_repository
from deploy_pilot.infra.tool_detector import detect_tool
from deploy_pilot.infra.workspace import Workspace
from deploy_pilot.version import __version__

Check = tuple[str, str, str]

_OK = "[green]OK[/green]"
_WARN = "[yellow]WARN[/yellow]"
_FAIL = "[red]FAIL[/red]"


# ---------------------------------------------------------------------------
# Diagnostic collectors
# ---------------------------------------------------------------------------

def _version_check() -> Check:
    return "deploy-pilot", __version__, _OK


def _python_version_check() -> Check:
    """Return (label, value, status) for the Python version row."""
    version = platform.python_version()
    ok = sys.version_info[:2] >= (3, 10)
    return "Python", version, _OK if ok else "[red]FAIL (>=3.10 required)[/red]"


def _tool_check(name: str) -> Check:
    status = detect_tool(name)
    if status.found:
        return name, str(status.path) if status.path else "found", _OK
    return name, "not found", _FAIL


def _repository_check(root: Path) -> Check:
    if not is_git_repository(root):
        return "Repository", "not a git repository", _FAIL
    try:
        owner, repo = GitHelper(root).owner_repo()
    except DeployPilotError:
        return "Repository", "no GitHub origin remote", _WARN
    return "Repository", f"{owner}/{repo}", _OK


def _workflow_check(workspace: Workspace, label: str, workflow: str) -> Check:
    path = workspace.workflow_path(workflow)
    if path.is_file():
        return label, workflow, _OK
    return label, f"{workflow} missing", _FAIL


def _auth_check(provider: GhCliProvider) -> Check:
    try:
        provider.auth_status()
    except DeployPilotError:
        return "gh auth", "not authenticated", _FAIL
    return "gh auth", "authenticated", _OK


def _status_plain(status: str) -> str:
    """Convert rich-markup status to plain text."""
    for word in ("FAIL", "WARN", "OK"):
        if word in status:
            return word
    return status


def _print_plain_doctor_table(checks: list[Check]) -> None:
    """Render doctor output without Rich."""
    print("\ndeploy-pilot doctor", file=sys.stderr)
    print("=" * 64, file=sys.stderr)
    print(f"{'Component':<14} {'Value':<40} {'Status':<8}", file=sys.stderr)
    print("-" * 64, file=sys.stderr)
    for label, value, status in checks:
        print(f"{label:<14} {value:<40} {_status_plain(status):<8}", file=sys.stderr)
    print(file=sys.stderr)


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def collect_checks(
    root: Path,
    settings: PipelineSettings,
    provider: GhCliProvider | None = None,
) -> list[Check]:
    """Run every diagnostic and return the rows in display order."""
    workspace = Workspace(root, settings.workspace_dir)
    checks = [
        _version_check(),
        _python_version_check(),
        _tool_check("git"),
        _tool_check("gh"),
        _repository_check(root),
        _workflow_check(workspace, "Plan workflow", settings.plan_workflow),
        _workflow_check(workspace, "Deploy workflow", settings.deploy_workflow),
    ]
    if detect_tool("gh").found:
        checks.append(_auth_check(provider or GhCliProvider()))
    return checks


def run_doctor(
    root: Path,
    settings: PipelineSettings,
    provider: GhCliProvider | None = None,
) -> int:
    """Execute all diagnostic checks and render a summary table.

    Returns
    -------
    int
        :data:`exit_codes.SUCCESS` when no check fails,
        :data:`exit_codes.GENERAL_ERROR` otherwise.
    """
    checks = collect_checks(root, settings, provider)
    has_failure = any("FAIL" in status for _, _, status in checks)

    try:
        from rich.table import Table
    except ModuleNotFoundError:
        _print_plain_doctor_table(checks)
        print(
            "Some checks failed." if has_failure else "All checks passed.",
            file=sys.stderr,
        )
        return exit_codes.GENERAL_ERROR if has_failure else exit_codes.SUCCESS

    table = Table(
        title="deploy-pilot doctor",
        show_header=True,
        header_style="bold cyan",
        border_style="dim",
    )
    table.add_column("Component", style="bold", min_width=14)
    table.add_column("Value", min_width=20)
    table.add_column("Status", justify="center", min_width=8)
    for label, value, status in checks:
        table.add_row(label, value, status)

    console.print()
    console.print(table)
    console.print()

    if has_failure:
        console.print("[bold red]Some checks failed.[/bold red]")
        return exit_codes.GENERAL_ERROR
    console.print("[bold green]All checks passed.[/bold green]")
    return exit_codes.SUCCESS
