"""CLI application entry point and command routing for deploy-pilot.

This module is the **sole error boundary** for the entire application.
It catches :class:`~deploy_pilot.exceptions.DeployPilotError`,
``KeyboardInterrupt``, and any unexpected ``Exception``, rendering
user-friendly messages via Rich and returning well-defined exit codes.

Architecture notes
------------------
* No business logic lives here — all work is delegated to the core and
  infrastructure layers.
* Heavy imports happen inside the command handlers so that
  ``--version`` and ``--help`` stay fast.
* This module is the only place that translates between the domain world
  and the OS process exit code.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from deploy_pilot.cli import exit_codes
from deploy_pilot.cli.console import err_console, get_rich_console, print_error
from deploy_pilot.exceptions import (
    DeployPilotError,
    OperationCancelledError,
    WorkspaceError,
)
from deploy_pilot.version import __version__

LOGGER_NAME = "deploy_pilot"


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    """Construct the top-level argument parser.

    Sub-commands:
    * ``deploy-pilot plan-create -e ENV [-a APP]``
    * ``deploy-pilot pr-create [-e ENV] [-a APP]``
    * ``deploy-pilot pr-merge [-p N] [-y]``
    * ``deploy-pilot doctor``
    """
    parser = argparse.ArgumentParser(
        prog="deploy-pilot",
        description="Drive plan and deploy workflows through GitHub Actions.",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging (every gh invocation is logged).",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Abort waiting on GitHub Actions after this many seconds.",
    )

    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    plan = sub.add_parser("plan-create", help="Generate local deployment plan artifacts.")
    plan.add_argument("-e", "--environment", required=True, help="Target environment.")
    plan.add_argument(
        "-a",
        "--application",
        default=None,
        help="Application name (default: every detected application).",
    )

    pr_create = sub.add_parser(
        "pr-create",
        help="Trigger the plan workflow and wait for the deployment PR.",
    )
    pr_create.add_argument(
        "-e", "--environment", default="default", help="Target environment."
    )
    pr_create.add_argument(
        "-a",
        "--application",
        default=None,
        help="Application name (required when several exist).",
    )

    pr_merge = sub.add_parser(
        "pr-merge",
        help="Merge the deployment PR and follow the deploy workflow.",
    )
    pr_merge.add_argument(
        "-p", "--pr", type=int, default=None, help="PR number (default: latest)."
    )
    pr_merge.add_argument(
        "-y", "--yes", action="store_true", help="Merge without confirmation."
    )

    sub.add_parser("doctor", help="Check the local environment.")
    return parser


def _build_log_handler() -> logging.Handler:
    """Return a Rich log handler, or a plain stderr handler without Rich."""
    try:
        from rich.logging import RichHandler
    except ModuleNotFoundError:
        plain = logging.StreamHandler(sys.stderr)
        plain.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        return plain
    handler = RichHandler(
        console=get_rich_console(stderr=True),
        show_path=False,
        rich_tracebacks=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def configure_logging(verbose: bool) -> None:
    """Route ``deploy_pilot`` log records to stderr, through Rich when installed."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.addHandler(_build_log_handler())
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False


# ---------------------------------------------------------------------------
# Command dispatch
# ---------------------------------------------------------------------------

def _handle_plan_create(args: argparse.Namespace, root: Path) -> int:
    """Write a plan manifest for each requested application."""
    from deploy_pilot.cli.console import console
    from deploy_pilot.config import PipelineSettings
    from deploy_pilot.core.plan import build_plan
    from deploy_pilot.infra.plan_writer import PlanWriter
    from deploy_pilot.infra.workspace import Workspace

    settings = PipelineSettings.from_env()
    workspace = Workspace(root, settings.workspace_dir)

    if args.application:
        applications = [args.application]
    else:
        applications = workspace.detect_applications()
    if not applications:
        raise WorkspaceError(
            f"No applications found in '{workspace.model_dir}'.",
            hint="Create an application model first, or pass --application.",
        )

    writer = PlanWriter(workspace.plan_dir)
    for application in applications:
        plan = build_plan(application, args.environment)
        manifest = writer.write(plan)
        console.print(
            f"[bold green]✓[/bold green] Plan for [bold]{application}[/bold] "
            f"({args.environment}): {manifest}"
        )
    return exit_codes.SUCCESS


def _handle_pr_create(args: argparse.Namespace, root: Path) -> int:
    """Trigger the plan workflow and watch it to completion."""
    from deploy_pilot.cli.console import console
    from deploy_pilot.cli.progress import RichReporter
    from deploy_pilot.config import PipelineSettings
    from deploy_pilot.core.models import DeploymentIdentity
    from deploy_pilot.core.pipeline_driver import PipelineDriver
    from deploy_pilot.core.pr_manager import PRLifecycleManager
    from deploy_pilot.core.waiting import CancelToken
    from deploy_pilot.infra.gh_client import GhCliProvider
    from deploy_pilot.infra.git_helper import GitHelper
    from deploy_pilot.infra.tool_detector import require_tool
    from deploy_pilot.infra.workspace import Workspace

    settings = PipelineSettings.from_env()
    workspace = Workspace(root, settings.workspace_dir)
    workspace.require_git_repository()
    workspace.require_workflow(settings.plan_workflow)
    workspace.require_environment(args.environment)
    application = workspace.resolve_application(args.application)

    require_tool("gh")
    provider = GhCliProvider()
    provider.auth_status()
    ref = GitHelper(root).current_branch_or_default()

    console.print(
        f"Creating deployment PR for [bold]{application}[/bold] "
        f"in [bold]{args.environment}[/bold] (ref: {ref})"
    )
    driver = PipelineDriver(
        provider,
        RichReporter(),
        PRLifecycleManager(provider, auto_approve=True),
        settings,
        CancelToken(args.timeout),
    )
    driver.create_plan_pr(DeploymentIdentity(application, args.environment), ref)
    return exit_codes.SUCCESS


def _handle_pr_merge(args: argparse.Namespace, root: Path) -> int:
    """Merge the deployment PR and follow the deploy workflow."""
    from deploy_pilot.cli.merge_prompt import QuestionaryPrompter
    from deploy_pilot.cli.progress import RichReporter
    from deploy_pilot.config import PipelineSettings
    from deploy_pilot.core.models import PipelineStage
    from deploy_pilot.core.pipeline_driver import PipelineDriver
    from deploy_pilot.core.pr_manager import PRLifecycleManager
    from deploy_pilot.core.waiting import CancelToken
    from deploy_pilot.infra.gh_client import GhCliProvider
    from deploy_pilot.infra.tool_detector import require_tool
    from deploy_pilot.infra.workspace import Workspace

    settings = PipelineSettings.from_env()
    workspace = Workspace(root, settings.workspace_dir)
    workspace.require_git_repository()
    workspace.require_workflow(settings.deploy_workflow)

    require_tool("gh")
    provider = GhCliProvider()
    provider.auth_status()

    auto_approve = args.yes or not sys.stdin.isatty()
    pr_manager = PRLifecycleManager(
        provider,
        auto_approve=auto_approve,
        prompter=None if auto_approve else QuestionaryPrompter(),
    )
    driver = PipelineDriver(
        provider,
        RichReporter(),
        pr_manager,
        settings,
        CancelToken(args.timeout),
    )
    outcome = driver.merge_and_deploy(args.pr)
    if outcome.stage is PipelineStage.AMBIGUOUS:
        return exit_codes.GENERAL_ERROR
    return exit_codes.SUCCESS


def _handle_doctor(root: Path) -> int:
    """Dispatch the ``doctor`` diagnostics command."""
    from deploy_pilot.cli.doctor import run_doctor
    from deploy_pilot.config import PipelineSettings

    return run_doctor(root, PipelineSettings.from_env())


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None, *, root: Path | None = None) -> int:
    """Run the deploy-pilot CLI.

    Parameters
    ----------
    argv:
        Explicit argument list.  When ``None`` (default), ``sys.argv[1:]``
        is used.
    root:
        Repository root.  Defaults to the current working directory.

    Returns
    -------
    int
        OS process exit code.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return exit_codes.SUCCESS

    if args.timeout is not None and args.timeout <= 0:
        parser.error("--timeout must be positive")

    configure_logging(args.verbose)
    repo_root = root if root is not None else Path.cwd()

    if args.command == "doctor":
        return _handle_doctor(repo_root)
    if args.command == "plan-create":
        return _handle_plan_create(args, repo_root)
    if args.command == "pr-create":
        return _handle_pr_create(args, repo_root)
    return _handle_pr_merge(args, repo_root)


# ---------------------------------------------------------------------------
# Script-level error boundary
# ---------------------------------------------------------------------------

def run(argv: list[str] | None = None, *, root: Path | None = None) -> int:
    """Call :func:`main` and map every failure to an exit code."""
    try:
        return main(argv, root=root)
    except OperationCancelledError as exc:
        print_error(exc)
        return exit_codes.TIMED_OUT
    except DeployPilotError as exc:
        print_error(exc)
        return exit_codes.GENERAL_ERROR
    except KeyboardInterrupt:
        err_console.print("\n[yellow]Aborted by user.[/yellow]")
        return exit_codes.KEYBOARD_INTERRUPT
    except Exception as exc:  # noqa: BLE001
        err_console.print(
            "[bold red]Unexpected error.[/bold red] "
            "Please report this issue.\n"
            f"  {type(exc).__name__}: {exc}"
        )
        return exit_codes.UNEXPECTED_ERROR


def cli() -> None:
    """Top-level error boundary invoked by the console-script entry point.

    This function wraps :func:`main` and guarantees the process never
    exits with a raw stack trace during normal usage.
    """
    sys.exit(run())
