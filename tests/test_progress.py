"""Tests for the Rich reporter and spinner (cli/progress.py).

Rendering goes to an in-memory Rich console — no real terminal.
"""

from __future__ import annotations

import io
from unittest.mock import MagicMock

import pytest
from rich.console import Console

from deploy_pilot.cli.progress import RichReporter, describe_status


def _reporter() -> tuple[RichReporter, io.StringIO]:
    buffer = io.StringIO()
    console = Console(file=buffer, force_terminal=False, width=120, highlight=False)
    return RichReporter(console), buffer


class TestLines:
    def test_info(self) -> None:
        reporter, buffer = _reporter()
        reporter.info("Waiting for workflow to start...")
        assert buffer.getvalue() == "Waiting for workflow to start...\n"

    def test_success_has_check_mark(self) -> None:
        reporter, buffer = _reporter()
        reporter.success("PR #7 merged successfully!")
        assert "✓ PR #7 merged successfully!" in buffer.getvalue()

    def test_failure_has_cross(self) -> None:
        reporter, buffer = _reporter()
        reporter.failure("Deployment failed!")
        assert "✗ Deployment failed!" in buffer.getvalue()

    def test_warning(self) -> None:
        reporter, buffer = _reporter()
        reporter.warning("Could not find workflow run.")
        assert "Could not find workflow run." in buffer.getvalue()

    def test_logs_are_not_markup(self) -> None:
        reporter, buffer = _reporter()
        reporter.logs("[error] terraform [bold]apply[/bold] failed")
        assert "[error] terraform [bold]apply[/bold] failed" in buffer.getvalue()


class TestSpinner:
    def test_status_updates_label(self) -> None:
        console = MagicMock()
        status = console.status.return_value.__enter__.return_value
        reporter = RichReporter(console, spinner="line")

        with reporter.progress("Deploying resources...") as on_status:
            on_status("in_progress")

        console.status.assert_called_once_with("Deploying resources...", spinner="line")
        status.update.assert_called_once_with("Deploying resources... [dim](running)[/dim]")

    def test_spinner_stopped_when_body_raises(self) -> None:
        console = MagicMock()
        reporter = RichReporter(console)

        with pytest.raises(RuntimeError, match="watch failed"):
            with reporter.progress("Generating deployment plan..."):
                raise RuntimeError("watch failed")

        exit_call = console.status.return_value.__exit__
        exit_call.assert_called_once()
        assert exit_call.call_args.args[0] is RuntimeError

    def test_real_console_round_trip(self) -> None:
        reporter, _ = _reporter()
        with reporter.progress("Generating deployment plan...") as on_status:
            on_status("queued")
            on_status("completed")


class TestDescribeStatus:
    @pytest.mark.parametrize(
        "raw,label",
        [
            ("queued", "queued"),
            ("requested", "queued"),
            ("pending", "waiting"),
            ("in_progress", "running"),
            ("completed", "finishing"),
            ("action_required", "action_required"),
            ("", "unknown"),
        ],
    )
    def test_labels(self, raw: str, label: str) -> None:
        assert describe_status(raw) == label
