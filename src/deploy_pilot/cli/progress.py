"""Rich-based reporter and spinner for pipeline progress.

This module bridges the core layer's
:class:`~deploy_pilot.core.protocols.PipelineReporter` contract with the
terminal.  The core never renders anything itself — it only calls the
reporter.

Design
------
* :meth:`RichReporter.progress` wraps :meth:`rich.console.Console.status`.
  Rich animates the spinner on a background refresh thread and erases
  the line when the ``with`` block exits, on every exit path.
* The callable yielded by :meth:`RichReporter.progress` is handed to the
  watcher as its progress callback; each poll updates the spinner text
  with the current run status.
* No ``print()`` — Rich handles all rendering.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

from deploy_pilot.cli.console import get_rich_console

_STATUS_LABELS: dict[str, str] = {
    "queued": "queued",
    "requested": "queued",
    "waiting": "waiting",
    "pending": "waiting",
    "in_progress": "running",
    "completed": "finishing",
}


class RichReporter:
    """Terminal implementation of :class:`PipelineReporter`.

    Parameters
    ----------
    console:
        Rich console to render to.  Defaults to a stdout console.
    spinner:
        Name of the Rich spinner animation.
    """

    def __init__(self, console: Any | None = None, *, spinner: str = "dots") -> None:
        self._console: Any = console if console is not None else get_rich_console()
        self._spinner = spinner

    # ------------------------------------------------------------------
    # Lines
    # ------------------------------------------------------------------

    def info(self, message: str) -> None:
        self._console.print(message)

    def success(self, message: str) -> None:
        self._console.print(f"[bold green]✓[/bold green] {message}")

    def warning(self, message: str) -> None:
        self._console.print(f"[yellow]{message}[/yellow]")

    def failure(self, message: str) -> None:
        self._console.print(f"[bold red]✗ {message}[/bold red]")

    def logs(self, text: str) -> None:
        # Logs are raw CI output; never interpret them as markup.
        self._console.print(text, markup=False, highlight=False)

    # ------------------------------------------------------------------
    # Spinner
    # ------------------------------------------------------------------

    @contextmanager
    def progress(self, label: str) -> Iterator[Callable[[str], None]]:
        """Show a transient spinner labelled *label* for the enclosed block."""
        with self._console.status(label, spinner=self._spinner) as status:

            def on_status(run_status: str) -> None:
                status.update(f"{label} [dim]({describe_status(run_status)})[/dim]")

            yield on_status


def describe_status(run_status: str) -> str:
    """Map a raw GitHub run status to a short human label."""
    return _STATUS_LABELS.get(run_status, run_status or "unknown")
