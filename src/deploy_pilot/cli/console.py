"""CLI console helpers with optional Rich support.

This module intentionally avoids module-level imports of Rich so
bootstrap paths (``--help``, ``--version``) remain functional even when
Rich is not installed.
"""

from __future__ import annotations

import sys
from typing import Any

from deploy_pilot.exceptions import DeployPilotError, ToolNotFoundError


def _load_rich_console_class() -> type[Any]:
	"""Return ``rich.console.Console`` class or raise ``ToolNotFoundError``."""
	try:
		from rich.console import Console
	except ModuleNotFoundError as exc:
		raise ToolNotFoundError(
			"rich is not installed. Install with: pip install rich",
		) from exc
	return Console


def get_rich_console(*, stderr: bool = False) -> Any:
	"""Create a Rich console; progress goes to stdout, diagnostics to stderr."""
	console_class = _load_rich_console_class()
	return console_class(stderr=stderr, highlight=False)


class _ConsoleProxy:
	"""Minimal ``print``-compatible proxy with Rich fallback."""

	def __init__(self, *, stderr: bool) -> None:
		self._stderr = stderr

	def print(self, *objects: object) -> None:
		"""Render with Rich when available, else plain print."""
		try:
			rich_console = get_rich_console(stderr=self._stderr)
		except ToolNotFoundError:
			print(*objects, file=sys.stderr if self._stderr else sys.stdout)
			return
		rich_console.print(*objects)


console = _ConsoleProxy(stderr=False)
err_console = _ConsoleProxy(stderr=True)


def print_error(exc: DeployPilotError) -> None:
	"""Render ``Error:`` and, when present, ``Hint:`` lines on stderr."""
	err_console.print(f"[bold red]Error:[/bold red] {exc}")
	if exc.hint:
		err_console.print(f"[yellow]Hint:[/yellow] {exc.hint}")
