"""Interactive merge confirmation for the CLI layer.

This module is responsible for:

* Rendering a Rich table summarising the pull request about to be merged.
* Asking the operator to confirm via a questionary arrow-key selector.

All display-related logic lives here — no business logic, no merging.
"""

from __future__ import annotations

from typing import Any

from deploy_pilot.cli.console import console
from deploy_pilot.core.models import PullRequest
from deploy_pilot.exceptions import ToolNotFoundError

CANCEL_LABEL = "No, cancel"


def _import_questionary() -> Any:
    """Import questionary lazily for interactive selection."""
    try:
        import questionary
    except ModuleNotFoundError as exc:
        raise ToolNotFoundError(
            "questionary is not installed. Install with: pip install questionary",
        ) from exc
    return questionary


def _import_rich_table() -> type[Any]:
    """Import rich table lazily for PR rendering."""
    try:
        from rich.table import Table
    except ModuleNotFoundError as exc:
        raise ToolNotFoundError(
            "rich is not installed. Install with: pip install rich",
        ) from exc
    return Table


# ---------------------------------------------------------------------------
# Presentation helpers (pure transforms, no I/O)
# ---------------------------------------------------------------------------

def _format_created(pr: PullRequest) -> str:
    if pr.created_at is None:
        return "Unknown"
    return pr.created_at.strftime("%Y-%m-%d %H:%M UTC")


def _build_confirm_label(pr: PullRequest) -> str:
    return f"Yes, merge PR #{pr.number} and deploy"


def _display_pr_table(pr: PullRequest) -> None:
    table_class = _import_rich_table()
    table = table_class(
        title=f"Pull request #{pr.number}",
        show_header=False,
        border_style="dim",
    )
    table.add_column("Field", style="bold cyan", min_width=8)
    table.add_column("Value")
    table.add_row("Title", pr.title)
    table.add_row("Branch", f"{pr.head_ref_name} -> {pr.base_ref_name}")
    table.add_row("Created", _format_created(pr))
    table.add_row("URL", pr.url)

    console.print()
    console.print(table)
    console.print()


# ---------------------------------------------------------------------------
# Prompter
# ---------------------------------------------------------------------------

class QuestionaryPrompter:
    """Terminal implementation of :class:`~deploy_pilot.core.protocols.Prompter`."""

    def confirm_merge(self, pr: PullRequest) -> bool:
        """Show *pr* and ask whether to merge it.

        Returns ``False`` when the operator picks "No" or dismisses the
        prompt (Esc / Ctrl+C return ``None`` from questionary).
        """
        questionary = _import_questionary()
        _display_pr_table(pr)

        confirm_label = _build_confirm_label(pr)
        answer: str | None = questionary.select(
            "Merge and deploy?",
            choices=[confirm_label, CANCEL_LABEL],
            use_arrow_keys=True,
            use_shortcuts=False,
        ).ask()

        return answer == confirm_label
