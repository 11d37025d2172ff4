"""Tests for the interactive merge confirmation (cli/merge_prompt.py).

questionary is mocked — no real terminal interaction.
"""

from __future__ import annotations

import sys
from unittest.mock import MagicMock, patch

import pytest

from conftest import make_pr
from deploy_pilot.cli.merge_prompt import (
    CANCEL_LABEL,
    QuestionaryPrompter,
    _build_confirm_label,
    _format_created,
)
from deploy_pilot.exceptions import ToolNotFoundError


def _questionary(answer: str | None) -> MagicMock:
    questionary = MagicMock()
    questionary.select.return_value.ask.return_value = answer
    return questionary


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------

class TestHelpers:
    def test_confirm_label(self) -> None:
        assert _build_confirm_label(make_pr(number=7)) == "Yes, merge PR #7 and deploy"

    def test_format_created(self) -> None:
        assert _format_created(make_pr()) == "2024-05-01 12:00 UTC"

    def test_format_created_unknown(self) -> None:
        assert _format_created(make_pr(created_at=None)) == "Unknown"


# ---------------------------------------------------------------------------
# QuestionaryPrompter
# ---------------------------------------------------------------------------

class TestConfirmMerge:
    @patch("deploy_pilot.cli.merge_prompt._display_pr_table")
    def test_confirm(self, _mock_table: MagicMock) -> None:
        questionary = _questionary("Yes, merge PR #7 and deploy")
        with patch("deploy_pilot.cli.merge_prompt._import_questionary", return_value=questionary):
            assert QuestionaryPrompter().confirm_merge(make_pr(number=7)) is True

        choices = questionary.select.call_args.kwargs["choices"]
        assert choices == ["Yes, merge PR #7 and deploy", CANCEL_LABEL]

    @patch("deploy_pilot.cli.merge_prompt._display_pr_table")
    def test_decline(self, _mock_table: MagicMock) -> None:
        with patch(
            "deploy_pilot.cli.merge_prompt._import_questionary",
            return_value=_questionary(CANCEL_LABEL),
        ):
            assert QuestionaryPrompter().confirm_merge(make_pr()) is False

    @patch("deploy_pilot.cli.merge_prompt._display_pr_table")
    def test_dismissed_prompt_is_decline(self, _mock_table: MagicMock) -> None:
        with patch(
            "deploy_pilot.cli.merge_prompt._import_questionary",
            return_value=_questionary(None),
        ):
            assert QuestionaryPrompter().confirm_merge(make_pr()) is False

    def test_table_is_rendered(self, capsys: pytest.CaptureFixture[str]) -> None:
        with patch(
            "deploy_pilot.cli.merge_prompt._import_questionary",
            return_value=_questionary(CANCEL_LABEL),
        ):
            QuestionaryPrompter().confirm_merge(make_pr(number=7, title="Deploy todo to prod"))
        out = capsys.readouterr().out
        assert "Deploy todo to prod" in out
        assert "deploy/todo/prod-20240501-120000" in out

    def test_missing_questionary(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setitem(sys.modules, "questionary", None)
        with pytest.raises(ToolNotFoundError, match="questionary is not installed"):
            QuestionaryPrompter().confirm_merge(make_pr())
