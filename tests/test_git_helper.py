"""Tests for git queries (infra/git_helper.py).

``subprocess.run`` is mocked — no git process is spawned.
"""

from __future__ import annotations

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from deploy_pilot.exceptions import ToolNotFoundError, WorkspaceError
from deploy_pilot.infra.git_helper import GitHelper, is_git_repository, parse_owner_repo


def _completed(stdout: str = "", returncode: int = 0, stderr: str = "") -> subprocess.CompletedProcess[str]:
    return subprocess.CompletedProcess(["git"], returncode, stdout=stdout, stderr=stderr)


class TestParseOwnerRepo:
    @pytest.mark.parametrize(
        "url",
        [
            "https://github.com/acme/infra.git",
            "https://github.com/acme/infra",
            "https://github.com/acme/infra/",
            "git@github.com:acme/infra.git",
            "ssh://git@github.com/acme/infra.git",
        ],
    )
    def test_supported_forms(self, url: str) -> None:
        assert parse_owner_repo(url) == ("acme", "infra")

    def test_unparseable(self) -> None:
        with pytest.raises(WorkspaceError, match="Could not parse"):
            parse_owner_repo("https://gitlab.com/acme")


class TestIsGitRepository:
    def test_true_with_git_dir(self, tmp_path: Path) -> None:
        (tmp_path / ".git").mkdir()
        assert is_git_repository(tmp_path)

    def test_false_without(self, tmp_path: Path) -> None:
        assert not is_git_repository(tmp_path)


class TestGitHelper:
    @patch("deploy_pilot.infra.git_helper.subprocess.run")
    def test_current_branch(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = _completed("feature/x\n")
        assert GitHelper(tmp_path).current_branch() == "feature/x"
        assert mock_run.call_args.args[0] == ["git", "rev-parse", "--abbrev-ref", "HEAD"]
        assert mock_run.call_args.kwargs["cwd"] == tmp_path

    @patch("deploy_pilot.infra.git_helper.subprocess.run")
    def test_detached_head(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = _completed("HEAD\n")
        with pytest.raises(WorkspaceError, match="detached"):
            GitHelper(tmp_path).current_branch()

    @patch("deploy_pilot.infra.git_helper.subprocess.run")
    def test_falls_back_to_main(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = _completed("", returncode=128, stderr="not a git repository")
        assert GitHelper(tmp_path).current_branch_or_default() == "main"

    @patch("deploy_pilot.infra.git_helper.subprocess.run")
    def test_owner_repo_from_remote(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = _completed("git@github.com:acme/infra.git\n")
        assert GitHelper(tmp_path).owner_repo() == ("acme", "infra")
        assert mock_run.call_args.args[0] == ["git", "remote", "get-url", "origin"]

    @patch("deploy_pilot.infra.git_helper.subprocess.run", side_effect=FileNotFoundError)
    def test_missing_git(self, _mock_run: MagicMock, tmp_path: Path) -> None:
        with pytest.raises(ToolNotFoundError, match="git is not installed"):
            GitHelper(tmp_path).current_branch()
