"""Minimal read-only git queries used to pick the workflow ref.

Runs ``git`` as a subprocess; errors become
:class:`~deploy_pilot.exceptions.WorkspaceError`.
"""

from __future__ import annotations

import logging
import re
import subprocess
from pathlib import Path

from deploy_pilot.exceptions import ToolNotFoundError, WorkspaceError
from deploy_pilot.infra.tool_detector import install_hint

logger = logging.getLogger(__name__)

DEFAULT_BRANCH = "main"

_OWNER_REPO = re.compile(r"github\.com[:/](?P<owner>[^/]+)/(?P<repo>[^/]+?)(?:\.git)?/?$")


def is_git_repository(path: Path) -> bool:
    """Return ``True`` if *path* contains a ``.git`` directory."""
    return (path / ".git").is_dir()


class GitHelper:
    """Query a local repository checkout."""

    def __init__(self, repo_path: Path) -> None:
        self._repo_path = repo_path

    def _git(self, *args: str) -> str:
        logger.debug("git %s", " ".join(args))
        try:
            completed = subprocess.run(
                ["git", *args],
                cwd=self._repo_path,
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError as exc:
            raise ToolNotFoundError(
                "git is not installed or not on PATH.",
                hint=install_hint("git"),
            ) from exc
        if completed.returncode != 0:
            raise WorkspaceError(
                f"'git {' '.join(args)}' failed: {completed.stderr.strip()}",
            )
        return completed.stdout.strip()

    def current_branch(self) -> str:
        """Return the checked-out branch name.

        Raises
        ------
        WorkspaceError
            On a detached HEAD or when git fails.
        """
        branch = self._git("rev-parse", "--abbrev-ref", "HEAD")
        if not branch or branch == "HEAD":
            raise WorkspaceError("HEAD is detached; no current branch.")
        return branch

    def current_branch_or_default(self, default: str = DEFAULT_BRANCH) -> str:
        """Return the current branch, or *default* when it cannot be read."""
        try:
            return self.current_branch()
        except WorkspaceError as exc:
            logger.debug("Falling back to branch %s: %s", default, exc)
            return default

    def remote_url(self, remote: str = "origin") -> str:
        return self._git("remote", "get-url", remote)

    def owner_repo(self, remote: str = "origin") -> tuple[str, str]:
        """Return ``(owner, repo)`` parsed from the GitHub remote URL.

        Handles both ``https://github.com/o/r.git`` and
        ``git@github.com:o/r.git`` forms.
        """
        url = self.remote_url(remote)
        return parse_owner_repo(url)


def parse_owner_repo(url: str) -> tuple[str, str]:
    """Extract ``(owner, repo)`` from a GitHub remote URL."""
    match = _OWNER_REPO.search(url.strip())
    if match is None:
        raise WorkspaceError(f"Could not parse owner/repo from URL: {url}")
    return match.group("owner"), match.group("repo")
