"""Tests for executable detection (infra/tool_detector.py).

All tests mock :func:`shutil.which` — no system dependency.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from deploy_pilot.exceptions import ToolNotFoundError
from deploy_pilot.infra.tool_detector import (
    ToolStatus,
    _platform_install_commands,
    detect_tool,
    install_hint,
    require_tool,
)


# ---------------------------------------------------------------------------
# detect_tool
# ---------------------------------------------------------------------------

class TestDetectTool:
    @patch("deploy_pilot.infra.tool_detector.shutil.which")
    def test_found(self, mock_which: MagicMock) -> None:
        mock_which.return_value = "/usr/bin/gh"
        status = detect_tool("gh")

        mock_which.assert_called_once_with("gh")
        assert status.name == "gh"
        assert status.found is True
        assert isinstance(status.path, Path)
        assert status.install_commands == ()

    @patch("deploy_pilot.infra.tool_detector.shutil.which", return_value=None)
    def test_not_found(self, _mock_which: MagicMock) -> None:
        status = detect_tool("git")

        assert status.found is False
        assert status.path is None
        assert len(status.install_commands) > 0


# ---------------------------------------------------------------------------
# require_tool
# ---------------------------------------------------------------------------

class TestRequireTool:
    @patch("deploy_pilot.infra.tool_detector.shutil.which", return_value="/usr/bin/git")
    def test_found_returns_path(self, _mock_which: MagicMock) -> None:
        assert isinstance(require_tool("git"), Path)

    @patch("deploy_pilot.infra.tool_detector.shutil.which", return_value=None)
    def test_missing_raises_with_hint(self, _mock_which: MagicMock) -> None:
        with pytest.raises(ToolNotFoundError, match="gh is not installed") as exc_info:
            require_tool("gh")
        assert exc_info.value.hint is not None
        assert "Install gh" in exc_info.value.hint


# ---------------------------------------------------------------------------
# Platform install commands
# ---------------------------------------------------------------------------

class TestPlatformInstallCommands:
    @patch("deploy_pilot.infra.tool_detector.platform.system", return_value="Windows")
    def test_windows_gh(self, _mock_sys: MagicMock) -> None:
        assert "winget install GitHub.cli" in _platform_install_commands("gh")

    @patch("deploy_pilot.infra.tool_detector.platform.system", return_value="Linux")
    def test_linux_git(self, _mock_sys: MagicMock) -> None:
        cmds = _platform_install_commands("git")
        assert any("apt" in c for c in cmds)
        assert any("dnf" in c for c in cmds)

    @patch("deploy_pilot.infra.tool_detector.platform.system", return_value="Darwin")
    def test_darwin_gh(self, _mock_sys: MagicMock) -> None:
        assert _platform_install_commands("gh") == ("brew install gh",)

    @patch("deploy_pilot.infra.tool_detector.platform.system", return_value="FreeBSD")
    def test_unknown_platform_falls_back_to_url(self, _mock_sys: MagicMock) -> None:
        assert _platform_install_commands("gh") == ("Download gh from https://cli.github.com/",)

    @patch("deploy_pilot.infra.tool_detector.platform.system", return_value="Linux")
    def test_unknown_tool(self, _mock_sys: MagicMock) -> None:
        assert _platform_install_commands("terraform") == (
            "Install terraform with your system package manager",
        )

    @patch("deploy_pilot.infra.tool_detector.platform.system", return_value="Darwin")
    def test_install_hint_lists_commands(self, _mock_sys: MagicMock) -> None:
        assert install_hint("gh") == "Install gh using one of:\n  brew install gh"


class TestToolStatus:
    def test_frozen(self) -> None:
        status = ToolStatus(name="gh", found=True, path=Path("/usr/bin/gh"), install_commands=())
        with pytest.raises(AttributeError):
            status.found = False  # type: ignore[misc]
