"""Infrastructure: external tool detection and platform guidance.

Locates ``gh`` and ``git`` on the system PATH and provides
platform-specific installation guidance when one is missing.

Rules
-----
* Detection via :func:`shutil.which` only — no subprocess.
* No automatic installation.
* No ``print()`` — callers handle user-facing output.
"""

from __future__ import annotations

import platform
import shutil
from dataclasses import dataclass
from pathlib import Path

from deploy_pilot.exceptions import ToolNotFoundError


# ---------------------------------------------------------------------------
# Detection result
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ToolStatus:
    """Result of a PATH probe for one executable.

    Attributes
    ----------
    name : str
        Executable name that was probed.
    found : bool
        Whether it was located on PATH.
    path : Path | None
        Absolute path to the binary, or ``None``.
    install_commands : tuple[str, ...]
        Suggested shell commands for installing the tool on the current
        platform.  Empty when the tool is already present.
    """

    name: str
    found: bool
    path: Path | None
    install_commands: tuple[str, ...]


# ---------------------------------------------------------------------------
# Detection logic
# ---------------------------------------------------------------------------

def detect_tool(name: str) -> ToolStatus:
    """Probe the system for *name*.

    Returns a :class:`ToolStatus` regardless of whether the tool is
    present — the caller decides whether to abort or merely warn.
    """
    result = shutil.which(name)
    if result is not None:
        return ToolStatus(
            name=name,
            found=True,
            path=Path(result).resolve(),
            install_commands=(),
        )
    return ToolStatus(
        name=name,
        found=False,
        path=None,
        install_commands=_platform_install_commands(name),
    )


def require_tool(name: str) -> Path:
    """Locate *name* or raise :class:`ToolNotFoundError`."""
    status = detect_tool(name)
    if not status.found or status.path is None:
        raise ToolNotFoundError(
            f"{name} is not installed or not on PATH.",
            hint=install_hint(name),
        )
    return status.path


def install_hint(name: str) -> str:
    """Return a multi-line hint listing install commands for *name*."""
    lines = [f"Install {name} using one of:"]
    lines.extend(f"  {cmd}" for cmd in _platform_install_commands(name))
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Platform-specific install guidance
# ---------------------------------------------------------------------------

_INSTALL_COMMANDS: dict[str, dict[str, tuple[str, ...]]] = {
    "gh": {
        "windows": ("winget install GitHub.cli", "choco install gh"),
        "linux": ("sudo apt install gh", "sudo dnf install gh", "sudo pacman -S github-cli"),
        "darwin": ("brew install gh",),
    },
    "git": {
        "windows": ("winget install Git.Git", "choco install git"),
        "linux": ("sudo apt install git", "sudo dnf install git", "sudo pacman -S git"),
        "darwin": ("brew install git", "xcode-select --install"),
    },
}

_FALLBACK_URLS = {
    "gh": "https://cli.github.com/",
    "git": "https://git-scm.com/downloads",
}


def _platform_install_commands(name: str) -> tuple[str, ...]:
    """Return install commands for *name* appropriate for the current OS."""
    system = platform.system().lower()
    commands = _INSTALL_COMMANDS.get(name, {}).get(system)
    if commands:
        return commands
    url = _FALLBACK_URLS.get(name)
    if url:
        return (f"Download {name} from {url}",)
    return (f"Install {name} with your system package manager",)
