"""Shared pytest fixtures and configuration for the deploy-pilot test suite.

Guidelines
----------
* No network access and no ``gh``/``git`` child processes in any test.
* The CI provider is mocked at the core boundary (``MagicMock``) or at the
  process boundary (a fake ``gh`` runner).
* Waiting goes through :class:`FakeToken`, which records sleeps instead
  of blocking.
* Tests must not depend on OS state.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from datetime import datetime, timezone
from typing import Any

import pytest

from deploy_pilot.core.models import PullRequest, WorkflowRun
from deploy_pilot.exceptions import GhCommandError, OperationCancelledError


# ---------------------------------------------------------------------------
# Model factories
# ---------------------------------------------------------------------------

def make_run(**overrides: Any) -> WorkflowRun:
    defaults: dict[str, Any] = {
        "id": 42,
        "status": "completed",
        "conclusion": "success",
        "url": "https://github.com/acme/infra/actions/runs/42",
    }
    defaults.update(overrides)
    return WorkflowRun(**defaults)


def make_pr(**overrides: Any) -> PullRequest:
    defaults: dict[str, Any] = {
        "number": 7,
        "url": "https://github.com/acme/infra/pull/7",
        "title": "Deploy todo to prod",
        "state": "open",
        "head_ref_name": "deploy/todo/prod-20240501-120000",
        "base_ref_name": "main",
        "created_at": datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
    }
    defaults.update(overrides)
    return PullRequest(**defaults)


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------

class FakeToken:
    """Stands in for :class:`CancelToken`; records sleeps without blocking.

    When *cancel_after* is set, the sleep with that (1-based) index raises
    :class:`OperationCancelledError`.
    """

    def __init__(self, cancel_after: int | None = None) -> None:
        self.sleeps: list[float] = []
        self._cancel_after = cancel_after

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        if self._cancel_after is not None and len(self.sleeps) >= self._cancel_after:
            raise OperationCancelledError("Timed out waiting for GitHub Actions.")

    def raise_if_cancelled(self) -> None:
        if self._cancel_after is not None and len(self.sleeps) >= self._cancel_after:
            raise OperationCancelledError("Timed out waiting for GitHub Actions.")


class FakeGhRunner:
    """Scripted ``gh`` runner: maps argument prefixes to outputs or errors."""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self._responses: list[tuple[tuple[str, ...], Any]] = []

    def respond(self, prefix: Sequence[str], result: Any) -> None:
        """Register *result* (a string, or an exception to raise) for *prefix*."""
        self._responses.append((tuple(prefix), result))

    def fail(self, prefix: Sequence[str], returncode: int = 1, stderr: str = "boom") -> None:
        self.respond(prefix, GhCommandError(list(prefix), returncode, stderr))

    def run(self, args: Sequence[str]) -> str:
        call = list(args)
        self.calls.append(call)
        for prefix, result in self._responses:
            if tuple(call[: len(prefix)]) == prefix:
                if isinstance(result, BaseException):
                    raise result
                return result
        return ""


@pytest.fixture
def token() -> FakeToken:
    return FakeToken()


@pytest.fixture
def gh_runner() -> FakeGhRunner:
    return FakeGhRunner()


@pytest.fixture(autouse=True)
def _reset_package_logger() -> Iterator[None]:
    """Undo ``configure_logging`` so caplog keeps seeing package records."""
    yield
    logger = logging.getLogger("deploy_pilot")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
