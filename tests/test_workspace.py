"""Tests for local repository checks (infra/workspace.py)."""

from __future__ import annotations

from pathlib import Path

import pytest

from deploy_pilot.exceptions import AmbiguousApplicationError, WorkspaceError
from deploy_pilot.infra.workspace import Workspace


def _repo(tmp_path: Path, *models: str) -> Workspace:
    (tmp_path / ".git").mkdir()
    model_dir = tmp_path / ".deploy" / "model"
    model_dir.mkdir(parents=True)
    for name in models:
        (model_dir / name).write_text("", encoding="utf-8")
    return Workspace(tmp_path)


class TestLayout:
    def test_paths(self, tmp_path: Path) -> None:
        ws = Workspace(tmp_path, ".custom")
        assert ws.model_dir == tmp_path / ".custom" / "model"
        assert ws.plan_dir == tmp_path / ".custom" / "plan"
        assert ws.environment_path("prod") == tmp_path / ".custom" / "env.prod.yaml"
        assert ws.workflow_path("deploy-plan.yaml") == (
            tmp_path / ".github" / "workflows" / "deploy-plan.yaml"
        )


class TestChecks:
    def test_not_a_git_repository(self, tmp_path: Path) -> None:
        with pytest.raises(WorkspaceError, match="Not in a git repository"):
            Workspace(tmp_path).require_git_repository()

    def test_git_repository(self, tmp_path: Path) -> None:
        _repo(tmp_path).require_git_repository()

    def test_missing_workflow(self, tmp_path: Path) -> None:
        with pytest.raises(WorkspaceError, match="Workflow not found"):
            _repo(tmp_path).require_workflow("deploy-plan.yaml")

    def test_present_workflow(self, tmp_path: Path) -> None:
        ws = _repo(tmp_path)
        path = ws.workflow_path("deploy-plan.yaml")
        path.parent.mkdir(parents=True)
        path.write_text("on: workflow_dispatch\n", encoding="utf-8")
        assert ws.require_workflow("deploy-plan.yaml") == path

    def test_missing_environment(self, tmp_path: Path) -> None:
        with pytest.raises(WorkspaceError, match="Environment 'prod' not found") as exc_info:
            _repo(tmp_path).require_environment("prod")
        assert exc_info.value.hint is not None
        assert "env.prod.yaml" in exc_info.value.hint

    def test_present_environment(self, tmp_path: Path) -> None:
        ws = _repo(tmp_path)
        ws.environment_path("prod").write_text("name: prod\n", encoding="utf-8")
        assert ws.require_environment("prod").name == "env.prod.yaml"


class TestApplications:
    def test_detects_sorted_models(self, tmp_path: Path) -> None:
        ws = _repo(tmp_path, "web.bicep", "api.bicep", "notes.txt")
        assert ws.detect_applications() == ["api", "web"]

    def test_no_model_dir(self, tmp_path: Path) -> None:
        assert Workspace(tmp_path).detect_applications() == []

    def test_explicit_application_wins(self, tmp_path: Path) -> None:
        assert _repo(tmp_path, "a.bicep", "b.bicep").resolve_application("b") == "b"

    def test_single_application(self, tmp_path: Path) -> None:
        assert _repo(tmp_path, "todo.bicep").resolve_application(None) == "todo"

    def test_no_applications(self, tmp_path: Path) -> None:
        with pytest.raises(WorkspaceError, match="No applications found"):
            _repo(tmp_path).resolve_application(None)

    def test_several_applications_are_ambiguous(self, tmp_path: Path) -> None:
        with pytest.raises(AmbiguousApplicationError) as exc_info:
            _repo(tmp_path, "a.bicep", "b.bicep").resolve_application(None)
        assert exc_info.value.applications == ("a", "b")
