"""Tests for runtime settings (config.py)."""

from __future__ import annotations

import pytest

from deploy_pilot.config import PipelineSettings
from deploy_pilot.exceptions import ConfigurationError


class TestDefaults:
    def test_defaults(self) -> None:
        settings = PipelineSettings()
        assert settings.plan_workflow == "deploy-plan.yaml"
        assert settings.deploy_workflow == "deploy-apply.yaml"
        assert settings.initial_delay == 3.0
        assert settings.locate_attempts == 10
        assert settings.locate_interval == 2.0
        assert settings.watch_interval == 3.0
        assert settings.log_tail_chars == 2000
        assert settings.merge_method == "squash"
        assert settings.delete_branch is True
        assert settings.workspace_dir == ".deploy"

    def test_empty_environment_gives_defaults(self) -> None:
        assert PipelineSettings.from_env({}) == PipelineSettings()


class TestFromEnv:
    def test_overrides_are_coerced(self) -> None:
        settings = PipelineSettings.from_env(
            {
                "DEPLOY_PILOT_LOCATE_ATTEMPTS": "4",
                "DEPLOY_PILOT_WATCH_INTERVAL": "0.5",
                "DEPLOY_PILOT_DELETE_BRANCH": "no",
                "DEPLOY_PILOT_MERGE_METHOD": "rebase",
                "DEPLOY_PILOT_PLAN_WORKFLOW": " plan.yml ",
            }
        )
        assert settings.locate_attempts == 4
        assert settings.watch_interval == 0.5
        assert settings.delete_branch is False
        assert settings.merge_method == "rebase"
        assert settings.plan_workflow == "plan.yml"

    def test_unrelated_variables_ignored(self) -> None:
        settings = PipelineSettings.from_env({"WATCH_INTERVAL": "99"})
        assert settings.watch_interval == 3.0

    @pytest.mark.parametrize("raw", ["TRUE", "1", "yes", "On"])
    def test_boolean_truthy(self, raw: str) -> None:
        assert PipelineSettings.from_env({"DEPLOY_PILOT_DELETE_BRANCH": raw}).delete_branch

    def test_bad_integer(self) -> None:
        with pytest.raises(ConfigurationError, match="DEPLOY_PILOT_LOCATE_ATTEMPTS must be a int"):
            PipelineSettings.from_env({"DEPLOY_PILOT_LOCATE_ATTEMPTS": "ten"})

    def test_bad_float(self) -> None:
        with pytest.raises(ConfigurationError, match="DEPLOY_PILOT_WATCH_INTERVAL"):
            PipelineSettings.from_env({"DEPLOY_PILOT_WATCH_INTERVAL": "soon"})

    def test_bad_boolean(self) -> None:
        with pytest.raises(ConfigurationError, match="must be a boolean"):
            PipelineSettings.from_env({"DEPLOY_PILOT_DELETE_BRANCH": "maybe"})

    def test_empty_string(self) -> None:
        with pytest.raises(ConfigurationError, match="must not be empty"):
            PipelineSettings.from_env({"DEPLOY_PILOT_DEPLOY_WORKFLOW": "  "})


class TestValidate:
    def test_zero_attempts_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="locate_attempts"):
            PipelineSettings.from_env({"DEPLOY_PILOT_LOCATE_ATTEMPTS": "0"})

    def test_negative_interval_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="watch_interval"):
            PipelineSettings(watch_interval=-1).validate()

    def test_negative_tail_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="log_tail_chars"):
            PipelineSettings(log_tail_chars=-5).validate()

    def test_unknown_merge_method_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="Unsupported merge method") as exc_info:
            PipelineSettings.from_env({"DEPLOY_PILOT_MERGE_METHOD": "octopus"})
        assert exc_info.value.hint is not None
