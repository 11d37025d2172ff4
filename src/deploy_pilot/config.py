"""Runtime settings for the pipeline.

Defaults mirror the timings the workflows were tuned against.  Any field
can be overridden through a ``DEPLOY_PILOT_<FIELD>`` environment variable
(e.g. ``DEPLOY_PILOT_WATCH_INTERVAL=10``).
"""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from deploy_pilot.exceptions import ConfigurationError

ENV_PREFIX = "DEPLOY_PILOT_"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


@dataclass(frozen=True, slots=True)
class PipelineSettings:
    """Tunable knobs consumed by the core layer."""

    plan_workflow: str = "deploy-plan.yaml"
    """Workflow file dispatched by ``pr-create``."""

    deploy_workflow: str = "deploy-apply.yaml"
    """Workflow file started by GitHub when a deployment PR is merged."""

    initial_delay: float = 3.0
    """Seconds to wait after a trigger before looking for the run."""

    locate_attempts: int = 10
    locate_interval: float = 2.0

    watch_interval: float = 3.0
    """Seconds between two polls of a run that is still in flight."""

    log_tail_chars: int = 2000
    merge_method: str = "squash"
    delete_branch: bool = True

    workspace_dir: str = ".deploy"
    """Directory (relative to the repository root) holding models and plans."""

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> PipelineSettings:
        """Build settings from defaults overlaid with environment overrides.

        Raises
        ------
        ConfigurationError
            If an override cannot be coerced to the field's type, or a
            numeric value is out of range.
        """
        env = os.environ if environ is None else environ
        overrides: dict[str, Any] = {}
        for field in dataclasses.fields(cls):
            key = ENV_PREFIX + field.name.upper()
            raw = env.get(key)
            if raw is None:
                continue
            overrides[field.name] = _coerce(key, raw, field.default)
        settings = cls(**overrides)
        settings.validate()
        return settings

    def validate(self) -> None:
        """Reject values that would make the poll loops misbehave."""
        if self.locate_attempts < 1:
            raise ConfigurationError(
                f"locate_attempts must be at least 1 (got {self.locate_attempts}).",
            )
        for name in ("initial_delay", "locate_interval", "watch_interval"):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} must not be negative.")
        if self.log_tail_chars < 0:
            raise ConfigurationError("log_tail_chars must not be negative.")
        if self.merge_method not in ("merge", "squash", "rebase"):
            raise ConfigurationError(
                f"Unsupported merge method: {self.merge_method}",
                hint="Use one of: merge, squash, rebase.",
            )


def _coerce(key: str, raw: str, default: object) -> Any:
    """Convert *raw* to the type of *default*."""
    value = raw.strip()
    if isinstance(default, bool):
        lowered = value.lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        raise ConfigurationError(f"{key} must be a boolean (got {raw!r}).")
    try:
        if isinstance(default, int):
            return int(value)
        if isinstance(default, float):
            return float(value)
    except ValueError as exc:
        raise ConfigurationError(
            f"{key} must be a {type(default).__name__} (got {raw!r}).",
        ) from exc
    if not value:
        raise ConfigurationError(f"{key} must not be empty.")
    return value
