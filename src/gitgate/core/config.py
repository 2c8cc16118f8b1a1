"""Application state and configuration."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import platformdirs
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from gitgate.core.base import BaseConfig, BaseState
from gitgate.core.log import Logger
from gitgate.core.yaml_settings import YamlWithIncludesSettingsSource
from gitgate.model import BranchStatus

# ============================================================
# TEMPLATE SUBSTITUTION NAMESPACE
# ============================================================

# Modules available for template substitution in YAML files
# Usage: {platformdirs.user_log_dir}, {Path.cwd}
TEMPLATE_NAMESPACE = {
    'os': os,
    'platformdirs': platformdirs,
    'Path': Path,
}

# Only dotted references are templates; {repo_id} and friends belong
# to command and label templates formatted later.
TEMPLATE_PATTERN = re.compile(r'\{([a-z_]+(?:\.[a-z_]+)+)\}')

# ============================================================
# CONFIG MODELS (loaded from YAML/env/CLI)
# ============================================================

class ServiceConfig(BaseConfig):
    """External git-operations service access."""

    api_base: str = Field(
        default="http://127.0.0.1:3001",
        description="Base URL of the backend exposing git operations",
    )
    timeout: int | None = Field(
        default=None,
        description=(
            "Seconds before a service command is killed. "
            "None waits indefinitely"
        ),
    )
    commands: dict[str, str] = Field(
        default_factory=dict,
        description=(
            "Command template per operation (merge, push, force_push, "
            "create_pr, rebase, change_target_branch, abort_conflicts, "
            "branch_status, processes, repo_states). Placeholders: "
            "{api_base} {workspace_id} {repo_id} {process_id} {payload}"
        ),
    )


class LabelConfig(BaseConfig):
    """Display labels for one action's idle/pending/success states."""

    idle: str
    pending: str | None = None
    success: str | None = None


class LabelsConfig(BaseConfig):
    """Action button labels."""

    merge: LabelConfig = Field(
        default_factory=lambda: LabelConfig(
            idle="Merge", pending="Merging...", success="Merged!"
        )
    )
    push: LabelConfig = Field(
        default_factory=lambda: LabelConfig(
            idle="Push", pending="Pushing...", success="Pushed!"
        )
    )
    create_pr: LabelConfig = Field(
        default_factory=lambda: LabelConfig(idle="Create PR")
    )
    force_push: LabelConfig = Field(
        default_factory=lambda: LabelConfig(
            idle="Force Push", pending="Force pushing...",
            success="Pushed!",
        )
    )
    rebase: LabelConfig = Field(
        default_factory=lambda: LabelConfig(
            idle="Rebase", pending="Rebasing...", success="Rebased!"
        )
    )
    change_target: LabelConfig = Field(
        default_factory=lambda: LabelConfig(
            idle="Change target branch", pending="Changing...",
            success="Target changed",
        )
    )


class ConflictDisplayConfig(BaseConfig):
    """Conflict banner wording and display caps."""

    max_visible_files: int = Field(
        default=8,
        description="Conflicted files listed before the overflow counter",
    )
    files_heading: str = Field(
        default="Conflicted files ({visible}{overflow}):",
        description="Heading above the file list",
    )
    files_overflow: str = Field(
        default=" of {total}",
        description="Inserted into the heading when the list is capped",
    )
    heading: str = Field(
        default="{op} in progress: '{branch}' → '{base}'.",
        description="Banner heading when the attempt branch is known",
    )
    heading_unknown_branch: str = Field(
        default="A Git operation with merge conflicts is in progress.",
        description="Banner heading when the attempt branch is unknown",
    )
    op_labels: dict[str, str] = Field(
        default_factory=lambda: {
            "merge": "Merge",
            "rebase": "Rebase",
            "cherry_pick": "Cherry-pick",
            "revert": "Revert",
        },
        description="Display label per conflict operation",
    )
    fallback_op_label: str = Field(
        default="Operation",
        description="Label when the conflict operation is unknown",
    )


class TimingConfig(BaseConfig):
    """UI timing windows."""

    success_pulse_seconds: float = Field(
        default=2.0,
        description="How long a success label stays up after an action",
    )


class Config(BaseConfig):
    """Application configuration loaded from YAML/env/CLI."""

    logger: Logger = Field(
        default=None,
        description="Logger configuration and runtime instance",
    )
    service: ServiceConfig = Field(
        default_factory=ServiceConfig,
        description="External git-operations service",
    )
    labels: LabelsConfig = Field(
        default_factory=LabelsConfig,
        description="Action labels",
    )
    conflicts: ConflictDisplayConfig = Field(
        default_factory=ConflictDisplayConfig,
        description="Conflict banner display",
    )
    timing: TimingConfig = Field(
        default_factory=TimingConfig,
        description="UI timing windows",
    )
    log_root: Path = Field(
        default_factory=(
            lambda: Path(platformdirs.user_state_dir()) / "gitgate"
        ),
        description=(
            "Root directory for log files "
            "(supports {platformdirs.*} templates)"
        ),
    )
    run_name: str = Field(
        default="gitgate",
        description="Name used for the log directory and service name",
    )

    @model_validator(mode='after')
    def _setup_logger(self) -> 'Config':
        """Initialize the global logger once config is loaded."""
        from gitgate.core.log import setup_logger

        if self.logger is None:
            self.logger = Logger()

        setup_logger(
            log_root=self.log_root,
            run_name=self.run_name,
            level=self.logger.level,
            console=self.logger.console,
            file=self.logger.file,
            otlp=self.logger.otlp,
        )
        return self

    def close(self):
        """Close the global logger, then the remaining children."""
        from gitgate.core.log import logger
        if logger is not None:
            logger.close()
        super().close()


# ============================================================
# RUNTIME STATE MODELS (mutable while a command runs)
# ============================================================

class StatusState(BaseState):
    """Status command runtime state."""

    statuses: list[BranchStatus] = Field(
        default_factory=list,
        description="Branch status records from the last refresh",
    )
    report: dict[str, Any] = Field(
        default_factory=dict,
        description="Rendered per-repository report",
    )


class RestoreState(BaseState):
    """Checkpoint restore workflow runtime state."""

    workspace_id: str | None = Field(default=None)
    process_id: str | None = Field(default=None)
    acknowledge_uncommitted: bool = Field(default=False)
    worktree_reset: bool = Field(default=False)
    force_reset: bool = Field(default=False)
    service: Any = Field(
        default=None,
        description="Process log and branch status source",
    )
    engine: Any = Field(
        default=None,
        description="CheckpointRestoreEngine for the target process",
    )
    status: str = Field(
        default="pending",
        description="pending, loading, evaluated, blocked",
    )

    model_config = ConfigDict(arbitrary_types_allowed=True)


class Runtime(BaseModel):
    """All runtime state, one section per command."""

    status: StatusState = Field(default_factory=StatusState)
    restore: RestoreState = Field(default_factory=RestoreState)


# ============================================================
# STATE (config + runtime combined)
# ============================================================

class State(BaseSettings):
    """Complete application state: configuration and runtime.

    - config: loaded from YAML/env/CLI, treated as immutable
    - runtime: mutated by commands and workflow nodes
    """

    config: Config = Field(
        default_factory=Config,
        description="Application configuration (from YAML/env/CLI)",
    )
    runtime: Runtime = Field(
        default_factory=Runtime,
        description="Runtime state (mutates during execution)",
    )
    include: list[str] | None = Field(
        default=None,
        description=(
            "Additional YAML files to include and merge "
            "(--include on the CLI or include: in YAML)"
        ),
    )

    model_config = SettingsConfigDict(
        yaml_file=None,
        env_file=".env",
        env_prefix="GITGATE_",
        env_nested_delimiter="__",
        cli_implicit_flags=True,
        cli_use_class_docs_for_groups=True,
        arbitrary_types_allowed=True,
        extra='ignore',
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Source priority, highest first: init kwargs, YAML with
        includes, .env, environment, file secrets."""
        return (
            init_settings,
            YamlWithIncludesSettingsSource(settings_cls),
            dotenv_settings,
            env_settings,
            file_secret_settings,
        )

    @model_validator(mode="after")
    def substitute_templates(self) -> "State":
        """Replace {config.x.y} and {platformdirs.x} references in
        every string and Path field."""
        self._substitute_recursive(self)
        return self

    def _substitute_recursive(self, obj: Any) -> None:
        if isinstance(obj, BaseModel):
            for field_name in obj.__class__.model_fields:
                value = getattr(obj, field_name)
                new_value = self._substitute_value(value)
                if new_value is not value:
                    setattr(obj, field_name, new_value)
        elif isinstance(obj, dict):
            for key in obj:
                obj[key] = self._substitute_value(obj[key])
        elif isinstance(obj, list):
            for i in range(len(obj)):
                obj[i] = self._substitute_value(obj[i])

    def _substitute_value(self, value: Any) -> Any:
        if isinstance(value, str):
            new = self._substitute_string(value)
            return value if new == value else new
        if isinstance(value, Path):
            new = self._substitute_string(str(value))
            return value if new == str(value) else Path(new)
        if isinstance(value, (BaseModel, dict, list)):
            self._substitute_recursive(value)
        return value

    def _substitute_string(self, value: str) -> str:
        """Resolve dotted references against the state or
        TEMPLATE_NAMESPACE.

        Examples:
            "{config.log_root}/archive" -> "/home/user/.local/state/..."
            "{platformdirs.user_log_dir}" -> "~/.local/state/gitgate/log"
        """
        def replace_template(match):
            parts = match.group(1).split(".")
            if parts[0] in TEMPLATE_NAMESPACE:
                obj = TEMPLATE_NAMESPACE[parts[0]]
                parts = parts[1:]
            else:
                obj = self

            try:
                for part in parts:
                    obj = getattr(obj, part)
                if callable(obj):
                    obj = obj('gitgate', appauthor=False)
                return str(obj)
            except (AttributeError, TypeError):
                return match.group(0)

        return TEMPLATE_PATTERN.sub(replace_template, value)


__all__ = ["State", "Config", "BaseConfig", "BaseState"]
