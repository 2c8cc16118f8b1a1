"""Enablement and labels for the git action controls.

GitActionGate is pure decision logic: given the aggregated status of the
selected repository, whether the attempt is running, and the transient
per-action flags, it decides which controls are enabled and what they
say. It never raises and never calls the service.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel

from gitgate.core.config import LabelConfig, LabelsConfig
from gitgate.core.log import logger
from gitgate.status.aggregator import RepoSummary


class ActionKind(str, Enum):
    """User-triggered git operations."""

    MERGE = "merge"
    PUSH = "push"
    CREATE_PR = "create_pr"
    FORCE_PUSH = "force_push"
    REBASE = "rebase"
    CHANGE_TARGET = "change_target"
    ABORT_CONFLICTS = "abort_conflicts"


class Phase(str, Enum):
    """Label lifecycle: idle -> pending -> success -> idle."""

    IDLE = "idle"
    PENDING = "pending"
    SUCCESS = "success"


class PushMode(str, Enum):
    PUSH_TO_PR = "push_to_pr"
    CREATE_PR = "create_pr"


class ActionFlags(BaseModel):
    """Transient per-repository flags owned by the orchestrator.

    The *_success flags are short pulses kept up for a fixed window
    after completion, independent of status refreshes.
    """

    merging: bool = False
    pushing: bool = False
    force_pushing: bool = False
    rebasing: bool = False
    changing_target: bool = False
    aborting: bool = False
    merge_success: bool = False
    push_success: bool = False
    force_push_success: bool = False
    rebase_success: bool = False
    change_target_success: bool = False

    @property
    def any_pending(self) -> bool:
        return (
            self.merging or self.pushing or self.force_pushing
            or self.rebasing or self.changing_target or self.aborting
        )

    @property
    def any_success(self) -> bool:
        return self.merge_success or self.push_success


class ActionState(BaseModel):
    """Rendered state of one control."""

    kind: ActionKind
    enabled: bool
    label: str
    phase: Phase = Phase.IDLE


class GateResult(BaseModel):
    """Decision for every control of the selected repository."""

    merge: ActionState
    push: ActionState
    push_mode: PushMode
    force_push: ActionState
    rebase: ActionState
    change_target: ActionState

    def for_kind(self, kind: ActionKind) -> ActionState:
        if kind in (ActionKind.PUSH, ActionKind.CREATE_PR):
            return self.push
        return {
            ActionKind.MERGE: self.merge,
            ActionKind.FORCE_PUSH: self.force_push,
            ActionKind.REBASE: self.rebase,
            ActionKind.CHANGE_TARGET: self.change_target,
        }[kind]


def phase_of(pending: bool, success: bool) -> Phase:
    # Success wins so the label does not flicker back mid-animation
    if success:
        return Phase.SUCCESS
    if pending:
        return Phase.PENDING
    return Phase.IDLE


def label_for(labels: LabelConfig, phase: Phase) -> str:
    if phase is Phase.SUCCESS and labels.success:
        return labels.success
    if phase is Phase.PENDING and labels.pending:
        return labels.pending
    return labels.idle


class GitActionGate:
    """Decides enablement and labels for merge, push, rebase and
    target-branch controls."""

    def __init__(self, labels: LabelsConfig | None = None):
        self.labels = labels or LabelsConfig()

    def _state(
        self,
        kind: ActionKind,
        labels: LabelConfig,
        enabled: bool,
        pending: bool = False,
        success: bool = False,
    ) -> ActionState:
        phase = phase_of(pending, success)
        return ActionState(
            kind=kind,
            enabled=enabled,
            label=label_for(labels, phase),
            phase=phase,
        )

    def evaluate(
        self,
        summary: RepoSummary | None,
        is_attempt_running: bool,
        flags: ActionFlags | None = None,
    ) -> GateResult:
        """Compute every control's state.

        Args:
            summary: Aggregated status of the selected repository, or
                None when no status has been reported yet
            is_attempt_running: Whether the attempt has a live process
            flags: Transient pending/success flags for this repository

        Returns:
            GateResult with one ActionState per control
        """
        flags = flags or ActionFlags()
        if summary is None:
            return self._all_disabled(flags)

        info = summary.merge_info
        conflicts = summary.has_conflicts
        running = is_attempt_running
        ahead = summary.commits_ahead
        remote_ahead = summary.remote_commits_ahead
        pulse = flags.any_success

        merge_enabled = not (
            info.has_merged_pr
            or info.has_open_pr
            or flags.merging
            or conflicts
            or running
            or (ahead == 0 and not pulse)
        )

        if info.has_open_pr:
            push_mode = PushMode.PUSH_TO_PR
            push_enabled = not (
                info.has_merged_pr
                or flags.pushing
                or conflicts
                or running
                or remote_ahead == 0
            )
            push = self._state(
                ActionKind.PUSH, self.labels.push, push_enabled,
                pending=flags.pushing, success=flags.push_success,
            )
        else:
            push_mode = PushMode.CREATE_PR
            push_enabled = not (
                info.has_merged_pr
                or flags.pushing
                or conflicts
                or running
                or (ahead == 0 and remote_ahead == 0 and not pulse)
            )
            push = self._state(
                ActionKind.CREATE_PR, self.labels.create_pr, push_enabled
            )

        result = GateResult(
            merge=self._state(
                ActionKind.MERGE, self.labels.merge, merge_enabled,
                pending=flags.merging, success=flags.merge_success,
            ),
            push=push,
            push_mode=push_mode,
            force_push=self._state(
                ActionKind.FORCE_PUSH, self.labels.force_push,
                not (flags.force_pushing or running or conflicts),
                pending=flags.force_pushing,
                success=flags.force_push_success,
            ),
            rebase=self._state(
                ActionKind.REBASE, self.labels.rebase,
                not (flags.rebasing or running or conflicts),
                pending=flags.rebasing, success=flags.rebase_success,
            ),
            change_target=self._state(
                ActionKind.CHANGE_TARGET, self.labels.change_target,
                not (running or conflicts or flags.changing_target),
                pending=flags.changing_target,
                success=flags.change_target_success,
            ),
        )
        logger.spew(
            "Gate evaluated",
            repo_id=summary.repo_id,
            merge=result.merge.enabled,
            push=result.push.enabled,
            push_mode=push_mode.value,
            rebase=result.rebase.enabled,
            change_target=result.change_target.enabled,
        )
        return result

    def _all_disabled(self, flags: ActionFlags) -> GateResult:
        return GateResult(
            merge=self._state(
                ActionKind.MERGE, self.labels.merge, False,
                flags.merging, flags.merge_success,
            ),
            push=self._state(
                ActionKind.CREATE_PR, self.labels.create_pr, False
            ),
            push_mode=PushMode.CREATE_PR,
            force_push=self._state(
                ActionKind.FORCE_PUSH, self.labels.force_push, False,
                flags.force_pushing, flags.force_push_success,
            ),
            rebase=self._state(
                ActionKind.REBASE, self.labels.rebase, False,
                flags.rebasing, flags.rebase_success,
            ),
            change_target=self._state(
                ActionKind.CHANGE_TARGET, self.labels.change_target, False,
                flags.changing_target, flags.change_target_success,
            ),
        )
