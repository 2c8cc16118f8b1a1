"""Sequences gated git actions against the external service.

Every action follows the same path:

1. Resolve the repository and reject if it already has a pending
   operation (a conflict abort included) or the gate has the control
   disabled.
2. Set the pending flag, call the service, clear the flag in finally.
3. On success raise the success pulse for timing.success_pulse_seconds
   and re-fetch branch status.
4. On GitServiceError record the message for inline display.

Nothing here raises for a gating violation or a service failure; both
come back as an ActionOutcome.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from pydantic import BaseModel

from gitgate.conflict.controller import (
    ConflictLifecycleController,
    ConflictPhase,
    ConflictSnapshot,
)
from gitgate.core.config import ConflictDisplayConfig, LabelsConfig, TimingConfig
from gitgate.core.log import logger
from gitgate.gate.actions import (
    ActionFlags,
    ActionKind,
    GateResult,
    GitActionGate,
    PushMode,
)
from gitgate.model import BranchStatus, Workspace
from gitgate.orchestrator.timers import PulseTimers
from gitgate.service.base import (
    BranchStatusSource,
    GitOperationsService,
    GitServiceError,
)
from gitgate.status.aggregator import (
    RepoSummary,
    find_repo_with_conflicts,
    find_status,
    select_repo_id,
    summarize,
)


class ActionOutcome(BaseModel):
    """Result of one dispatch attempt."""

    action: ActionKind
    repo_id: str | None = None
    ok: bool = False
    rejected: bool = False
    error: str | None = None
    result: str | None = None


# kind -> (pending flag, success flag)
_FLAGS: dict[ActionKind, tuple[str, str | None]] = {
    ActionKind.MERGE: ("merging", "merge_success"),
    ActionKind.PUSH: ("pushing", "push_success"),
    ActionKind.CREATE_PR: ("pushing", None),
    ActionKind.FORCE_PUSH: ("force_pushing", "force_push_success"),
    ActionKind.REBASE: ("rebasing", "rebase_success"),
    ActionKind.CHANGE_TARGET: ("changing_target", "change_target_success"),
}


class GitActionOrchestrator:
    """Owns the transient state of one workspace view."""

    def __init__(
        self,
        workspace: Workspace,
        service: GitOperationsService,
        status_source: BranchStatusSource | None = None,
        labels: LabelsConfig | None = None,
        display: ConflictDisplayConfig | None = None,
        timing: TimingConfig | None = None,
        selected_repo_id: str | None = None,
    ):
        self.workspace = workspace
        self.service = service
        self.status_source = status_source
        self.display = display or ConflictDisplayConfig()
        self.timing = timing or TimingConfig()
        self.gate = GitActionGate(labels)
        self.selected_repo_id = selected_repo_id

        self.statuses: list[BranchStatus] = []
        self.is_attempt_running = False
        self.timers = PulseTimers()
        self._flags: dict[str, ActionFlags] = {}
        self._controllers: dict[str, ConflictLifecycleController] = {}
        self._errors: dict[tuple[str, ActionKind], str] = {}

    # State

    def flags_for(self, repo_id: str) -> ActionFlags:
        if repo_id not in self._flags:
            self._flags[repo_id] = ActionFlags()
        return self._flags[repo_id]

    def controller(self, repo_id: str) -> ConflictLifecycleController:
        if repo_id not in self._controllers:
            ctl = ConflictLifecycleController(
                self.workspace.id,
                repo_id,
                self.service,
                self.display,
                attempt_branch=self.workspace.branch,
            )
            ctl.refresh(find_status(self.statuses, repo_id))
            self._controllers[repo_id] = ctl
        return self._controllers[repo_id]

    def error_for(self, repo_id: str, kind: ActionKind) -> str | None:
        return self._errors.get((repo_id, kind))

    def clear_error(self, repo_id: str, kind: ActionKind) -> None:
        self._errors.pop((repo_id, kind), None)

    def repo_id(self, repo_id: str | None = None) -> str | None:
        return select_repo_id(
            self.statuses,
            repo_id or self.selected_repo_id,
            self.workspace.repos,
        )

    def summary(self, repo_id: str | None = None) -> RepoSummary | None:
        return summarize(
            self.statuses, self.repo_id(repo_id), self.workspace.repos
        )

    def gate_for(self, repo_id: str | None = None) -> GateResult:
        rid = self.repo_id(repo_id)
        flags = self.flags_for(rid) if rid else ActionFlags()
        return self.gate.evaluate(
            self.summary(rid), self.is_attempt_running, flags
        )

    def conflicted_repo_id(self) -> str | None:
        status = find_repo_with_conflicts(self.statuses)
        return status.repo_id if status else None

    def conflict_snapshot(
        self,
        repo_id: str | None = None,
        with_instructions: bool = True,
    ) -> ConflictSnapshot | None:
        """Snapshot for the given repository, else the first conflicted
        one. Abort and resolve are disabled while the attempt runs."""
        rid = repo_id or self.conflicted_repo_id()
        if rid is None:
            return None
        ctl = self.controller(rid)
        instructions = ctl.resolution_instructions() if with_instructions else None
        return ctl.snapshot(
            resolution_instructions=instructions,
            enable_abort=not self.is_attempt_running,
            enable_resolve=not self.is_attempt_running,
        )

    # Refresh

    def refresh(self, statuses: Sequence[BranchStatus]) -> None:
        """Adopt a status refresh; every derived value follows it."""
        self.statuses = list(statuses)
        for repo_id, ctl in self._controllers.items():
            ctl.refresh(find_status(self.statuses, repo_id))
        for status in self.statuses:
            if status.in_conflict:
                self.controller(status.repo_id)
        logger.debug(
            "Branch status refreshed",
            workspace_id=self.workspace.id,
            repos=len(self.statuses),
        )

    async def refresh_from_source(self) -> list[BranchStatus]:
        """Re-fetch status. A failed read keeps the last known status."""
        if self.status_source is None:
            return self.statuses
        try:
            statuses = await self.status_source.fetch_branch_status(
                self.workspace.id
            )
        except GitServiceError as e:
            logger.error(
                "Branch status refresh failed",
                workspace_id=self.workspace.id,
                error=e.message,
            )
            return self.statuses
        self.refresh(statuses)
        return self.statuses

    async def set_attempt_running(self, running: bool) -> None:
        """Track the attempt's process; re-fetch status when it stops,
        since the agent may have changed the repository."""
        was_running = self.is_attempt_running
        self.is_attempt_running = running
        if was_running and not running:
            logger.debug(
                "Attempt stopped, refreshing status",
                workspace_id=self.workspace.id,
            )
            await self.refresh_from_source()

    # Dispatch

    def _reject(
        self, kind: ActionKind, repo_id: str | None, reason: str
    ) -> ActionOutcome:
        logger.warn(
            "Action rejected",
            action=kind.value,
            repo_id=repo_id,
            reason=reason,
        )
        return ActionOutcome(action=kind, repo_id=repo_id, rejected=True)

    def _pulse(self, repo_id: str, flags: ActionFlags, name: str) -> None:
        setattr(flags, name, True)

        def expire():
            setattr(flags, name, False)

        self.timers.schedule(
            (repo_id, name), self.timing.success_pulse_seconds, expire
        )

    async def _dispatch(
        self,
        kind: ActionKind,
        repo_id: str | None,
        call: Callable[[str], Awaitable[Any]],
        push_mode: PushMode | None = None,
    ) -> ActionOutcome:
        rid = self.repo_id(repo_id)
        if rid is None:
            return self._reject(kind, None, "no repository")

        flags = self.flags_for(rid)
        if flags.any_pending or self._aborting(rid):
            return self._reject(kind, rid, "operation pending")

        gate = self.gate_for(rid)
        if push_mode is not None and gate.push_mode is not push_mode:
            return self._reject(kind, rid, f"push mode is {gate.push_mode.value}")
        if not gate.for_kind(kind).enabled:
            return self._reject(kind, rid, "disabled")

        pending, success = _FLAGS[kind]
        self.clear_error(rid, kind)
        setattr(flags, pending, True)
        logger.info("Dispatching git action", action=kind.value, repo_id=rid)
        try:
            result = await call(rid)
        except GitServiceError as e:
            logger.error(
                "Git action failed",
                action=kind.value,
                repo_id=rid,
                error=e.message,
            )
            self._errors[(rid, kind)] = e.message
            return ActionOutcome(action=kind, repo_id=rid, error=e.message)
        finally:
            setattr(flags, pending, False)

        if success:
            self._pulse(rid, flags, success)
        logger.info("Git action succeeded", action=kind.value, repo_id=rid)
        await self.refresh_from_source()
        return ActionOutcome(
            action=kind,
            repo_id=rid,
            ok=True,
            result=result if isinstance(result, str) else None,
        )

    async def merge(self, repo_id: str | None = None) -> ActionOutcome:
        return await self._dispatch(
            ActionKind.MERGE, repo_id,
            lambda rid: self.service.merge(self.workspace.id, rid),
        )

    async def push(self, repo_id: str | None = None) -> ActionOutcome:
        """Push to the open pull request."""
        return await self._dispatch(
            ActionKind.PUSH, repo_id,
            lambda rid: self.service.push(self.workspace.id, rid),
            push_mode=PushMode.PUSH_TO_PR,
        )

    async def create_pr(
        self,
        title: str,
        body: str | None = None,
        target_branch: str | None = None,
        repo_id: str | None = None,
    ) -> ActionOutcome:
        """Open a pull request; the outcome's result is its URL when
        the service reports one."""

        def call(rid: str):
            target = target_branch or self._target_branch(rid)
            return self.service.create_pr(
                self.workspace.id, rid, target, title, body
            )

        return await self._dispatch(
            ActionKind.CREATE_PR, repo_id, call,
            push_mode=PushMode.CREATE_PR,
        )

    async def force_push(self, repo_id: str | None = None) -> ActionOutcome:
        return await self._dispatch(
            ActionKind.FORCE_PUSH, repo_id,
            lambda rid: self.service.force_push(self.workspace.id, rid),
        )

    async def rebase(
        self,
        new_base_branch: str | None = None,
        old_base_branch: str | None = None,
        repo_id: str | None = None,
    ) -> ActionOutcome:
        """Rebase onto new_base_branch; both branches default to the
        repository's current target."""

        def call(rid: str):
            current = self._target_branch(rid) or ""
            return self.service.rebase(
                self.workspace.id,
                rid,
                new_base_branch or current,
                old_base_branch or current,
            )

        return await self._dispatch(ActionKind.REBASE, repo_id, call)

    async def change_target_branch(
        self, new_target_branch: str, repo_id: str | None = None
    ) -> ActionOutcome:
        return await self._dispatch(
            ActionKind.CHANGE_TARGET, repo_id,
            lambda rid: self.service.change_target_branch(
                self.workspace.id, rid, new_target_branch
            ),
        )

    async def abort_conflicts(
        self, repo_id: str | None = None
    ) -> ActionOutcome:
        """Abort the conflicted operation through the repository's
        controller, which guards against duplicate aborts."""
        kind = ActionKind.ABORT_CONFLICTS
        rid = repo_id or self.conflicted_repo_id()
        if rid is None:
            return self._reject(kind, None, "no conflicted repository")
        if self.is_attempt_running:
            return self._reject(kind, rid, "attempt running")

        flags = self.flags_for(rid)
        if flags.any_pending or self._aborting(rid):
            return self._reject(kind, rid, "operation pending")

        ctl = self.controller(rid)
        if ctl.phase is not ConflictPhase.CONFLICTED:
            return self._reject(kind, rid, f"phase is {ctl.phase.value}")

        self.clear_error(rid, kind)
        flags.aborting = True
        try:
            aborted = await ctl.abort()
        finally:
            flags.aborting = False
        if aborted:
            await self.refresh_from_source()
            return ActionOutcome(action=kind, repo_id=rid, ok=True)
        error = ctl.abort_failure or "Abort failed"
        self._errors[(rid, kind)] = error
        return ActionOutcome(action=kind, repo_id=rid, error=error)

    def _aborting(self, repo_id: str) -> bool:
        ctl = self._controllers.get(repo_id)
        return ctl is not None and ctl.aborting

    def _target_branch(self, repo_id: str) -> str | None:
        status = find_status(self.statuses, repo_id)
        if status and status.target_branch_name:
            return status.target_branch_name
        binding = self.workspace.binding(repo_id)
        return binding.target_branch if binding else None

    def close(self) -> None:
        """Cancel pending pulse timers."""
        self.timers.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):  # noqa: U100
        self.close()
        return False
