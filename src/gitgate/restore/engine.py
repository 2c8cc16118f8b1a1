"""Checkpoint restore decision table.

Restoring to a process discards every later process and, optionally,
resets each repository's worktree to the HEAD recorded when the target
process began. CheckpointRestoreEngine owns the user's toggles and
decides whether the restore can be confirmed. It never performs the
reset itself; confirm() hands the decision back to the caller.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel

from gitgate.core.log import logger
from gitgate.model import (
    BranchStatus,
    ExecutionProcess,
    ExecutionProcessRepoState,
    RunReason,
)
from gitgate.service.base import (
    GateClosedError,
    GitServiceError,
    ProcessLogSource,
)


class LaterProcesses(BaseModel):
    """Processes that a restore would permanently delete."""

    count: int = 0
    coding: int = 0
    setup: int = 0
    cleanup: int = 0

    @property
    def has_later(self) -> bool:
        return self.count > 0


def ordered_processes(
    processes: Sequence[ExecutionProcess],
) -> list[ExecutionProcess]:
    """Creation order: list order, stable-sorted by created_at when
    every process carries one."""
    procs = list(processes)
    if procs and all(p.created_at is not None for p in procs):
        procs.sort(key=lambda p: _aware(p.created_at))
    return procs


def _aware(ts: datetime) -> datetime:
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


def later_processes(
    processes: Sequence[ExecutionProcess], target_id: str
) -> LaterProcesses:
    """Count the visible processes created after the target."""
    procs = [
        p for p in ordered_processes(processes)
        if not p.dropped and p.run_reason.shown_in_logs
    ]
    idx = next((i for i, p in enumerate(procs) if p.id == target_id), None)
    if idx is None:
        return LaterProcesses()

    later = procs[idx + 1:]
    return LaterProcesses(
        count=len(later),
        coding=sum(p.run_reason is RunReason.CODING_AGENT for p in later),
        setup=sum(p.run_reason is RunReason.SETUP_SCRIPT for p in later),
        cleanup=sum(p.run_reason is RunReason.CLEANUP_SCRIPT for p in later),
    )


class RepoCheckpoint(BaseModel):
    """A repository's checkpoint joined with its live status."""

    repo_id: str
    repo_name: str
    target_sha: str | None = None
    head_oid: str | None = None
    has_uncommitted: bool = False
    uncommitted_count: int = 0
    untracked_count: int = 0

    @property
    def needs_reset(self) -> bool:
        # No recorded checkpoint means nothing to reset to
        if not self.target_sha:
            return False
        return self.target_sha != self.head_oid or self.has_uncommitted


def join_checkpoints(
    repo_states: Sequence[ExecutionProcessRepoState],
    statuses: Sequence[BranchStatus] | None,
) -> list[RepoCheckpoint]:
    """Pair every recorded repo state with that repository's status.

    Repositories without a status count as clean with an unknown head.
    """
    by_repo = {s.repo_id: s for s in statuses or []}
    result = []
    for state in repo_states:
        status = by_repo.get(state.repo_id)
        result.append(RepoCheckpoint(
            repo_id=state.repo_id,
            repo_name=(
                status.repo_name if status and status.repo_name
                else state.repo_id
            ),
            target_sha=state.before_head_commit,
            head_oid=status.head_oid if status else None,
            has_uncommitted=(
                status.has_uncommitted_changes if status else False
            ),
            uncommitted_count=status.uncommitted_count if status else 0,
            untracked_count=status.untracked_count if status else 0,
        ))
    return result


class CheckpointSummary(BaseModel):
    """Aggregate flags over every repository of the restore."""

    any_dirty: bool = False
    total_uncommitted: int = 0
    total_untracked: int = 0
    need_git_reset: bool = False
    repo_count: int = 0

    @property
    def can_git_reset(self) -> bool:
        return self.need_git_reset and not self.any_dirty

    @property
    def has_risk(self) -> bool:
        return self.any_dirty

    @property
    def reset_requires_force(self) -> bool:
        return self.need_git_reset and not self.can_git_reset

    @classmethod
    def of(cls, repos: Sequence[RepoCheckpoint]) -> "CheckpointSummary":
        return cls(
            any_dirty=any(r.has_uncommitted for r in repos),
            total_uncommitted=sum(r.uncommitted_count for r in repos),
            total_untracked=sum(r.untracked_count for r in repos),
            need_git_reset=any(r.needs_reset for r in repos),
            repo_count=len(repos),
        )


class RestoreResult(BaseModel):
    """Decision handed to whoever performs the restore."""

    action: Literal["confirmed", "canceled"]
    perform_git_reset: bool = False
    force_when_dirty: bool = False


class CheckpointRestoreEngine:
    """User toggles and confirmation gate for restoring to a process."""

    def __init__(
        self,
        target_process_id: str,
        processes: Sequence[ExecutionProcess] | None = None,
        branch_status: Sequence[BranchStatus] | None = None,
        initial_worktree_reset_on: bool = False,
        initial_force_reset: bool = False,
    ):
        self.target_process_id = target_process_id
        self.processes = list(processes or [])
        self.branch_status = list(branch_status or [])

        self.loading = True
        self.error: str | None = None
        self.repo_states: list[ExecutionProcessRepoState] = []

        self.acknowledge_uncommitted = False
        self.worktree_reset_on = initial_worktree_reset_on
        self.force_reset = initial_force_reset

    # Data

    def load_repo_states(
        self, repo_states: Sequence[ExecutionProcessRepoState]
    ) -> None:
        self.repo_states = list(repo_states)
        self.loading = False
        logger.debug(
            "Checkpoint repo states loaded",
            process_id=self.target_process_id,
            repos=len(self.repo_states),
        )

    async def load(self, source: ProcessLogSource) -> None:
        """Fetch the target's repo states. A failed fetch still ends
        loading, with no repositories and the error recorded."""
        self.loading = True
        try:
            states = await source.get_repo_states(self.target_process_id)
        except GitServiceError as e:
            logger.error(
                "Failed to load checkpoint repo states",
                process_id=self.target_process_id,
                error=e.message,
            )
            self.error = e.message
            self.repo_states = []
            self.loading = False
            return
        self.error = None
        self.load_repo_states(states)

    def update_branch_status(self, statuses: Sequence[BranchStatus]) -> None:
        self.branch_status = list(statuses)

    def update_processes(self, processes: Sequence[ExecutionProcess]) -> None:
        self.processes = list(processes)

    # Derived (recomputed on every access)

    @property
    def later(self) -> LaterProcesses:
        return later_processes(self.processes, self.target_process_id)

    @property
    def repos(self) -> list[RepoCheckpoint]:
        return join_checkpoints(self.repo_states, self.branch_status)

    @property
    def summary(self) -> CheckpointSummary:
        return CheckpointSummary.of(self.repos)

    @property
    def is_confirm_disabled(self) -> bool:
        if self.loading:
            return True
        s = self.summary
        if s.any_dirty and not self.acknowledge_uncommitted:
            return True
        return (
            s.has_risk
            and self.worktree_reset_on
            and s.need_git_reset
            and not self.force_reset
        )

    # Toggles

    def set_acknowledge_uncommitted(self, value: bool) -> None:
        self.acknowledge_uncommitted = value

    def toggle_acknowledge_uncommitted(self) -> None:
        self.acknowledge_uncommitted = not self.acknowledge_uncommitted

    def toggle_worktree_reset(self) -> bool:
        """Flip the worktree reset toggle.

        When the reset would discard dirty changes and force is off,
        the toggle can only switch reset off; re-arming it requires
        enabling force first.

        Returns:
            The new worktree_reset_on value
        """
        if self.summary.reset_requires_force and not self.force_reset:
            self.worktree_reset_on = False
        else:
            self.worktree_reset_on = not self.worktree_reset_on
        return self.worktree_reset_on

    def set_force_reset(self, value: bool) -> None:
        self.force_reset = value
        if value:
            self.worktree_reset_on = True

    def toggle_force_reset(self) -> bool:
        self.set_force_reset(not self.force_reset)
        return self.force_reset

    # Outcome

    def confirm(self) -> RestoreResult:
        """Resolve the restore as confirmed.

        Raises:
            GateClosedError: If called while is_confirm_disabled
        """
        if self.is_confirm_disabled:
            raise GateClosedError(
                f"Restore to {self.target_process_id} is not confirmable"
            )
        result = RestoreResult(
            action="confirmed",
            perform_git_reset=self.worktree_reset_on,
            force_when_dirty=self.force_reset,
        )
        logger.info(
            "Restore confirmed",
            process_id=self.target_process_id,
            perform_git_reset=result.perform_git_reset,
            force_when_dirty=result.force_when_dirty,
            later=self.later.count,
        )
        return result

    def cancel(self) -> RestoreResult:
        logger.info("Restore canceled", process_id=self.target_process_id)
        return RestoreResult(action="canceled")
