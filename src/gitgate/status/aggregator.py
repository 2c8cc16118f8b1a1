"""Derive actionable flags from raw per-repository branch status.

Everything here is a pure function of its inputs. Callers recompute on
every status refresh; nothing is cached between refreshes.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum

from pydantic import BaseModel

from gitgate.model import (
    BranchStatus,
    DirectMerge,
    Merge,
    PrMerge,
    PrStatus,
    RepoBinding,
)


class MergeInfo(BaseModel):
    """Merge and pull request facts for one repository."""

    has_open_pr: bool = False
    open_pr: PrMerge | None = None
    has_merged_pr: bool = False
    merged_pr: PrMerge | None = None
    has_merged: bool = False
    latest_merge: Merge | None = None


class StatusChip(str, Enum):
    """Headline status shown for the selected repository."""

    CONFLICTS = "conflicts"
    REBASING = "rebasing"
    MERGED = "merged"
    OPEN_PR = "open_pr"
    DIVERGED = "diverged"
    UP_TO_DATE = "up_to_date"


class RepoSummary(BaseModel):
    """Aggregated status of the selected repository."""

    repo_id: str
    status: BranchStatus
    has_conflicts: bool
    merge_info: MergeInfo
    chip: StatusChip

    @property
    def commits_ahead(self) -> int:
        return self.status.commits_ahead

    @property
    def commits_behind(self) -> int:
        return self.status.commits_behind

    @property
    def remote_commits_ahead(self) -> int:
        return self.status.remote_commits_ahead


def _first_pr(merges: Sequence[Merge], status: PrStatus) -> PrMerge | None:
    # merges are most-recent-first, so the first hit is the newest. Two
    # open PRs for one repository should not happen; if they do the
    # newest wins.
    return next(
        (
            m for m in merges
            if isinstance(m, PrMerge) and m.pr_info.status == status
        ),
        None,
    )


def merge_info(status: BranchStatus | None) -> MergeInfo:
    """Scan a repository's merge records."""
    if status is None or not status.merges:
        return MergeInfo()

    open_pr = _first_pr(status.merges, PrStatus.OPEN)
    merged_pr = _first_pr(status.merges, PrStatus.MERGED)
    landed = [
        m for m in status.merges
        if isinstance(m, DirectMerge)
        or (isinstance(m, PrMerge) and m.pr_info.status == PrStatus.MERGED)
    ]
    return MergeInfo(
        has_open_pr=open_pr is not None,
        open_pr=open_pr,
        has_merged_pr=merged_pr is not None,
        merged_pr=merged_pr,
        has_merged=bool(landed),
        latest_merge=status.merges[0],
    )


def status_chip(status: BranchStatus, info: MergeInfo) -> StatusChip:
    """Pick the headline chip, highest priority first."""
    if status.conflicted_files:
        return StatusChip.CONFLICTS
    if status.is_rebase_in_progress:
        return StatusChip.REBASING
    if info.has_merged_pr:
        return StatusChip.MERGED
    if info.has_open_pr:
        return StatusChip.OPEN_PR
    if status.commits_ahead > 0 or status.commits_behind > 0:
        return StatusChip.DIVERGED
    return StatusChip.UP_TO_DATE


def select_repo_id(
    statuses: Sequence[BranchStatus],
    selected_repo_id: str | None = None,
    bindings: Sequence[RepoBinding] | None = None,
) -> str | None:
    """Resolve which repository the view is scoped to.

    The explicit selection wins, then the first bound repository, then
    the first reported status.
    """
    if selected_repo_id:
        return selected_repo_id
    if bindings:
        return bindings[0].repo_id
    if statuses:
        return statuses[0].repo_id
    return None


def find_status(
    statuses: Sequence[BranchStatus], repo_id: str | None
) -> BranchStatus | None:
    if repo_id is None:
        return None
    return next((s for s in statuses if s.repo_id == repo_id), None)


def summarize(
    statuses: Sequence[BranchStatus],
    selected_repo_id: str | None = None,
    bindings: Sequence[RepoBinding] | None = None,
) -> RepoSummary | None:
    """Aggregate the selected repository's status.

    Returns:
        RepoSummary, or None when no status exists for the selection
    """
    repo_id = select_repo_id(statuses, selected_repo_id, bindings)
    status = find_status(statuses, repo_id)
    if status is None:
        return None

    info = merge_info(status)
    return RepoSummary(
        repo_id=status.repo_id,
        status=status,
        has_conflicts=len(status.conflicted_files) > 0,
        merge_info=info,
        chip=status_chip(status, info),
    )


def summarize_all(statuses: Sequence[BranchStatus]) -> list[RepoSummary]:
    """Summaries for every repository, in status order."""
    return [summarize(statuses, s.repo_id) for s in statuses]


def find_repo_with_conflicts(
    statuses: Sequence[BranchStatus],
) -> BranchStatus | None:
    """First repository with a rebase in progress or conflicted files."""
    return next(
        (
            s for s in statuses
            if s.is_rebase_in_progress or s.conflicted_files
        ),
        None,
    )
