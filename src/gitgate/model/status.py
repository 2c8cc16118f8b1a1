"""Branch status records reported by the git-operations service."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, Field, model_validator

from gitgate.core.log import logger


class ConflictOp(str, Enum):
    """Git operation that left a repository conflicted."""

    MERGE = "merge"
    REBASE = "rebase"
    CHERRY_PICK = "cherry_pick"
    REVERT = "revert"


class PrStatus(str, Enum):
    """Pull request state."""

    OPEN = "open"
    MERGED = "merged"
    CLOSED = "closed"
    UNKNOWN = "unknown"


class PrInfo(BaseModel):
    """Pull request details."""

    number: int
    url: str
    status: PrStatus
    merged_at: datetime | None = None
    merge_commit_sha: str | None = None


class DirectMerge(BaseModel):
    """A merge commit or fast-forward that landed on the target."""

    type: Literal["direct"] = "direct"
    merge_commit: str | None = None
    target_branch_name: str | None = None
    created_at: datetime | None = None


class PrMerge(BaseModel):
    """A pull request opened for the attempt branch."""

    type: Literal["pr"] = "pr"
    pr_info: PrInfo
    created_at: datetime | None = None


Merge = Annotated[DirectMerge | PrMerge, Field(discriminator="type")]


class BranchStatus(BaseModel):
    """Git status of one repository bound to a workspace.

    Produced by the service after every operation and treated as
    authoritative: derived flags are recomputed from it on every
    refresh.
    """

    repo_id: str
    repo_name: str | None = None
    target_branch_name: str | None = None
    head_oid: str | None = None
    commits_ahead: int = 0
    commits_behind: int = 0
    remote_commits_ahead: int = 0
    has_uncommitted_changes: bool = False
    uncommitted_count: int = 0
    untracked_count: int = 0
    conflicted_files: list[str] = Field(default_factory=list)
    conflict_op: ConflictOp | None = None
    is_rebase_in_progress: bool = False
    merges: list[Merge] = Field(
        default_factory=list,
        description="Merge records, most recent first",
    )

    @model_validator(mode="before")
    @classmethod
    def _nulls_to_defaults(cls, data):
        # The backend sends null for empty counters and lists
        if isinstance(data, dict):
            data = {k: v for k, v in data.items() if v is not None}
        return data

    @model_validator(mode="after")
    def _check_conflict_invariant(self) -> "BranchStatus":
        conflicting = bool(self.conflicted_files) or self.is_rebase_in_progress
        if conflicting != (self.conflict_op is not None):
            logger.warn(
                "Inconsistent conflict state in branch status",
                repo_id=self.repo_id,
                conflict_op=str(self.conflict_op),
                conflicted_files=len(self.conflicted_files),
                rebase_in_progress=self.is_rebase_in_progress,
            )
        return self

    @property
    def display_name(self) -> str:
        return self.repo_name or self.repo_id

    @property
    def in_conflict(self) -> bool:
        """True while any conflict marker of the repository is set."""
        return (
            self.conflict_op is not None
            or bool(self.conflicted_files)
            or self.is_rebase_in_progress
        )
