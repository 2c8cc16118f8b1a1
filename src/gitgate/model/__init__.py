"""Data model shared by every component."""

from gitgate.model.process import (
    ExecutionProcess,
    ExecutionProcessRepoState,
    RepoBinding,
    RunReason,
    Workspace,
)
from gitgate.model.status import (
    BranchStatus,
    ConflictOp,
    DirectMerge,
    Merge,
    PrInfo,
    PrMerge,
    PrStatus,
)

__all__ = [
    "BranchStatus",
    "ConflictOp",
    "DirectMerge",
    "ExecutionProcess",
    "ExecutionProcessRepoState",
    "Merge",
    "PrInfo",
    "PrMerge",
    "PrStatus",
    "RepoBinding",
    "RunReason",
    "Workspace",
]
