"""Branch status aggregation."""

from gitgate.status.aggregator import (
    MergeInfo,
    RepoSummary,
    StatusChip,
    find_repo_with_conflicts,
    find_status,
    merge_info,
    select_repo_id,
    summarize,
    summarize_all,
)

__all__ = [
    "MergeInfo",
    "RepoSummary",
    "StatusChip",
    "find_repo_with_conflicts",
    "find_status",
    "merge_info",
    "select_repo_id",
    "summarize",
    "summarize_all",
]
