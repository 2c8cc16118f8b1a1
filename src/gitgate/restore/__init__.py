"""Checkpoint restore."""

from gitgate.restore.engine import (
    CheckpointRestoreEngine,
    CheckpointSummary,
    LaterProcesses,
    RepoCheckpoint,
    RestoreResult,
    join_checkpoints,
    later_processes,
    ordered_processes,
)

__all__ = [
    "CheckpointRestoreEngine",
    "CheckpointSummary",
    "LaterProcesses",
    "RepoCheckpoint",
    "RestoreResult",
    "join_checkpoints",
    "later_processes",
    "ordered_processes",
]
