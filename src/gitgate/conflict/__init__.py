"""Conflict lifecycle."""

from gitgate.conflict.controller import (
    ConflictFileList,
    ConflictLifecycleController,
    ConflictPhase,
    ConflictSnapshot,
    banner_heading,
    build_resolve_conflicts_instructions,
    cap_files,
    op_label,
)

__all__ = [
    "ConflictFileList",
    "ConflictLifecycleController",
    "ConflictPhase",
    "ConflictSnapshot",
    "banner_heading",
    "build_resolve_conflicts_instructions",
    "cap_files",
    "op_label",
]
