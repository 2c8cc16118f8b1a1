"""Workspaces, repository bindings and execution processes."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class RunReason(str, Enum):
    """Why an execution process was started."""

    SETUP_SCRIPT = "setupscript"
    CLEANUP_SCRIPT = "cleanupscript"
    CODING_AGENT = "codingagent"
    DEV_SERVER = "devserver"

    @property
    def shown_in_logs(self) -> bool:
        # Dev servers run beside the attempt, not as part of its history
        return self is not RunReason.DEV_SERVER


class RepoBinding(BaseModel):
    """A repository bound to a workspace with its target branch."""

    repo_id: str
    repo_name: str | None = None
    target_branch: str


class Workspace(BaseModel):
    """One task attempt against one or more repositories."""

    id: str
    branch: str
    repos: list[RepoBinding] = Field(default_factory=list)

    def binding(self, repo_id: str) -> RepoBinding | None:
        return next((r for r in self.repos if r.repo_id == repo_id), None)


class ExecutionProcess(BaseModel):
    """One logged run (agent turn, setup or cleanup script)."""

    id: str
    run_reason: RunReason
    dropped: bool = False
    created_at: datetime | None = None
    status: str | None = None


class ExecutionProcessRepoState(BaseModel):
    """HEAD of one repository when a process started (its checkpoint)."""

    execution_process_id: str
    repo_id: str
    before_head_commit: str | None = None
    after_head_commit: str | None = None
