"""External collaborators consumed by the core.

The core never runs git itself. It calls these interfaces and treats
whatever status they report afterwards as the truth.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from gitgate.model import BranchStatus, ExecutionProcess, ExecutionProcessRepoState


class GitServiceError(RuntimeError):
    """An external git operation or read failed.

    Recoverable: callers reset their pending state, show the message
    inline and let the user retry.
    """

    def __init__(self, message: str, operation: str | None = None):
        super().__init__(message)
        self.message = message
        self.operation = operation

    def __str__(self) -> str:
        if self.operation:
            return f"{self.operation}: {self.message}"
        return self.message


class GateClosedError(RuntimeError):
    """A caller invoked an action its gate had disabled."""


@runtime_checkable
class GitOperationsService(Protocol):
    """Git operations for one repository of a workspace."""

    async def merge(self, workspace_id: str, repo_id: str) -> None: ...

    async def push(self, workspace_id: str, repo_id: str) -> None: ...

    async def force_push(self, workspace_id: str, repo_id: str) -> None: ...

    async def create_pr(
        self,
        workspace_id: str,
        repo_id: str,
        target_branch: str | None,
        title: str,
        body: str | None,
    ) -> str | None: ...

    async def rebase(
        self,
        workspace_id: str,
        repo_id: str,
        new_base_branch: str,
        old_base_branch: str,
    ) -> None: ...

    async def change_target_branch(
        self, workspace_id: str, repo_id: str, new_target_branch: str
    ) -> None: ...

    async def abort_conflicts(self, workspace_id: str, repo_id: str) -> None: ...


@runtime_checkable
class BranchStatusSource(Protocol):
    """Read side for branch status (polled, never pushed)."""

    async def fetch_branch_status(
        self, workspace_id: str
    ) -> list[BranchStatus]: ...


@runtime_checkable
class ProcessLogSource(Protocol):
    """Read side for execution process history."""

    async def list_processes(
        self, workspace_id: str
    ) -> list[ExecutionProcess]: ...

    async def get_repo_states(
        self, process_id: str
    ) -> list[ExecutionProcessRepoState]: ...
