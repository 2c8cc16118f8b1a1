"""Abort command - abort the conflicted operation of a workspace."""

from __future__ import annotations

from pydantic import BaseModel, Field

from gitgate.core.config import State
from gitgate.core.log import logger
from gitgate.model import Workspace
from gitgate.orchestrator import GitActionOrchestrator
from gitgate.service import CommandGitService, GitServiceError


class AbortCommand(BaseModel):
    """Abort an in-progress merge or rebase that stopped on conflicts.

    Parameters:
        repo_id: Repository to abort; defaults to the first conflicted one
    """

    workspace_id: str = Field(description="Workspace (attempt) id")
    repo_id: str | None = Field(
        default=None, description="Conflicted repository"
    )

    async def run_workflow(self, state: State) -> int:
        """Returns:
            Exit code (0=aborted, 1=service failure, 2=nothing to abort)
        """
        service = CommandGitService(state.config.service)
        orchestrator = GitActionOrchestrator(
            Workspace(id=self.workspace_id, branch=""),
            service,
            status_source=service,
            display=state.config.conflicts,
            timing=state.config.timing,
        )
        with orchestrator:
            try:
                orchestrator.refresh(
                    await service.fetch_branch_status(self.workspace_id)
                )
            except GitServiceError as e:
                logger.error(f"Failed to read branch status: {e}")
                return 1

            outcome = await orchestrator.abort_conflicts(self.repo_id)

        if outcome.ok:
            logger.info(f"Aborted conflicts in {outcome.repo_id}")
            return 0
        if outcome.error:
            logger.error(f"Abort failed: {outcome.error}")
            return 1
        return 2
