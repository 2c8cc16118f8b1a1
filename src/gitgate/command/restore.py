"""Restore command - decide a checkpoint restore for a process."""

from __future__ import annotations

import json

from pydantic import BaseModel, Field

from gitgate.core.config import State
from gitgate.core.log import logger
from gitgate.service import CommandGitService, GitServiceError


class RestoreCommand(BaseModel):
    """Decide whether logs can be restored to a process.

    Loads the process history, branch status and the process's
    checkpoints, applies the given choices and prints the decision. The
    reset itself is left to the caller.
    """

    workspace_id: str = Field(description="Workspace (attempt) id")
    process_id: str = Field(description="Execution process to restore to")
    acknowledge_uncommitted: bool = Field(
        default=False, description="Accept losing uncommitted changes"
    )
    worktree_reset: bool = Field(
        default=False, description="Reset worktrees to the checkpoint"
    )
    force_reset: bool = Field(
        default=False, description="Allow the reset to discard changes"
    )

    async def run_workflow(self, state: State) -> int:
        """Returns:
            Exit code (0=confirmed, 1=service failure, 2=blocked)
        """
        rs = state.runtime.restore
        rs.workspace_id = self.workspace_id
        rs.process_id = self.process_id
        rs.acknowledge_uncommitted = self.acknowledge_uncommitted
        rs.worktree_reset = self.worktree_reset
        rs.force_reset = self.force_reset
        rs.service = CommandGitService(state.config.service)

        from gitgate.workflow.graph import create_restore_workflow
        from gitgate.workflow.nodes import LoadCheckpoint

        workflow = create_restore_workflow(type(state))

        result = None
        try:
            async with workflow.iter(LoadCheckpoint(), state=state) as run:
                async for node in run:
                    if hasattr(node, 'data'):
                        result = node.data
        except GitServiceError as e:
            logger.error(f"Restore failed: {e}")
            return 1

        engine = rs.engine
        summary = engine.summary
        print(json.dumps({
            "process_id": self.process_id,
            "status": rs.status,
            "load_error": engine.error,
            "later": engine.later.model_dump(),
            "summary": {
                **summary.model_dump(),
                "can_git_reset": summary.can_git_reset,
                "has_risk": summary.has_risk,
            },
            "repos": [r.model_dump() for r in engine.repos],
            "result": result.model_dump() if result else None,
        }, indent=2))

        if result is None:
            return 2
        return 0
