"""LoadCheckpoint node - gather processes, status and repo states."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, GraphRunContext

from gitgate.core.config import State
from gitgate.core.log import logger
from gitgate.restore.engine import CheckpointRestoreEngine
from gitgate.workflow.nodes.evaluate import EvaluateRestore


@dataclass
class LoadCheckpoint(BaseNode[State]):
    """Build a CheckpointRestoreEngine for the target process."""

    async def run(self, ctx: GraphRunContext[State]) -> EvaluateRestore:
        rs = ctx.state.runtime.restore
        rs.status = "loading"

        processes = await rs.service.list_processes(rs.workspace_id)
        statuses = await rs.service.fetch_branch_status(rs.workspace_id)

        engine = CheckpointRestoreEngine(
            rs.process_id,
            processes,
            statuses,
            initial_worktree_reset_on=rs.worktree_reset,
            initial_force_reset=rs.force_reset,
        )
        await engine.load(rs.service)
        rs.engine = engine

        logger.info(
            "Checkpoint loaded",
            process_id=rs.process_id,
            repos=len(engine.repo_states),
            later=engine.later.count,
        )
        return EvaluateRestore()
