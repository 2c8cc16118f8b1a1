"""EvaluateRestore node - apply the user's choices and decide."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, End, GraphRunContext

from gitgate.core.config import State
from gitgate.core.log import logger
from gitgate.restore.engine import RestoreResult


@dataclass
class EvaluateRestore(BaseNode[State, None, RestoreResult | None]):
    """Feed the requested toggles through the engine and confirm if the
    gate allows it."""

    async def run(
        self, ctx: GraphRunContext[State]
    ) -> End[RestoreResult | None]:
        """Returns:
            End with the confirmed RestoreResult, or None when blocked
        """
        rs = ctx.state.runtime.restore
        engine = rs.engine

        # Same order a user would click: acknowledge, then force
        engine.set_acknowledge_uncommitted(rs.acknowledge_uncommitted)
        if rs.force_reset and not engine.force_reset:
            engine.set_force_reset(True)

        summary = engine.summary
        if engine.is_confirm_disabled:
            rs.status = "blocked"
            logger.warn(
                "Restore blocked",
                process_id=rs.process_id,
                loading=engine.loading,
                any_dirty=summary.any_dirty,
                acknowledged=engine.acknowledge_uncommitted,
                need_git_reset=summary.need_git_reset,
                worktree_reset=engine.worktree_reset_on,
                force_reset=engine.force_reset,
            )
            return End(None)

        rs.status = "confirmed"
        return End(engine.confirm())
