"""Graph workflow definition."""

from pydantic_graph import Graph

from gitgate.core.config import State
from gitgate.core.log import logger
from gitgate.workflow.nodes import EvaluateRestore, LoadCheckpoint


def create_restore_workflow(state_type: type[State] = State) -> Graph:
    """Create the checkpoint restore graph.

    LoadCheckpoint -> EvaluateRestore -> End[RestoreResult | None]

    Args:
        state_type: State class the graph runs against

    Returns:
        Graph workflow
    """
    logger.debug("Building restore workflow graph")
    return Graph(
        nodes=(LoadCheckpoint, EvaluateRestore),
        state_type=state_type,
    )
