"""Workflow nodes for the restore graph."""

from gitgate.workflow.nodes.evaluate import EvaluateRestore
from gitgate.workflow.nodes.load_checkpoint import LoadCheckpoint

__all__ = ["EvaluateRestore", "LoadCheckpoint"]
