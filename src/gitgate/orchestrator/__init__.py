"""Action orchestration."""

from gitgate.orchestrator.orchestrator import ActionOutcome, GitActionOrchestrator
from gitgate.orchestrator.timers import PulseTimers

__all__ = ["ActionOutcome", "GitActionOrchestrator", "PulseTimers"]
