"""Action gating."""

from gitgate.gate.actions import (
    ActionFlags,
    ActionKind,
    ActionState,
    GateResult,
    GitActionGate,
    Phase,
    PushMode,
)

__all__ = [
    "ActionFlags",
    "ActionKind",
    "ActionState",
    "GateResult",
    "GitActionGate",
    "Phase",
    "PushMode",
]
