"""External git-operations service interfaces and adapters."""

from gitgate.service.base import (
    BranchStatusSource,
    GateClosedError,
    GitOperationsService,
    GitServiceError,
    ProcessLogSource,
)
from gitgate.service.commands import CommandGitService

__all__ = [
    "BranchStatusSource",
    "CommandGitService",
    "GateClosedError",
    "GitOperationsService",
    "GitServiceError",
    "ProcessLogSource",
]
