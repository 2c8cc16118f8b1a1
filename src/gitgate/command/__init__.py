"""CLI command modules for gitgate."""

from gitgate.command.abort import AbortCommand
from gitgate.command.restore import RestoreCommand
from gitgate.command.status import StatusCommand

__all__ = ["AbortCommand", "RestoreCommand", "StatusCommand"]
