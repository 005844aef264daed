"""CLI command modules for gitforensics."""

from gitforensics.command.reset import ResetCommand
from gitforensics.command.start import StartCommand
from gitforensics.command.status import StatusCommand
from gitforensics.command.undo import UndoCommand
from gitforensics.command.verdict import BadCommand, GoodCommand

__all__ = [
    "BadCommand",
    "GoodCommand",
    "ResetCommand",
    "StartCommand",
    "StatusCommand",
    "UndoCommand",
]
