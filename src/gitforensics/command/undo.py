"""Undo command - roll back the last verdict."""

from gitforensics.bisect.session import BisectSession
from gitforensics.command.base import BisectCommand


class UndoCommand(BisectCommand):
    """Restore the session to before the last good/bad verdict."""

    def apply(self, session: BisectSession) -> None:
        session.undo()
