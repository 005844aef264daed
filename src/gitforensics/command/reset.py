"""Reset command - end the bisect session."""

from gitforensics.bisect.session import BisectSession
from gitforensics.command.base import BisectCommand


class ResetCommand(BisectCommand):
    """End the bisect session and delete its saved state."""

    def apply(self, session: BisectSession) -> None:
        session.reset()
