"""Start command - begin bisecting from a known-bad commit."""

from pydantic_settings import CliPositionalArg

from gitforensics.bisect.session import BisectSession
from gitforensics.command.base import BisectCommand
from gitforensics.history.loader import find_commit


class StartCommand(BisectCommand):
    """Start a bisect session.

    The oldest loaded commit is taken as good and BAD (a full hash or
    unique prefix) as bad. Any previous session is discarded.
    """

    bad: CliPositionalArg[str]

    def apply(self, session: BisectSession) -> None:
        session.start(find_commit(session.commits, self.bad).hash)
