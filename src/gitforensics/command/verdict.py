"""Good and bad commands - record a verdict for the midpoint."""

from gitforensics.bisect.session import BisectSession
from gitforensics.command.base import BisectCommand


class GoodCommand(BisectCommand):
    """Mark the commit under test as good (regression absent)."""

    def apply(self, session: BisectSession) -> None:
        session.mark_good()


class BadCommand(BisectCommand):
    """Mark the commit under test as bad (regression present)."""

    def apply(self, session: BisectSession) -> None:
        session.mark_bad()
