"""Status command - show the session and annotated history."""

from gitforensics.bisect.session import BisectSession
from gitforensics.command.base import BisectCommand, render_log


class StatusCommand(BisectCommand):
    """Show the commit under test and every commit's bisect status."""

    def apply(self, session: BisectSession) -> None:
        if session.state.is_active:
            print(render_log(session))
