"""Shared plumbing for bisect subcommands."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING

from pydantic import BaseModel

from gitforensics.bisect.models import BisectStatus
from gitforensics.bisect.session import BisectSession
from gitforensics.core.log import logger
from gitforensics.history.loader import HistoryError, load_history
from gitforensics.persistence.store import StateStore

if TYPE_CHECKING:
    from gitforensics.core.config import State

_MARKERS = {
    BisectStatus.GOOD: "good",
    BisectStatus.BAD: "bad",
    BisectStatus.SUSPECTED: "SUSPECT",
    BisectStatus.SKIPPED: "skip",
}


def open_session(state: State) -> BisectSession:
    """Load the configured history and recover any saved session.

    Raises:
        HistoryError: If the history cannot be loaded
    """
    commits = load_history(state.config.history)
    persistence = state.config.persistence
    store = StateStore(persistence.state_file) if persistence.enabled else None
    return BisectSession(commits, store=store)


def describe(session: BisectSession) -> str:
    """One-line summary of where the session stands."""
    bisect = session.state
    if not bisect.is_active:
        return "No bisect in progress"
    if bisect.is_converged:
        return f"Culprit: {bisect.suspected_hash}"
    if bisect.current_midpoint:
        return (
            f"Test {bisect.current_midpoint} "
            f"({bisect.remaining} candidates, "
            f"~{bisect.estimated_steps} steps left)"
        )
    return "Cannot proceed: a boundary is missing from the loaded history"


def render_log(session: BisectSession) -> str:
    """Commits newest first, annotated with their bisect status."""
    statuses = session.statuses
    midpoint = session.state.current_midpoint
    lines = []
    for commit in reversed(session.commits):
        status = statuses.get(commit.hash)
        marker = _MARKERS[status] if status else ""
        if commit.hash == midpoint:
            marker = "TEST"
        lines.append(
            f"{marker:>7}  {commit.short}  {commit.message or ''}".rstrip()
        )
    return "\n".join(lines)


class BisectCommand(BaseModel):
    """Base for subcommands that apply one operation to the session."""

    @abstractmethod
    def apply(self, session: BisectSession) -> None:
        """Apply this command's operation to the session."""

    def run(self, state: State) -> int:
        """Open the session, apply this command and report.

        Returns:
            Exit code (0=success, 1=history could not be loaded or
            commit not found)
        """
        try:
            session = open_session(state)
            self.apply(session)
        except HistoryError as e:
            logger.error("Bisect command failed", error=str(e))
            return 1

        print(describe(session))
        return 0
