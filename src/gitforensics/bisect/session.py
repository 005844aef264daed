"""Bisect session bound to one loaded commit sequence."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING

from gitforensics.bisect.models import (
    BisectState,
    BisectStatus,
    CommitRef,
    HistoryOrder,
)
from gitforensics.bisect.reducer import (
    Action,
    MarkBad,
    MarkGood,
    Reset,
    Start,
    Undo,
    reduce,
)
from gitforensics.bisect.status import derive_statuses
from gitforensics.core.log import logger

if TYPE_CHECKING:
    from gitforensics.persistence.store import StateStore


class BisectSession:
    """Owner of the current BisectState for a commit sequence.

    Each operation runs the reducer and replaces the held state. When a
    store is given, the state is recovered from it on construction and
    saved after every change. `on_select` is called with the commit the
    host should navigate to (the suspect once converged, otherwise the
    midpoint) whenever that changes.
    """

    def __init__(
        self,
        commits: Iterable[CommitRef],
        on_select: Callable[[str], None] | None = None,
        store: StateStore | None = None,
        order: HistoryOrder = HistoryOrder.OLDEST_FIRST,
    ):
        self.commits = list(commits)
        self.order = order
        self._on_select = on_select
        self._store = store
        self._state = BisectState()

        if store is not None:
            recovered = store.load()
            if recovered is not None:
                logger.info(
                    "Recovered bisect session",
                    status="Active" if recovered.is_active else "Idle",
                )
                self._state = recovered

    @property
    def state(self) -> BisectState:
        return self._state

    @property
    def statuses(self) -> dict[str, BisectStatus]:
        return derive_statuses(self._state)

    @property
    def bisect_range(self) -> tuple[str | None, str | None] | None:
        """(good, bad) boundaries while a session is active."""
        if not self._state.is_active:
            return None
        return (self._state.good_hash, self._state.bad_hash)

    def start(self, initial_bad_hash: str) -> BisectState:
        return self.dispatch(Start(bad_hash=initial_bad_hash))

    def mark_good(self) -> BisectState:
        return self.dispatch(MarkGood())

    def mark_bad(self) -> BisectState:
        return self.dispatch(MarkBad())

    def undo(self) -> BisectState:
        return self.dispatch(Undo())

    def reset(self) -> BisectState:
        state = self.dispatch(Reset())
        if self._store is not None:
            self._store.clear()
        return state

    def dispatch(self, action: Action) -> BisectState:
        """Apply an action, persist the result and notify selection."""
        previous = self._state
        self._state = reduce(previous, action, self.commits, self.order)
        if self._state is previous:
            return self._state

        if self._store is not None:
            self._store.save(self._state)

        before = (previous.current_midpoint, previous.suspected_hash)
        after = (self._state.current_midpoint, self._state.suspected_hash)
        target = self._state.suspected_hash or self._state.current_midpoint
        if self._on_select is not None and after != before and target:
            self._on_select(target)

        return self._state
