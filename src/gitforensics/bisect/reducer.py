"""Bisect session transitions as a pure reducer.

Every transition takes the current BisectState and an action and
returns a new BisectState; nothing is mutated. Operations whose
precondition is not met return the state they were given.
"""

from __future__ import annotations

from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict

from gitforensics.bisect.engine import BisectEngine, index_of
from gitforensics.bisect.models import (
    BisectState,
    CommitRef,
    HistoryOrder,
    StepResult,
)
from gitforensics.core.log import logger


class Action(BaseModel):
    """Base for reducer actions."""

    model_config = ConfigDict(frozen=True)


class Start(Action):
    """Begin a session with bad_hash as the known-bad boundary."""

    bad_hash: str


class MarkGood(Action):
    """The current midpoint does not show the regression."""


class MarkBad(Action):
    """The current midpoint shows the regression."""


class Undo(Action):
    """Roll back the last verdict."""


class Reset(Action):
    """End the session."""


def reduce(
    state: BisectState,
    action: Action,
    commits: Sequence[CommitRef],
    order: HistoryOrder = HistoryOrder.OLDEST_FIRST,
) -> BisectState:
    """Apply action to state over the given commit sequence."""
    if isinstance(action, Start):
        return _start(state, action.bad_hash, commits, order)
    if isinstance(action, MarkGood):
        return _narrow(state, commits, order, good=True)
    if isinstance(action, MarkBad):
        return _narrow(state, commits, order, good=False)
    if isinstance(action, Undo):
        return _undo(state)
    if isinstance(action, Reset):
        logger.info("Bisect session reset")
        return BisectState()
    raise TypeError(f"Unknown bisect action: {action!r}")


def _start(
    state: BisectState,
    bad_hash: str,
    commits: Sequence[CommitRef],
    order: HistoryOrder,
) -> BisectState:
    if len(commits) < 2:
        logger.warn(
            "Not enough commits to start bisect", commits=len(commits)
        )
        return state

    oldest = commits[0] if order == HistoryOrder.OLDEST_FIRST else commits[-1]
    logger.info(
        "Starting bisect",
        good=oldest.hash[:8],
        bad=bad_hash[:8],
        commits=len(commits),
    )

    result = _step(commits, order, oldest.hash, bad_hash, frozenset())
    state = BisectState(
        is_active=True, good_hash=oldest.hash, bad_hash=bad_hash
    ).with_step(result)
    _log_step(result)
    return state


def _narrow(
    state: BisectState,
    commits: Sequence[CommitRef],
    order: HistoryOrder,
    good: bool,
) -> BisectState:
    """Retire the span between a boundary and the midpoint.

    A good verdict retires everything from the good boundary up to the
    midpoint and moves the good boundary there; a bad verdict does the
    same from the bad side.
    """
    midpoint = state.current_midpoint
    if not state.is_active or midpoint is None:
        logger.debug("No midpoint under test; verdict ignored")
        return state

    verdict = "good" if good else "bad"
    boundary = state.good_hash if good else state.bad_hash
    boundary_idx = index_of(commits, boundary)
    mid_idx = index_of(commits, midpoint)
    if boundary_idx == -1 or mid_idx == -1:
        logger.warn(
            "Boundary or midpoint missing from history; verdict ignored",
            boundary=boundary,
            midpoint=midpoint,
        )
        return state

    lo, hi = sorted((boundary_idx, mid_idx))
    span = frozenset(commit.hash for commit in commits[lo:hi + 1])
    logger.info(f"Midpoint marked {verdict}", midpoint=midpoint[:8])
    logger.debug("Eliminating range", start=lo, end=hi, count=len(span))

    eliminated = state.eliminated_hashes | span
    good_hash = midpoint if good else state.good_hash
    bad_hash = state.bad_hash if good else midpoint

    result = _step(commits, order, good_hash, bad_hash, eliminated)
    new_state = state.with_step(
        result,
        good_hash=good_hash,
        bad_hash=bad_hash,
        eliminated_hashes=eliminated,
        history=state.history + (state.snapshot(),),
    )
    _log_step(result)
    return new_state


def _undo(state: BisectState) -> BisectState:
    if not state.history:
        logger.debug("Nothing to undo")
        return state

    previous = state.history[-1]
    logger.info(
        "Undoing last verdict",
        midpoint=(previous.current_midpoint or "")[:8],
        depth=len(state.history) - 1,
    )
    return previous.model_copy(update={"history": state.history[:-1]})


def _log_step(result: StepResult) -> None:
    if not result.can_proceed:
        logger.warn("No midpoint or suspected hash found in calculation")
    elif result.suspected:
        logger.info("Binary search converged", culprit=result.suspected[:8])
    else:
        logger.info(
            "Midpoint suggested",
            midpoint=result.midpoint[:8],
            remaining=result.remaining,
            steps=result.estimated_steps,
        )


def _step(
    commits: Sequence[CommitRef],
    order: HistoryOrder,
    good_hash: str,
    bad_hash: str,
    eliminated: frozenset[str],
) -> StepResult:
    """Run the engine over the session window.

    The engine sees the sequence oldest first, with the bad boundary
    eliminated (its verdict is known) and the good boundary kept as the
    first candidate. The midpoint is then always an untested commit
    strictly between the boundaries, and the search converges exactly
    when none is left.
    """
    if order == HistoryOrder.NEWEST_FIRST:
        commits = commits[::-1]
    window = (eliminated | {bad_hash}) - {good_hash}
    return BisectEngine.step(commits, good_hash, bad_hash, window)
