"""Commit bisection: engine, reducer and session."""

from gitforensics.bisect.engine import BisectEngine
from gitforensics.bisect.models import (
    BisectState,
    BisectStatus,
    CommitRef,
    HistoryOrder,
    StepResult,
)
from gitforensics.bisect.reducer import (
    MarkBad,
    MarkGood,
    Reset,
    Start,
    Undo,
    reduce,
)
from gitforensics.bisect.session import BisectSession
from gitforensics.bisect.status import derive_statuses

__all__ = [
    "BisectEngine",
    "BisectSession",
    "BisectState",
    "BisectStatus",
    "CommitRef",
    "HistoryOrder",
    "MarkBad",
    "MarkGood",
    "Reset",
    "Start",
    "StepResult",
    "Undo",
    "derive_statuses",
    "reduce",
]
