"""Value types for commit bisection."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from gitforensics.core.base import BaseState


class HistoryOrder(str, Enum):
    """How a commit sequence is ordered along time."""

    OLDEST_FIRST = "oldest_first"
    NEWEST_FIRST = "newest_first"


class BisectStatus(str, Enum):
    """Classification of a commit during a bisect session."""

    GOOD = "good"
    BAD = "bad"
    SUSPECTED = "suspected"
    SKIPPED = "skipped"


class CommitRef(BaseModel):
    """A commit in the sequence being bisected.

    Only `hash` matters to the engine; the rest is carried through from
    the history source for display.
    """

    hash: str
    author: str | None = None
    date: str | None = None
    message: str | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def short(self) -> str:
        return self.hash[:8]


class StepResult(BaseModel):
    """Outcome of one engine step."""

    midpoint: str | None = None
    suspected: str | None = None
    remaining: int = 0
    estimated_steps: int = 0

    model_config = ConfigDict(frozen=True)

    @property
    def can_proceed(self) -> bool:
        """False for the all-null result of an unresolvable boundary."""
        return self.midpoint is not None or self.suspected is not None


class BisectState(BaseState):
    """Immutable snapshot of a bisect session.

    Every transition builds a new BisectState. Snapshots pushed onto
    `history` carry an empty history of their own.

    Field aliases are the camelCase keys of the persisted record.
    """

    is_active: bool = False
    good_hash: str | None = None
    bad_hash: str | None = None
    current_midpoint: str | None = None
    eliminated_hashes: frozenset[str] = Field(default_factory=frozenset)
    suspected_hash: str | None = None
    remaining: int = 0
    estimated_steps: int = Field(default=0, alias="steps")
    history: tuple[BisectState, ...] = ()

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    @property
    def is_converged(self) -> bool:
        return self.is_active and self.suspected_hash is not None

    @property
    def can_undo(self) -> bool:
        return bool(self.history)

    def snapshot(self) -> BisectState:
        """Copy of this state suitable for the undo stack."""
        return self.model_copy(update={"history": ()})

    def with_step(self, result: StepResult, **changes) -> BisectState:
        """Copy with the engine result applied, plus any other changes."""
        return self.model_copy(update={
            **changes,
            "current_midpoint": result.midpoint,
            "suspected_hash": result.suspected,
            "remaining": result.remaining,
            "estimated_steps": result.estimated_steps,
        })


__all__ = [
    "BisectState",
    "BisectStatus",
    "CommitRef",
    "HistoryOrder",
    "StepResult",
]
